"""
Skill-routing resolver.

Each stage carries an ordered list of skill rules. The first rule whose
logic holds decides the routing label; rule order is significant and is
preserved exactly as authored. If no rule matches, the stage's default
skill applies.
"""

from typing import NamedTuple

from catapulse.core.logic import evaluate_logic_group
from catapulse.core.schema import Stage

UNASSIGNED_SKILL = "No routing defined"


class SkillResolution(NamedTuple):
    """Routing outcome for a stage."""

    skill: str
    matched_rule_index: int | None


def resolve_skill(stage: Stage, form_data: dict) -> SkillResolution:
    """Select the routing label for a stage.

    Args:
        stage: The stage whose skill rules to evaluate.
        form_data: Current values keyed by element ID.

    Returns:
        The skill of the first matching rule and its index, or the stage
        default (``UNASSIGNED_SKILL`` when the stage has none) with index None.
    """
    for index, rule in enumerate(stage.skill_logic):
        if evaluate_logic_group(rule.logic, form_data):
            return SkillResolution(rule.required_skill, index)

    return SkillResolution(stage.default_skill or UNASSIGNED_SKILL, None)
