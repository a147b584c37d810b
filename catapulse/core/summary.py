"""
Human-readable summaries of logic trees.

Renders conditions and logic groups as text for generated specifications
and rule-editor summaries. Nothing here evaluates logic; the output is
documentation only and must never be parsed back to drive evaluation.
"""

from typing import Any

from catapulse.core.schema import Condition, ConditionOperator, Element, LogicGroup, Process, ValidationType
from catapulse.core.utils import to_text
from catapulse.core.validation import get_validation_regex_string

ALWAYS = "Always"
UNKNOWN_FIELD = "Unknown Field"


def format_condition(condition: Condition, all_fields: list[Element]) -> str:
    """Render one condition, e.g. ``Marital Status = 'Married'``."""
    label = _label_for(condition.target_element_id, all_fields)
    value = to_text(condition.value)

    match condition.operator:
        case ConditionOperator.EQUALS:
            return f"{label} = '{value}'"
        case ConditionOperator.NOT_EQUALS:
            return f"{label} != '{value}'"
        case ConditionOperator.GREATER_THAN:
            return f"{label} > {value}"
        case ConditionOperator.LESS_THAN:
            return f"{label} < {value}"
        case ConditionOperator.CONTAINS:
            return f"{label} contains '{value}'"
        case ConditionOperator.IS_EMPTY:
            return f"{label} is empty"
        case ConditionOperator.IS_NOT_EMPTY:
            return f"{label} is populated"

    return f"{label} {condition.operator} {value}".strip()


def format_logic_group(group: LogicGroup | None, all_fields: list[Element]) -> str:
    """Render a logic group, parenthesising nested groups.

    An absent or empty group renders as ``Always``.
    """
    if group is None or group.is_empty():
        return ALWAYS

    parts = [format_condition(c, all_fields) for c in group.conditions]
    parts += [f"({format_logic_group(g, all_fields)})" for g in group.groups]

    operator = getattr(group.operator, "value", group.operator)
    return f" {operator} ".join(parts)


def _label_for(element_id: str, all_fields: list[Element]) -> str:
    for field in all_fields:
        if field.id == element_id:
            return field.label
    return UNKNOWN_FIELD


# --- Specification tables ---


def describe_element(element: Element, all_fields: list[Element]) -> dict[str, Any]:
    """Build the specification-table row for one element."""
    if element.required:
        mandatory = "Yes"
    elif element.required_logic is not None and not element.required_logic.is_empty():
        mandatory = "Conditional"
    else:
        mandatory = "No"

    if element.visibility is None or element.visibility.is_empty():
        visibility = "-"
    else:
        visibility = format_logic_group(element.visibility, all_fields)

    rule = element.validation
    if rule is None or rule.type == ValidationType.NONE:
        validation, pattern = "-", None
    elif rule.type == ValidationType.CUSTOM:
        validation, pattern = rule.type, rule.custom_description
    else:
        validation, pattern = rule.type, get_validation_regex_string(rule.type)

    return {
        "id": element.id,
        "label": element.label,
        "type": element.type,
        "mandatory": mandatory,
        "visibility": visibility,
        "validation": validation,
        "pattern": pattern,
    }


def skills_matrix(process: Process) -> list[dict[str, Any]]:
    """Summarise each stage's default skill and rule criteria.

    Returns one entry per stage with ``rules`` mapping each distinct
    criteria summary to the skill of the first rule that has it.
    """
    all_fields = process.all_elements()
    matrix = []
    for stage in process.stages:
        rules: dict[str, str] = {}
        for rule in stage.skill_logic:
            rules.setdefault(format_logic_group(rule.logic, all_fields), rule.required_skill)
        matrix.append({
            "stage_id": stage.id,
            "title": stage.title,
            "default_skill": stage.default_skill,
            "rules": rules,
        })
    return matrix
