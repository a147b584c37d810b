"""
Deterministic logic evaluator for process documents.

Evaluates conditions and nested logic groups against a form-data snapshot.
Every function here is pure: it never mutates the condition tree or the
snapshot, never logs and never raises for data-shape problems. A condition
that references a missing element sees ``None`` as the value.
"""

from typing import Any

from catapulse.core.schema import Condition, ConditionOperator, LogicGroup, LogicOperator
from catapulse.core.utils import is_blank, to_number, to_text


def evaluate_logic_group(group: LogicGroup | None, form_data: dict) -> bool:
    """Evaluate a logic group and all of its nested groups.

    A missing group or a group with no conditions and no sub-groups is
    True regardless of its combinator. Otherwise the results of the direct
    conditions and the nested groups are combined with ``all`` for AND and
    ``any`` for OR.

    Args:
        group: The logic group to evaluate (may be None).
        form_data: Current values keyed by element ID.

    Returns:
        True if the group holds, False otherwise.
    """
    if group is None or group.is_empty():
        return True

    results = [evaluate_condition(c, form_data) for c in group.conditions]
    results += [evaluate_logic_group(g, form_data) for g in group.groups]

    if group.operator == LogicOperator.OR:
        return any(results)
    return all(results)


def evaluate_condition(condition: Condition, form_data: dict) -> bool:
    """Evaluate a single condition against the current form data.

    Args:
        condition: The condition to evaluate.
        form_data: Current values keyed by element ID.

    Returns:
        True if the condition passes, False otherwise. Unknown operators
        are False.
    """
    value = form_data.get(condition.target_element_id)

    if isinstance(value, list):
        return _evaluate_list_condition(condition.operator, value, condition.value)

    target = condition.value

    match condition.operator:
        case ConditionOperator.EQUALS:
            return _loose_equals(value, target)

        case ConditionOperator.NOT_EQUALS:
            return not _loose_equals(value, target)

        case ConditionOperator.CONTAINS:
            return to_text(target).strip() in to_text(value).strip()

        case ConditionOperator.GREATER_THAN:
            # NaN compares False both ways
            return to_number(value) > to_number(target)

        case ConditionOperator.LESS_THAN:
            return to_number(value) < to_number(target)

        case ConditionOperator.IS_EMPTY:
            return is_blank(value)

        case ConditionOperator.IS_NOT_EMPTY:
            return not is_blank(value)

    return False


def _loose_equals(value: Any, target: Any) -> bool:
    """Compare two values by their trimmed text forms."""
    return to_text(value).strip() == to_text(target).strip()


def _evaluate_list_condition(operator: str, values: list, target: Any) -> bool:
    """Evaluate a condition whose referenced value is a list (multi-select).

    ``contains`` tests membership, ``equals`` requires a single matching
    entry, ``notEquals`` requires that no entry matches. Ordering operators
    never match a list.
    """
    target_text = to_text(target).strip()
    texts = [to_text(v).strip() for v in values]

    match operator:
        case ConditionOperator.CONTAINS:
            return target_text in texts

        case ConditionOperator.EQUALS:
            return len(texts) == 1 and texts[0] == target_text

        case ConditionOperator.NOT_EQUALS:
            return target_text not in texts

        case ConditionOperator.IS_EMPTY:
            return len(values) == 0

        case ConditionOperator.IS_NOT_EMPTY:
            return len(values) > 0

    return False
