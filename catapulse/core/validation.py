"""
Validation resolver for populated element values.

Applies a fixed catalog of format checks keyed by ``validation.type``.
Validation only applies to populated values: a blank value always passes
here, because a missing mandatory value is the requiredness resolver's
concern.

The ``custom`` type is documentation only. Its ``customDescription`` is
shown to authors and in generated specifications but is never enforced,
so ``validate_value`` always returns None for it.
"""

import re
from datetime import datetime, timezone
from typing import Any

from catapulse.core.schema import Element, ValidationRule, ValidationType
from catapulse.core.utils import is_blank, parse_date, to_text

# Pattern text is shown verbatim in generated specifications.
VALIDATION_PATTERNS: dict[str, str] = {
    ValidationType.EMAIL.value: r"^[^\s@]+@[^\s@]+\.[^\s@]+$",
    ValidationType.PHONE_UK.value: r"^(\+44|0)[0-9]{9,10}$",
    ValidationType.NINO_UK.value: r"(?i)^[A-CEGHJ-PR-TW-Z]{1}[A-CEGHJ-NPR-TW-Z]{1}[0-9]{6}[A-D]{1}$",
}

_COMPILED_PATTERNS = {
    name: re.compile(pattern) for name, pattern in VALIDATION_PATTERNS.items()
}

_WHITESPACE = re.compile(r"\s")


def get_validation_regex_string(validation_type: str) -> str | None:
    """Return the pattern text enforced for a validation type.

    Returns None for types that are not regex based (dates, custom, none).
    """
    return VALIDATION_PATTERNS.get(validation_type)


def validate_value(element: Element, value: Any) -> str | None:
    """Validate a value against the element's validation rule.

    Args:
        element: The element whose rule applies.
        value: The current value of the element.

    Returns:
        An error message, or None if the value passes (or is blank).
    """
    return validate_against_rule(element.validation, value)


def validate_against_rule(rule: ValidationRule | None, value: Any) -> str | None:
    """Validate a value against a bare validation rule."""
    if rule is None or rule.type == ValidationType.NONE:
        return None

    if is_blank(value):
        return None

    text = to_text(value)

    match rule.type:
        case ValidationType.EMAIL:
            return None if _matches(ValidationType.EMAIL, text) else "Invalid email format"

        case ValidationType.PHONE_UK:
            compact = _WHITESPACE.sub("", text)
            return None if _matches(ValidationType.PHONE_UK, compact) else "Invalid UK phone number"

        case ValidationType.NINO_UK:
            compact = _WHITESPACE.sub("", text)
            if _matches(ValidationType.NINO_UK, compact):
                return None
            return "Invalid National Insurance Number"

        case ValidationType.DATE_FUTURE:
            return _check_date(text, future=True)

        case ValidationType.DATE_PAST:
            return _check_date(text, future=False)

    # custom and unknown types are never machine-validated
    return None


def _matches(validation_type: ValidationType, text: str) -> bool:
    return _COMPILED_PATTERNS[validation_type.value].fullmatch(text) is not None


def _check_date(text: str, future: bool) -> str | None:
    """Compare a date string against the current time."""
    parsed = parse_date(text)
    if parsed is None:
        return "Invalid date"

    now = datetime.now(timezone.utc) if parsed.tzinfo is not None else datetime.now()

    if future:
        return None if parsed > now else "Date must be in the future"
    return None if parsed < now else "Date must be in the past"
