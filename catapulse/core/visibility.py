"""
Visibility and requiredness resolvers.

Both resolvers pair a static flag with conditional logic:
- ``hidden=True`` always hides, whatever the visibility logic says.
- ``required=True`` always requires; requiredness logic can only add a
  requirement on top of a field that is not statically required.

A hidden section hides every element inside it, so callers should walk
``visible_sections`` first and only then ``visible_elements``.
"""

from catapulse.core.logic import evaluate_logic_group
from catapulse.core.schema import Element, Section, Stage


def is_visible(entity: Element | Section, form_data: dict) -> bool:
    """Determine if an element or section should be shown.

    Args:
        entity: The element or section to evaluate.
        form_data: Current values keyed by element ID.

    Returns:
        True if the entity is visible, False otherwise.
    """
    if entity.hidden:
        return False

    if entity.visibility is None:
        return True

    return evaluate_logic_group(entity.visibility, form_data)


def is_required(element: Element, form_data: dict) -> bool:
    """Determine if an element is mandatory given the current form data."""
    if element.required:
        return True

    if element.required_logic is None:
        return False

    return evaluate_logic_group(element.required_logic, form_data)


def visible_sections(stage: Stage, form_data: dict) -> list[Section]:
    """Return the sections of a stage that are currently visible."""
    return [section for section in stage.sections if is_visible(section, form_data)]


def visible_elements(section: Section, form_data: dict) -> list[Element]:
    """Return the visible elements of a section.

    Returns an empty list when the section itself is hidden.
    """
    if not is_visible(section, form_data):
        return []
    return [element for element in section.elements if is_visible(element, form_data)]
