"""
Form state for walking a process stage by stage.

Holds the mutable side of a preview or standalone run:
- The current answers (the form-data snapshot handed to the engine)
- Which stage the user is on
- Which sections and elements are currently visible
- Which routing skill the current stage resolves to
- Stage validation before moving on

The engine functions never mutate anything; this class is the only place
answers change.
"""

from typing import Any

from catapulse.core.routing import SkillResolution, resolve_skill
from catapulse.core.schema import Element, Process, Section, SectionVariant, Stage
from catapulse.core.utils import is_blank
from catapulse.core.validation import validate_value
from catapulse.core.visibility import is_required, visible_elements, visible_sections

REQUIRED_MESSAGE = "This field is required"


def validate_stage(stage: Stage, form_data: dict) -> dict[str, str]:
    """Collect errors for every visible, editable element of a stage.

    Summary, warning and info sections are read-only and skipped. Elements
    inside a hidden section are never validated.

    Args:
        stage: The stage to validate.
        form_data: Current values keyed by element ID.

    Returns:
        A dict of {element_id: error_message}; empty when the stage passes.
    """
    errors: dict[str, str] = {}

    for section in visible_sections(stage, form_data):
        if section.variant != SectionVariant.STANDARD:
            continue

        for element in visible_elements(section, form_data):
            value = form_data.get(element.id)
            if is_required(element, form_data) and is_blank(value):
                errors[element.id] = REQUIRED_MESSAGE
                continue

            message = validate_value(element, value)
            if message:
                errors[element.id] = message

    return errors


class ProcessFormState:
    """Tracks answers and stage progress for a single run of a process.

    Args:
        process: A loaded Process document.
    """

    def __init__(self, process: Process):
        self.process = process
        self.answers: dict[str, Any] = {}
        self.stage_index = 0
        self.is_complete = False

    # -----------------------------------------------------------------
    # Stage resolution
    # -----------------------------------------------------------------

    @property
    def current_stage(self) -> Stage | None:
        if not self.process.stages:
            return None
        return self.process.stages[self.stage_index]

    def get_visible_sections(self) -> list[Section]:
        """Return the visible sections of the current stage."""
        stage = self.current_stage
        if stage is None:
            return []
        return visible_sections(stage, self.answers)

    def get_visible_elements(self, section: Section) -> list[Element]:
        """Return the visible elements of a section (none if it is hidden)."""
        return visible_elements(section, self.answers)

    def get_required_elements(self) -> list[Element]:
        """Return visible elements of the current stage that are mandatory now."""
        return [
            element
            for section in self.get_visible_sections()
            for element in self.get_visible_elements(section)
            if is_required(element, self.answers)
        ]

    def active_skill(self) -> SkillResolution | None:
        """Return the routing skill for the current stage."""
        stage = self.current_stage
        if stage is None:
            return None
        return resolve_skill(stage, self.answers)

    # -----------------------------------------------------------------
    # Answer management
    # -----------------------------------------------------------------

    def set_answer(self, element_id: str, value: Any) -> None:
        """Store an answer for the given element.

        Raises:
            ValueError: If the element_id does not exist in the process.
        """
        self._require_element(element_id)
        self.answers[element_id] = value

    def get_answer(self, element_id: str) -> Any:
        """Retrieve the current answer for an element, or None if unanswered."""
        return self.answers.get(element_id)

    def clear_answer(self, element_id: str) -> None:
        """Remove an answer if present."""
        self.answers.pop(element_id, None)

    def get_all_answers(self) -> dict[str, Any]:
        """Return a copy of all current answers."""
        return dict(self.answers)

    def display_value(self, element: Element) -> Any:
        """Return the value an element currently shows.

        Static elements sourced from another field reflect that field's
        answer. Other elements show their answer, or their default value
        while unanswered.
        """
        if element.reflects_field:
            return self.answers.get(element.source_field_id)
        if element.id in self.answers:
            return self.answers[element.id]
        return element.default_value

    # -----------------------------------------------------------------
    # Navigation
    # -----------------------------------------------------------------

    def validate_current_stage(self) -> dict[str, str]:
        stage = self.current_stage
        if stage is None:
            return {}
        return validate_stage(stage, self.answers)

    def advance(self) -> dict[str, str]:
        """Validate the current stage and move to the next one if it passes.

        On the last stage a passing validation marks the run complete.

        Returns:
            The validation errors; empty if the stage passed.
        """
        errors = self.validate_current_stage()
        if errors:
            return errors

        if self.stage_index < len(self.process.stages) - 1:
            self.stage_index += 1
        else:
            self.is_complete = True
        return {}

    def go_back(self) -> None:
        """Return to the previous stage, if any."""
        if self.stage_index > 0:
            self.stage_index -= 1
            self.is_complete = False

    # -----------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------

    def _require_element(self, element_id: str) -> Element:
        element = self.process.get_element(element_id)
        if element is None:
            raise ValueError(f"Element '{element_id}' does not exist in the process")
        return element
