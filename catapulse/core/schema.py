"""
Process document models.

These Pydantic models define the persisted shape of a process document:
Process -> Stages -> Sections -> Elements, plus the logic trees that drive
visibility, conditional requiredness and skill routing. Attributes are
snake_case in Python and camelCase on the wire (``targetElementId``,
``requiredLogic``, ``skillLogic`` ...); both spellings are accepted on input.
"""

from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


# --- Enums ---


class ElementType(str, Enum):
    """Supported element (field) kinds."""

    TEXT = "text"
    EMAIL = "email"
    TEXTAREA = "textarea"
    NUMBER = "number"
    DATE = "date"
    DATETIME = "datetime"
    CURRENCY = "currency"
    SELECT = "select"
    MULTISELECT = "multiselect"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    STATIC = "static"
    REPEATER = "repeater"


class ConditionOperator(str, Enum):
    """Comparison operators understood by the condition evaluator."""

    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"


class LogicOperator(str, Enum):
    """Combinator for a logic group."""

    AND = "AND"
    OR = "OR"


class ValidationType(str, Enum):
    """Catalog of format/semantic checks for populated values."""

    NONE = "none"
    EMAIL = "email"
    PHONE_UK = "phone_uk"
    NINO_UK = "nino_uk"
    DATE_FUTURE = "date_future"
    DATE_PAST = "date_past"
    CUSTOM = "custom"


class SectionVariant(str, Enum):
    """Rendering variant of a section.

    Only ``standard`` sections take part in mandatory-field validation.
    """

    STANDARD = "standard"
    SUMMARY = "summary"
    WARNING = "warning"
    INFO = "info"


class SectionLayout(str, Enum):
    """Visual column count. Presentation only, never evaluated."""

    ONE_COL = "1col"
    TWO_COL = "2col"
    THREE_COL = "3col"


class StaticDataSource(str, Enum):
    """Where a static element takes its displayed text from."""

    MANUAL = "manual"
    FIELD = "field"


class DocumentModel(BaseModel):
    """Base for all document models: camelCase aliases, snake_case names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


# --- Logic Models ---


class Condition(DocumentModel):
    """One atomic comparison of a referenced element's value against a literal.

    ``operator`` is kept as a plain string: documents may come from an
    untrusted author, and an unknown operator evaluates to False rather
    than failing the whole document.
    """

    id: str | None = None
    target_element_id: str = Field(
        ...,
        description="The element ID whose current value is compared",
    )
    operator: str = Field(
        ...,
        description="One of the ConditionOperator values",
    )
    value: str | int | float | bool | None = Field(
        default=None,
        description="Literal comparison value (ignored by isEmpty/isNotEmpty)",
    )


class LogicGroup(DocumentModel):
    """A boolean tree node combining conditions and nested groups.

    A group with no conditions and no sub-groups is "Always" (True).
    """

    id: str = ""
    operator: LogicOperator = LogicOperator.AND
    conditions: list[Condition] = Field(default_factory=list)
    groups: list["LogicGroup"] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.conditions and not self.groups

    def iter_conditions(self) -> Iterator[Condition]:
        """Yield every condition in the tree, depth first."""
        yield from self.conditions
        for group in self.groups:
            yield from group.iter_conditions()


class SkillRule(DocumentModel):
    """Routes a stage to ``required_skill`` when ``logic`` holds."""

    logic: LogicGroup = Field(default_factory=LogicGroup)
    required_skill: str = ""


# --- Element Models ---


class SelectOption(DocumentModel):
    """A label/value option. Options may also be bare strings."""

    label: str
    value: str


class RepeaterColumn(DocumentModel):
    """Column definition of a repeating row-group."""

    id: str
    label: str = ""
    type: str = "text"
    options: list[str] | None = None


class ValidationRule(DocumentModel):
    """Validation rule attached to an element.

    ``custom_description`` documents a ``custom`` rule for humans; it is
    never machine-enforced.
    """

    type: str = ValidationType.NONE.value
    custom_description: str | None = None


class DataMapping(DocumentModel):
    """Target data-object property for an element. Metadata only."""

    data_object: str
    property: str


Option = str | SelectOption


def option_label(option: Option) -> str:
    """Return the display label of an option of either shape."""
    if isinstance(option, SelectOption):
        return option.label
    return str(option)


def option_value(option: Option) -> str:
    """Return the stored value of an option of either shape."""
    if isinstance(option, SelectOption):
        return option.value
    return str(option)


class Element(DocumentModel):
    """An atomic data-capture unit (a form field)."""

    id: str = Field(..., min_length=1, description="Unique element identifier")
    label: str = ""
    type: ElementType = ElementType.TEXT
    options: list[Option] | None = None
    default_value: Any = None
    description: str | None = None
    columns: list[RepeaterColumn] | None = None
    static_data_source: StaticDataSource | None = None
    source_field_id: str | None = None
    hidden: bool = False
    visibility: LogicGroup | None = None
    required: bool = False
    required_logic: LogicGroup | None = None
    validation: ValidationRule | None = None
    data_mapping: DataMapping | None = None

    @property
    def option_labels(self) -> list[str]:
        return [option_label(o) for o in self.options or []]

    @property
    def reflects_field(self) -> bool:
        """True for static elements mirroring another element's value."""
        return (
            self.type == ElementType.STATIC
            and self.static_data_source == StaticDataSource.FIELD
            and bool(self.source_field_id)
        )


# --- Containers ---


class Section(DocumentModel):
    """A named, ordered group of elements."""

    id: str = Field(..., min_length=1)
    title: str = ""
    description: str | None = None
    layout: SectionLayout = SectionLayout.ONE_COL
    variant: SectionVariant = SectionVariant.STANDARD
    elements: list[Element] = Field(default_factory=list)
    hidden: bool = False
    visibility: LogicGroup | None = None


class Stage(DocumentModel):
    """One step of a multi-step process."""

    id: str = Field(..., min_length=1)
    title: str = ""
    description: str | None = None
    sections: list[Section] = Field(default_factory=list)
    default_skill: str | None = None
    skill_logic: list[SkillRule] = Field(default_factory=list)


class Process(DocumentModel):
    """Top-level process document.

    Validates that element, section and stage identifiers are unique.
    """

    id: str = Field(..., min_length=1)
    name: str = ""
    description: str = ""
    stages: list[Stage] = Field(default_factory=list)
    schema_version: int | None = None

    @model_validator(mode="after")
    def validate_unique_ids(self) -> "Process":
        """Stage, section and element IDs must be unique within a process."""
        for kind, ids in (
            ("stage", [s.id for s in self.stages]),
            ("section", [sec.id for s in self.stages for sec in s.sections]),
            ("element", [e.id for e in self.all_elements()]),
        ):
            seen = set()
            for entity_id in ids:
                if entity_id in seen:
                    raise ValueError(f"Duplicate {kind} ID: '{entity_id}'")
                seen.add(entity_id)
        return self

    def all_elements(self) -> list[Element]:
        """Flat list of every element in document order."""
        return [
            element
            for stage in self.stages
            for section in stage.sections
            for element in section.elements
        ]

    def get_element(self, element_id: str) -> Element | None:
        for element in self.all_elements():
            if element.id == element_id:
                return element
        return None

    def get_stage(self, stage_id: str) -> Stage | None:
        for stage in self.stages:
            if stage.id == stage_id:
                return stage
        return None

    def dangling_references(self) -> list[tuple[str, str]]:
        """Return (owner_id, target_id) pairs for conditions naming unknown elements."""
        known = {e.id for e in self.all_elements()}
        dangling = []

        def check(owner_id: str, group: LogicGroup | None) -> None:
            if group is None:
                return
            for condition in group.iter_conditions():
                if condition.target_element_id not in known:
                    dangling.append((owner_id, condition.target_element_id))

        for stage in self.stages:
            for rule in stage.skill_logic:
                check(stage.id, rule.logic)
            for section in stage.sections:
                check(section.id, section.visibility)
                for element in section.elements:
                    check(element.id, element.visibility)
                    check(element.id, element.required_logic)
        return dangling

    def to_document(self) -> dict[str, Any]:
        """Return the persisted camelCase shape of this process."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
