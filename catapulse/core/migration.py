"""
Process document load path.

Every document handed to the engine passes through here once, whether it
was imported by a user, restored from storage or returned by a generative
service:

1. Default filling: missing ``stages``/``sections``/``elements`` lists,
   missing ids, missing section layout.
2. Legacy upgrade: flat ``visibilityConditions`` / ``requiredConditions``
   arrays become ``visibility`` / ``requiredLogic`` logic groups.
3. Logic-group completion: every group gets an id, both child lists and an
   upper-case combinator.
4. Option normalisation: object options keep their label/value shape.

The upgrade works on a deep copy; the caller's dict is never mutated.
"""

import copy
import json
import logging
import uuid
from typing import Any

import yaml

from catapulse.core.schema import Process

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 2


class ProcessDocumentError(ValueError):
    """Raised when a process document cannot be read at all."""


def generate_id(prefix: str) -> str:
    """Generate a short random identifier such as ``el_3f9a1c2b7``."""
    return f"{prefix}_{uuid.uuid4().hex[:9]}"


def upgrade_process_document(raw: dict[str, Any]) -> dict[str, Any]:
    """Return a sanitised, upgraded copy of a raw process document.

    Args:
        raw: The document as parsed from JSON (camelCase keys).

    Returns:
        A new dict in the current persisted shape.

    Raises:
        ProcessDocumentError: If ``raw`` is not a mapping.
    """
    if not isinstance(raw, dict):
        raise ProcessDocumentError(
            f"Process document must be an object, got {type(raw).__name__}"
        )

    doc = copy.deepcopy(raw)
    from_version = doc.get("schemaVersion")
    if not isinstance(from_version, int):
        from_version = 1

    if not doc.get("id"):
        doc["id"] = generate_id("proc")
    _default(doc, "name", "")
    _default(doc, "description", "")
    doc["stages"] = _dicts(doc.get("stages"))

    for stage in doc["stages"]:
        _fill_stage(stage)

    doc["schemaVersion"] = CURRENT_SCHEMA_VERSION
    if from_version < CURRENT_SCHEMA_VERSION:
        logger.debug(
            "Upgraded process '%s' from schema version %s to %s",
            doc["id"], from_version, CURRENT_SCHEMA_VERSION,
        )
    return doc


def load_process(raw: dict[str, Any]) -> Process:
    """Upgrade a raw document and validate it into a Process model."""
    return Process.model_validate(upgrade_process_document(raw))


def loads_process(text: str) -> Process:
    """Parse a JSON or YAML process document and load it.

    JSON is the persisted format and is tried first; YAML is only used for
    text that is not valid JSON.

    Raises:
        ProcessDocumentError: If the text is not parseable or not an object.
    """
    try:
        raw = json.loads(text)
    except json.JSONDecodeError:
        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ProcessDocumentError(f"Failed to parse process document: {e}") from e
    return load_process(raw)


def dumps_process(process: Process) -> str:
    """Serialise a process to its persisted JSON text."""
    return json.dumps(process.to_document(), ensure_ascii=False)


# -----------------------------------------------------------------
# Internal helpers
# -----------------------------------------------------------------


def _dicts(value: Any) -> list[dict]:
    """Return the dict entries of a list, or [] for anything else."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _default(entity: dict[str, Any], key: str, value: Any) -> None:
    if entity.get(key) is None:
        entity[key] = value


def _fill_stage(stage: dict[str, Any]) -> None:
    if not stage.get("id"):
        stage["id"] = generate_id("stg")
    _default(stage, "title", "")
    stage["sections"] = _dicts(stage.get("sections"))

    rules = _dicts(stage.get("skillLogic"))
    for rule in rules:
        rule["logic"] = _fill_group(rule.get("logic"))
        _default(rule, "requiredSkill", "")
    stage["skillLogic"] = rules

    for section in stage["sections"]:
        _fill_section(section)


def _fill_section(section: dict[str, Any]) -> None:
    if not section.get("id"):
        section["id"] = generate_id("sec")
    _default(section, "title", "")
    if not section.get("layout"):
        section["layout"] = "1col"
    if section.get("visibility") is not None:
        section["visibility"] = _fill_group(section["visibility"], f"vis_{section['id']}")
    section["elements"] = _dicts(section.get("elements"))

    for element in section["elements"]:
        _fill_element(element)


def _fill_element(element: dict[str, Any]) -> None:
    if not element.get("id"):
        element["id"] = generate_id("el")
    _default(element, "label", "")
    element_id = element["id"]

    legacy_visibility = element.pop("visibilityConditions", None)
    if isinstance(legacy_visibility, list) and legacy_visibility and not element.get("visibility"):
        element["visibility"] = _wrap_legacy(legacy_visibility, f"vis_{element_id}")
        logger.debug("Upgraded legacy visibilityConditions on element '%s'", element_id)

    legacy_required = element.pop("requiredConditions", None)
    if isinstance(legacy_required, list) and legacy_required and not element.get("requiredLogic"):
        element["requiredLogic"] = _wrap_legacy(legacy_required, f"req_{element_id}")
        logger.debug("Upgraded legacy requiredConditions on element '%s'", element_id)

    for key, prefix in (("visibility", "vis"), ("requiredLogic", "req")):
        if element.get(key) is not None:
            element[key] = _fill_group(element[key], f"{prefix}_{element_id}")

    if isinstance(element.get("options"), list):
        element["options"] = [_normalise_option(o) for o in element["options"] if o is not None]


def _wrap_legacy(conditions: list, group_id: str) -> dict[str, Any]:
    return {"id": group_id, "operator": "AND", "conditions": conditions, "groups": []}


def _fill_group(group: Any, group_id: str | None = None) -> dict[str, Any]:
    """Complete a logic group and its sub-groups with defaults."""
    if not isinstance(group, dict):
        group = {}
    if not group.get("id"):
        group["id"] = group_id or generate_id("grp")

    operator = group.get("operator")
    group["operator"] = operator.upper() if isinstance(operator, str) and operator else "AND"

    conditions = _dicts(group.get("conditions"))
    for condition in conditions:
        _default(condition, "targetElementId", "")
        _default(condition, "operator", "")
    group["conditions"] = conditions
    group["groups"] = [_fill_group(g) for g in _dicts(group.get("groups"))]
    return group


def _normalise_option(option: Any) -> Any:
    if isinstance(option, dict):
        label = option.get("label") or option.get("value") or option.get("text")
        if label is None:
            return json.dumps(option)
        value = option.get("value")
        return {"label": str(label), "value": str(value if value is not None else label)}
    return str(option)
