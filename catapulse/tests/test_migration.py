"""
Unit tests for the document load path.

Tests cover:
- Legacy visibilityConditions / requiredConditions are upgraded
- Missing arrays, ids and layouts are filled in
- Logic groups are completed with ids, child lists and combinators
- Object options keep their label/value shape
- The caller's dict is never mutated
- JSON and YAML text loading, and unreadable documents
- Serialise -> reload round trip gives identical resolver results
"""

import json

import pytest

from catapulse.core.form_state import validate_stage
from catapulse.core.migration import (
    CURRENT_SCHEMA_VERSION,
    ProcessDocumentError,
    dumps_process,
    load_process,
    loads_process,
    upgrade_process_document,
)
from catapulse.core.routing import resolve_skill
from catapulse.core.schema import SelectOption
from catapulse.core.visibility import is_required, is_visible


# =============================================================
# Test: legacy upgrade
# =============================================================


class TestLegacyUpgrade:
    """Flat condition arrays become logic groups."""

    def test_visibility_conditions_wrapped(self, legacy_raw):
        doc = upgrade_process_document(legacy_raw)
        spouse = doc["stages"][0]["sections"][0]["elements"][1]
        assert "visibilityConditions" not in spouse
        assert spouse["visibility"]["id"] == "vis_spouseName"
        assert spouse["visibility"]["operator"] == "AND"
        assert spouse["visibility"]["conditions"] == [
            {"targetElementId": "maritalStatus", "operator": "equals", "value": "Married"},
        ]
        assert spouse["visibility"]["groups"] == []

    def test_required_conditions_wrapped(self, legacy_raw):
        doc = upgrade_process_document(legacy_raw)
        spouse = doc["stages"][0]["sections"][0]["elements"][1]
        assert "requiredConditions" not in spouse
        assert spouse["requiredLogic"]["id"] == "req_spouseName"

    def test_empty_legacy_array_dropped(self, legacy_raw):
        doc = upgrade_process_document(legacy_raw)
        income = doc["stages"][0]["sections"][0]["elements"][2]
        assert "visibilityConditions" not in income
        assert "visibility" not in income

    def test_existing_group_wins_over_legacy(self):
        raw = {
            "id": "p",
            "stages": [{"id": "s", "sections": [{"id": "sec", "elements": [{
                "id": "e",
                "visibility": {"id": "keep", "operator": "OR", "conditions": []},
                "visibilityConditions": [{"targetElementId": "x", "operator": "isEmpty"}],
            }]}]}],
        }
        element = upgrade_process_document(raw)["stages"][0]["sections"][0]["elements"][0]
        assert element["visibility"]["id"] == "keep"
        assert element["visibility"]["operator"] == "OR"
        assert "visibilityConditions" not in element

    def test_legacy_logic_evaluates(self, legacy_process):
        spouse = legacy_process.get_element("spouseName")
        assert is_visible(spouse, {"maritalStatus": "Single"}) is False
        assert is_visible(spouse, {"maritalStatus": "Married"}) is True
        assert is_required(spouse, {"maritalStatus": "Married"}) is True
        assert is_required(spouse, {"maritalStatus": "Single"}) is False

    def test_schema_version_stamped(self, legacy_raw):
        assert upgrade_process_document(legacy_raw)["schemaVersion"] == CURRENT_SCHEMA_VERSION

    def test_input_not_mutated(self, legacy_raw):
        before = json.dumps(legacy_raw, sort_keys=True)
        upgrade_process_document(legacy_raw)
        assert json.dumps(legacy_raw, sort_keys=True) == before


# =============================================================
# Test: default filling
# =============================================================


class TestDefaultFilling:
    """Sanitisation of incomplete documents."""

    def test_empty_document(self):
        doc = upgrade_process_document({})
        assert doc["id"].startswith("proc_")
        assert doc["name"] == ""
        assert doc["stages"] == []

    def test_missing_arrays(self):
        doc = upgrade_process_document({"id": "p", "stages": [{"id": "s", "sections": [{"id": "sec"}]}]})
        section = doc["stages"][0]["sections"][0]
        assert section["elements"] == []
        assert section["layout"] == "1col"
        assert doc["stages"][0]["skillLogic"] == []

    def test_non_list_stages_replaced(self):
        assert upgrade_process_document({"id": "p", "stages": "oops"})["stages"] == []

    def test_generated_ids(self, legacy_raw):
        doc = upgrade_process_document(legacy_raw)
        savings = doc["stages"][0]["sections"][0]["elements"][3]
        declaration = doc["stages"][0]["sections"][1]
        assert savings["id"].startswith("el_")
        assert declaration["id"].startswith("sec_")

    def test_generated_ids_are_unique(self):
        raw = {"id": "p", "stages": [{"sections": [{"elements": [{}, {}, {}]}]}]}
        doc = upgrade_process_document(raw)
        ids = [e["id"] for e in doc["stages"][0]["sections"][0]["elements"]]
        assert len(set(ids)) == 3

    def test_group_completion(self):
        raw = {"id": "p", "stages": [{"id": "s", "skillLogic": [
            {"logic": {"operator": "or", "conditions": [{"targetElementId": "a", "operator": "isEmpty"}],
                       "groups": [{}]}, "requiredSkill": "X"},
        ]}]}
        logic = upgrade_process_document(raw)["stages"][0]["skillLogic"][0]["logic"]
        assert logic["operator"] == "OR"
        assert logic["id"].startswith("grp_")
        assert logic["groups"][0]["operator"] == "AND"
        assert logic["groups"][0]["conditions"] == []
        assert logic["groups"][0]["groups"] == []

    def test_object_options_keep_shape(self):
        raw = {"id": "p", "stages": [{"id": "s", "sections": [{"id": "sec", "elements": [{
            "id": "e", "type": "select",
            "options": ["A", {"label": "Bee", "value": "b"}, {"text": "Sea"}, 4],
        }]}]}]}
        process = load_process(raw)
        options = process.get_element("e").options
        assert options[0] == "A"
        assert options[1] == SelectOption(label="Bee", value="b")
        assert options[2] == SelectOption(label="Sea", value="Sea")
        assert options[3] == "4"

    def test_null_options_dropped(self):
        raw = {"id": "p", "stages": [{"id": "s", "sections": [{"id": "sec", "elements": [{
            "id": "e", "type": "select", "options": ["A", None, "B"],
        }]}]}]}
        assert load_process(raw).get_element("e").options == ["A", "B"]

    def test_loaded_legacy_process(self, legacy_process):
        assert [e.label for e in legacy_process.all_elements()] == [
            "Marital Status", "Spouse Name", "Monthly Income", "Has Savings", "I agree",
        ]


# =============================================================
# Test: text loading
# =============================================================


class TestTextLoading:
    def test_loads_json(self, claim_raw):
        process = loads_process(json.dumps(claim_raw))
        assert process.id == "proc_life_claim"

    def test_loads_yaml(self):
        text = """
id: proc_yaml
name: YAML Process
stages:
  - id: s1
    sections:
      - id: sec1
        elements:
          - id: a
            label: A
            visibilityConditions:
              - targetElementId: b
                operator: isNotEmpty
"""
        process = loads_process(text)
        assert process.get_element("a").visibility.id == "vis_a"

    def test_loads_tab_indented_json(self, claim_raw):
        process = loads_process(json.dumps(claim_raw, indent="\t"))
        assert process.get_element("spouseName").visibility.conditions[0].value == "Married"

    def test_json_exponent_is_a_number(self):
        text = """{"id": "p", "stages": [{"id": "s", "sections": [{"id": "sec", "elements": [
            {"id": "cap", "type": "number", "defaultValue": 1e5}
        ]}]}]}"""
        assert loads_process(text).get_element("cap").default_value == 100000.0

    def test_control_characters_survive_dumps(self, claim_process):
        renamed = claim_process.model_copy(update={"name": "Claim\x85x\x7f"})
        assert loads_process(dumps_process(renamed)).name == "Claim\x85x\x7f"

    def test_non_mapping_document(self):
        with pytest.raises(ProcessDocumentError):
            loads_process("[1, 2, 3]")

    def test_unparseable_document(self):
        with pytest.raises(ProcessDocumentError):
            loads_process("{unclosed: [")

    def test_non_dict_upgrade(self):
        with pytest.raises(ProcessDocumentError):
            upgrade_process_document(None)


# =============================================================
# Test: round trip
# =============================================================


SNAPSHOTS = [
    {},
    {"maritalStatus": "Married", "age": 80, "fullName": "Ann"},
    {"maritalStatus": "Single", "age": 65, "supportNeeds": ["Bereavement"]},
    {"maritalStatus": "Single", "age": "30", "email": "bad", "nino": "AB123456C"},
]


class TestRoundTrip:
    """Serialising and reloading preserves every resolver result."""

    def _results(self, process, data):
        out = []
        for stage in process.stages:
            out.append(resolve_skill(stage, data))
            out.append(validate_stage(stage, data))
            for section in stage.sections:
                out.append(is_visible(section, data))
                for element in section.elements:
                    out.append((is_visible(element, data), is_required(element, data)))
        return out

    @pytest.mark.parametrize("data", SNAPSHOTS)
    def test_claim_round_trip(self, claim_process, data):
        reloaded = loads_process(dumps_process(claim_process))
        assert self._results(reloaded, data) == self._results(claim_process, data)

    @pytest.mark.parametrize("data", SNAPSHOTS)
    def test_legacy_round_trip(self, legacy_process, data):
        reloaded = load_process(legacy_process.to_document())
        assert self._results(reloaded, data) == self._results(legacy_process, data)

    def test_round_trip_is_stable(self, claim_process):
        once = claim_process.to_document()
        twice = load_process(once).to_document()
        assert once == twice

    def test_persisted_shape_uses_camel_case(self, claim_process):
        doc = claim_process.to_document()
        spouse = doc["stages"][0]["sections"][0]["elements"][6]
        assert spouse["requiredLogic"]["conditions"][0]["targetElementId"] == "maritalStatus"
        assert doc["stages"][0]["skillLogic"][0]["requiredSkill"] == "Senior Underwriter"
        assert doc["stages"][0]["defaultSkill"] == "Customer Service"
