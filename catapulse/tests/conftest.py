"""
Shared fixtures for the Catapulse test suite.

Provides the example process documents under ``catapulse/schemas`` both as
raw dicts (for load-path tests) and as loaded Process models.
"""

import json
from pathlib import Path

import pytest

from catapulse.core.migration import load_process
from catapulse.core.schema import Process

SCHEMAS_DIR = Path(__file__).parent.parent / "schemas"


def _read(filename: str) -> dict:
    with open(SCHEMAS_DIR / filename) as f:
        return json.load(f)


@pytest.fixture
def claim_raw() -> dict:
    """The insurance_claim document as a raw dict (current shape)."""
    return _read("insurance_claim.json")


@pytest.fixture
def legacy_raw() -> dict:
    """The legacy_application document as a raw dict (flat condition arrays)."""
    return _read("legacy_application.json")


@pytest.fixture
def claim_process(claim_raw) -> Process:
    """The insurance_claim document loaded into a Process."""
    return load_process(claim_raw)


@pytest.fixture
def legacy_process(legacy_raw) -> Process:
    """The legacy_application document loaded into a Process."""
    return load_process(legacy_raw)
