"""
FastAPI routes for the Catapulse engine API.

Endpoints:
- POST /process/upgrade: sanitise and upgrade a (possibly legacy) document
- POST /evaluate: visibility, requiredness, errors and routing per stage
- POST /validate-value: run one validation rule against one value
- POST /spec: specification tables (field rows and skills matrix)
- GET  /health: health check
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, ValidationError

from catapulse.core.form_state import validate_stage
from catapulse.core.migration import ProcessDocumentError, load_process
from catapulse.core.routing import resolve_skill
from catapulse.core.schema import Process, Stage, ValidationRule
from catapulse.core.summary import describe_element, skills_matrix
from catapulse.core.validation import validate_against_rule
from catapulse.core.visibility import is_required, visible_elements, visible_sections

logger = logging.getLogger(__name__)

router = APIRouter()

# Injected by the app factory
_strict_references = False


def is_truthy(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def configure_routes(strict_references: bool = False):
    """Inject route settings. Called by the app factory during startup."""
    global _strict_references
    _strict_references = strict_references


# --- Request / Response Models ---


class ProcessRequest(BaseModel):
    """Request body carrying a raw process document."""

    process: dict[str, Any]


class EvaluateRequest(BaseModel):
    """Request body for the /evaluate endpoint."""

    process: dict[str, Any]
    form_data: dict[str, Any] = Field(default_factory=dict)
    stage_id: str | None = None


class StageEvaluation(BaseModel):
    """Engine results for one stage."""

    stage_id: str
    visible_sections: list[str]
    visible_elements: list[str]
    required_elements: list[str]
    errors: dict[str, str]
    skill: str
    matched_rule_index: int | None


class EvaluateResponse(BaseModel):
    """Response body for the /evaluate endpoint."""

    process_id: str
    stages: list[StageEvaluation]


class ValidateValueRequest(BaseModel):
    """Request body for the /validate-value endpoint."""

    validation: ValidationRule | None = None
    value: Any = None


# --- Endpoints ---


@router.post("/process/upgrade")
async def upgrade_process(request: ProcessRequest) -> dict[str, Any]:
    """Return the document in its current persisted shape."""
    process = _load(request.process)
    return process.to_document()


@router.post("/evaluate", response_model=EvaluateResponse)
async def evaluate(request: EvaluateRequest):
    """Evaluate every stage (or one stage) against a form-data snapshot."""
    process = _load(request.process)

    if request.stage_id is not None:
        stage = process.get_stage(request.stage_id)
        if stage is None:
            raise HTTPException(
                status_code=404,
                detail=f"Stage '{request.stage_id}' not found",
            )
        stages = [stage]
    else:
        stages = process.stages

    return EvaluateResponse(
        process_id=process.id,
        stages=[_evaluate_stage(stage, request.form_data) for stage in stages],
    )


@router.post("/validate-value")
async def validate_single_value(request: ValidateValueRequest):
    """Validate one value against one validation rule."""
    return {"error": validate_against_rule(request.validation, request.value)}


@router.post("/spec")
async def specification(request: ProcessRequest):
    """Build the specification tables for a process."""
    process = _load(request.process)
    all_fields = process.all_elements()

    return {
        "process_id": process.id,
        "name": process.name,
        "skills": skills_matrix(process),
        "stages": [
            {
                "id": stage.id,
                "title": stage.title,
                "sections": [
                    {
                        "id": section.id,
                        "title": section.title,
                        "rows": [describe_element(e, all_fields) for e in section.elements],
                    }
                    for section in stage.sections
                ],
            }
            for stage in process.stages
        ],
    }


@router.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


# --- Helpers ---


def _load(raw: dict[str, Any]) -> Process:
    """Upgrade and validate a raw document, mapping failures to HTTP errors."""
    try:
        process = load_process(raw)
    except ProcessDocumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValidationError as e:
        logger.info("Rejected process document: %d validation error(s)", e.error_count())
        raise HTTPException(
            status_code=422,
            detail=[
                {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in e.errors()
            ],
        )

    if _strict_references:
        dangling = process.dangling_references()
        if dangling:
            raise HTTPException(
                status_code=422,
                detail=[
                    f"'{owner}' references non-existent element '{target}'"
                    for owner, target in dangling
                ],
            )

    return process


def _evaluate_stage(stage: Stage, form_data: dict[str, Any]) -> StageEvaluation:
    sections = visible_sections(stage, form_data)
    elements = [e for section in sections for e in visible_elements(section, form_data)]
    resolution = resolve_skill(stage, form_data)

    return StageEvaluation(
        stage_id=stage.id,
        visible_sections=[s.id for s in sections],
        visible_elements=[e.id for e in elements],
        required_elements=[e.id for e in elements if is_required(e, form_data)],
        errors=validate_stage(stage, form_data),
        skill=resolution.skill,
        matched_rule_index=resolution.matched_rule_index,
    )
