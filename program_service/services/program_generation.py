"""Generate, check and store a workout + diet program for one request.

Strict linear pipeline: unwrap -> validate request -> workout call ->
diet call -> persist. The first failing stage ends the run with its own
status code; nothing is written unless both plans validated.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any

import structlog
from sqlalchemy.orm import Session

from ..logging_config import account_log_context
from ..metrics import PROGRAM_GENERATION_FAILURES_TOTAL, PROGRAMS_GENERATED_TOTAL
from ..prompts import build_diet_prompt, build_workout_prompt
from ..schemas.program import DietPlan, GeneratedProgram, GenerationRequest, WorkoutPlan
from . import plan_store
from .llm_runtime import JsonGenerator
from .plan_normalization import normalize_diet_plan, normalize_workout_plan
from .shape_validation import (
    ShapeResult,
    unwrap_envelope,
    validate_diet_shape,
    validate_generation_request,
    validate_workout_shape,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StageFailure:
    stage: str
    status_code: int
    message: str


@dataclass(frozen=True)
class PipelineResult:
    program: GeneratedProgram | None = None
    failure: StageFailure | None = None


def format_plan_date(day: date) -> str:
    return f"{day.month}/{day.day}/{day.year}"


def build_plan_name(fitness_goal: str, day: date) -> str:
    return f"{fitness_goal} Plan - {format_plan_date(day)}"


def _fail(stage: str, status_code: int, message: str) -> PipelineResult:
    PROGRAM_GENERATION_FAILURES_TOTAL.labels(stage=stage).inc()
    return PipelineResult(failure=StageFailure(stage=stage, status_code=status_code, message=message))


async def _generate_section(
    generator: JsonGenerator,
    prompt: str,
    *,
    label: str,
    validate: Callable[[Any], ShapeResult[dict[str, Any]]],
    normalize: Callable[[dict[str, Any]], dict[str, Any]],
) -> tuple[dict[str, Any] | None, PipelineResult | None]:
    try:
        raw = await generator.generate_json(prompt)
    except Exception:
        logger.exception("plan_generation_failed", plan=label)
        return None, _fail(f"{label}_generation", 500, f"Failed to generate a valid {label} plan from AI.")

    checked = validate(raw)
    if not checked.ok:
        logger.error("plan_shape_invalid", plan=label, error=checked.error, raw=raw)
        return None, _fail(f"{label}_validation", 500, f"Invalid {label} plan: {checked.error}")

    return normalize(checked.value), None


async def generate_program(
    payload: Any,
    *,
    generator: JsonGenerator,
    db: Session,
    today: date | None = None,
) -> PipelineResult:
    checked_request = validate_generation_request(unwrap_envelope(payload))
    if not checked_request.ok:
        return _fail("request_validation", 400, checked_request.error)
    request = checked_request.value

    with account_log_context(user_id=request.user_id):
        logger.info("generation_request_validated")
        return await _generate_for(request, generator=generator, db=db, today=today or date.today())


async def _generate_for(
    request: GenerationRequest,
    *,
    generator: JsonGenerator,
    db: Session,
    today: date,
) -> PipelineResult:
    workout_plan, failed = await _generate_section(
        generator,
        build_workout_prompt(request=request),
        label="workout",
        validate=validate_workout_shape,
        normalize=normalize_workout_plan,
    )
    if failed:
        return failed

    diet_plan, failed = await _generate_section(
        generator,
        build_diet_prompt(request=request),
        label="diet",
        validate=validate_diet_shape,
        normalize=normalize_diet_plan,
    )
    if failed:
        return failed

    try:
        plan_id = plan_store.create_plan(
            db,
            user_id=request.user_id,
            name=build_plan_name(request.fitness_goal, today),
            workout_plan=workout_plan,
            diet_plan=diet_plan,
            is_active=True,
        )
    except Exception:
        logger.exception("plan_persist_failed")
        return _fail("persistence", 500, "Failed to save plan to database.")

    PROGRAMS_GENERATED_TOTAL.inc()
    logger.info("program_generated", plan_id=plan_id)
    return PipelineResult(
        program=GeneratedProgram(
            planId=plan_id,
            workoutPlan=WorkoutPlan.model_validate(workout_plan),
            dietPlan=DietPlan.model_validate(diet_plan),
        )
    )
