"""Structural checks for untrusted JSON: generation requests and model output.

Every check returns a :class:`ShapeResult` instead of raising, so callers can
short-circuit on ``result.error`` explicitly. Only the first violation is
reported. Extraneous keys are ignored.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ..schemas.program import GenerationRequest

T = TypeVar("T")


@dataclass(frozen=True)
class ShapeResult(Generic[T]):
    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ShapeResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "ShapeResult[T]":
        return cls(error=error)


def is_number(value: Any) -> bool:
    # bool is an int subclass but never a JSON number
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_finite_number(value: Any) -> bool:
    # ints are always finite; math.isfinite would overflow on very large ones
    return is_number(value) and (not isinstance(value, float) or math.isfinite(value))


def is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def unwrap_envelope(obj: Any) -> Any:
    """Strip an optional one-level ``{"node": {...}}`` wrapper.

    Some voice-agent callers nest the tool arguments under ``node``; anything
    else is returned as-is.
    """
    if isinstance(obj, dict) and isinstance(obj.get("node"), dict):
        return obj["node"]
    return obj


_REQUEST_FIELDS: tuple[tuple[str, str], ...] = (
    ("user_id", "string"),
    ("age", "number"),
    ("height", "string"),
    ("weight", "string"),
    ("injuries", "string"),
    ("workout_days", "string[]"),
    ("fitness_goal", "string"),
    ("fitness_level", "string"),
    ("dietary_restrictions", "string[]"),
)

_TYPE_CHECKS = {
    "string": lambda v: isinstance(v, str),
    "number": is_number,
    "string[]": is_string_list,
}


def validate_generation_request(obj: Any) -> ShapeResult[GenerationRequest]:
    if not isinstance(obj, dict):
        return ShapeResult.failure("Payload is not an object.")

    for field_name, expected in _REQUEST_FIELDS:
        if not _TYPE_CHECKS[expected](obj.get(field_name)):
            return ShapeResult.failure(f"Missing or invalid '{field_name}' (expected {expected}).")

    return ShapeResult.success(
        GenerationRequest(**{field_name: obj[field_name] for field_name, _ in _REQUEST_FIELDS})
    )


def validate_workout_shape(obj: Any) -> ShapeResult[dict[str, Any]]:
    if not isinstance(obj, dict):
        return ShapeResult.failure("Workout plan is not an object.")
    if not is_string_list(obj.get("schedule")):
        return ShapeResult.failure("Workout plan schedule must be string[].")
    exercises = obj.get("exercises")
    if not isinstance(exercises, list):
        return ShapeResult.failure("Workout plan exercises must be an array.")

    for i, exercise in enumerate(exercises):
        path = f"exercises[{i}]"
        if not isinstance(exercise, dict):
            return ShapeResult.failure(f"Workout plan {path} is not an object.")
        if not isinstance(exercise.get("day"), str):
            return ShapeResult.failure(f"Workout plan {path}.day must be string.")
        routines = exercise.get("routines")
        if not isinstance(routines, list):
            return ShapeResult.failure(f"Workout plan {path}.routines must be an array.")
        for j, routine in enumerate(routines):
            routine_path = f"{path}.routines[{j}]"
            if not isinstance(routine, dict):
                return ShapeResult.failure(f"Workout plan {routine_path} is not an object.")
            if not isinstance(routine.get("name"), str):
                return ShapeResult.failure(f"Workout plan {routine_path}.name must be string.")
            for key in ("sets", "reps"):
                if not is_finite_number(routine.get(key)):
                    return ShapeResult.failure(f"Workout plan {routine_path}.{key} must be number.")

    return ShapeResult.success(obj)


def validate_diet_shape(obj: Any) -> ShapeResult[dict[str, Any]]:
    if not isinstance(obj, dict):
        return ShapeResult.failure("Diet plan is not an object.")
    if not is_finite_number(obj.get("dailyCalories")):
        return ShapeResult.failure("Diet plan dailyCalories must be a number.")
    meals = obj.get("meals")
    if not isinstance(meals, list):
        return ShapeResult.failure("Diet plan meals must be an array.")

    for i, meal in enumerate(meals):
        path = f"meals[{i}]"
        if not isinstance(meal, dict):
            return ShapeResult.failure(f"Diet plan {path} is not an object.")
        if not isinstance(meal.get("name"), str):
            return ShapeResult.failure(f"Diet plan {path}.name must be string.")
        if not is_string_list(meal.get("foods")):
            return ShapeResult.failure(f"Diet plan {path}.foods must be string[].")

    return ShapeResult.success(obj)
