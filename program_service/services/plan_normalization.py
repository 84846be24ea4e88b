"""Best-effort coercion of already shape-checked plans.

Runs after :mod:`shape_validation`; projects the known fields only, so any
extra keys the model invented are dropped before persistence.
"""

from __future__ import annotations

import re
from typing import Any

from .shape_validation import is_number

DEFAULT_SETS = 1
DEFAULT_REPS = 10

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_leading_int(value: Any) -> int | None:
    match = _LEADING_INT_RE.match(str(value))
    if match is None:
        return None
    return int(match.group(1))


def coerce_count(value: Any, fallback: int) -> int | float:
    if is_number(value):
        return value
    # 0 counts as a failed parse
    return parse_leading_int(value) or fallback


def normalize_routine(routine: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": routine["name"],
        "sets": coerce_count(routine.get("sets"), DEFAULT_SETS),
        "reps": coerce_count(routine.get("reps"), DEFAULT_REPS),
    }


def normalize_workout_plan(plan: dict[str, Any]) -> dict[str, Any]:
    return {
        "schedule": plan["schedule"],
        "exercises": [
            {
                "day": exercise["day"],
                "routines": [normalize_routine(routine) for routine in exercise["routines"]],
            }
            for exercise in plan["exercises"]
        ],
    }


def normalize_diet_plan(plan: dict[str, Any]) -> dict[str, Any]:
    return {
        "dailyCalories": plan["dailyCalories"],
        "meals": [{"name": meal["name"], "foods": meal["foods"]} for meal in plan["meals"]],
    }
