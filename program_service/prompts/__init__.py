from .program import build_diet_prompt, build_workout_prompt

__all__ = [
    "build_diet_prompt",
    "build_workout_prompt",
]
