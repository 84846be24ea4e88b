from .program import (
    DietPlan,
    GeneratedProgram,
    GenerateProgramResponse,
    GenerationRequest,
    PlanResponse,
    WorkoutPlan,
)
from .webhooks import ClerkUserFields

__all__ = [
    "ClerkUserFields",
    "DietPlan",
    "GeneratedProgram",
    "GenerateProgramResponse",
    "GenerationRequest",
    "PlanResponse",
    "WorkoutPlan",
]
