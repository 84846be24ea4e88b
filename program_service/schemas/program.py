from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class GenerationRequest(BaseModel):
    user_id: str
    age: int | float
    height: str
    weight: str
    injuries: str
    workout_days: list[str]
    fitness_goal: str
    fitness_level: str
    dietary_restrictions: list[str]


class Routine(BaseModel):
    name: str
    sets: int | float
    reps: int | float


class ExerciseDay(BaseModel):
    day: str
    routines: list[Routine]


class WorkoutPlan(BaseModel):
    schedule: list[str]
    exercises: list[ExerciseDay]


class Meal(BaseModel):
    name: str
    foods: list[str]


class DietPlan(BaseModel):
    dailyCalories: int | float
    meals: list[Meal]


class GeneratedProgram(BaseModel):
    planId: int
    workoutPlan: WorkoutPlan
    dietPlan: DietPlan


class GenerateProgramResponse(BaseModel):
    success: bool
    data: GeneratedProgram | None = None
    error: str | None = None


class PlanResponse(BaseModel):
    id: int
    user_id: str
    name: str
    workout_plan: dict[str, Any]
    diet_plan: dict[str, Any]
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
