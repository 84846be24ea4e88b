import os
import sys
import tempfile
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient

# Ensure the service package is importable regardless of repo root cwd
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

TEST_WEBHOOK_SECRET = "whsec_MfKQ9r8GKYqrTwjUPD8ILPZIo2LaLaSw"

# Settings and the engine are resolved on first import, so the environment has to be ready first
_TMP_DIR = Path(tempfile.mkdtemp(prefix="program_service_db_"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test_program_service.db'}"
os.environ["GEMINI_API_KEY"] = "test-gemini-key"
os.environ["CLERK_WEBHOOK_SECRET"] = TEST_WEBHOOK_SECRET
os.environ.setdefault("APP_ENV", "test")


WORKOUT_RESPONSE = {
    "schedule": ["Monday", "Wednesday", "Friday"],
    "exercises": [
        {
            "day": "Monday",
            "routines": [
                {"name": "Squat", "sets": 4, "reps": 8},
                {"name": "Plank", "sets": 3, "reps": 1},
            ],
        },
        {
            "day": "Wednesday",
            "routines": [{"name": "Bench Press", "sets": 3, "reps": 10}],
        },
    ],
}

DIET_RESPONSE = {
    "dailyCalories": 2200,
    "meals": [
        {"name": "Breakfast", "foods": ["Oatmeal with berries", "Greek yogurt"]},
        {"name": "Dinner", "foods": ["Grilled salmon", "Brown rice", "Broccoli"]},
    ],
}


class FakeProgramGenerator:
    """Stands in for Gemini: answers by prompt kind and records every prompt."""

    def __init__(self, workout=None, diet=None):
        self.responses = {
            "workout": WORKOUT_RESPONSE if workout is None else workout,
            "diet": DIET_RESPONSE if diet is None else diet,
        }
        self.prompts: list[str] = []

    async def generate_json(self, prompt: str):
        self.prompts.append(prompt)
        kind = "diet" if "nutrition coach" in prompt else "workout"
        response = self.responses[kind]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture(scope="session", autouse=True)
def migrated_db():
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    # Pin script_location explicitly to avoid picking up wrong migrations when running from elsewhere
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(cfg, "head")
    yield os.environ["DATABASE_URL"]


@pytest.fixture(autouse=True)
def clean_tables(migrated_db):
    yield
    from program_service.database import SessionLocal
    from program_service.models import Plan, User

    db = SessionLocal()
    try:
        db.query(Plan).delete()
        db.query(User).delete()
        db.commit()
    finally:
        db.close()


@pytest.fixture()
def db_session():
    from program_service.database import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def fake_generator() -> FakeProgramGenerator:
    return FakeProgramGenerator()


@pytest.fixture()
def client(fake_generator: FakeProgramGenerator):
    # Import after the environment is set and migrations have run
    from program_service.dependencies import get_program_generator
    from program_service.main import app

    app.dependency_overrides[get_program_generator] = lambda: fake_generator

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.pop(get_program_generator, None)


@pytest.fixture()
def valid_request_payload() -> dict:
    return {
        "user_id": "user_2abc",
        "age": 29,
        "height": "180 cm",
        "weight": "78 kg",
        "injuries": "none",
        "workout_days": ["Monday", "Wednesday", "Friday"],
        "fitness_goal": "Muscle gain",
        "fitness_level": "intermediate",
        "dietary_restrictions": ["lactose"],
    }
