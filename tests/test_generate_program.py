from datetime import date

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from program_service.database import SessionLocal
from program_service.dependencies import get_program_generator
from program_service.models import Plan
from program_service.services import plan_store
from program_service.services.llm_runtime import GeminiJsonGenerator
from program_service.services.program_generation import build_plan_name


def _plans() -> list[Plan]:
    db = SessionLocal()
    try:
        return db.query(Plan).order_by(Plan.id).all()
    finally:
        db.close()


def test_generate_program_success(client: TestClient, fake_generator, valid_request_payload):
    r = client.post("/vapi/generate-program", json=valid_request_payload)

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    data = body["data"]
    assert data["workoutPlan"] == fake_generator.responses["workout"]
    assert data["dietPlan"] == fake_generator.responses["diet"]

    plans = _plans()
    assert len(plans) == 1
    assert plans[0].id == data["planId"]
    assert plans[0].user_id == "user_2abc"
    assert plans[0].is_active is True
    assert plans[0].name == build_plan_name("Muscle gain", date.today())

    workout_prompt, diet_prompt = fake_generator.prompts
    assert "fitness coach" in workout_prompt
    assert "Injuries or limitations: none" in workout_prompt
    assert "nutrition coach" in diet_prompt
    assert "Dietary restrictions: lactose" in diet_prompt


def test_envelope_wrapped_request_is_processed_identically(client: TestClient, valid_request_payload):
    plain = client.post("/vapi/generate-program", json=valid_request_payload).json()
    wrapped = client.post("/vapi/generate-program", json={"node": valid_request_payload}).json()

    assert wrapped["success"] is True
    assert wrapped["data"]["workoutPlan"] == plain["data"]["workoutPlan"]
    assert wrapped["data"]["dietPlan"] == plain["data"]["dietPlan"]
    plans = _plans()
    assert [p.user_id for p in plans] == ["user_2abc", "user_2abc"]
    assert [p.is_active for p in plans] == [False, True]


def test_bad_request_shape_is_400(client: TestClient, fake_generator, valid_request_payload):
    payload = dict(valid_request_payload)
    del payload["age"]

    r = client.post("/vapi/generate-program", json=payload)

    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Missing or invalid 'age' (expected number)."}
    assert fake_generator.prompts == []
    assert _plans() == []


def test_model_failure_is_generic_500(client: TestClient, fake_generator, valid_request_payload):
    fake_generator.responses["workout"] = ValueError("Expecting value: line 1 column 1")

    r = client.post("/vapi/generate-program", json=valid_request_payload)

    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Failed to generate a valid workout plan from AI."}
    assert _plans() == []


def test_diet_model_failure_is_generic_500(client: TestClient, fake_generator, valid_request_payload):
    fake_generator.responses["diet"] = RuntimeError("quota exceeded")

    r = client.post("/vapi/generate-program", json=valid_request_payload)

    assert r.status_code == 500
    assert r.json()["error"] == "Failed to generate a valid diet plan from AI."
    assert len(fake_generator.prompts) == 2
    assert _plans() == []


def test_invalid_workout_shape_reports_path(client: TestClient, fake_generator, valid_request_payload):
    fake_generator.responses["workout"] = {
        "schedule": ["Monday"],
        "exercises": [{"day": "Monday", "routines": [{"name": "Push-up", "sets": 3, "reps": "AMRAP"}]}],
    }

    r = client.post("/vapi/generate-program", json=valid_request_payload)

    assert r.status_code == 500
    error = r.json()["error"]
    assert error.startswith("Invalid workout plan: ")
    assert "exercises[0].routines[0].reps" in error
    # the diet call is never made once the workout plan is unusable
    assert len(fake_generator.prompts) == 1
    assert _plans() == []


def test_invalid_diet_shape_reports_path(client: TestClient, fake_generator, valid_request_payload):
    fake_generator.responses["diet"] = {"dailyCalories": "2000 kcal", "meals": []}

    r = client.post("/vapi/generate-program", json=valid_request_payload)

    assert r.status_code == 500
    assert r.json()["error"] == "Invalid diet plan: Diet plan dailyCalories must be a number."
    assert _plans() == []


def test_extra_model_fields_are_stripped(client: TestClient, fake_generator, valid_request_payload):
    fake_generator.responses["diet"] = {
        "dailyCalories": 2500,
        "meals": [{"name": "Lunch", "foods": ["Rice"], "calories": 700}],
        "supplements": ["Whey"],
    }

    r = client.post("/vapi/generate-program", json=valid_request_payload)

    assert r.status_code == 200
    assert r.json()["data"]["dietPlan"] == {"dailyCalories": 2500, "meals": [{"name": "Lunch", "foods": ["Rice"]}]}
    assert _plans()[0].diet_plan == {"dailyCalories": 2500, "meals": [{"name": "Lunch", "foods": ["Rice"]}]}


def test_persistence_failure_is_500(client: TestClient, valid_request_payload, monkeypatch):
    from program_service.services import plan_store

    def broken_create_plan(*args, **kwargs):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(plan_store, "create_plan", broken_create_plan)

    r = client.post("/vapi/generate-program", json=valid_request_payload)

    assert r.status_code == 500
    assert r.json() == {"success": False, "error": "Failed to save plan to database."}


def test_unparsable_body_is_500_with_raw_message(client: TestClient):
    r = client.post(
        "/vapi/generate-program",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )

    assert r.status_code == 500
    body = r.json()
    assert body["success"] is False
    assert body["error"]


class _TextReplyModel:
    def __init__(self, text: str):
        self.text = text

    async def ainvoke(self, messages):
        return AIMessage(content=self.text)


def _overflowing_workout_reply(literal: str) -> str:
    return (
        '{"schedule": ["Monday"], "exercises": [{"day": "Monday", "routines": '
        f'[{{"name": "Squat", "sets": {literal}, "reps": 10}}]}}]}}'
    )


@pytest.mark.parametrize(
    "literal, expected_error",
    [
        ("1e400", "Invalid workout plan: Workout plan exercises[0].routines[0].sets must be number."),
        ("Infinity", "Failed to generate a valid workout plan from AI."),
        ("NaN", "Failed to generate a valid workout plan from AI."),
    ],
)
def test_non_finite_model_numbers_are_json_500_and_nothing_is_stored(
    client: TestClient, db_session, valid_request_payload, literal, expected_error
):
    previous_id = plan_store.create_plan(
        db_session,
        user_id="user_2abc",
        name="Muscle gain Plan - 1/1/2026",
        workout_plan={"schedule": [], "exercises": []},
        diet_plan={"dailyCalories": 2000, "meals": []},
        is_active=True,
    )
    generator = GeminiJsonGenerator(_TextReplyModel(_overflowing_workout_reply(literal)))
    client.app.dependency_overrides[get_program_generator] = lambda: generator

    r = client.post("/vapi/generate-program", json=valid_request_payload)

    assert r.status_code == 500
    assert r.headers["content-type"].startswith("application/json")
    assert r.json() == {"success": False, "error": expected_error}
    plans = _plans()
    assert [(p.id, p.is_active) for p in plans] == [(previous_id, True)]


@pytest.mark.parametrize(
    "day, expected",
    [(date(2026, 1, 5), "Fat loss Plan - 1/5/2026"), (date(2026, 10, 18), "Fat loss Plan - 10/18/2026")],
)
def test_plan_name(day, expected):
    assert build_plan_name("Fat loss", day) == expected
