import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fitlink.config import settings
from fitlink.models.audit import AuditLog


async def _exercise(client: AsyncClient, headers: dict, name: str, **extra) -> str:
    response = await client.post(
        f"{settings.API_V1_STR}/exercises",
        json={"name": name, "category": "strength", "difficulty": "beginner", **extra},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()["data"]["id"]


def _plan_payload(client_id: str, squat_id: str, press_id: str) -> dict:
    # Workouts are deliberately submitted out of order.
    return {
        "name": "Four Week Base",
        "description": "General strength block",
        "client_id": client_id,
        "duration": 4,
        "workouts": [
            {
                "name": "Week 2 Monday",
                "week_number": 2,
                "day_number": 1,
                "exercises": [{"exercise_id": squat_id, "order_index": 0, "sets": 3, "reps": 8}],
            },
            {
                "name": "Week 1 Wednesday",
                "week_number": 1,
                "day_number": 3,
                "exercises": [],
            },
            {
                "name": "Week 1 Monday",
                "week_number": 1,
                "day_number": 1,
                "estimated_duration": 45,
                "exercises": [
                    {"exercise_id": press_id, "order_index": 2, "sets": 3, "reps": 10, "weight": 40},
                    {"exercise_id": squat_id, "order_index": 1, "sets": 5, "reps": 5, "rest_time": 120},
                ],
            },
        ],
    }


@pytest.fixture
async def plan(client: AsyncClient, linked_pair) -> dict:
    coach, client_account = linked_pair
    squat_id = await _exercise(client, coach["headers"], "Squat")
    press_id = await _exercise(client, coach["headers"], "Bench Press")
    response = await client.post(
        f"{settings.API_V1_STR}/workout-plans",
        json=_plan_payload(client_account["role_data"]["id"], squat_id, press_id),
        headers=coach["headers"],
    )
    assert response.status_code == 200, response.text
    return {"data": response.json()["data"], "squat_id": squat_id, "press_id": press_id}


@pytest.mark.asyncio
async def test_create_plan_orders_workouts_and_exercises(plan, db_session: AsyncSession):
    data = plan["data"]
    assert [w["name"] for w in data["workouts"]] == ["Week 1 Monday", "Week 1 Wednesday", "Week 2 Monday"]
    first = data["workouts"][0]
    assert [e["order_index"] for e in first["exercises"]] == [1, 2]
    assert first["exercises"][0]["exercise"]["name"] == "Squat"
    assert data["total_workouts"] == 3
    assert data["completed_workouts"] == 0

    audit = (await db_session.execute(select(AuditLog).where(AuditLog.action == "CREATE_WORKOUT_PLAN"))).scalars().all()
    assert len(audit) == 1


@pytest.mark.asyncio
async def test_create_plan_requires_own_client(client: AsyncClient, coach, client_account):
    # No invitation accepted, so the client has no coach yet.
    response = await client.post(
        f"{settings.API_V1_STR}/workout-plans",
        json={"name": "Too Soon", "client_id": client_account["role_data"]["id"], "duration": 2},
        headers=coach["headers"],
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_plan_validates_week_and_exercises(client: AsyncClient, linked_pair, register):
    coach, client_account = linked_pair
    client_id = client_account["role_data"]["id"]

    week_out_of_range = await client.post(
        f"{settings.API_V1_STR}/workout-plans",
        json={
            "name": "Bad Week",
            "client_id": client_id,
            "duration": 2,
            "workouts": [{"name": "W3", "week_number": 3, "day_number": 1}],
        },
        headers=coach["headers"],
    )
    assert week_out_of_range.status_code == 400

    day_out_of_range = await client.post(
        f"{settings.API_V1_STR}/workout-plans",
        json={
            "name": "Bad Day",
            "client_id": client_id,
            "duration": 2,
            "workouts": [{"name": "D8", "week_number": 1, "day_number": 8}],
        },
        headers=coach["headers"],
    )
    assert day_out_of_range.status_code == 422

    other = await register("coach", "private.owner@fitlink.io")
    private_id = await _exercise(client, other["headers"], "Private Move", is_public=False)
    hidden_exercise = await client.post(
        f"{settings.API_V1_STR}/workout-plans",
        json={
            "name": "Hidden",
            "client_id": client_id,
            "duration": 1,
            "workouts": [
                {"name": "D1", "week_number": 1, "day_number": 1, "exercises": [{"exercise_id": private_id}]}
            ],
        },
        headers=coach["headers"],
    )
    assert hidden_exercise.status_code == 400


@pytest.mark.asyncio
async def test_clients_cannot_create_plans(client: AsyncClient, linked_pair):
    _, client_account = linked_pair
    response = await client.post(
        f"{settings.API_V1_STR}/workout-plans",
        json={"name": "Self Made", "client_id": client_account["role_data"]["id"], "duration": 1},
        headers=client_account["headers"],
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_plan_visibility(client: AsyncClient, plan, linked_pair, register):
    coach, client_account = linked_pair
    stranger = await register("coach", "stranger@fitlink.io")
    plan_id = plan["data"]["id"]

    for headers in (coach["headers"], client_account["headers"]):
        response = await client.get(f"{settings.API_V1_STR}/workout-plans/{plan_id}", headers=headers)
        assert response.status_code == 200

    hidden = await client.get(f"{settings.API_V1_STR}/workout-plans/{plan_id}", headers=stranger["headers"])
    assert hidden.status_code == 403


@pytest.mark.asyncio
async def test_list_plans_by_coach_and_client(client: AsyncClient, plan, linked_pair, register):
    coach, client_account = linked_pair
    stranger = await register("coach", "stranger@fitlink.io")
    coach_id = coach["role_data"]["id"]
    client_id = client_account["role_data"]["id"]

    by_coach = await client.get(f"{settings.API_V1_STR}/workout-plans/coach/{coach_id}", headers=coach["headers"])
    assert [p["id"] for p in by_coach.json()["data"]] == [plan["data"]["id"]]
    assert by_coach.json()["data"][0]["total_workouts"] == 3

    other_coach_view = await client.get(
        f"{settings.API_V1_STR}/workout-plans/coach/{coach_id}", headers=stranger["headers"]
    )
    assert other_coach_view.status_code == 403

    by_client = await client.get(
        f"{settings.API_V1_STR}/workout-plans/client/{client_id}", headers=client_account["headers"]
    )
    assert [p["id"] for p in by_client.json()["data"]] == [plan["data"]["id"]]

    coach_view = await client.get(f"{settings.API_V1_STR}/workout-plans/client/{client_id}", headers=coach["headers"])
    assert coach_view.status_code == 200

    stranger_view = await client.get(
        f"{settings.API_V1_STR}/workout-plans/client/{client_id}", headers=stranger["headers"]
    )
    assert stranger_view.status_code == 403


@pytest.mark.asyncio
async def test_update_plan_duration_guard(client: AsyncClient, plan, linked_pair):
    coach, _ = linked_pair
    url = f"{settings.API_V1_STR}/workout-plans/{plan['data']['id']}"

    too_short = await client.patch(url, json={"duration": 1}, headers=coach["headers"])
    assert too_short.status_code == 400

    ok = await client.patch(url, json={"duration": 2, "name": "Two Week Base", "is_active": False}, headers=coach["headers"])
    assert ok.status_code == 200
    data = ok.json()["data"]
    assert data["duration"] == 2
    assert data["name"] == "Two Week Base"
    assert data["is_active"] is False

    active_only = await client.get(
        f"{settings.API_V1_STR}/workout-plans/coach/{coach['role_data']['id']}",
        params={"active_only": True},
        headers=coach["headers"],
    )
    assert active_only.json()["data"] == []


@pytest.mark.asyncio
async def test_add_workout_and_exercise(client: AsyncClient, plan, linked_pair):
    coach, client_account = linked_pair
    plan_id = plan["data"]["id"]

    out_of_range = await client.post(
        f"{settings.API_V1_STR}/workout-plans/{plan_id}/workouts",
        json={"name": "Week 5", "week_number": 5, "day_number": 1},
        headers=coach["headers"],
    )
    assert out_of_range.status_code == 400

    added = await client.post(
        f"{settings.API_V1_STR}/workout-plans/{plan_id}/workouts",
        json={"name": "Week 1 Friday", "week_number": 1, "day_number": 5},
        headers=coach["headers"],
    )
    assert added.status_code == 200
    workout_id = added.json()["data"]["id"]

    item = await client.post(
        f"{settings.API_V1_STR}/workouts/{workout_id}/exercises",
        json={"exercise_id": plan["press_id"], "order_index": 0, "sets": 4, "reps": 6},
        headers=coach["headers"],
    )
    assert item.status_code == 200
    assert item.json()["data"]["exercise"]["name"] == "Bench Press"

    by_client = await client.post(
        f"{settings.API_V1_STR}/workouts/{workout_id}/exercises",
        json={"exercise_id": plan["press_id"]},
        headers=client_account["headers"],
    )
    assert by_client.status_code == 403

    listing = await client.get(f"{settings.API_V1_STR}/workouts/plan/{plan_id}", headers=client_account["headers"])
    names = [w["name"] for w in listing.json()["data"]]
    assert names == ["Week 1 Monday", "Week 1 Wednesday", "Week 1 Friday", "Week 2 Monday"]

    exercises = await client.get(f"{settings.API_V1_STR}/workouts/{workout_id}/exercises", headers=client_account["headers"])
    assert [e["sets"] for e in exercises.json()["data"]] == [4]


@pytest.mark.asyncio
async def test_client_completes_workout(client: AsyncClient, plan, linked_pair):
    coach, client_account = linked_pair
    workout_id = plan["data"]["workouts"][0]["id"]
    url = f"{settings.API_V1_STR}/workouts/{workout_id}"

    rename = await client.patch(url, json={"name": "Renamed"}, headers=client_account["headers"])
    assert rename.status_code == 403

    done = await client.patch(url, json={"is_completed": True}, headers=client_account["headers"])
    assert done.status_code == 200
    assert done.json()["data"]["is_completed"] is True
    assert done.json()["data"]["completed_at"] is not None

    detail = await client.get(f"{settings.API_V1_STR}/workout-plans/{plan['data']['id']}", headers=coach["headers"])
    assert detail.json()["data"]["completed_workouts"] == 1

    undone = await client.patch(url, json={"is_completed": False}, headers=client_account["headers"])
    assert undone.json()["data"]["is_completed"] is False
    assert undone.json()["data"]["completed_at"] is None


@pytest.mark.asyncio
async def test_coach_moves_workout(client: AsyncClient, plan, linked_pair):
    coach, _ = linked_pair
    workout_id = plan["data"]["workouts"][0]["id"]
    url = f"{settings.API_V1_STR}/workouts/{workout_id}"

    beyond = await client.patch(url, json={"week_number": 9}, headers=coach["headers"])
    assert beyond.status_code == 400

    moved = await client.patch(url, json={"week_number": 3, "day_number": 2}, headers=coach["headers"])
    assert moved.status_code == 200

    listing = await client.get(f"{settings.API_V1_STR}/workouts/plan/{plan['data']['id']}", headers=coach["headers"])
    assert [w["name"] for w in listing.json()["data"]][-1] == "Week 1 Monday"


@pytest.mark.asyncio
async def test_update_plan_rejects_null_required_fields(client: AsyncClient, plan, linked_pair):
    coach, _ = linked_pair
    url = f"{settings.API_V1_STR}/workout-plans/{plan['data']['id']}"

    for field in ("name", "duration", "is_active"):
        response = await client.patch(url, json={field: None}, headers=coach["headers"])
        assert response.status_code == 422, field

    cleared = await client.patch(url, json={"description": None}, headers=coach["headers"])
    assert cleared.status_code == 200
    assert cleared.json()["data"]["description"] is None
