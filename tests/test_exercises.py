import pytest
from httpx import AsyncClient

from fitlink.config import settings

SQUAT = {
    "name": "Back Squat",
    "description": "Barbell squat with the bar on the upper back",
    "category": "strength",
    "muscle_groups": ["Quads", "glutes", "quads"],
    "equipment": "Barbell",
    "difficulty": "intermediate",
    "duration": 5,
}


async def _create(client: AsyncClient, headers: dict, **overrides) -> dict:
    response = await client.post(f"{settings.API_V1_STR}/exercises", json={**SQUAT, **overrides}, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_create_exercise_normalizes_muscle_groups(client: AsyncClient, coach):
    data = await _create(client, coach["headers"])
    assert data["muscle_groups"] == ["quads", "glutes"]
    assert data["created_by"] == coach["user"]["id"]
    assert data["is_public"] is True


@pytest.mark.asyncio
async def test_clients_cannot_create_exercises(client: AsyncClient, client_account):
    response = await client.post(f"{settings.API_V1_STR}/exercises", json=SQUAT, headers=client_account["headers"])
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_exercise_validation(client: AsyncClient, coach):
    bad_category = await client.post(
        f"{settings.API_V1_STR}/exercises",
        json={**SQUAT, "category": "juggling"},
        headers=coach["headers"],
    )
    assert bad_category.status_code == 422

    bad_url = await client.post(
        f"{settings.API_V1_STR}/exercises",
        json={**SQUAT, "video_url": "not-a-url"},
        headers=coach["headers"],
    )
    assert bad_url.status_code == 422


@pytest.mark.asyncio
async def test_list_filters(client: AsyncClient, coach, gym_account):
    await _create(client, coach["headers"])
    await _create(
        client,
        coach["headers"],
        name="Treadmill Intervals",
        category="cardio",
        muscle_groups=["legs", "cardiovascular"],
        equipment="Treadmill",
        difficulty="beginner",
    )
    await _create(
        client,
        gym_account["headers"],
        name="Hamstring Stretch",
        category="flexibility",
        muscle_groups=["hamstrings"],
        equipment=None,
        difficulty="beginner",
    )

    url = f"{settings.API_V1_STR}/exercises"
    everything = await client.get(url, headers=coach["headers"])
    assert len(everything.json()["data"]) == 3
    # Newest first.
    assert everything.json()["data"][0]["name"] == "Hamstring Stretch"

    cardio = await client.get(url, params={"category": "cardio"}, headers=coach["headers"])
    assert [e["name"] for e in cardio.json()["data"]] == ["Treadmill Intervals"]

    beginner = await client.get(url, params={"difficulty": "beginner"}, headers=coach["headers"])
    assert {e["name"] for e in beginner.json()["data"]} == {"Treadmill Intervals", "Hamstring Stretch"}

    barbell = await client.get(url, params={"equipment": "barbell"}, headers=coach["headers"])
    assert [e["name"] for e in barbell.json()["data"]] == ["Back Squat"]

    muscles = await client.get(url, params={"muscle_groups": "Glutes,hamstrings"}, headers=coach["headers"])
    assert {e["name"] for e in muscles.json()["data"]} == {"Back Squat", "Hamstring Stretch"}

    search = await client.get(url, params={"q": "tread"}, headers=coach["headers"])
    assert [e["name"] for e in search.json()["data"]] == ["Treadmill Intervals"]


@pytest.mark.asyncio
async def test_private_exercises_are_hidden_from_others(client: AsyncClient, coach, register):
    other = await register("coach", "other.coach@fitlink.io")
    private = await _create(client, coach["headers"], name="Secret Complex", is_public=False)

    mine = await client.get(f"{settings.API_V1_STR}/exercises/{private['id']}", headers=coach["headers"])
    assert mine.status_code == 200

    theirs = await client.get(f"{settings.API_V1_STR}/exercises/{private['id']}", headers=other["headers"])
    assert theirs.status_code == 404

    listing = await client.get(f"{settings.API_V1_STR}/exercises", headers=other["headers"])
    assert private["id"] not in {e["id"] for e in listing.json()["data"]}

    public = await client.get(f"{settings.API_V1_STR}/exercises/public")
    assert public.status_code == 200
    assert private["id"] not in {e["id"] for e in public.json()["data"]}


@pytest.mark.asyncio
async def test_update_and_delete_creator_only(client: AsyncClient, coach, register):
    other = await register("coach", "other.coach@fitlink.io")
    exercise = await _create(client, coach["headers"])
    url = f"{settings.API_V1_STR}/exercises/{exercise['id']}"

    forbidden = await client.patch(url, json={"name": "Front Squat"}, headers=other["headers"])
    assert forbidden.status_code == 403

    updated = await client.patch(url, json={"name": "Front Squat", "difficulty": "advanced"}, headers=coach["headers"])
    assert updated.status_code == 200
    assert updated.json()["data"]["name"] == "Front Squat"
    assert updated.json()["data"]["difficulty"] == "advanced"

    forbidden_delete = await client.delete(url, headers=other["headers"])
    assert forbidden_delete.status_code == 403

    deleted = await client.delete(url, headers=coach["headers"])
    assert deleted.status_code == 200

    gone = await client.get(url, headers=coach["headers"])
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_delete_exercise_in_use_conflicts(client: AsyncClient, linked_pair):
    coach, client_account = linked_pair
    exercise = await _create(client, coach["headers"])
    plan = await client.post(
        f"{settings.API_V1_STR}/workout-plans",
        json={
            "name": "Squat Block",
            "client_id": client_account["role_data"]["id"],
            "duration": 1,
            "workouts": [
                {
                    "name": "Day 1",
                    "week_number": 1,
                    "day_number": 1,
                    "exercises": [{"exercise_id": exercise["id"], "sets": 5, "reps": 5}],
                }
            ],
        },
        headers=coach["headers"],
    )
    assert plan.status_code == 200, plan.text

    response = await client.delete(f"{settings.API_V1_STR}/exercises/{exercise['id']}", headers=coach["headers"])
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_update_rejects_null_required_fields(client: AsyncClient, coach):
    exercise = await _create(client, coach["headers"])
    url = f"{settings.API_V1_STR}/exercises/{exercise['id']}"

    for field in ("name", "category", "difficulty", "is_public"):
        response = await client.patch(url, json={field: None}, headers=coach["headers"])
        assert response.status_code == 422, field

    cleared = await client.patch(url, json={"equipment": None, "duration": None}, headers=coach["headers"])
    assert cleared.status_code == 200
    assert cleared.json()["data"]["equipment"] is None
    assert cleared.json()["data"]["name"] == "Back Squat"
