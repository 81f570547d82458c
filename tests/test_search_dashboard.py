import pytest
from httpx import AsyncClient

from fitlink.config import settings


@pytest.mark.asyncio
async def test_search_coaches(client: AsyncClient, coach, client_account, register):
    await register("coach", "yoga@fitlink.io", first_name="Yara", last_name="Flow", specialization="Yoga", location="Porto")
    url = f"{settings.API_V1_STR}/search/coaches"

    everyone = await client.get(url, headers=client_account["headers"])
    assert len(everyone.json()["data"]) == 2

    by_specialization = await client.get(url, params={"q": "power"}, headers=client_account["headers"])
    assert [c["user"]["email"] for c in by_specialization.json()["data"]] == ["coach@fitlink.io"]

    by_location = await client.get(url, params={"q": "porto"}, headers=client_account["headers"])
    assert [c["user"]["email"] for c in by_location.json()["data"]] == ["yoga@fitlink.io"]

    by_full_name = await client.get(url, params={"q": "Yara Flow"}, headers=client_account["headers"])
    assert len(by_full_name.json()["data"]) == 1

    nothing = await client.get(url, params={"q": "zumba"}, headers=client_account["headers"])
    assert nothing.json()["data"] == []


@pytest.mark.asyncio
async def test_search_coaches_skips_inactive(client: AsyncClient, coach, client_account):
    await client.patch(f"{settings.API_V1_STR}/coaches/me", json={"is_active": False}, headers=coach["headers"])
    response = await client.get(f"{settings.API_V1_STR}/search/coaches", headers=client_account["headers"])
    assert response.json()["data"] == []


@pytest.mark.asyncio
async def test_search_gyms(client: AsyncClient, gym_account, coach):
    await client.post(
        f"{settings.API_V1_STR}/gyms",
        json={"name": "Harbour Fitness", "address": "9 Dock Street"},
        headers=gym_account["headers"],
    )
    url = f"{settings.API_V1_STR}/search/gyms"

    by_name = await client.get(url, params={"q": "iron"}, headers=coach["headers"])
    assert [g["name"] for g in by_name.json()["data"]] == ["Iron Temple"]

    by_address = await client.get(url, params={"q": "dock"}, headers=coach["headers"])
    assert [g["name"] for g in by_address.json()["data"]] == ["Harbour Fitness"]

    unauthenticated = await client.get(url)
    assert unauthenticated.status_code == 401


@pytest.mark.asyncio
async def test_coach_dashboard(client: AsyncClient, linked_pair):
    coach, client_account = linked_pair
    await client.post(
        f"{settings.API_V1_STR}/workout-plans",
        json={"name": "Starter", "client_id": client_account["role_data"]["id"], "duration": 1},
        headers=coach["headers"],
    )
    await client.post(
        f"{settings.API_V1_STR}/invitations",
        json={"type": "coach_to_client", "invitee_email": "prospect@fitlink.io"},
        headers=coach["headers"],
    )

    response = await client.get(f"{settings.API_V1_STR}/dashboard", headers=coach["headers"])
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["role"] == "coach"
    assert data["client_count"] == 1
    assert data["active_plan_count"] == 1
    assert [p["name"] for p in data["recent_plans"]] == ["Starter"]
    assert [i["invitee_email"] for i in data["pending_invitations_sent"]] == ["prospect@fitlink.io"]


@pytest.mark.asyncio
async def test_client_dashboard(client: AsyncClient, linked_pair):
    coach, client_account = linked_pair
    created = await client.post(
        f"{settings.API_V1_STR}/workout-plans",
        json={
            "name": "Two Days",
            "client_id": client_account["role_data"]["id"],
            "duration": 1,
            "workouts": [
                {"name": "Day 2", "week_number": 1, "day_number": 2},
                {"name": "Day 1", "week_number": 1, "day_number": 1},
            ],
        },
        headers=coach["headers"],
    )
    first_workout = created.json()["data"]["workouts"][0]
    await client.patch(
        f"{settings.API_V1_STR}/workouts/{first_workout['id']}",
        json={"is_completed": True},
        headers=client_account["headers"],
    )

    response = await client.get(f"{settings.API_V1_STR}/dashboard", headers=client_account["headers"])
    data = response.json()["data"]
    assert data["role"] == "client"
    assert data["coach"]["id"] == coach["role_data"]["id"]
    assert data["workouts_total"] == 2
    assert data["workouts_completed"] == 1
    assert data["next_workout"]["name"] == "Day 2"
    assert data["pending_invitations_received"] == []


@pytest.mark.asyncio
async def test_gym_dashboard(client: AsyncClient, gym_account, coach):
    gym_id = gym_account["role_data"][0]["id"]
    await client.post(
        f"{settings.API_V1_STR}/invitations",
        json={"type": "coach_to_gym", "gym_id": gym_id},
        headers=coach["headers"],
    )

    response = await client.get(f"{settings.API_V1_STR}/dashboard", headers=gym_account["headers"])
    data = response.json()["data"]
    assert data["role"] == "gym"
    assert [g["name"] for g in data["gyms"]] == ["Iron Temple"]
    assert data["coach_count"] == 0
    assert data["client_count"] == 0
    assert len(data["pending_invitations_received"]) == 1
    assert data["pending_invitations_sent"] == []
