import pytest
from httpx import AsyncClient

from fitlink.config import settings


@pytest.mark.asyncio
async def test_get_user_and_patch_self_only(client: AsyncClient, coach, client_account):
    coach_id = coach["user"]["id"]

    fetched = await client.get(f"{settings.API_V1_STR}/users/{coach_id}", headers=client_account["headers"])
    assert fetched.status_code == 200
    assert fetched.json()["data"]["email"] == "coach@fitlink.io"

    forbidden = await client.patch(
        f"{settings.API_V1_STR}/users/{coach_id}",
        json={"location": "Elsewhere"},
        headers=client_account["headers"],
    )
    assert forbidden.status_code == 403

    updated = await client.patch(
        f"{settings.API_V1_STR}/users/{coach_id}",
        json={"location": "Lisbon", "date_of_birth": "1990-04-01"},
        headers=coach["headers"],
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["location"] == "Lisbon"


@pytest.mark.asyncio
async def test_patch_user_rejects_future_birth_date(client: AsyncClient, coach):
    response = await client.patch(
        f"{settings.API_V1_STR}/users/{coach['user']['id']}",
        json={"date_of_birth": "2999-01-01"},
        headers=coach["headers"],
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_unknown_user(client: AsyncClient, coach):
    response = await client.get(
        f"{settings.API_V1_STR}/users/00000000-0000-0000-0000-000000000000",
        headers=coach["headers"],
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_gym_crud_owner_only(client: AsyncClient, gym_account, register):
    other_gym = await register("gym", "other.gym@fitlink.io")

    created = await client.post(
        f"{settings.API_V1_STR}/gyms",
        json={"name": "Second Site", "address": "2 Kettlebell Lane"},
        headers=gym_account["headers"],
    )
    assert created.status_code == 200
    gym_id = created.json()["data"]["id"]

    owned = await client.get(
        f"{settings.API_V1_STR}/gyms/owner/{gym_account['user']['id']}",
        headers=gym_account["headers"],
    )
    assert [g["name"] for g in owned.json()["data"]] == ["Iron Temple", "Second Site"]

    not_owner = await client.patch(
        f"{settings.API_V1_STR}/gyms/{gym_id}",
        json={"name": "Hijacked"},
        headers=other_gym["headers"],
    )
    assert not_owner.status_code == 403

    renamed = await client.patch(
        f"{settings.API_V1_STR}/gyms/{gym_id}",
        json={"name": "Second Site East"},
        headers=gym_account["headers"],
    )
    assert renamed.status_code == 200
    assert renamed.json()["data"]["name"] == "Second Site East"

    fetched = await client.get(f"{settings.API_V1_STR}/gyms/{gym_id}", headers=other_gym["headers"])
    assert fetched.json()["data"]["name"] == "Second Site East"


@pytest.mark.asyncio
async def test_only_gym_users_create_gyms(client: AsyncClient, coach):
    response = await client.post(
        f"{settings.API_V1_STR}/gyms",
        json={"name": "Coach Gym"},
        headers=coach["headers"],
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_gym_roster_after_invitation(client: AsyncClient, gym_account, coach, client_account):
    gym_id = gym_account["role_data"][0]["id"]
    invite = await client.post(
        f"{settings.API_V1_STR}/invitations",
        json={"type": "gym_to_coach", "invitee_email": "coach@fitlink.io", "gym_id": gym_id},
        headers=gym_account["headers"],
    )
    assert invite.status_code == 200
    await client.patch(
        f"{settings.API_V1_STR}/invitations/{invite.json()['data']['id']}",
        json={"status": "accepted"},
        headers=coach["headers"],
    )

    coaches = await client.get(f"{settings.API_V1_STR}/gyms/{gym_id}/coaches", headers=client_account["headers"])
    assert [c["user_id"] for c in coaches.json()["data"]] == [coach["user"]["id"]]

    by_gym = await client.get(f"{settings.API_V1_STR}/coaches/gym/{gym_id}", headers=client_account["headers"])
    assert len(by_gym.json()["data"]) == 1

    clients_forbidden = await client.get(f"{settings.API_V1_STR}/gyms/{gym_id}/clients", headers=coach["headers"])
    assert clients_forbidden.status_code == 403

    clients_ok = await client.get(f"{settings.API_V1_STR}/gyms/{gym_id}/clients", headers=gym_account["headers"])
    assert clients_ok.status_code == 200
    assert clients_ok.json()["data"] == []


@pytest.mark.asyncio
async def test_coach_profile_update(client: AsyncClient, coach, client_account):
    response = await client.patch(
        f"{settings.API_V1_STR}/coaches/me",
        json={"hourly_rate": 75, "availability": {"mon": ["08:00-12:00"]}},
        headers=coach["headers"],
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["hourly_rate"] == 75
    assert data["availability"] == {"mon": ["08:00-12:00"]}
    assert data["user"]["specialization"] == "Powerlifting"

    negative = await client.patch(
        f"{settings.API_V1_STR}/coaches/me",
        json={"hourly_rate": -1},
        headers=coach["headers"],
    )
    assert negative.status_code == 422

    as_client = await client.patch(
        f"{settings.API_V1_STR}/coaches/me",
        json={"hourly_rate": 10},
        headers=client_account["headers"],
    )
    assert as_client.status_code == 403


@pytest.mark.asyncio
async def test_coach_by_user(client: AsyncClient, coach, client_account):
    found = await client.get(
        f"{settings.API_V1_STR}/coaches/user/{coach['user']['id']}",
        headers=client_account["headers"],
    )
    assert found.status_code == 200
    assert found.json()["data"]["id"] == coach["role_data"]["id"]

    missing = await client.get(
        f"{settings.API_V1_STR}/coaches/user/{client_account['user']['id']}",
        headers=client_account["headers"],
    )
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_client_visibility(client: AsyncClient, linked_pair, register):
    coach, client_account = linked_pair
    stranger = await register("coach", "stranger@fitlink.io")
    url = f"{settings.API_V1_STR}/clients/user/{client_account['user']['id']}"

    own = await client.get(url, headers=client_account["headers"])
    assert own.status_code == 200
    assert own.json()["data"]["coach_id"] == coach["role_data"]["id"]

    by_coach = await client.get(url, headers=coach["headers"])
    assert by_coach.status_code == 200

    by_stranger = await client.get(url, headers=stranger["headers"])
    assert by_stranger.status_code == 403


@pytest.mark.asyncio
async def test_coach_client_lists(client: AsyncClient, linked_pair, register):
    coach, client_account = linked_pair
    coach_id = coach["role_data"]["id"]
    other_coach = await register("coach", "other.coach@fitlink.io")

    mine = await client.get(f"{settings.API_V1_STR}/coaches/{coach_id}/clients", headers=coach["headers"])
    assert [c["user_id"] for c in mine.json()["data"]] == [client_account["user"]["id"]]

    alias = await client.get(f"{settings.API_V1_STR}/clients/coach/{coach_id}", headers=coach["headers"])
    assert alias.json()["data"] == mine.json()["data"]

    forbidden = await client.get(f"{settings.API_V1_STR}/coaches/{coach_id}/clients", headers=other_coach["headers"])
    assert forbidden.status_code == 403


@pytest.mark.asyncio
async def test_client_profile_update(client: AsyncClient, client_account):
    response = await client.patch(
        f"{settings.API_V1_STR}/clients/me",
        json={"fitness_goals": "Deadlift twice bodyweight", "medical_conditions": "Old knee injury"},
        headers=client_account["headers"],
    )
    assert response.status_code == 200
    assert response.json()["data"]["fitness_goals"] == "Deadlift twice bodyweight"


@pytest.mark.asyncio
async def test_profile_updates_reject_null_required_fields(client: AsyncClient, coach, gym_account):
    user_url = f"{settings.API_V1_STR}/users/{coach['user']['id']}"
    for payload in ({"first_name": None}, {"last_name": None}):
        response = await client.patch(user_url, json=payload, headers=coach["headers"])
        assert response.status_code == 422, payload

    cleared_bio = await client.patch(user_url, json={"bio": None}, headers=coach["headers"])
    assert cleared_bio.status_code == 200

    gym_url = f"{settings.API_V1_STR}/gyms/{gym_account['role_data'][0]['id']}"
    for payload in ({"name": None}, {"is_active": None}):
        response = await client.patch(gym_url, json=payload, headers=gym_account["headers"])
        assert response.status_code == 422, payload

    coach_url = f"{settings.API_V1_STR}/coaches/me"
    inactive_null = await client.patch(coach_url, json={"is_active": None}, headers=coach["headers"])
    assert inactive_null.status_code == 422
