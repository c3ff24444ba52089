"""Habit API tests: auth, ownership and quota mapping plus the toggle flow."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

HABIT = {"title": "Meditate", "category": "mindfulness", "frequency": "daily", "time_of_day": "morning"}


async def _create(client: AsyncClient, **overrides: object) -> int:
    response = await client.post("/api/v1/habits", json={**HABIT, **overrides})
    assert response.status_code == 201
    return response.json()["id"]


class TestAuthMapping:

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client: AsyncClient):
        response = await client.get("/api/v1/habits")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_invalid_token_is_401(self, client: AsyncClient):
        response = await client.get("/api/v1/habits", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unsynced_subject_is_401(self, client: AsyncClient, token_factory):
        token = token_factory("never-synced")
        response = await client.get("/api/v1/habits", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert "signup" in response.json()["detail"]


class TestHabitCrud:

    @pytest.mark.asyncio
    async def test_create_and_list(self, authed_client: AsyncClient):
        habit_id = await _create(authed_client)

        response = await authed_client.get("/api/v1/habits")
        assert response.status_code == 200
        habits = response.json()
        assert len(habits) == 1
        assert habits[0]["id"] == habit_id
        assert habits[0]["streak_current"] == 0
        assert habits[0]["order"] == 0
        assert habits[0]["time_of_day"] == "morning"

    @pytest.mark.asyncio
    async def test_custom_frequency_requires_days(self, authed_client: AsyncClient):
        response = await authed_client.post("/api/v1/habits", json={**HABIT, "frequency": "custom"})
        assert response.status_code == 422

        response = await authed_client.post(
            "/api/v1/habits", json={**HABIT, "frequency": "custom", "custom_days": [1, 3, 5]}
        )
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_quota_exceeded_is_403(self, authed_client: AsyncClient):
        for i in range(5):
            await _create(authed_client, title=f"Habit {i}")

        response = await authed_client.post("/api/v1/habits", json=HABIT)
        assert response.status_code == 403
        data = response.json()
        assert data["plan"] == "free"
        assert data["limit"] == 5
        assert "Plan limit reached" in data["detail"]

    @pytest.mark.asyncio
    async def test_archive_then_list_all(self, authed_client: AsyncClient):
        habit_id = await _create(authed_client)

        response = await authed_client.patch(f"/api/v1/habits/{habit_id}", json={"is_active": False})
        assert response.status_code == 204

        assert (await authed_client.get("/api/v1/habits")).json() == []
        all_habits = (await authed_client.get("/api/v1/habits/all")).json()
        assert [h["is_active"] for h in all_habits] == [False]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("custom_days", [[], [9]])
    async def test_patch_custom_days_checked_against_stored_frequency(
        self, authed_client: AsyncClient, custom_days: list[int]
    ):
        habit_id = await _create(authed_client, frequency="custom", custom_days=[1, 3])

        response = await authed_client.patch(f"/api/v1/habits/{habit_id}", json={"custom_days": custom_days})
        assert response.status_code == 422

        habits = (await authed_client.get("/api/v1/habits")).json()
        assert habits[0]["custom_days"] == [1, 3]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["title", "category", "frequency", "time_of_day", "is_active"])
    async def test_patch_null_on_required_field_is_422(self, authed_client: AsyncClient, field: str):
        habit_id = await _create(authed_client)

        response = await authed_client.patch(f"/api/v1/habits/{habit_id}", json={field: None})
        assert response.status_code == 422
        assert response.json()["detail"] == "Validation error"

    @pytest.mark.asyncio
    async def test_patch_null_clears_optional_field(self, authed_client: AsyncClient):
        habit_id = await _create(authed_client, description="Ten minutes")

        response = await authed_client.patch(f"/api/v1/habits/{habit_id}", json={"description": None})
        assert response.status_code == 204
        assert (await authed_client.get("/api/v1/habits")).json()[0]["description"] is None

    @pytest.mark.asyncio
    async def test_other_users_habit_is_404(self, authed_client: AsyncClient, other_headers: dict):
        habit_id = await _create(authed_client)

        for method, path, body in [
            ("PATCH", f"/api/v1/habits/{habit_id}", {"title": "x"}),
            ("POST", f"/api/v1/habits/{habit_id}/toggle", {"date": "2025-03-10"}),
            ("POST", f"/api/v1/habits/{habit_id}/skip", {"date": "2025-03-10"}),
            ("DELETE", f"/api/v1/habits/{habit_id}", None),
        ]:
            response = await authed_client.request(method, path, json=body, headers=other_headers)
            assert response.status_code == 404, path
            assert response.json()["detail"] == "Habit not found"

        response = await authed_client.get(f"/api/v1/habits/{habit_id}/stats", headers=other_headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_removes_habit_and_logs(self, authed_client: AsyncClient):
        habit_id = await _create(authed_client)
        await authed_client.post(f"/api/v1/habits/{habit_id}/toggle", json={"date": "2025-03-10"})

        response = await authed_client.delete(f"/api/v1/habits/{habit_id}")
        assert response.status_code == 204

        logs = await authed_client.get("/api/v1/habits/logs", params={"start": "2025-03-01", "end": "2025-03-31"})
        assert logs.json() == []
        assert (await authed_client.get(f"/api/v1/habits/{habit_id}/stats")).status_code == 404


class TestCompletionFlow:

    @pytest.mark.asyncio
    async def test_toggle_round_trip(self, authed_client: AsyncClient):
        habit_id = await _create(authed_client)

        response = await authed_client.post(
            f"/api/v1/habits/{habit_id}/toggle", json={"date": "2025-03-10", "mood": 5}
        )
        assert response.status_code == 200
        assert response.json() == {"action": "completed", "xp_change": 10, "streak": 1}

        response = await authed_client.post(f"/api/v1/habits/{habit_id}/toggle", json={"date": "2025-03-10"})
        assert response.json() == {"action": "uncompleted", "xp_change": -10}

        habits = (await authed_client.get("/api/v1/habits")).json()
        assert habits[0]["streak_current"] == 0
        assert habits[0]["streak_longest"] == 1

        profile = (await authed_client.get("/api/v1/gamification/profile")).json()
        assert profile["total_xp"] == 10

    @pytest.mark.asyncio
    async def test_invalid_mood_is_422(self, authed_client: AsyncClient):
        habit_id = await _create(authed_client)
        response = await authed_client.post(
            f"/api/v1/habits/{habit_id}/toggle", json={"date": "2025-03-10", "mood": 9}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_skip_then_logs_and_stats(self, authed_client: AsyncClient):
        habit_id = await _create(authed_client)
        await authed_client.post(f"/api/v1/habits/{habit_id}/toggle", json={"date": "2025-03-10"})

        response = await authed_client.post(f"/api/v1/habits/{habit_id}/skip", json={"date": "2025-03-11"})
        assert response.json() == {"action": "skipped", "streak": 1}

        logs = (
            await authed_client.get("/api/v1/habits/logs", params={"start": "2025-03-10", "end": "2025-03-11"})
        ).json()
        assert [(log["date"], log["status"]) for log in logs] == [
            ("2025-03-10", "completed"),
            ("2025-03-11", "skipped"),
        ]

        stats = (await authed_client.get(f"/api/v1/habits/{habit_id}/stats")).json()
        assert stats["total_logs"] == 2
        assert stats["completion_rate"] == 50
        assert stats["best_day"] == "Mon"
        assert stats["worst_day"] == "Tue"
        assert stats["streak_current"] == 1

    @pytest.mark.asyncio
    async def test_streak_freeze(self, authed_client: AsyncClient):
        habit_id = await _create(authed_client)
        await authed_client.post(f"/api/v1/habits/{habit_id}/toggle", json={"date": "2025-03-10"})

        response = await authed_client.post(f"/api/v1/habits/{habit_id}/freeze", json={"date": "2025-03-11"})
        assert response.status_code == 200
        assert response.json() == {"action": "frozen", "streak": 1, "freezes_left": 0}

        me = (await authed_client.get("/api/v1/users/me")).json()
        assert me["streak_freeze_count"] == 0

        response = await authed_client.post(f"/api/v1/habits/{habit_id}/freeze", json={"date": "2025-03-12"})
        assert response.status_code == 409
        assert response.json()["detail"] == "No streak freezes available"
