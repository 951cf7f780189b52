"""Public share previews and share snapshots."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from tilt.db.models import Share
from tilt.problems.feed_service import get_next_problems
from tilt.problems.interaction_service import toggle_solved

T0 = datetime(2026, 8, 1, 18, 0, 0, tzinfo=timezone.utc)


async def _serve(client, headers) -> dict:
    return (await client.get("/api/v1/problems?limit=1", headers=headers)).json()["problems"][0]


class TestSharePreview:
    @pytest.mark.asyncio
    async def test_public_preview_unsolved(self, client, user_headers, make_problem):
        await make_problem(title="Birthday paradox")
        problem = await _serve(client, user_headers)

        response = await client.get(f"/api/v1/share/{problem['visibleId']}")
        assert response.status_code == 200
        preview = response.json()
        assert preview["visibleId"] == problem["visibleId"]
        assert preview["problemTitle"] == "Birthday paradox"
        assert preview["solved"] is False
        assert preview["userName"] == "Solver"
        assert preview["statusText"] == "Can you solve this?"
        assert preview["title"] == "Birthday paradox - Tilt"

    @pytest.mark.asyncio
    async def test_fast_solve_preview(self, client, db_session, user, make_problem):
        await make_problem(title="Quick one")
        [served] = await get_next_problems(db_session, user.id, limit=1, now=T0)
        await toggle_solved(db_session, served.interaction_id, user.id, True, now=T0 + timedelta(seconds=42))
        await db_session.commit()

        preview = (await client.get(f"/api/v1/share/{served.visible_id}")).json()
        assert preview["solved"] is True
        assert preview["timeSpentSeconds"] == 42
        assert preview["statusText"] == "Solved in 42 seconds!"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("visible_id", ["doesNotExi", "bad id!"])
    async def test_unknown_visible_id(self, client, engine, visible_id):
        response = await client.get(f"/api/v1/share/{visible_id}")
        assert response.status_code == 404
        assert response.json() == {"detail": "Share not found"}


class TestCreateShare:
    @pytest.mark.asyncio
    async def test_snapshot_of_slow_solve(self, client, db_session, user, user_headers, make_problem):
        await make_problem(title="Monty Hall")
        [served] = await get_next_problems(db_session, user.id, limit=1, now=T0)
        await toggle_solved(db_session, served.interaction_id, user.id, True, now=T0 + timedelta(minutes=5))
        await db_session.commit()

        response = await client.post(
            "/api/v1/share", json={"interactionId": served.interaction_id}, headers=user_headers
        )
        assert response.status_code == 201
        share = response.json()
        assert share["status"] == "solved"
        assert share["shareMessage"].startswith('I just solved "Monty Hall"')
        assert share["shareUrl"].endswith(f"/share/{served.visible_id}")
        assert len(share["shareCode"]) == 10

        stored = (await db_session.execute(select(Share))).scalar_one()
        assert stored.interaction_id == served.interaction_id

    @pytest.mark.asyncio
    async def test_gave_up(self, client, user_headers, make_problem):
        await make_problem()
        problem = await _serve(client, user_headers)
        response = await client.post(
            "/api/v1/share",
            json={"interactionId": problem["interactionId"], "gaveUp": True},
            headers=user_headers,
        )
        assert response.json()["status"] == "gave_up"

    @pytest.mark.asyncio
    async def test_other_users_interaction(self, client, user_headers, other_headers, make_problem):
        await make_problem()
        problem = await _serve(client, user_headers)
        response = await client.post(
            "/api/v1/share", json={"interactionId": problem["interactionId"]}, headers=other_headers
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_interaction_id(self, client, user_headers):
        response = await client.post("/api/v1/share", json={}, headers=user_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_session(self, client):
        response = await client.post("/api/v1/share", json={"interactionId": "x"})
        assert response.status_code == 401
