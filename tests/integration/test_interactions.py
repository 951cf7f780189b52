"""Reactions and solved toggles, including their daily-stats side effects."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
from conftest import USER_ID

from tilt.db.models import UserProblemInteraction
from tilt.problems.feed_service import get_next_problems
from tilt.problems.interaction_service import InteractionNotFoundError, toggle_solved
from tilt.stats import daily_stats
from tilt.stats.daily_stats import get_daily_stat, update_daily_stats

T0 = datetime(2026, 6, 1, 9, 0, 0, tzinfo=timezone.utc)


async def _serve_one(client, headers) -> dict:
    response = await client.get("/api/v1/problems?limit=1", headers=headers)
    return response.json()["problems"][0]


class TestReactionEndpoint:
    @pytest.mark.asyncio
    async def test_set_change_and_clear(self, client, user_headers, make_problem):
        await make_problem()
        problem = await _serve_one(client, user_headers)
        iid = problem["interactionId"]

        for reaction in ("like", "dislike", None):
            response = await client.post(
                "/api/v1/problems/reaction",
                json={"interactionId": iid, "reaction": reaction},
                headers=user_headers,
            )
            assert response.status_code == 200
            assert response.json() == {"success": True}
            served = await _serve_one(client, user_headers)
            assert served["reaction"] == reaction

    @pytest.mark.asyncio
    async def test_missing_interaction_id(self, client, user_headers):
        response = await client.post(
            "/api/v1/problems/reaction", json={"reaction": "like"}, headers=user_headers
        )
        assert response.status_code == 400
        assert response.json() == {"detail": "Missing interactionId"}

    @pytest.mark.asyncio
    async def test_bad_reaction_value(self, client, user_headers):
        response = await client.post(
            "/api/v1/problems/reaction",
            json={"interactionId": "x", "reaction": "love"},
            headers=user_headers,
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_cannot_touch_someone_elses_interaction(
        self, client, user_headers, other_headers, make_problem
    ):
        await make_problem()
        problem = await _serve_one(client, user_headers)
        response = await client.post(
            "/api/v1/problems/reaction",
            json={"interactionId": problem["interactionId"], "reaction": "dislike"},
            headers=other_headers,
        )
        assert response.status_code == 404
        assert response.json() == {"detail": "Interaction not found"}
        assert (await _serve_one(client, user_headers))["reaction"] is None

    @pytest.mark.asyncio
    async def test_unauthenticated(self, client):
        response = await client.post("/api/v1/problems/reaction", json={"interactionId": "x"})
        assert response.status_code == 401


class TestSolvedEndpoint:
    @pytest.mark.asyncio
    async def test_solve_returns_elapsed_seconds(self, client, user_headers, make_problem):
        await make_problem()
        problem = await _serve_one(client, user_headers)

        response = await client.post(
            "/api/v1/problems/solved",
            json={"interactionId": problem["interactionId"], "solved": True},
            headers=user_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["solved"] is True
        assert body["timeSpentSeconds"] >= 0

    @pytest.mark.asyncio
    async def test_unsolve_omits_time(self, client, user_headers, make_problem):
        await make_problem()
        problem = await _serve_one(client, user_headers)
        response = await client.post(
            "/api/v1/problems/solved",
            json={"interactionId": problem["interactionId"], "solved": False},
            headers=user_headers,
        )
        assert response.json() == {"success": True, "solved": False}

    @pytest.mark.asyncio
    async def test_unknown_interaction(self, client, user_headers):
        response = await client.post(
            "/api/v1/problems/solved",
            json={"interactionId": "00000000-0000-4000-8000-000000000000", "solved": True},
            headers=user_headers,
        )
        assert response.status_code == 404


class TestToggleSolved:
    @pytest.mark.asyncio
    async def test_sixty_one_seconds(self, db_session, user, make_problem):
        await make_problem()
        [served] = await get_next_problems(db_session, user.id, limit=1, now=T0)
        result = await toggle_solved(db_session, served.interaction_id, user.id, True, now=T0 + timedelta(seconds=61))
        await db_session.commit()

        assert result.solved is True
        assert result.time_spent_seconds == 61
        stat = await get_daily_stat(db_session, user.id, T0.date())
        assert stat.problems_solved == 1

    @pytest.mark.asyncio
    async def test_repeat_solve_does_not_double_count(self, db_session, user, make_problem):
        await make_problem()
        [served] = await get_next_problems(db_session, user.id, limit=1, now=T0)
        for offset in (10, 20, 30):
            await toggle_solved(db_session, served.interaction_id, user.id, True, now=T0 + timedelta(seconds=offset))
        await db_session.commit()

        stat = await get_daily_stat(db_session, user.id, T0.date())
        assert stat.problems_solved == 1

    @pytest.mark.asyncio
    async def test_solve_unsolve_solve_nets_one(self, db_session, user, make_problem):
        await make_problem()
        [served] = await get_next_problems(db_session, user.id, limit=1, now=T0)
        iid = served.interaction_id
        later = T0 + timedelta(minutes=1)

        await toggle_solved(db_session, iid, user.id, True, now=later)
        await toggle_solved(db_session, iid, user.id, False, now=later)
        stat = await get_daily_stat(db_session, user.id, T0.date())
        await db_session.refresh(stat)
        assert stat.problems_solved == 0

        await toggle_solved(db_session, iid, user.id, True, now=later)
        await db_session.commit()
        await db_session.refresh(stat)
        assert stat.problems_solved == 1
        assert stat.problems_attempted == 1

    @pytest.mark.asyncio
    async def test_unsolve_never_goes_negative(self, db_session, user, make_problem):
        await make_problem()
        [served] = await get_next_problems(db_session, user.id, limit=1, now=T0)
        await toggle_solved(db_session, served.interaction_id, user.id, False, now=T0)
        await update_daily_stats(db_session, user.id, "unsolved", today=T0.date())
        stat = await get_daily_stat(db_session, user.id, T0.date())
        assert stat.problems_solved == 0

    @pytest.mark.asyncio
    async def test_owner_enforced(self, db_session, user, other_user, make_problem):
        await make_problem()
        [served] = await get_next_problems(db_session, user.id, limit=1, now=T0)
        with pytest.raises(InteractionNotFoundError):
            await toggle_solved(db_session, served.interaction_id, other_user.id, True, now=T0)


class TestDailyStreak:
    @pytest.mark.asyncio
    async def test_consecutive_days_then_gap(self, db_session, user):
        days = [date(2026, 6, 1), date(2026, 6, 2), date(2026, 6, 4)]
        for day in days:
            await update_daily_stats(db_session, USER_ID, "solved", today=day)
        await db_session.commit()

        streaks = [(await get_daily_stat(db_session, USER_ID, d)).streak for d in days]
        assert streaks == [1, 2, 1]

    @pytest.mark.asyncio
    async def test_streak_fixed_when_row_created(self, db_session, user):
        await update_daily_stats(db_session, USER_ID, "attempted", today=date(2026, 6, 2))
        await update_daily_stats(db_session, USER_ID, "attempted", today=date(2026, 6, 1))
        await update_daily_stats(db_session, USER_ID, "solved", today=date(2026, 6, 2))
        await db_session.commit()

        row = await get_daily_stat(db_session, USER_ID, date(2026, 6, 2))
        assert row.streak == 1
        assert row.problems_attempted == 1
        assert row.problems_solved == 1

    @pytest.mark.asyncio
    async def test_unsolved_never_creates_a_row(self, db_session, user):
        await update_daily_stats(db_session, USER_ID, "unsolved", today=date(2026, 6, 1))
        assert await get_daily_stat(db_session, USER_ID, date(2026, 6, 1)) is None


class _RecordingLogger:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def warning(self, event: str, **kw) -> None:
        self.events.append((event, kw))


class TestStatsFailureIsolation:
    @pytest.mark.asyncio
    async def test_solve_survives_stats_failure(self, db_session, session_factory, user, make_problem, monkeypatch):
        await make_problem()
        [served] = await get_next_problems(db_session, user.id, limit=1, now=T0)
        await db_session.commit()

        async def broken_update(*_args, **_kwargs):
            raise RuntimeError("stats table unavailable")

        recorder = _RecordingLogger()
        monkeypatch.setattr(daily_stats, "update_daily_stats", broken_update)
        monkeypatch.setattr(daily_stats, "logger", recorder)

        result = await toggle_solved(db_session, served.interaction_id, user.id, True, now=T0 + timedelta(seconds=30))
        await db_session.commit()
        assert result.solved is True
        assert result.time_spent_seconds == 30

        async with session_factory() as fresh:
            interaction = await fresh.get(UserProblemInteraction, served.interaction_id)
            stat = await get_daily_stat(fresh, user.id, T0.date())
        assert interaction.solved is True
        assert interaction.time_spent_seconds == 30
        assert stat.problems_solved == 0
        assert [event for event, _ in recorder.events] == ["daily_stats_update_failed"]
        assert recorder.events[0][1]["stat_event"] == "solved"

    @pytest.mark.asyncio
    async def test_record_stat_event_reports_failure(self, db_session, user, monkeypatch):
        async def broken_update(*_args, **_kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(daily_stats, "update_daily_stats", broken_update)
        monkeypatch.setattr(daily_stats, "logger", _RecordingLogger())
        assert await daily_stats.record_stat_event(db_session, user.id, "attempted", today=T0.date()) is False
        assert await get_daily_stat(db_session, user.id, T0.date()) is None
