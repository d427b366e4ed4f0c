"""Unit tests for voting API endpoints."""

from datetime import timedelta

import pytest
from sqlalchemy import update

from backend.app.models.portfolio import Portfolio
from backend.app.models.work import Work
from backend.tests.helpers import create_theme, create_work, relogin


class TestVote:
    """Test cases for casting and removing votes."""

    @pytest.mark.asyncio
    async def test_vote_and_unvote(self, member_client, guest_client):
        work = await create_work(member_client)

        voted = await guest_client.post("/api/votes/", json={"work_id": work["id"]})
        assert voted.status_code == 201
        assert voted.json()["vote_count"] == 1

        removed = await guest_client.delete(f"/api/votes/{work['id']}")
        assert removed.status_code == 200
        assert removed.json()["vote_count"] == 0

    @pytest.mark.asyncio
    async def test_duplicate_vote(self, member_client, guest_client):
        work = await create_work(member_client)
        await guest_client.post("/api/votes/", json={"work_id": work["id"]})

        response = await guest_client.post("/api/votes/", json={"work_id": work["id"]})

        assert response.status_code == 409
        assert response.json()["type"] == "DuplicateVoteError"
        current = (await guest_client.get(f"/api/works/{work['id']}")).json()["work"]
        assert current["vote_count"] == 1

    @pytest.mark.asyncio
    async def test_vote_updates_portfolio_total(self, member_client, guest_client, other_member_client):
        work = await create_work(member_client)
        await guest_client.post("/api/votes/", json={"work_id": work["id"]})
        await other_member_client.post("/api/votes/", json={"work_id": work["id"]})

        portfolio = (await guest_client.get(f"/api/portfolios/{work['portfolio_id']}")).json()["portfolio"]
        assert portfolio["total_votes"] == 2

        await guest_client.delete(f"/api/votes/{work['id']}")

        portfolio = (await guest_client.get(f"/api/portfolios/{work['portfolio_id']}")).json()["portfolio"]
        assert portfolio["total_votes"] == 1

    @pytest.mark.asyncio
    async def test_vote_unknown_work(self, guest_client):
        response = await guest_client.post("/api/votes/", json={"work_id": "missing"})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_unvote_without_vote(self, member_client, guest_client):
        work = await create_work(member_client)

        response = await guest_client.delete(f"/api/votes/{work['id']}")

        assert response.status_code == 404
        assert response.json()["type"] == "VoteNotFoundError"

    @pytest.mark.asyncio
    async def test_vote_requires_login(self, member_client, test_client_with_db):
        work = await create_work(member_client)

        response = await test_client_with_db.post("/api/votes/", json={"work_id": work["id"]})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_check_vote(self, member_client, guest_client):
        work = await create_work(member_client)

        before = await guest_client.get(f"/api/votes/check/{work['id']}")
        assert before.json()["has_voted"] is False

        await guest_client.post("/api/votes/", json={"work_id": work["id"]})

        after = await guest_client.get(f"/api/votes/check/{work['id']}")
        assert after.json()["has_voted"] is True


class TestThemedVotes:
    """Test cases for votes cast within a theme."""

    @pytest.mark.asyncio
    async def test_themed_vote_is_separate(self, admin_client, member_client, guest_client):
        theme = await create_theme(admin_client)
        work = await create_work(member_client, theme_id=theme["id"])

        plain = await guest_client.post("/api/votes/", json={"work_id": work["id"]})
        themed = await guest_client.post("/api/votes/", json={"work_id": work["id"], "theme_id": theme["id"]})

        assert plain.status_code == 201
        assert themed.status_code == 201
        assert themed.json()["vote_count"] == 2

        checked = await guest_client.get(f"/api/votes/check/{work['id']}", params={"theme_id": theme["id"]})
        assert checked.json()["has_voted"] is True

        removed = await guest_client.delete(f"/api/votes/{work['id']}", params={"theme_id": theme["id"]})
        assert removed.json()["vote_count"] == 1

    @pytest.mark.asyncio
    async def test_work_not_in_theme(self, admin_client, member_client, guest_client):
        theme = await create_theme(admin_client)
        work = await create_work(member_client)

        response = await guest_client.post("/api/votes/", json={"work_id": work["id"], "theme_id": theme["id"]})

        assert response.status_code == 400
        assert response.json()["type"] == "WorkNotInThemeError"

    @pytest.mark.asyncio
    async def test_theme_closed(self, admin_client, member_client, guest_client, clock):
        theme = await create_theme(admin_client)
        work = await create_work(member_client, theme_id=theme["id"])

        clock.now += timedelta(days=30)
        await relogin(guest_client)
        response = await guest_client.post("/api/votes/", json={"work_id": work["id"], "theme_id": theme["id"]})

        assert response.status_code == 400
        assert response.json()["type"] == "ThemeNotActiveError"

    @pytest.mark.asyncio
    async def test_unknown_theme(self, member_client, guest_client):
        work = await create_work(member_client)

        response = await guest_client.post("/api/votes/", json={"work_id": work["id"], "theme_id": "missing"})

        assert response.status_code == 404


class TestVoteListings:
    """Test cases for vote listings and statistics."""

    @pytest.mark.asyncio
    async def test_my_votes(self, member_client, guest_client, clock):
        first = await create_work(member_client, "First")
        second = await create_work(member_client, "Second")
        await guest_client.post("/api/votes/", json={"work_id": first["id"]})
        clock.now += timedelta(minutes=5)
        await guest_client.post("/api/votes/", json={"work_id": second["id"]})

        response = await guest_client.get("/api/votes/my-votes")

        assert response.status_code == 200
        votes = response.json()["votes"]
        assert [v["work_id"] for v in votes] == [second["id"], first["id"]]
        assert votes[0]["work"]["title"] == "Second"

    @pytest.mark.asyncio
    async def test_votes_for_work(self, member_client, guest_client, other_member_client):
        work = await create_work(member_client)
        await guest_client.post("/api/votes/", json={"work_id": work["id"]})
        await other_member_client.post("/api/votes/", json={"work_id": work["id"]})

        response = await guest_client.get(f"/api/votes/work/{work['id']}", params={"limit": 1})

        data = response.json()
        assert data["count"] == 1
        assert data["total_votes"] == 2

    @pytest.mark.asyncio
    async def test_votes_for_unknown_work(self, test_client_with_db):
        response = await test_client_with_db.get("/api/votes/work/missing")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_votes_for_theme(self, admin_client, member_client, guest_client, other_member_client):
        theme = await create_theme(admin_client)
        work = await create_work(member_client, theme_id=theme["id"])
        await guest_client.post("/api/votes/", json={"work_id": work["id"], "theme_id": theme["id"]})
        await other_member_client.post("/api/votes/", json={"work_id": work["id"]})

        response = await guest_client.get(f"/api/votes/theme/{theme['id']}")

        data = response.json()
        assert data["total_votes"] == 1
        assert data["votes"][0]["user_id"] == guest_client.user["id"]

    @pytest.mark.asyncio
    async def test_votes_for_unknown_theme(self, test_client_with_db):
        response = await test_client_with_db.get("/api/votes/theme/missing")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_stats(self, member_client, guest_client, other_member_client):
        popular = await create_work(member_client, "Popular")
        quiet = await create_work(member_client, "Quiet")
        await guest_client.post("/api/votes/", json={"work_id": popular["id"]})
        await other_member_client.post("/api/votes/", json={"work_id": popular["id"]})
        await guest_client.post("/api/votes/", json={"work_id": quiet["id"]})

        stats = (await guest_client.get("/api/votes/stats/overview")).json()["stats"]

        assert stats["total_votes"] == 3
        assert stats["unique_voters"] == 2
        assert stats["unique_works_voted"] == 2
        assert stats["most_voted_work"]["id"] == popular["id"]
        assert len(stats["recent_votes"]) == 3

    @pytest.mark.asyncio
    async def test_stats_without_votes(self, test_client_with_db):
        stats = (await test_client_with_db.get("/api/votes/stats/overview")).json()["stats"]

        assert stats["total_votes"] == 0
        assert stats["most_voted_work"] is None


async def _set_counters(session_factory, work: dict, value: int) -> None:
    """Overwrite a work's vote count and its portfolio total."""
    async with session_factory() as db:
        await db.execute(update(Work).where(Work.id == work["id"]).values(vote_count=value))
        await db.execute(
            update(Portfolio).where(Portfolio.id == work["portfolio_id"]).values(total_votes=value)
        )
        await db.commit()


class TestCounterFloor:
    """Counters never drop below zero, whatever order removals arrive in."""

    @pytest.mark.asyncio
    async def test_unvote_on_zero_counter(self, member_client, guest_client, session_factory):
        work = await create_work(member_client)
        await guest_client.post("/api/votes/", json={"work_id": work["id"]})
        await _set_counters(session_factory, work, 0)

        response = await guest_client.delete(f"/api/votes/{work['id']}")

        assert response.status_code == 200
        assert response.json()["vote_count"] == 0
        portfolio = (await guest_client.get(f"/api/portfolios/{work['portfolio_id']}")).json()["portfolio"]
        assert portfolio["total_votes"] == 0

    @pytest.mark.asyncio
    async def test_withdrawing_more_votes_than_counted(
        self, admin_client, member_client, guest_client, session_factory
    ):
        theme = await create_theme(admin_client)
        work = await create_work(member_client, theme_id=theme["id"])
        await guest_client.post("/api/votes/", json={"work_id": work["id"]})
        await guest_client.post("/api/votes/", json={"work_id": work["id"], "theme_id": theme["id"]})
        await _set_counters(session_factory, work, 1)

        # Deleting the voter withdraws both votes from a counter of 1
        response = await guest_client.delete("/api/users/profile/me")
        assert response.status_code == 200

        current = (await member_client.get(f"/api/works/{work['id']}")).json()["work"]
        assert current["vote_count"] == 0
        portfolio = (await member_client.get(f"/api/portfolios/{work['portfolio_id']}")).json()["portfolio"]
        assert portfolio["total_votes"] == 0
