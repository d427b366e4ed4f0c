"""Unit tests for users API endpoints."""

from datetime import timedelta

import pytest

from backend.tests.helpers import MEMBER_DOMAIN, create_work, relogin, signup


class TestUsersAdmin:
    """Test cases for admin user management."""

    @pytest.mark.asyncio
    async def test_list_users(self, admin_client, member_client, guest_client):
        response = await admin_client.get("/api/users/")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert {u["user_type"] for u in data["users"]} == {"admin", "member", "guest"}

    @pytest.mark.asyncio
    async def test_list_users_filters(self, admin_client, member_client, guest_client):
        members = await admin_client.get("/api/users/", params={"user_type": "member"})
        assert [u["id"] for u in members.json()["users"]] == [member_client.user["id"]]

        search = await admin_client.get("/api/users/", params={"search": "GIA"})
        assert [u["id"] for u in search.json()["users"]] == [guest_client.user["id"]]

        paged = await admin_client.get("/api/users/", params={"limit": 1, "skip": 1})
        assert paged.json()["count"] == 1
        assert paged.json()["total"] == 3

    @pytest.mark.asyncio
    async def test_list_users_requires_admin(self, member_client):
        response = await member_client.get("/api/users/")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_stats_overview(self, test_client_with_db, member_client, other_member_client, guest_client):
        response = await test_client_with_db.get("/api/users/stats/overview")

        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["total_users"] == 3
        assert stats["total_members"] == 2
        assert stats["total_guests"] == 1
        assert stats["pending_approvals"] == 0
        assert stats["cluster_distribution"]["Photography"] == 1
        assert stats["cluster_distribution"]["Graphics"] == 1
        assert len(stats["recent_members"]) == 2

    @pytest.mark.asyncio
    async def test_inactive_members(self, admin_client, member_client, clock):
        clock.now += timedelta(days=200)
        await relogin(admin_client)

        response = await admin_client.get("/api/users/inactive", params={"months": 6})

        assert response.status_code == 200
        data = response.json()
        assert [u["id"] for u in data["users"]] == [member_client.user["id"]]
        assert data["inactivity_period"] == "6 months"

    @pytest.mark.asyncio
    async def test_admin_update_user(self, admin_client, guest_client):
        response = await admin_client.put(
            f"/api/users/{guest_client.user['id']}",
            json={"name": "Gia Promoted", "user_type": "member", "cluster": "Videography"},
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["name"] == "Gia Promoted"
        assert user["user_type"] == "member"
        assert user["cluster"] == "Videography"

    @pytest.mark.asyncio
    async def test_admin_update_email_conflict(self, admin_client, member_client, guest_client):
        response = await admin_client.put(
            f"/api/users/{guest_client.user['id']}",
            json={"email": member_client.user["email"]},
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_admin_delete_user(self, admin_client, member_client):
        await create_work(member_client)

        response = await admin_client.delete(f"/api/users/{member_client.user['id']}")
        assert response.status_code == 200

        missing = await admin_client.get(f"/api/users/{member_client.user['id']}")
        assert missing.status_code == 404

        # The deleted user's session no longer authenticates
        assert (await member_client.get("/api/auth/verify")).json()["success"] is False

    @pytest.mark.asyncio
    async def test_cannot_delete_admin(self, admin_client):
        response = await admin_client.delete(f"/api/users/{admin_client.user['id']}")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_archive_and_reactivate(self, admin_client, member_client):
        user_id = member_client.user["id"]

        archived = await admin_client.put(f"/api/users/{user_id}/archive")
        assert archived.json()["user"]["is_active"] is False

        reactivated = await admin_client.put(f"/api/users/{user_id}/reactivate")
        assert reactivated.json()["user"]["is_active"] is True


class TestProfile:
    """Test cases for the caller's own profile."""

    @pytest.mark.asyncio
    async def test_get_profile(self, member_client):
        await create_work(member_client, "First")
        await create_work(member_client, "Second")

        response = await member_client.get("/api/users/profile/me")

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["id"] == member_client.user["id"]
        assert data["portfolio"]["title"] == "Ana Member's Portfolio"
        assert data["works_count"] == 2

    @pytest.mark.asyncio
    async def test_guest_profile_has_no_portfolio(self, guest_client):
        data = (await guest_client.get("/api/users/profile/me")).json()

        assert data["portfolio"] is None
        assert data["works"] == []

    @pytest.mark.asyncio
    async def test_update_profile(self, member_client):
        response = await member_client.put(
            "/api/users/profile/me",
            json={"name": "Ana Renamed", "position": "Editor", "cluster": "Graphics"},
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["name"] == "Ana Renamed"
        assert user["position"] == "Editor"
        assert user["cluster"] == "Graphics"

    @pytest.mark.asyncio
    async def test_guest_cannot_set_member_fields(self, guest_client):
        response = await guest_client.put(
            "/api/users/profile/me",
            json={"name": "Gia Two", "position": "Editor"},
        )

        user = response.json()["user"]
        assert user["name"] == "Gia Two"
        assert user["position"] is None

    @pytest.mark.asyncio
    async def test_delete_own_account(self, member_client, client_factory):
        response = await member_client.delete("/api/users/profile/me")
        assert response.status_code == 200

        assert (await member_client.get("/api/auth/verify")).json()["success"] is False

        # The email is free again
        client = await client_factory()
        await signup(client, "Ana Again", f"ana@{MEMBER_DOMAIN}")


class TestPublicProfile:
    """Test cases for public user lookups."""

    @pytest.mark.asyncio
    async def test_get_member_with_portfolio(self, test_client_with_db, member_client):
        await create_work(member_client)

        response = await test_client_with_db.get(f"/api/users/{member_client.user['id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["user"]["name"] == "Ana Member"
        assert len(data["portfolio"]["works"]) == 1

    @pytest.mark.asyncio
    async def test_get_unknown_user(self, test_client_with_db):
        response = await test_client_with_db.get("/api/users/unknown-id")

        assert response.status_code == 404
