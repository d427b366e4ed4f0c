"""Unit tests for auth API endpoints."""

from datetime import timedelta

import pytest

from backend.app.core.config import settings
from backend.app.models.user import User
from backend.tests.helpers import MEMBER_DOMAIN, create_work, signup


class TestSignup:
    """Test cases for account registration."""

    @pytest.mark.asyncio
    async def test_guest_signup_logs_in(self, test_client_with_db):
        """Test a guest is approved and gets a session straight away."""
        response = await test_client_with_db.post(
            "/api/auth/signup",
            json={"name": "Gia", "email": "Gia@Example.com", "user_type": "guest"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["user"]["email"] == "gia@example.com"
        assert data["user"]["is_approved"] is True
        assert settings.session_cookie_name in response.cookies

        verify = await test_client_with_db.get("/api/auth/verify")
        assert verify.json()["success"] is True
        assert verify.json()["user"]["user_type"] == "guest"

    @pytest.mark.asyncio
    async def test_member_signup_auto_approved(self, test_client_with_db):
        """Test members are approved at signup by default."""
        user = await signup(test_client_with_db, "Ana", f"ana@{MEMBER_DOMAIN}", cluster="Photography")

        assert user["user_type"] == "member"
        assert user["is_approved"] is True
        assert user["cluster"] == "Photography"

    @pytest.mark.asyncio
    async def test_member_signup_requires_domain(self, test_client_with_db):
        """Test member emails must use the organization domain."""
        response = await test_client_with_db.post(
            "/api/auth/signup",
            json={"name": "Ana", "email": "ana@gmail.com", "user_type": "member"},
        )

        assert response.status_code == 400
        assert MEMBER_DOMAIN in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_admin_signup_rejected(self, test_client_with_db):
        """Test nobody can sign up as admin."""
        response = await test_client_with_db.post(
            "/api/auth/signup",
            json={"name": "Eve", "email": f"eve@{MEMBER_DOMAIN}", "user_type": "admin"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_fields(self, test_client_with_db):
        """Test missing fields are reported as 400."""
        response = await test_client_with_db.post("/api/auth/signup", json={"name": "Ana"})

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["type"] == "ValidationError"

    @pytest.mark.asyncio
    async def test_invalid_email(self, test_client_with_db):
        response = await test_client_with_db.post(
            "/api/auth/signup",
            json={"name": "Ana", "email": "not-an-email", "user_type": "guest"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_duplicate_email_case_insensitive(self, client_factory):
        """Test an email can only be registered once, regardless of case."""
        first = await client_factory()
        await signup(first, "Gia", "gia@example.com", user_type="guest")

        second = await client_factory()
        response = await second.post(
            "/api/auth/signup",
            json={"name": "Other", "email": "GIA@example.com", "user_type": "guest"},
        )

        assert response.status_code == 409
        assert response.json()["type"] == "EmailAlreadyRegisteredError"

    @pytest.mark.asyncio
    async def test_member_waits_for_approval(self, client_factory, admin_client, monkeypatch):
        """Test the approval gate when auto-approval is off."""
        monkeypatch.setattr(settings, "auto_approve_members", False)
        client = await client_factory()

        response = await client.post(
            "/api/auth/signup",
            json={"name": "Ana", "email": f"ana@{MEMBER_DOMAIN}", "user_type": "member"},
        )
        assert response.status_code == 201
        user = response.json()["user"]
        assert user["is_approved"] is False
        assert (await client.get("/api/auth/verify")).json()["success"] is False

        login = await client.post("/api/auth/login", json={"email": f"ana@{MEMBER_DOMAIN}"})
        assert login.status_code == 403
        assert login.json()["type"] == "MemberNotApprovedError"

        pending = await admin_client.get("/api/auth/pending")
        assert pending.status_code == 200
        assert [u["id"] for u in pending.json()["users"]] == [user["id"]]

        approve = await admin_client.put(f"/api/auth/approve/{user['id']}")
        assert approve.status_code == 200
        assert approve.json()["user"]["is_approved"] is True

        login = await client.post("/api/auth/login", json={"email": f"ana@{MEMBER_DOMAIN}"})
        assert login.status_code == 200


class TestLogin:
    """Test cases for login, verification and logout."""

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, test_client_with_db):
        response = await test_client_with_db.post("/api/auth/login", json={"email": "nobody@example.com"})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_login_sets_last_login(self, client_factory, clock):
        """Test login by email opens a session and records the time."""
        first = await client_factory()
        await signup(first, "Gia", "gia@example.com", user_type="guest")

        clock.now += timedelta(hours=3)
        second = await client_factory()
        response = await second.post("/api/auth/login", json={"email": "GIA@example.com"})

        assert response.status_code == 200
        assert response.json()["user"]["last_login"].startswith("2024-01-15T15:00")
        assert (await second.get("/api/auth/verify")).json()["success"] is True

    @pytest.mark.asyncio
    async def test_verify_without_session(self, test_client_with_db):
        response = await test_client_with_db.get("/api/auth/verify")

        assert response.status_code == 200
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_verify_reports_portfolio(self, member_client):
        """Test verification tells members whether they have a portfolio."""
        before = (await member_client.get("/api/auth/verify")).json()["user"]
        assert before["has_portfolio"] is False

        await create_work(member_client)

        after = (await member_client.get("/api/auth/verify")).json()["user"]
        assert after["has_portfolio"] is True
        assert after["portfolio_id"]

    @pytest.mark.asyncio
    async def test_forged_cookie_ignored(self, test_client_with_db):
        test_client_with_db.cookies.set(settings.session_cookie_name, "forged-session-id")

        response = await test_client_with_db.get("/api/auth/verify")
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_logout(self, guest_client):
        """Test logout destroys the session and is safe to repeat."""
        response = await guest_client.post("/api/auth/logout")
        assert response.status_code == 200
        assert response.json()["message"] == "Logout successful"

        assert (await guest_client.get("/api/auth/verify")).json()["success"] is False

        again = await guest_client.post("/api/auth/logout")
        assert again.status_code == 200
        assert again.json()["message"] == "Already logged out"

    @pytest.mark.asyncio
    async def test_session_expires(self, guest_client, clock):
        """Test an idle session stops working after its max age."""
        clock.now += timedelta(days=settings.session_max_age_days, seconds=1)

        response = await guest_client.get("/api/auth/verify")
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_session_rolls_while_used(self, guest_client, clock):
        """Test regular use keeps extending the session."""
        for _ in range(3):
            clock.now += timedelta(days=settings.session_max_age_days - 2)
            response = await guest_client.get("/api/auth/verify")
            assert response.json()["success"] is True

    @pytest.mark.asyncio
    async def test_archived_account_cannot_login(self, client_factory, admin_client, member_client):
        response = await admin_client.put(f"/api/users/{member_client.user['id']}/archive")
        assert response.status_code == 200

        client = await client_factory()
        login = await client.post("/api/auth/login", json={"email": member_client.user["email"]})
        assert login.status_code == 403
        assert login.json()["type"] == "AccountArchivedError"


class TestGuards:
    """Test cases for authentication and role guards."""

    @pytest.mark.asyncio
    async def test_unauthenticated_is_401(self, test_client_with_db):
        response = await test_client_with_db.get("/api/users/profile/me")

        assert response.status_code == 401
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_non_admin_is_403(self, member_client):
        response = await member_client.get("/api/auth/pending")

        assert response.status_code == 403
        assert response.json()["type"] == "AdminRequiredError"

    @pytest.mark.asyncio
    async def test_approve_guest_rejected(self, admin_client, guest_client):
        response = await admin_client.put(f"/api/auth/approve/{guest_client.user['id']}")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_archiving_ends_live_sessions(self, admin_client, member_client):
        """Test an archived member is logged out everywhere at once."""
        response = await admin_client.put(f"/api/users/{member_client.user['id']}/archive")
        assert response.status_code == 200

        upload = await member_client.post(
            "/api/works/",
            json={"title": "After", "description": "Archived", "category": "Photos", "file_url": "/a.jpg"},
        )
        assert upload.status_code == 401
        assert (await member_client.get("/api/auth/verify")).json()["success"] is False

        await admin_client.put(f"/api/users/{member_client.user['id']}/reactivate")
        login = await member_client.post("/api/auth/login", json={"email": member_client.user["email"]})
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_inactive_account_session_rejected(self, member_client, session_factory):
        """Test a session is refused once its account is no longer active."""
        async with session_factory() as db:
            user = await db.get(User, member_client.user["id"])
            user.is_active = False
            await db.commit()

        response = await member_client.get("/api/users/profile/me")
        assert response.status_code == 403
        assert response.json()["type"] == "AccountArchivedError"

        # The session was destroyed along the way
        assert (await member_client.get("/api/users/profile/me")).status_code == 401

    @pytest.mark.asyncio
    async def test_verify_reports_blocked_account(self, member_client, session_factory):
        async with session_factory() as db:
            user = await db.get(User, member_client.user["id"])
            user.is_active = False
            await db.commit()

        verify = (await member_client.get("/api/auth/verify")).json()
        assert verify["success"] is False
        assert verify["message"] == "This account has been archived"

    @pytest.mark.asyncio
    async def test_unapproving_member_ends_sessions(self, admin_client, member_client):
        response = await admin_client.put(
            f"/api/users/{member_client.user['id']}",
            json={"is_approved": False},
        )
        assert response.status_code == 200

        assert (await member_client.get("/api/auth/verify")).json()["success"] is False
        login = await member_client.post("/api/auth/login", json={"email": member_client.user["email"]})
        assert login.status_code == 403
        assert login.json()["type"] == "MemberNotApprovedError"

    @pytest.mark.asyncio
    async def test_approve_unknown_user(self, admin_client):
        response = await admin_client.put("/api/auth/approve/missing")

        assert response.status_code == 404
