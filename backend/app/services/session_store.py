"""
Server-side login session store.

Sessions live in the ``auth_sessions`` table and are referenced by a signed
cookie. The store never commits; callers own the transaction.
"""

import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.models.session import AuthSession
from backend.app.models.user import User

logger = logging.getLogger(__name__)


class SessionStore:
    """Create, look up, refresh and destroy login sessions."""

    def __init__(
        self,
        db: AsyncSession,
        max_age: timedelta | None = None,
        touch_after: timedelta | None = None,
    ):
        self.db = db
        self.max_age = max_age or timedelta(seconds=settings.session_max_age_seconds)
        self.touch_after = touch_after or timedelta(seconds=settings.session_touch_after_seconds)

    @staticmethod
    def new_session_id() -> str:
        return secrets.token_urlsafe(32)

    async def create(self, user: User, now: datetime) -> AuthSession:
        """Open a new session for a user."""
        record = AuthSession(
            id=self.new_session_id(),
            user_id=user.id,
            user_type=user.user_type,
            created_at=now,
            last_seen_at=now,
            expires_at=now + self.max_age,
        )
        self.db.add(record)
        await self.db.flush()
        logger.info(f"[SESSION] Created session for user {user.id}")
        return record

    async def get(self, session_id: str, now: datetime) -> AuthSession | None:
        """
        Look up a live session.

        Expired records are destroyed and reported as absent.
        """
        record = await self.db.get(AuthSession, session_id)
        if record is None:
            return None
        if record.is_expired(now):
            logger.info(f"[SESSION] Session for user {record.user_id} expired")
            await self.db.delete(record)
            await self.db.flush()
            return None
        return record

    async def touch(self, record: AuthSession, now: datetime) -> bool:
        """
        Extend a session's expiry (rolling sessions).

        Refreshes at most once per ``touch_after`` interval; returns True when
        the record changed and the cookie should be re-issued.
        """
        if now - record.last_seen_at < self.touch_after:
            return False
        record.last_seen_at = now
        record.expires_at = now + self.max_age
        await self.db.flush()
        return True

    async def destroy(self, session_id: str) -> bool:
        result = await self.db.execute(
            delete(AuthSession).where(AuthSession.id == session_id)
        )
        return result.rowcount > 0

    async def destroy_for_user(self, user_id: str) -> int:
        """Destroy every session belonging to a user."""
        result = await self.db.execute(
            delete(AuthSession).where(AuthSession.user_id == user_id)
        )
        return result.rowcount
