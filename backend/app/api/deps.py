"""Shared request dependencies: clock, session store, auth guards, paging."""

import logging
from datetime import datetime

from fastapi import Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.config import settings
from backend.app.core.exceptions import (
    AccountArchivedError,
    AdminRequiredError,
    ForbiddenError,
    MemberNotApprovedError,
    MemberRequiredError,
    NotAuthenticatedError,
)
from backend.app.core.security import set_session_cookie, unsign_session_id
from backend.app.core.utils import utcnow
from backend.app.db.base import get_db
from backend.app.models.session import AuthSession
from backend.app.models.user import User
from backend.app.services.session_store import SessionStore
from backend.app.services.storage import UploadStorage

logger = logging.getLogger(__name__)


def get_now() -> datetime:
    """Current time (naive UTC). Overridden in tests."""
    return utcnow()


def get_session_store(db: AsyncSession = Depends(get_db)) -> SessionStore:
    return SessionStore(db)


def get_upload_storage() -> UploadStorage:
    return UploadStorage()


def session_id_from_request(request: Request) -> str | None:
    return unsign_session_id(request.cookies.get(settings.session_cookie_name))


def account_block(user: User) -> ForbiddenError | None:
    """Why an existing account may not hold a session, or None if it may."""
    if user.is_member and not user.is_approved:
        return MemberNotApprovedError(user.email)
    if not user.is_active:
        return AccountArchivedError(user.email)
    return None


async def get_current_session(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    now: datetime = Depends(get_now),
) -> AuthSession | None:
    """Session referenced by the request cookie, refreshed when due."""
    session_id = session_id_from_request(request)
    if not session_id:
        return None

    record = await store.get(session_id, now)
    if record is None:
        # An expired record may have been removed
        await db.commit()
        return None

    if await store.touch(record, now):
        await db.commit()
        set_session_cookie(response, record.id)
    return record


async def require_authenticated(
    session: AuthSession | None = Depends(get_current_session),
) -> AuthSession:
    if session is None:
        raise NotAuthenticatedError()
    return session


async def get_current_user(
    session: AuthSession = Depends(require_authenticated),
    db: AsyncSession = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> User:
    """The logged-in user; sessions of deleted or blocked accounts are destroyed."""
    user = await db.get(User, session.user_id)
    if user is None:
        logger.warning(f"[AUTH] Session user {session.user_id} no longer exists")
        await store.destroy(session.id)
        await db.commit()
        raise NotAuthenticatedError("User not found")

    blocked = account_block(user)
    if blocked is not None:
        logger.info(f"[AUTH] Dropping session of blocked account {user.id}")
        await store.destroy(session.id)
        await db.commit()
        raise blocked
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise AdminRequiredError()
    return user


async def require_member(user: User = Depends(get_current_user)) -> User:
    if not user.is_member:
        raise MemberRequiredError("perform this action")
    return user


class Paging:
    """``limit``/``skip`` query parameters, clamped to the configured maximum."""

    def __init__(
        self,
        limit: int | None = Query(default=None, ge=1, description="Page size"),
        skip: int = Query(default=0, ge=0, description="Number of records to skip"),
    ):
        self.limit = min(limit or settings.default_list_limit, settings.max_list_limit)
        self.skip = skip
