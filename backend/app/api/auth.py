"""Authentication endpoints: signup, login, session verification, approvals."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.deps import (
    account_block,
    get_current_session,
    get_now,
    get_session_store,
    require_admin,
    session_id_from_request,
)
from backend.app.core.config import settings
from backend.app.core.exceptions import (
    EmailAlreadyRegisteredError,
    InvalidInputError,
    UserNotFoundError,
)
from backend.app.core.security import clear_session_cookie, set_session_cookie
from backend.app.db.base import get_db
from backend.app.models.portfolio import Portfolio
from backend.app.models.session import AuthSession
from backend.app.models.user import User, UserType
from backend.app.schemas.user import (
    AuthResponse,
    LoginRequest,
    SessionUser,
    SignupRequest,
    UserEnvelope,
    UserListResponse,
    UserResponse,
    VerifyResponse,
)
from backend.app.services.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


async def _start_session(
    request: Request,
    response: Response,
    user: User,
    store: SessionStore,
    now: datetime,
) -> AuthSession:
    """Regenerate: drop any session presented with the request, then open a new one."""
    previous = session_id_from_request(request)
    if previous:
        await store.destroy(previous)

    record = await store.create(user, now)
    user.last_login = now
    set_session_cookie(response, record.id)
    return record


def _member_email_allowed(email: str) -> bool:
    domain = settings.member_email_domain
    return not domain or email.endswith(f"@{domain}")


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    payload: SignupRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    now: datetime = Depends(get_now),
) -> AuthResponse:
    """
    Register a guest or member account.

    Approved accounts are logged in straight away. Members wait for an admin
    unless ``auto_approve_members`` is enabled.
    """
    email = payload.email.strip().lower()
    user_type = payload.user_type

    if user_type == UserType.ADMIN:
        raise InvalidInputError("user_type must be guest or member")

    existing = await db.execute(select(User.id).where(User.email == email))
    if existing.scalar_one_or_none() is not None:
        raise EmailAlreadyRegisteredError(email)

    is_member = user_type == UserType.MEMBER
    if is_member and not _member_email_allowed(email):
        raise InvalidInputError(
            f"Member email must be a valid @{settings.member_email_domain} address"
        )

    user = User(
        name=payload.name,
        email=email,
        user_type=user_type.value,
        is_approved=(not is_member) or settings.auto_approve_members,
        is_active=True,
        created_at=now,
    )
    if is_member:
        user.batch_name = payload.batch_name
        user.cluster = payload.cluster.value if payload.cluster else None
        user.position = payload.position

    db.add(user)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise EmailAlreadyRegisteredError(email)

    if user.is_approved:
        await _start_session(request, response, user, store, now)
        message = f"{user_type.value.capitalize()} account created and logged in"
    else:
        message = "Member account created and awaiting admin approval"

    await db.commit()
    logger.info(f"[AUTH] Signed up {user.user_type} {user.id} (approved={user.is_approved})")

    return AuthResponse(success=True, message=message, user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
    now: datetime = Depends(get_now),
) -> AuthResponse:
    """Log in by email."""
    email = payload.email.strip().lower()

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if not user:
        raise UserNotFoundError()

    blocked = account_block(user)
    if blocked is not None:
        raise blocked

    await _start_session(request, response, user, store, now)
    await db.commit()
    logger.info(f"[AUTH] User {user.id} logged in")

    return AuthResponse(success=True, message="Login successful", user=UserResponse.model_validate(user))


@router.get("/verify", response_model=VerifyResponse)
async def verify_session(
    response: Response,
    session: AuthSession | None = Depends(get_current_session),
    db: AsyncSession = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> VerifyResponse:
    """Report who the session belongs to, or success=False without one."""
    if session is None:
        return VerifyResponse(success=False, message="Not authenticated")

    user = await db.get(User, session.user_id)
    if not user:
        await store.destroy(session.id)
        await db.commit()
        clear_session_cookie(response)
        return VerifyResponse(success=False, message="User not found")

    blocked = account_block(user)
    if blocked is not None:
        await store.destroy(session.id)
        await db.commit()
        clear_session_cookie(response)
        return VerifyResponse(success=False, message=blocked.message)

    session_user = SessionUser.model_validate(user)
    if user.is_member:
        portfolio_id = (
            await db.execute(select(Portfolio.id).where(Portfolio.user_id == user.id))
        ).scalar_one_or_none()
        session_user.has_portfolio = portfolio_id is not None
        session_user.portfolio_id = portfolio_id

    return VerifyResponse(success=True, user=session_user)


@router.post("/logout", response_model=AuthResponse)
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> AuthResponse:
    """Destroy the session and clear the cookie. Safe to call when logged out."""
    session_id = session_id_from_request(request)
    clear_session_cookie(response)
    if not session_id:
        return AuthResponse(success=True, message="Already logged out")

    await store.destroy(session_id)
    await db.commit()
    return AuthResponse(success=True, message="Logout successful")


@router.get("/pending", response_model=UserListResponse)
async def pending_approvals(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserListResponse:
    """Members waiting for approval, newest first."""
    result = await db.execute(
        select(User)
        .where(
            User.user_type == UserType.MEMBER.value,
            User.is_approved.is_(False),
            User.is_active.is_(True),
        )
        .order_by(User.created_at.desc())
    )
    users = [UserResponse.model_validate(u) for u in result.scalars().all()]
    return UserListResponse(users=users, count=len(users))


@router.put("/approve/{user_id}", response_model=UserEnvelope)
async def approve_member(
    user_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserEnvelope:
    """Approve a member account so it can log in."""
    user = await db.get(User, user_id)
    if not user:
        raise UserNotFoundError(user_id)

    if not user.is_member:
        raise InvalidInputError("Only members need approval")

    user.is_approved = True
    await db.commit()
    logger.info(f"[AUTH] Admin {admin.id} approved member {user.id}")

    return UserEnvelope(message="Member approved successfully", user=UserResponse.model_validate(user))
