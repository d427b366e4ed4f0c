"""User management API endpoints."""

import logging
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.api.deps import Paging, get_current_user, get_now, get_session_store, require_admin
from backend.app.core.exceptions import ConflictError, ForbiddenError, UserNotFoundError
from backend.app.core.security import clear_session_cookie
from backend.app.db.base import get_db
from backend.app.models.portfolio import Portfolio
from backend.app.models.user import Cluster, User, UserType
from backend.app.models.work import Work
from backend.app.schemas.portfolio import PortfolioResponse, ProfileResponse, UserDetailResponse
from backend.app.schemas.user import (
    AdminUserUpdate,
    ClusterDistribution,
    InactiveUsersResponse,
    ProfileUpdate,
    UserEnvelope,
    UserListResponse,
    UserResponse,
    UserStats,
    UserStatsResponse,
    UserSummary,
)
from backend.app.schemas.work import MessageResponse, WorkSummary
from backend.app.services.cascade import delete_user_account
from backend.app.services.session_store import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


async def _get_user_or_404(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise UserNotFoundError(user_id)
    return user


async def _load_portfolio(db: AsyncSession, user_id: str) -> Portfolio | None:
    result = await db.execute(
        select(Portfolio)
        .options(selectinload(Portfolio.owner), selectinload(Portfolio.works))
        .where(Portfolio.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@router.get("/", response_model=UserListResponse)
async def list_users(
    user_type: str | None = None,
    cluster: str | None = None,
    is_approved: bool | None = None,
    search: str | None = None,
    paging: Paging = Depends(),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserListResponse:
    """List users with filters (admin only)."""
    conditions = []
    if user_type and user_type != "all":
        conditions.append(User.user_type == user_type)
    if cluster:
        conditions.append(User.cluster == cluster)
    if is_approved is not None:
        conditions.append(User.is_approved.is_(is_approved))
    if search:
        pattern = f"%{search.lower()}%"
        conditions.append(or_(func.lower(User.name).like(pattern), User.email.like(pattern)))

    total = (
        await db.execute(select(func.count(User.id)).where(*conditions))
    ).scalar_one()

    result = await db.execute(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc())
        .offset(paging.skip)
        .limit(paging.limit)
    )
    users = [UserResponse.model_validate(u) for u in result.scalars().all()]
    return UserListResponse(users=users, count=len(users), total=total)


@router.get("/stats/overview", response_model=UserStatsResponse)
async def user_stats(db: AsyncSession = Depends(get_db)) -> UserStatsResponse:
    """Aggregate counts for the admin dashboard and homepage."""

    async def count(*conditions) -> int:
        return (await db.execute(select(func.count(User.id)).where(*conditions))).scalar_one()

    member = User.user_type == UserType.MEMBER.value
    distribution = ClusterDistribution(**{
        c.value: await count(User.cluster == c.value) for c in Cluster
    })

    recent = await db.execute(
        select(User)
        .where(member, User.is_approved.is_(True))
        .order_by(User.created_at.desc())
        .limit(5)
    )

    stats = UserStats(
        total_users=await count(),
        total_members=await count(member, User.is_approved.is_(True)),
        total_guests=await count(User.user_type == UserType.GUEST.value),
        pending_approvals=await count(member, User.is_approved.is_(False)),
        cluster_distribution=distribution,
        recent_members=[UserSummary.model_validate(u) for u in recent.scalars().all()],
    )
    return UserStatsResponse(stats=stats)


@router.get("/inactive", response_model=InactiveUsersResponse)
async def inactive_members(
    months: int = Query(default=6, ge=1, le=120),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> InactiveUsersResponse:
    """Active members who have not logged in within the period (admin only)."""
    cutoff = now - timedelta(days=30 * months)
    result = await db.execute(
        select(User)
        .where(
            User.user_type == UserType.MEMBER.value,
            User.is_active.is_(True),
            or_(User.last_login.is_(None), User.last_login < cutoff),
        )
        .order_by(User.last_login.asc())
    )
    users = [UserResponse.model_validate(u) for u in result.scalars().all()]
    return InactiveUsersResponse(
        users=users,
        count=len(users),
        inactivity_period=f"{months} months",
    )


@router.get("/profile/me", response_model=ProfileResponse)
async def my_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """The caller's profile, portfolio and ten most recent works."""
    portfolio = None
    works: list[WorkSummary] = []
    if user.is_member:
        loaded = await _load_portfolio(db, user.id)
        portfolio = PortfolioResponse.model_validate(loaded) if loaded else None
        result = await db.execute(
            select(Work)
            .where(Work.user_id == user.id)
            .order_by(Work.created_at.desc())
            .limit(10)
        )
        works = [WorkSummary.model_validate(w) for w in result.scalars().all()]

    return ProfileResponse(
        user=UserResponse.model_validate(user),
        portfolio=portfolio,
        works=works,
        works_count=len(works),
    )


@router.put("/profile/me", response_model=UserEnvelope)
async def update_my_profile(
    payload: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserEnvelope:
    """Update the caller's name; members may also change batch, cluster and position."""
    if payload.name:
        user.name = payload.name.strip()

    if user.is_member:
        if payload.batch_name:
            user.batch_name = payload.batch_name
        if payload.cluster:
            user.cluster = payload.cluster.value
        if payload.position:
            user.position = payload.position

    await db.commit()
    return UserEnvelope(message="Profile updated successfully", user=UserResponse.model_validate(user))


@router.delete("/profile/me", response_model=MessageResponse)
async def delete_my_account(
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete the caller's account with its portfolio, works and votes."""
    await delete_user_account(db, user)
    await db.commit()
    clear_session_cookie(response)
    return MessageResponse(message="Account deleted successfully")


@router.get("/{user_id}", response_model=UserDetailResponse)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
) -> UserDetailResponse:
    """Public profile of a user, with the portfolio for members."""
    user = await _get_user_or_404(db, user_id)

    portfolio = None
    if user.is_member:
        loaded = await _load_portfolio(db, user.id)
        portfolio = PortfolioResponse.model_validate(loaded) if loaded else None

    return UserDetailResponse(user=UserResponse.model_validate(user), portfolio=portfolio)


@router.put("/{user_id}", response_model=UserEnvelope)
async def admin_update_user(
    user_id: str,
    payload: AdminUserUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> UserEnvelope:
    """Update any field of a user (admin only)."""
    user = await _get_user_or_404(db, user_id)
    fields = payload.model_dump(exclude_unset=True)

    if "email" in fields and fields["email"]:
        email = fields["email"].strip().lower()
        taken = await db.execute(select(User.id).where(User.email == email, User.id != user.id))
        if taken.scalar_one_or_none() is not None:
            raise ConflictError("Email is already used by another account")
        user.email = email
    if fields.get("name"):
        user.name = fields["name"].strip()
    if fields.get("user_type"):
        user.user_type = payload.user_type.value
    if "batch_name" in fields:
        user.batch_name = payload.batch_name
    if "cluster" in fields:
        user.cluster = payload.cluster.value if payload.cluster else None
    if "position" in fields:
        user.position = payload.position
    if payload.is_approved is not None:
        user.is_approved = payload.is_approved
        if not payload.is_approved and user.is_member:
            await store.destroy_for_user(user.id)

    await db.commit()
    logger.info(f"[USER] Admin {admin.id} updated user {user.id}")
    return UserEnvelope(message="User updated successfully", user=UserResponse.model_validate(user))


@router.delete("/{user_id}", response_model=MessageResponse)
async def admin_delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a non-admin user and everything they own (admin only)."""
    user = await _get_user_or_404(db, user_id)
    if user.is_admin:
        raise ForbiddenError("Cannot delete admin users")

    await delete_user_account(db, user)
    await db.commit()
    return MessageResponse(message="User deleted successfully")


@router.put("/{user_id}/archive", response_model=UserEnvelope)
async def archive_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    store: SessionStore = Depends(get_session_store),
) -> UserEnvelope:
    """Archive an account; archived accounts cannot log in (admin only)."""
    user = await _get_user_or_404(db, user_id)
    if user.is_admin:
        raise ForbiddenError("Cannot archive admin users")

    user.is_active = False
    dropped = await store.destroy_for_user(user.id)
    await db.commit()
    logger.info(f"[USER] Admin {admin.id} archived user {user.id}; ended {dropped} sessions")
    return UserEnvelope(message="Member archived successfully", user=UserResponse.model_validate(user))


@router.put("/{user_id}/reactivate", response_model=UserEnvelope)
async def reactivate_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> UserEnvelope:
    """Reactivate an archived account (admin only)."""
    user = await _get_user_or_404(db, user_id)
    user.is_active = True
    await db.commit()
    return UserEnvelope(message="Member reactivated successfully", user=UserResponse.model_validate(user))
