"""Work management API endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.api.deps import (
    Paging,
    get_current_user,
    get_now,
    get_upload_storage,
    require_admin,
    require_member,
)
from backend.app.core.config import settings
from backend.app.core.exceptions import (
    CategoryMismatchError,
    DuplicateFlagError,
    FlagNotFoundError,
    ForbiddenError,
    InvalidInputError,
    NotOwnerError,
    WorkNotFoundError,
)
from backend.app.db.base import get_db
from backend.app.models.user import User
from backend.app.models.work import FlagStatus, Work, WorkCategory, WorkFlag
from backend.app.schemas.work import (
    FeatureWindow,
    FlagCreate,
    MessageResponse,
    RankingsResponse,
    WorkCreate,
    WorkEnvelope,
    WorkListResponse,
    WorkResponse,
    WorkUpdate,
)
from backend.app.services.cascade import delete_work
from backend.app.services.portfolios import ensure_portfolio
from backend.app.services.ranking import ALL_CATEGORIES, get_rankings
from backend.app.services.storage import UploadStorage
from backend.app.services.submission import submit_work

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/works", tags=["works"])

SORT_FIELDS = {
    "created_at": Work.created_at,
    "vote_count": Work.vote_count,
    "title": Work.title,
}


def _with_refs(query):
    return query.options(selectinload(Work.owner), selectinload(Work.theme))


def _parse_sort(sort: str):
    descending = sort.startswith("-")
    field = SORT_FIELDS.get(sort.lstrip("-"))
    if field is None:
        allowed = ", ".join(SORT_FIELDS)
        raise InvalidInputError(f"Invalid sort field: {sort}", details=f"Use one of {allowed}")
    return field.desc() if descending else field.asc()


def _parse_category(category: str) -> str:
    valid = {c.value for c in WorkCategory} | {ALL_CATEGORIES}
    if category not in valid:
        raise InvalidInputError(f"Invalid category: {category}")
    return category


async def _load_work(db: AsyncSession, work_id: str) -> Work:
    result = await db.execute(
        _with_refs(select(Work))
        .where(Work.id == work_id)
        .execution_options(populate_existing=True)
    )
    work = result.scalar_one_or_none()
    if not work:
        raise WorkNotFoundError(work_id)
    return work


def _check_can_modify(work: Work, user: User, action: str = "modify") -> None:
    if work.user_id != user.id and not user.is_admin:
        raise NotOwnerError("work", action)


async def _create_work(
    db: AsyncSession,
    user: User,
    now: datetime,
    *,
    title: str,
    description: str,
    category: WorkCategory,
    file_url: str,
    tags: list[str],
    theme_id: str | None,
    file_type: str | None = None,
    file_size: int | None = None,
) -> Work:
    """Persist a work in the owner's portfolio and enter it into a theme if asked."""
    portfolio = await ensure_portfolio(db, user, now)

    work = Work(
        title=title.strip(),
        description=description.strip(),
        category=category.value,
        file_url=file_url,
        file_type=file_type,
        file_size=file_size,
        tags=[t.strip() for t in tags if t.strip()],
        user_id=user.id,
        portfolio_id=portfolio.id,
        vote_count=0,
        created_at=now,
        updated_at=now,
    )
    db.add(work)
    await db.flush()

    if theme_id:
        await submit_work(db, theme_id, work.id, user.id, now)

    logger.info(f"[WORK] User {user.id} created work {work.id} ({work.category})")
    return work


@router.get("/", response_model=WorkListResponse)
async def list_works(
    category: str | None = None,
    featured: bool | None = None,
    search: str | None = None,
    user_id: str | None = None,
    theme_id: str | None = None,
    sort: str = "-created_at",
    paging: Paging = Depends(),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> WorkListResponse:
    """
    List works.

    Args:
        category: Photos, Graphics or Videos; "All" disables the filter
        featured: When true, only works featured at the current time
        search: Case-insensitive match on title or description
        user_id: Owner filter
        theme_id: Theme filter
        sort: created_at, vote_count or title, "-" prefix for descending
    """
    order = _parse_sort(sort)

    conditions = []
    if category and category != ALL_CATEGORIES:
        conditions.append(Work.category == _parse_category(category))
    if featured:
        conditions.append(
            and_(
                Work.featured.is_(True),
                or_(Work.feature_start_date.is_(None), Work.feature_start_date <= now),
                or_(Work.feature_end_date.is_(None), Work.feature_end_date >= now),
            )
        )
    if search:
        pattern = f"%{search.lower()}%"
        conditions.append(
            or_(func.lower(Work.title).like(pattern), func.lower(Work.description).like(pattern))
        )
    if user_id:
        conditions.append(Work.user_id == user_id)
    if theme_id:
        conditions.append(Work.theme_id == theme_id)

    result = await db.execute(
        _with_refs(select(Work))
        .where(*conditions)
        .order_by(order, Work.id)
        .offset(paging.skip)
        .limit(paging.limit)
    )
    works = [WorkResponse.model_validate(w) for w in result.scalars().all()]
    return WorkListResponse(works=works, count=len(works))


@router.get("/rankings/{category}", response_model=RankingsResponse)
async def rankings(
    category: str,
    limit: int | None = Query(default=None, ge=1),
    db: AsyncSession = Depends(get_db),
) -> RankingsResponse:
    """Top works by votes; ties go to the earlier upload."""
    category = _parse_category(category)
    limit = min(limit or settings.rankings_default_limit, settings.max_list_limit)

    works = await get_rankings(db, category, limit)
    return RankingsResponse(
        category=category,
        works=[WorkResponse.model_validate(w) for w in works],
    )


@router.get("/flagged/all", response_model=WorkListResponse)
async def flagged_works(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> WorkListResponse:
    """Works with at least one pending flag (admin only)."""
    pending = select(WorkFlag.work_id).where(WorkFlag.status == FlagStatus.PENDING.value)
    result = await db.execute(
        _with_refs(select(Work))
        .where(Work.id.in_(pending))
        .order_by(Work.created_at.desc())
    )
    works = [WorkResponse.model_validate(w) for w in result.scalars().all()]
    return WorkListResponse(works=works, count=len(works))


@router.get("/{work_id}", response_model=WorkEnvelope)
async def get_work(
    work_id: str,
    db: AsyncSession = Depends(get_db),
) -> WorkEnvelope:
    work = await _load_work(db, work_id)
    return WorkEnvelope(work=WorkResponse.model_validate(work))


@router.post("/", response_model=WorkEnvelope, status_code=status.HTTP_201_CREATED)
async def create_work(
    payload: WorkCreate,
    user: User = Depends(require_member),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> WorkEnvelope:
    """Create a work from an already-hosted file (members only)."""
    work = await _create_work(
        db,
        user,
        now,
        title=payload.title,
        description=payload.description,
        category=payload.category,
        file_url=payload.file_url,
        tags=payload.tags,
        theme_id=payload.theme_id,
    )
    await db.commit()

    work = await _load_work(db, work.id)
    return WorkEnvelope(message="Work created successfully", work=WorkResponse.model_validate(work))


@router.post("/upload", response_model=WorkEnvelope, status_code=status.HTTP_201_CREATED)
async def upload_work(
    file: UploadFile = File(..., description="Work file"),
    title: str = Form(..., min_length=1, max_length=255),
    description: str = Form(..., min_length=1),
    category: WorkCategory = Form(...),
    theme_id: str | None = Form(default=None),
    tags: str | None = Form(default=None, description="Comma-separated tags"),
    user: User = Depends(require_member),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
    storage: UploadStorage = Depends(get_upload_storage),
) -> WorkEnvelope:
    """Upload a file and create a work for it (members only)."""
    stored = await storage.save(file, category.value)

    try:
        work = await _create_work(
            db,
            user,
            now,
            title=title,
            description=description,
            category=category,
            file_url=stored.url,
            tags=(tags or "").split(","),
            theme_id=theme_id or None,
            file_type=stored.content_type,
            file_size=stored.size,
        )
        await db.commit()
    except Exception:
        storage.remove(stored)
        raise

    work = await _load_work(db, work.id)
    return WorkEnvelope(message="Work uploaded successfully", work=WorkResponse.model_validate(work))


@router.put("/{work_id}", response_model=WorkEnvelope)
async def update_work(
    work_id: str,
    payload: WorkUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> WorkEnvelope:
    """Update a work (owner or admin; only admins may change featured)."""
    work = await _load_work(db, work_id)
    _check_can_modify(work, user)

    fields = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "featured" in fields and not user.is_admin:
        raise ForbiddenError("Only admins can change featured status")
    if "category" in fields and work.theme is not None:
        if not work.theme.accepts(payload.category.value):
            raise CategoryMismatchError(work.theme.category, payload.category.value)

    for field, value in fields.items():
        if field == "category":
            value = payload.category.value
        elif field in ("title", "description"):
            value = value.strip()
        setattr(work, field, value)

    await db.commit()
    work = await _load_work(db, work_id)
    return WorkEnvelope(message="Work updated successfully", work=WorkResponse.model_validate(work))


@router.delete("/{work_id}", response_model=MessageResponse)
async def remove_work(
    work_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: UploadStorage = Depends(get_upload_storage),
) -> MessageResponse:
    """Delete a work with its votes, submissions and flags (owner or admin)."""
    work = await _load_work(db, work_id)
    _check_can_modify(work, user, "delete")

    file_url = work.file_url
    await delete_work(db, work)
    await db.commit()
    storage.discard(file_url)

    return MessageResponse(message="Work deleted successfully")


@router.patch("/{work_id}/featured", response_model=WorkEnvelope)
async def toggle_featured(
    work_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> WorkEnvelope:
    """Toggle the featured flag, clearing any feature window (admin only)."""
    work = await _load_work(db, work_id)
    work.featured = not work.featured
    work.feature_start_date = None
    work.feature_end_date = None
    await db.commit()

    work = await _load_work(db, work_id)
    state = "featured" if work.featured else "unfeatured"
    return WorkEnvelope(message=f"Work {state} successfully", work=WorkResponse.model_validate(work))


@router.put("/{work_id}/feature", response_model=WorkEnvelope)
async def feature_work(
    work_id: str,
    window: FeatureWindow,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> WorkEnvelope:
    """Feature a work for a time window (admin only)."""
    if window.end_date <= window.start_date:
        raise InvalidInputError("End date must be after start date")

    work = await _load_work(db, work_id)
    work.featured = True
    work.feature_start_date = window.start_date
    work.feature_end_date = window.end_date
    await db.commit()

    work = await _load_work(db, work_id)
    return WorkEnvelope(message="Work featured successfully", work=WorkResponse.model_validate(work))


@router.delete("/{work_id}/feature", response_model=WorkEnvelope)
async def unfeature_work(
    work_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> WorkEnvelope:
    """Remove a work from the featured set (admin only)."""
    work = await _load_work(db, work_id)
    work.featured = False
    work.feature_start_date = None
    work.feature_end_date = None
    await db.commit()

    work = await _load_work(db, work_id)
    return WorkEnvelope(message="Work unfeatured successfully", work=WorkResponse.model_validate(work))


@router.post("/{work_id}/flag", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def flag_work(
    work_id: str,
    payload: FlagCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> MessageResponse:
    """Report a work for review."""
    work = await db.get(Work, work_id)
    if not work:
        raise WorkNotFoundError(work_id)

    existing = await db.execute(
        select(WorkFlag.id).where(
            WorkFlag.work_id == work_id,
            WorkFlag.user_id == user.id,
            WorkFlag.status == FlagStatus.PENDING.value,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise DuplicateFlagError(work_id)

    db.add(WorkFlag(
        work_id=work_id,
        user_id=user.id,
        reason=payload.reason.value,
        explanation=payload.explanation.strip(),
        created_at=now,
    ))
    await db.commit()
    logger.info(f"[FLAG] User {user.id} flagged work {work_id} ({payload.reason.value})")

    return MessageResponse(message="Work flagged successfully")


@router.delete("/{work_id}/flag", response_model=MessageResponse)
async def unflag_work(
    work_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Withdraw the caller's pending flag on a work."""
    result = await db.execute(
        delete(WorkFlag).where(
            WorkFlag.work_id == work_id,
            WorkFlag.user_id == user.id,
            WorkFlag.status == FlagStatus.PENDING.value,
        )
    )
    if result.rowcount == 0:
        raise FlagNotFoundError(work_id)

    await db.commit()
    return MessageResponse(message="Flag removed successfully")
