"""Theme API endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.api.deps import get_current_user, get_now, require_admin
from backend.app.core.exceptions import InvalidInputError, ThemeNotFoundError
from backend.app.db.base import get_db
from backend.app.models.theme import Theme, ThemeStatus
from backend.app.models.user import User
from backend.app.schemas.theme import (
    SubmitWorkRequest,
    ThemeCreate,
    ThemeEnvelope,
    ThemeListResponse,
    ThemeResponse,
    ThemeUpdate,
)
from backend.app.schemas.work import MessageResponse
from backend.app.services.cascade import delete_theme
from backend.app.services.submission import submit_work
from backend.app.services.theme_lifecycle import advance, advance_all

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/themes", tags=["themes"])

TOP_SUBMISSIONS = 10


def _with_refs(query):
    return query.options(
        selectinload(Theme.creator),
        selectinload(Theme.winner),
        selectinload(Theme.submissions),
    )


def _to_response(theme: Theme, top: int | None = None) -> ThemeResponse:
    """Serialize a theme; ``top`` keeps only the most-voted submissions."""
    response = ThemeResponse.model_validate(theme)
    response.submission_count = len(response.submissions)
    if top is not None:
        ranked = sorted(response.submissions, key=lambda w: (-w.vote_count, w.created_at))
        response.submissions = ranked[:top]
    return response


async def _load_theme(db: AsyncSession, theme_id: str) -> Theme:
    result = await db.execute(
        _with_refs(select(Theme))
        .where(Theme.id == theme_id)
        .execution_options(populate_existing=True)
    )
    theme = result.scalar_one_or_none()
    if not theme:
        raise ThemeNotFoundError(theme_id)
    return theme


async def _refresh_statuses(db: AsyncSession, now: datetime) -> None:
    """Advance every theme and persist the ones whose status moved."""
    themes = (await db.execute(select(Theme))).scalars().all()
    if await advance_all(db, list(themes), now):
        await db.commit()


def _check_window(start_date: datetime, end_date: datetime) -> None:
    if end_date <= start_date:
        raise InvalidInputError("End date must be after start date")


@router.get("/", response_model=ThemeListResponse)
async def list_themes(
    theme_status: str | None = Query(default=None, alias="status"),
    category: str | None = None,
    search: str | None = None,
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ThemeListResponse:
    """
    List themes, newest first.

    Statuses are brought up to date before filtering. Each theme carries its
    ten most-voted submissions.
    """
    if theme_status and theme_status not in {s.value for s in ThemeStatus}:
        raise InvalidInputError(f"Invalid status: {theme_status}")

    await _refresh_statuses(db, now)

    conditions = []
    if theme_status:
        conditions.append(Theme.status == theme_status)
    if category:
        conditions.append(Theme.category == category)
    if search:
        conditions.append(func.lower(Theme.title).like(f"%{search.lower()}%"))

    result = await db.execute(
        _with_refs(select(Theme))
        .where(*conditions)
        .order_by(Theme.created_at.desc())
        .execution_options(populate_existing=True)
    )
    themes = [_to_response(t, top=TOP_SUBMISSIONS) for t in result.scalars().all()]
    return ThemeListResponse(themes=themes, count=len(themes))


@router.get("/active", response_model=ThemeEnvelope)
async def active_theme(
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ThemeEnvelope:
    """The theme whose window contains now, or null."""
    await _refresh_statuses(db, now)

    result = await db.execute(
        _with_refs(select(Theme))
        .where(Theme.start_date <= now, Theme.end_date >= now)
        .order_by(Theme.start_date.asc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    theme = result.scalar_one_or_none()
    if theme is None:
        return ThemeEnvelope(message="No active theme", theme=None)
    return ThemeEnvelope(theme=_to_response(theme))


@router.get("/{theme_id}", response_model=ThemeEnvelope)
async def get_theme(
    theme_id: str,
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ThemeEnvelope:
    """A theme with all of its submissions."""
    theme = await _load_theme(db, theme_id)
    if await advance(db, theme, now):
        await db.commit()
        theme = await _load_theme(db, theme_id)
    return ThemeEnvelope(theme=_to_response(theme))


@router.post("/", response_model=ThemeEnvelope, status_code=status.HTTP_201_CREATED)
async def create_theme(
    payload: ThemeCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ThemeEnvelope:
    """Create a theme (admin only). Its status follows from the window."""
    _check_window(payload.start_date, payload.end_date)

    theme = Theme(
        title=payload.title.strip(),
        description=payload.description.strip(),
        category=payload.category.value,
        start_date=payload.start_date,
        end_date=payload.end_date,
        status=ThemeStatus.UPCOMING.value,
        created_by=admin.id,
        created_at=now,
    )
    db.add(theme)
    await db.flush()
    await advance(db, theme, now)
    await db.commit()
    logger.info(f"[THEME] Admin {admin.id} created theme {theme.id} ({theme.status})")

    theme = await _load_theme(db, theme.id)
    return ThemeEnvelope(message="Theme created successfully", theme=_to_response(theme))


@router.put("/{theme_id}", response_model=ThemeEnvelope)
async def update_theme(
    theme_id: str,
    payload: ThemeUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ThemeEnvelope:
    """Update a theme (admin only). Status is recomputed from the new window."""
    theme = await _load_theme(db, theme_id)
    fields = payload.model_dump(exclude_unset=True, exclude_none=True)

    _check_window(
        fields.get("start_date", theme.start_date),
        fields.get("end_date", theme.end_date),
    )

    for field, value in fields.items():
        if field == "category":
            value = payload.category.value
        elif field in ("title", "description"):
            value = value.strip()
        setattr(theme, field, value)

    await advance(db, theme, now)
    await db.commit()

    theme = await _load_theme(db, theme_id)
    return ThemeEnvelope(message="Theme updated successfully", theme=_to_response(theme))


@router.delete("/{theme_id}", response_model=MessageResponse)
async def remove_theme(
    theme_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a theme; its works stay (admin only)."""
    theme = await db.get(Theme, theme_id)
    if not theme:
        raise ThemeNotFoundError(theme_id)

    await delete_theme(db, theme)
    await db.commit()
    return MessageResponse(message="Theme deleted successfully")


@router.post("/{theme_id}/submit", response_model=ThemeEnvelope)
async def submit_to_theme(
    theme_id: str,
    payload: SubmitWorkRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> ThemeEnvelope:
    """Enter one of the caller's works into an Active theme."""
    await submit_work(db, theme_id, payload.work_id, user.id, now)
    await db.commit()

    theme = await _load_theme(db, theme_id)
    return ThemeEnvelope(message="Work submitted to theme successfully", theme=_to_response(theme))
