"""Voting API endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.api.deps import Paging, get_current_user, get_now
from backend.app.core.exceptions import ThemeNotFoundError, WorkNotFoundError
from backend.app.db.base import get_db
from backend.app.models.theme import Theme
from backend.app.models.user import User
from backend.app.models.vote import Vote
from backend.app.models.work import Work
from backend.app.schemas.vote import (
    VoteCheckResponse,
    VoteCreate,
    VoteListResponse,
    VoteResponse,
    VoteResultResponse,
    VoteStats,
    VoteStatsResponse,
)
from backend.app.schemas.work import WorkResponse
from backend.app.services.voting import cast_vote, has_voted, remove_vote

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/votes", tags=["votes"])


def _vote_query():
    return select(Vote).options(selectinload(Vote.user), selectinload(Vote.work))


def _to_list(votes, total: int | None = None) -> VoteListResponse:
    items = [VoteResponse.model_validate(v) for v in votes]
    return VoteListResponse(votes=items, count=len(items), total_votes=total)


@router.post("/", response_model=VoteResultResponse, status_code=status.HTTP_201_CREATED)
async def vote(
    payload: VoteCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> VoteResultResponse:
    """
    Vote for a work, optionally within a theme.

    One vote per user per work per theme; a second attempt is a 409 and
    leaves the count untouched.
    """
    vote_count = await cast_vote(db, user.id, payload.work_id, payload.theme_id or None, now)
    await db.commit()
    return VoteResultResponse(message="Vote recorded successfully", vote_count=vote_count)


@router.delete("/{work_id}", response_model=VoteResultResponse)
async def unvote(
    work_id: str,
    theme_id: str | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> VoteResultResponse:
    """Remove the caller's vote for a work."""
    vote_count = await remove_vote(db, user.id, work_id, theme_id or None)
    await db.commit()
    return VoteResultResponse(message="Vote removed successfully", vote_count=vote_count)


@router.get("/check/{work_id}", response_model=VoteCheckResponse)
async def check_vote(
    work_id: str,
    theme_id: str | None = None,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> VoteCheckResponse:
    return VoteCheckResponse(has_voted=await has_voted(db, user.id, work_id, theme_id or None))


@router.get("/my-votes", response_model=VoteListResponse)
async def my_votes(
    paging: Paging = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> VoteListResponse:
    """Votes the caller has cast, newest first."""
    result = await db.execute(
        _vote_query()
        .where(Vote.user_id == user.id)
        .order_by(Vote.created_at.desc())
        .offset(paging.skip)
        .limit(paging.limit)
    )
    return _to_list(result.scalars().all())


@router.get("/work/{work_id}", response_model=VoteListResponse)
async def votes_for_work(
    work_id: str,
    paging: Paging = Depends(),
    db: AsyncSession = Depends(get_db),
) -> VoteListResponse:
    """Votes on a work, newest first, with the overall total."""
    if not await db.get(Work, work_id):
        raise WorkNotFoundError(work_id)

    total = (
        await db.execute(select(func.count(Vote.id)).where(Vote.work_id == work_id))
    ).scalar_one()
    result = await db.execute(
        _vote_query()
        .where(Vote.work_id == work_id)
        .order_by(Vote.created_at.desc())
        .offset(paging.skip)
        .limit(paging.limit)
    )
    return _to_list(result.scalars().all(), total=total)


@router.get("/theme/{theme_id}", response_model=VoteListResponse)
async def votes_for_theme(
    theme_id: str,
    db: AsyncSession = Depends(get_db),
) -> VoteListResponse:
    """Votes cast within a theme, in voting order."""
    if not await db.get(Theme, theme_id):
        raise ThemeNotFoundError(theme_id)

    result = await db.execute(
        _vote_query()
        .where(Vote.theme_id == theme_id)
        .order_by(Vote.created_at.asc(), Vote.id.asc())
    )
    votes = result.scalars().all()
    return _to_list(votes, total=len(votes))


@router.get("/stats/overview", response_model=VoteStatsResponse)
async def vote_stats(db: AsyncSession = Depends(get_db)) -> VoteStatsResponse:
    """Site-wide voting statistics."""
    total_votes = (await db.execute(select(func.count(Vote.id)))).scalar_one()
    unique_voters = (
        await db.execute(select(func.count(func.distinct(Vote.user_id))))
    ).scalar_one()
    unique_works = (
        await db.execute(select(func.count(func.distinct(Vote.work_id))))
    ).scalar_one()

    most_voted = (
        await db.execute(
            select(Work)
            .options(selectinload(Work.owner), selectinload(Work.theme))
            .where(Work.vote_count > 0)
            .order_by(Work.vote_count.desc(), Work.created_at.asc())
            .limit(1)
        )
    ).scalar_one_or_none()

    recent = await db.execute(_vote_query().order_by(Vote.created_at.desc()).limit(10))

    stats = VoteStats(
        total_votes=total_votes,
        unique_voters=unique_voters,
        unique_works_voted=unique_works,
        most_voted_work=WorkResponse.model_validate(most_voted) if most_voted else None,
        recent_votes=[VoteResponse.model_validate(v) for v in recent.scalars().all()],
    )
    return VoteStatsResponse(stats=stats)
