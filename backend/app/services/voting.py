"""
Voting service.

Vote counts on works and portfolio totals are denormalized counters. They are
only changed through single ``UPDATE ... SET n = n + 1`` statements so that
concurrent votes cannot lose updates; decrements are floored at zero inside
the same statement.
"""

import logging
from datetime import datetime

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    DuplicateVoteError,
    ThemeNotActiveError,
    ThemeNotFoundError,
    VoteNotFoundError,
    WorkNotFoundError,
    WorkNotInThemeError,
)
from backend.app.models.portfolio import Portfolio
from backend.app.models.theme import Theme, ThemeStatus, ThemeSubmission
from backend.app.models.vote import UNSCOPED, Vote
from backend.app.models.work import Work
from backend.app.services.theme_lifecycle import advance

logger = logging.getLogger(__name__)


def vote_scope(theme_id: str | None) -> str:
    return theme_id or UNSCOPED


async def _adjust_counters(db: AsyncSession, work_id: str, owner_id: str, delta: int) -> None:
    """Atomically move a work's vote count and its owner's portfolio total."""
    if delta > 0:
        work_value = Work.vote_count + delta
        portfolio_value = Portfolio.total_votes + delta
    else:
        step = -delta
        work_value = case((Work.vote_count >= step, Work.vote_count - step), else_=0)
        portfolio_value = case(
            (Portfolio.total_votes >= step, Portfolio.total_votes - step),
            else_=0,
        )

    await db.execute(
        update(Work)
        .where(Work.id == work_id)
        .values(vote_count=work_value)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(Portfolio)
        .where(Portfolio.user_id == owner_id)
        .values(total_votes=portfolio_value)
        .execution_options(synchronize_session=False)
    )


async def current_vote_count(db: AsyncSession, work_id: str) -> int:
    result = await db.execute(select(Work.vote_count).where(Work.id == work_id))
    return result.scalar_one_or_none() or 0


async def _require_open_theme(db: AsyncSession, theme_id: str, work_id: str, now: datetime) -> Theme:
    theme = await db.get(Theme, theme_id)
    if not theme:
        raise ThemeNotFoundError(theme_id)

    await advance(db, theme, now)
    if theme.status != ThemeStatus.ACTIVE.value:
        raise ThemeNotActiveError(theme_id, theme.status)

    submitted = await db.execute(
        select(ThemeSubmission).where(
            ThemeSubmission.theme_id == theme_id,
            ThemeSubmission.work_id == work_id,
        )
    )
    if submitted.scalar_one_or_none() is None:
        raise WorkNotInThemeError(work_id, theme_id)
    return theme


async def cast_vote(
    db: AsyncSession,
    user_id: str,
    work_id: str,
    theme_id: str | None,
    now: datetime,
) -> int:
    """
    Record a vote and bump the counters.

    Args:
        db: Database session (caller commits)
        user_id: Voting user
        work_id: Target work
        theme_id: Theme the vote is cast in, if any
        now: Current time, used to advance the theme

    Returns:
        The work's vote count after the vote

    Raises:
        WorkNotFoundError: If the work does not exist
        ThemeNotFoundError: If the theme does not exist
        ThemeNotActiveError: If the theme is not Active
        WorkNotInThemeError: If the work was not submitted to the theme
        DuplicateVoteError: If the (user, work, theme) key already has a vote
    """
    work = await db.get(Work, work_id)
    if not work:
        raise WorkNotFoundError(work_id)

    if theme_id:
        await _require_open_theme(db, theme_id, work_id, now)

    scope = vote_scope(theme_id)
    existing = await db.execute(
        select(Vote.id).where(
            Vote.user_id == user_id,
            Vote.work_id == work_id,
            Vote.scope == scope,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise DuplicateVoteError(work_id, theme_id)

    db.add(Vote(
        user_id=user_id,
        work_id=work_id,
        theme_id=theme_id,
        scope=scope,
        created_at=now,
    ))
    try:
        await db.flush()
    except IntegrityError:
        # Lost a race with a concurrent identical vote; the unique index decides
        await db.rollback()
        raise DuplicateVoteError(work_id, theme_id)

    await _adjust_counters(db, work_id, work.user_id, +1)
    logger.info(f"[VOTE] User {user_id} voted for work {work_id} (theme={theme_id})")
    return await current_vote_count(db, work_id)


async def remove_vote(
    db: AsyncSession,
    user_id: str,
    work_id: str,
    theme_id: str | None = None,
) -> int:
    """
    Remove a vote and lower the counters.

    Returns:
        The work's vote count after removal

    Raises:
        VoteNotFoundError: If no vote exists for the key
    """
    result = await db.execute(
        delete(Vote).where(
            Vote.user_id == user_id,
            Vote.work_id == work_id,
            Vote.scope == vote_scope(theme_id),
        )
    )
    if result.rowcount == 0:
        raise VoteNotFoundError(work_id)

    work = await db.get(Work, work_id)
    if work:
        await _adjust_counters(db, work_id, work.user_id, -1)

    logger.info(f"[UNVOTE] User {user_id} removed vote from work {work_id} (theme={theme_id})")
    return await current_vote_count(db, work_id)


async def has_voted(db: AsyncSession, user_id: str, work_id: str, theme_id: str | None = None) -> bool:
    result = await db.execute(
        select(Vote.id).where(
            Vote.user_id == user_id,
            Vote.work_id == work_id,
            Vote.scope == vote_scope(theme_id),
        )
    )
    return result.scalar_one_or_none() is not None


async def withdraw_votes_by_user(db: AsyncSession, user_id: str) -> int:
    """Remove every vote a user cast, lowering the affected counters."""
    result = await db.execute(
        select(Vote.work_id, Work.user_id, func.count(Vote.id))
        .join(Work, Work.id == Vote.work_id)
        .where(Vote.user_id == user_id)
        .group_by(Vote.work_id, Work.user_id)
    )
    withdrawn = 0
    for work_id, owner_id, count in result.all():
        await _adjust_counters(db, work_id, owner_id, -count)
        withdrawn += count

    await db.execute(delete(Vote).where(Vote.user_id == user_id))
    return withdrawn


async def recompute_portfolio_total(db: AsyncSession, portfolio: Portfolio) -> int:
    """Reset a portfolio's total to the sum of its works' vote counts."""
    result = await db.execute(
        select(func.coalesce(func.sum(Work.vote_count), 0)).where(
            Work.portfolio_id == portfolio.id
        )
    )
    portfolio.total_votes = int(result.scalar_one())
    await db.flush()
    return portfolio.total_votes
