"""
Theme lifecycle.

A theme's status is a pure function of its window and the current time:

    Upcoming  while now <  start_date
    Active    while start_date <= now <= end_date
    Ended     once  now >  end_date

``advance`` is the single transition function. It is idempotent: calling it
again at the same (or any later) time changes nothing once the stored status
matches. The first transition into Ended determines the winner.
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.theme import Theme, ThemeStatus
from backend.app.models.vote import Vote

logger = logging.getLogger(__name__)


def derive_status(start_date: datetime, end_date: datetime, now: datetime) -> ThemeStatus:
    """Status of a theme window at ``now``."""
    if now < start_date:
        return ThemeStatus.UPCOMING
    if now <= end_date:
        return ThemeStatus.ACTIVE
    return ThemeStatus.ENDED


def pick_winner(work_ids: list[str]) -> str | None:
    """
    Select the work with the most votes.

    ``work_ids`` holds one entry per vote, in voting order. Ties go to the
    work that reached the maximum count first in that order.
    """
    counts: dict[str, int] = {}
    winner: str | None = None
    best = 0
    for work_id in work_ids:
        counts[work_id] = counts.get(work_id, 0) + 1
        if counts[work_id] > best:
            best = counts[work_id]
            winner = work_id
    return winner


async def determine_winner(db: AsyncSession, theme_id: str) -> str | None:
    """Highest-voted work among the votes cast within a theme."""
    result = await db.execute(
        select(Vote.work_id)
        .where(Vote.theme_id == theme_id)
        .order_by(Vote.created_at, Vote.id)
    )
    return pick_winner(list(result.scalars().all()))


async def advance(db: AsyncSession, theme: Theme, now: datetime) -> bool:
    """
    Bring a theme's stored status up to date.

    Args:
        db: Database session (flushed, not committed)
        theme: Theme to advance
        now: Current time (naive UTC)

    Returns:
        True if the theme changed
    """
    new_status = derive_status(theme.start_date, theme.end_date, now).value
    if new_status == theme.status:
        return False

    previous = theme.status
    theme.status = new_status

    if new_status == ThemeStatus.ENDED.value and theme.winner_work_id is None:
        theme.winner_work_id = await determine_winner(db, theme.id)
        logger.info(f"[THEME] Theme {theme.id} ended; winner={theme.winner_work_id}")

    logger.info(f"[THEME] Theme {theme.id}: {previous} -> {new_status}")
    await db.flush()
    return True


async def advance_all(db: AsyncSession, themes: list[Theme], now: datetime) -> int:
    """Advance every theme; returns how many changed."""
    changed = 0
    for theme in themes:
        if await advance(db, theme, now):
            changed += 1
    return changed
