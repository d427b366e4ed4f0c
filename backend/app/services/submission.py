"""Submitting works to themes."""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import (
    AlreadySubmittedError,
    CategoryMismatchError,
    NotOwnerError,
    ThemeNotActiveError,
    ThemeNotFoundError,
    WorkNotFoundError,
)
from backend.app.models.theme import Theme, ThemeStatus, ThemeSubmission
from backend.app.models.work import Work
from backend.app.services.theme_lifecycle import advance

logger = logging.getLogger(__name__)


async def submit_work(
    db: AsyncSession,
    theme_id: str,
    work_id: str,
    user_id: str,
    now: datetime,
) -> Theme:
    """
    Enter a work into a theme.

    Every check runs before anything is written, in this order: the theme
    exists, it is Active, the work exists, the caller owns it, the category
    fits, and it is not already entered.

    Args:
        db: Database session (flushed, not committed)
        theme_id: Target theme
        work_id: Work to enter
        user_id: Submitting user
        now: Current time, used to advance the theme

    Returns:
        The theme the work was entered into

    Raises:
        ThemeNotFoundError, ThemeNotActiveError, WorkNotFoundError,
        NotOwnerError, CategoryMismatchError, AlreadySubmittedError
    """
    theme = await db.get(Theme, theme_id)
    if not theme:
        raise ThemeNotFoundError(theme_id)

    await advance(db, theme, now)
    if theme.status != ThemeStatus.ACTIVE.value:
        raise ThemeNotActiveError(theme_id, theme.status)

    work = await db.get(Work, work_id)
    if not work:
        raise WorkNotFoundError(work_id)

    if work.user_id != user_id:
        raise NotOwnerError("work", "submit")

    if not theme.accepts(work.category):
        raise CategoryMismatchError(theme.category, work.category)

    existing = await db.execute(
        select(ThemeSubmission).where(
            ThemeSubmission.theme_id == theme_id,
            ThemeSubmission.work_id == work_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise AlreadySubmittedError(work_id, theme_id)

    db.add(ThemeSubmission(theme_id=theme_id, work_id=work_id, submitted_at=now))
    work.theme_id = theme_id
    await db.flush()

    logger.info(f"[THEME] Work {work_id} submitted to theme {theme_id}")
    return theme
