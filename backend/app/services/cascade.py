"""Cascading removal of works, themes and user accounts."""

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.portfolio import Portfolio
from backend.app.models.theme import Theme, ThemeSubmission
from backend.app.models.user import User
from backend.app.models.vote import Vote
from backend.app.models.work import Work, WorkFlag
from backend.app.services.session_store import SessionStore
from backend.app.services.voting import recompute_portfolio_total, withdraw_votes_by_user

logger = logging.getLogger(__name__)


async def delete_work(db: AsyncSession, work: Work) -> None:
    """
    Delete a work and every reference to it.

    Votes on the work go with it; the work leaves its portfolio (whose total is
    recomputed) and every theme submission list; themes it won lose their
    winner reference.
    """
    work_id = work.id
    portfolio_id = work.portfolio_id

    await db.execute(delete(Vote).where(Vote.work_id == work_id))
    await db.execute(delete(ThemeSubmission).where(ThemeSubmission.work_id == work_id))
    await db.execute(delete(WorkFlag).where(WorkFlag.work_id == work_id))
    await db.execute(
        update(Theme)
        .where(Theme.winner_work_id == work_id)
        .values(winner_work_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.delete(work)
    await db.flush()

    if portfolio_id:
        portfolio = await db.get(Portfolio, portfolio_id)
        if portfolio:
            await recompute_portfolio_total(db, portfolio)

    logger.info(f"[WORK] Deleted work {work_id}")


async def delete_theme(db: AsyncSession, theme: Theme) -> None:
    """
    Delete a theme.

    Works keep existing without a theme; theme-scoped votes keep their
    uniqueness scope but lose the theme reference.
    """
    theme_id = theme.id
    await db.execute(
        update(Work)
        .where(Work.theme_id == theme_id)
        .values(theme_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.execute(
        update(Vote)
        .where(Vote.theme_id == theme_id)
        .values(theme_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.execute(delete(ThemeSubmission).where(ThemeSubmission.theme_id == theme_id))
    await db.delete(theme)
    await db.flush()
    logger.info(f"[THEME] Deleted theme {theme_id}")


async def delete_user_account(db: AsyncSession, user: User) -> None:
    """
    Delete a user with everything they own.

    Votes the user cast are withdrawn (lowering the targets' counters), owned
    works are deleted, then the portfolio, flags and sessions. Themes the user
    created remain without a creator.
    """
    user_id = user.id

    withdrawn = await withdraw_votes_by_user(db, user_id)

    works = await db.execute(select(Work).where(Work.user_id == user_id))
    for work in works.scalars().all():
        await delete_work(db, work)

    await db.execute(delete(Portfolio).where(Portfolio.user_id == user_id))
    await db.execute(delete(WorkFlag).where(WorkFlag.user_id == user_id))
    await SessionStore(db).destroy_for_user(user_id)
    await db.execute(
        update(Theme)
        .where(Theme.created_by == user_id)
        .values(created_by=None)
        .execution_options(synchronize_session=False)
    )
    await db.delete(user)
    await db.flush()

    logger.info(f"[USER] Deleted account {user_id} (withdrew {withdrawn} votes)")
