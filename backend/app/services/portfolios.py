"""Portfolio bookkeeping shared by the works and portfolios endpoints."""

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.portfolio import Portfolio
from backend.app.models.user import User
from backend.app.models.work import Work
from backend.app.services.voting import recompute_portfolio_total

logger = logging.getLogger(__name__)


async def get_portfolio_for_user(db: AsyncSession, user_id: str) -> Portfolio | None:
    result = await db.execute(select(Portfolio).where(Portfolio.user_id == user_id))
    return result.scalar_one_or_none()


async def adopt_works(db: AsyncSession, portfolio: Portfolio) -> int:
    """Attach all of the owner's works to the portfolio and recompute its total."""
    await db.execute(
        update(Work)
        .where(Work.user_id == portfolio.user_id)
        .values(portfolio_id=portfolio.id)
        .execution_options(synchronize_session=False)
    )
    return await recompute_portfolio_total(db, portfolio)


async def ensure_portfolio(db: AsyncSession, user: User, now: datetime) -> Portfolio:
    """The member's portfolio, created as "<name>'s Portfolio" when missing."""
    portfolio = await get_portfolio_for_user(db, user.id)
    if portfolio:
        return portfolio

    portfolio = Portfolio(
        user_id=user.id,
        title=f"{user.name}'s Portfolio",
        created_at=now,
        updated_at=now,
    )
    db.add(portfolio)
    await db.flush()
    await adopt_works(db, portfolio)
    logger.info(f"[PORTFOLIO] Created portfolio {portfolio.id} for user {user.id}")
    return portfolio
