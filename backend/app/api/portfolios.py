"""Portfolio API endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.api.deps import Paging, get_current_user, get_now, require_authenticated, require_member
from backend.app.core.exceptions import NotOwnerError, PortfolioExistsError, PortfolioNotFoundError
from backend.app.db.base import get_db
from backend.app.models.portfolio import Portfolio
from backend.app.models.session import AuthSession
from backend.app.models.user import User, UserType
from backend.app.models.work import Work
from backend.app.schemas.portfolio import (
    PortfolioCreate,
    PortfolioEnvelope,
    PortfolioListResponse,
    PortfolioResponse,
    PortfolioUpdate,
    TotalVotesResponse,
)
from backend.app.schemas.work import MessageResponse, WorkListResponse, WorkResponse
from backend.app.services.portfolios import adopt_works, get_portfolio_for_user
from backend.app.services.voting import recompute_portfolio_total

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/portfolios", tags=["portfolios"])

PREVIEW_WORKS = 5


def _with_refs(query):
    return query.options(selectinload(Portfolio.owner), selectinload(Portfolio.works))


async def _load_portfolio(db: AsyncSession, *conditions, key: str) -> Portfolio:
    result = await db.execute(
        _with_refs(select(Portfolio))
        .where(*conditions)
        .execution_options(populate_existing=True)
    )
    portfolio = result.scalar_one_or_none()
    if not portfolio:
        raise PortfolioNotFoundError(key)
    return portfolio


def _preview(portfolio: Portfolio) -> PortfolioResponse:
    """Portfolio with only its newest works."""
    response = PortfolioResponse.model_validate(portfolio)
    response.works = list(reversed(response.works))[:PREVIEW_WORKS]
    return response


@router.get("/", response_model=PortfolioListResponse)
async def list_portfolios(
    cluster: str | None = None,
    search: str | None = None,
    paging: Paging = Depends(),
    db: AsyncSession = Depends(get_db),
) -> PortfolioListResponse:
    """Portfolios of approved members, each with its five newest works."""
    conditions = [
        User.user_type == UserType.MEMBER.value,
        User.is_approved.is_(True),
    ]
    if cluster:
        conditions.append(User.cluster == cluster)
    if search:
        conditions.append(func.lower(User.name).like(f"%{search.lower()}%"))

    result = await db.execute(
        _with_refs(select(Portfolio))
        .join(User, User.id == Portfolio.user_id)
        .where(*conditions)
        .order_by(Portfolio.total_votes.desc(), Portfolio.created_at.desc())
        .offset(paging.skip)
        .limit(paging.limit)
    )
    portfolios = [_preview(p) for p in result.scalars().all()]
    return PortfolioListResponse(portfolios=portfolios, count=len(portfolios))


@router.get("/me/featured", response_model=WorkListResponse)
async def my_featured_works(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> WorkListResponse:
    """The caller's works that are featured right now."""
    result = await db.execute(
        select(Work)
        .options(selectinload(Work.owner), selectinload(Work.theme))
        .where(Work.user_id == user.id, Work.featured.is_(True))
        .order_by(Work.created_at.desc())
    )
    works = [WorkResponse.model_validate(w) for w in result.scalars().all() if w.is_featured_at(now)]
    return WorkListResponse(works=works, count=len(works))


@router.get("/user/{user_id}", response_model=PortfolioEnvelope)
async def get_portfolio_by_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
) -> PortfolioEnvelope:
    portfolio = await _load_portfolio(db, Portfolio.user_id == user_id, key=user_id)
    return PortfolioEnvelope(portfolio=PortfolioResponse.model_validate(portfolio))


@router.get("/{portfolio_id}", response_model=PortfolioEnvelope)
async def get_portfolio(
    portfolio_id: str,
    db: AsyncSession = Depends(get_db),
) -> PortfolioEnvelope:
    portfolio = await _load_portfolio(db, Portfolio.id == portfolio_id, key=portfolio_id)
    return PortfolioEnvelope(portfolio=PortfolioResponse.model_validate(portfolio))


@router.post("/", response_model=PortfolioEnvelope, status_code=status.HTTP_201_CREATED)
async def create_portfolio(
    payload: PortfolioCreate,
    user: User = Depends(require_member),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_now),
) -> PortfolioEnvelope:
    """Create the caller's portfolio; existing works are adopted into it."""
    if await get_portfolio_for_user(db, user.id):
        raise PortfolioExistsError(user.id)

    portfolio = Portfolio(
        user_id=user.id,
        title=payload.title or f"{user.name}'s Portfolio",
        bio=payload.bio or "",
        social_media=payload.social_media or "",
        created_at=now,
        updated_at=now,
    )
    db.add(portfolio)
    await db.flush()
    await adopt_works(db, portfolio)
    await db.commit()
    logger.info(f"[PORTFOLIO] User {user.id} created portfolio {portfolio.id}")

    portfolio = await _load_portfolio(db, Portfolio.id == portfolio.id, key=portfolio.id)
    return PortfolioEnvelope(
        message="Portfolio created successfully",
        portfolio=PortfolioResponse.model_validate(portfolio),
    )


@router.put("/{portfolio_id}", response_model=PortfolioEnvelope)
async def update_portfolio(
    portfolio_id: str,
    payload: PortfolioUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PortfolioEnvelope:
    """Update the caller's portfolio."""
    portfolio = await _load_portfolio(db, Portfolio.id == portfolio_id, key=portfolio_id)
    if portfolio.user_id != user.id:
        raise NotOwnerError("portfolio")

    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(portfolio, field, value)
    await db.commit()

    portfolio = await _load_portfolio(db, Portfolio.id == portfolio_id, key=portfolio_id)
    return PortfolioEnvelope(
        message="Portfolio updated successfully",
        portfolio=PortfolioResponse.model_validate(portfolio),
    )


@router.delete("/{portfolio_id}", response_model=MessageResponse)
async def delete_portfolio(
    portfolio_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete the caller's portfolio. Its works are detached, not deleted."""
    portfolio = await db.get(Portfolio, portfolio_id)
    if not portfolio:
        raise PortfolioNotFoundError(portfolio_id)
    if portfolio.user_id != user.id:
        raise NotOwnerError("portfolio", "delete")

    await db.execute(
        update(Work)
        .where(Work.portfolio_id == portfolio_id)
        .values(portfolio_id=None)
        .execution_options(synchronize_session=False)
    )
    await db.delete(portfolio)
    await db.commit()
    logger.info(f"[PORTFOLIO] Deleted portfolio {portfolio_id}")

    return MessageResponse(message="Portfolio deleted successfully")


@router.patch("/{portfolio_id}/votes", response_model=TotalVotesResponse)
async def refresh_total_votes(
    portfolio_id: str,
    session: AuthSession = Depends(require_authenticated),
    db: AsyncSession = Depends(get_db),
) -> TotalVotesResponse:
    """Recompute the total from the portfolio's works."""
    portfolio = await db.get(Portfolio, portfolio_id)
    if not portfolio:
        raise PortfolioNotFoundError(portfolio_id)

    total = await recompute_portfolio_total(db, portfolio)
    await db.commit()
    return TotalVotesResponse(total_votes=total)
