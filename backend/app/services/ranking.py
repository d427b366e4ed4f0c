"""Work rankings: a read-side projection over vote counts."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backend.app.models.work import Work

ALL_CATEGORIES = "All"


async def get_rankings(db: AsyncSession, category: str, limit: int) -> list[Work]:
    """
    Top works in a category.

    Sorted by vote count descending; on equal counts the earlier upload ranks
    higher. ``category`` "All" disables the filter.
    """
    query = select(Work).options(selectinload(Work.owner), selectinload(Work.theme))
    if category != ALL_CATEGORIES:
        query = query.where(Work.category == category)

    query = query.order_by(Work.vote_count.desc(), Work.created_at.asc(), Work.id.asc()).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())
