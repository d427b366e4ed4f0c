"""Initialize database tables."""

import asyncio

from backend.app.db.base import engine, Base
# Import all models to register them
import backend.app.models  # noqa: F401


async def init_db():
    """Create all database tables."""
    async with engine.begin() as conn:
        # Drop all tables (for development)
        await conn.run_sync(Base.metadata.drop_all)
        # Create all tables
        await conn.run_sync(Base.metadata.create_all)

    print("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
