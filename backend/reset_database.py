"""
Reset database - Delete existing SQLite database and create fresh schema.

WARNING: This will delete all existing data!
"""

import asyncio
import sys
from pathlib import Path

# Force UTF-8 encoding for Windows console
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding='utf-8')

# Add repository root to Python path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir.parent))


async def reset_database():
    """Delete the SQLite file behind DATABASE_URL and create fresh schema."""
    from sqlalchemy.engine import make_url

    from backend.app.core.config import settings

    url = make_url(settings.database_url)
    if not url.drivername.startswith("sqlite"):
        print(f"Refusing to delete a non-SQLite database: {url.drivername}")
        return

    db_path = Path(url.database or "")
    if url.database and db_path.exists():
        print(f"Deleting existing database: {db_path}")
        db_path.unlink()
        print("✓ Database deleted")
    else:
        print("No existing database found")

    # Import Base and models to ensure all tables are registered
    from backend.app.db.base import Base, engine
    import backend.app.models  # noqa: F401

    print("Creating new database schema...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()

    print("✓ Database schema created successfully!")
    print(f"\nNew database location: {db_path.resolve()}")
    print("\nYou can now run seed_demo_data.py to load demo accounts, themes and works")


if __name__ == "__main__":
    asyncio.run(reset_database())
