"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api import auth, portfolios, themes, users, votes, works
from backend.app.core.config import settings
from backend.app.core.exception_handlers import register_exception_handlers
from backend.app.db.base import engine, Base, get_db
# Import all models to register them with SQLAlchemy
import backend.app.models  # noqa: F401

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"
APP_DESCRIPTION = "Membership portfolio and voting platform"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: Create database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
    logger.info(f"[STARTUP] {settings.app_name} ready ({settings.environment})")

    yield

    # Shutdown: Close database connections
    await engine.dispose()
    logger.info("[SHUTDOWN] Cleaned up resources")


app = FastAPI(
    title=settings.app_name,
    description=APP_DESCRIPTION,
    version=APP_VERSION,
    lifespan=lifespan,
)

# Register custom exception handlers
register_exception_handlers(app)

logger.debug(f"[CORS] Allowed origins: {settings.cors_origins_list}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(works.router, prefix="/api")
app.include_router(portfolios.router, prefix="/api")
app.include_router(themes.router, prefix="/api")
app.include_router(votes.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": APP_VERSION,
        "description": APP_DESCRIPTION,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/api/health")
async def api_health_check():
    return {"status": "healthy", "environment": settings.environment}


@app.get("/api/health/db")
async def database_health_check(db: AsyncSession = Depends(get_db)):
    """Run a trivial query against the database."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"[HEALTH] Database check failed: {e}")
        return {"status": "degraded", "database": "unreachable"}
    return {"status": "healthy", "database": "connected"}


# Static files
app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")

if Path(settings.static_dir).is_dir():
    app.mount("/app", StaticFiles(directory=settings.static_dir, html=True), name="frontend")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
