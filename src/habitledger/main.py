"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from habitledger.config import get_settings
from habitledger.database import close_db, init_db
from habitledger.gamification.router import router as gamification_router
from habitledger.goals.router import router as goals_router
from habitledger.habits.router import router as habits_router
from habitledger.health.router import router as health_router
from habitledger.middleware import setup_middleware
from habitledger.planning.router import router as planning_router
from habitledger.redis_client import close_redis, init_redis
from habitledger.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    logger.info("startup", environment=settings.environment, version=settings.app_version)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Habit Ledger API",
        description="Habits, daily completions, streaks and XP",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(users_router)
    app.include_router(habits_router)
    app.include_router(gamification_router)
    app.include_router(goals_router)
    app.include_router(planning_router)

    return app


app = create_app()
