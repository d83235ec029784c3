"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from wayfarer.config import get_settings
from wayfarer.database import close_db, get_session_factory, init_db
from wayfarer.gamification.router import router as badges_router
from wayfarer.gamification.seed import seed_badges
from wayfarer.health.router import router as health_router
from wayfarer.middleware import setup_middleware
from wayfarer.middleware.logging import setup_logging
from wayfarer.redis_client import close_redis, init_redis

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    # Seed badge catalog (idempotent)
    try:
        async with get_session_factory()() as db:
            await seed_badges(db)
    except Exception:
        logger.warning("Badge seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="Wayfarer API",
        description="Backend API for Wayfarer: travel planning, journaling and achievements",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(badges_router)

    return app


app = create_app()
