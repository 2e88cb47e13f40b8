"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from santa.assignments.router import router as assignments_router
from santa.auth.router import router as auth_router
from santa.config import get_settings
from santa.database import close_db, init_db
from santa.groups.router import router as groups_router
from santa.health.router import router as health_router
from santa.middleware import setup_middleware
from santa.redis_client import close_redis, init_redis
from santa.wishlist.router import router as wishlist_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)
    logger.info("startup", version=settings.app_version, environment=settings.environment)

    yield

    await close_db()
    await close_redis()
    logger.info("shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Secret Santa API",
        description="Gift exchange groups, random pairings and wishlists with hidden claims",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(groups_router)
    app.include_router(assignments_router)
    app.include_router(wishlist_router)

    return app


app = create_app()
