"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fleetlearn.config import get_settings
from fleetlearn.dashboard.router import router as dashboard_router
from fleetlearn.database import close_db, init_db
from fleetlearn.health.router import router as health_router
from fleetlearn.middleware import setup_middleware
from fleetlearn.redis_client import close_redis, init_redis
from fleetlearn.training.router import router as training_router
from fleetlearn.users.router import router as users_router
from fleetlearn.videos.router import router as videos_router


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="FleetLearn API",
        description="Training-video portal for fleet drivers: assignments, progress and annual renewals",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(videos_router)
    app.include_router(users_router)
    app.include_router(training_router)
    app.include_router(dashboard_router)

    return app


app = create_app()
