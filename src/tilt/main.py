"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tilt.admin.router import router as admin_router
from tilt.auth.router import router as auth_router
from tilt.config import get_settings
from tilt.database import close_db, init_db
from tilt.health.router import router as health_router
from tilt.middleware import setup_middleware
from tilt.problems.router import router as problems_router
from tilt.redis_client import close_redis, init_redis
from tilt.share.router import router as share_router
from tilt.stats.router import router as stats_router


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
        title="Tilt API",
        description="Backend API for Tilt - an infinite-scroll feed of problems",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(problems_router)
    app.include_router(stats_router)
    app.include_router(share_router)
    app.include_router(admin_router)

    return app


app = create_app()
