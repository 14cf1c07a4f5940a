from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import router as api_router
from app.core.config import settings
from app.core.errors import configure_error_handlers
from app.core.logging import logger
from app.db.migrate import run_migrations
from app.db.session import engine
from app.worker.notifications import NotificationScheduler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.run_migrations_on_startup:
        report = await run_migrations(engine)
        logger.info(
            f"Migrations: {len(report.applied)} applied, {len(report.marked_existing)} already present"
        )

    scheduler = NotificationScheduler() if settings.enable_scheduler else None
    if scheduler is not None:
        scheduler.start()
    app.state.scheduler = scheduler
    try:
        yield
    finally:
        if scheduler is not None:
            await scheduler.stop()
        await engine.dispose()


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Departmental Dashboard API",
        version="0.1.0",
        lifespan=lifespan if use_lifespan else None,
    )

    # Open CORS in dev, configured origins otherwise
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.app_env == "dev" else settings.cors_origin_list,
        allow_credentials=settings.app_env != "dev",
        allow_methods=["*"],
        allow_headers=["*"],
    )

    configure_error_handlers(app)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
