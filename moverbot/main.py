"""Main application entry point with app factory and lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from moverbot.api import router as commands_router
from moverbot.commands import build_router
from moverbot.core.config import Settings, get_settings
from moverbot.core.exceptions import register_exception_handlers
from moverbot.core.logging import get_logger, setup_logging
from moverbot.jobs import CycleRunner, build_scheduler
from moverbot.session import BotSession

logger = get_logger("main")


def create_app(
    settings: Optional[Settings] = None,
    session: Optional[BotSession] = None,
) -> FastAPI:
    """Create the FastAPI application.

    ``session`` may be injected (tests, embedding); otherwise one is built from
    ``settings`` at startup. The session is closed at shutdown either way.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        setup_logging(settings.log_level, settings.log_format, settings.debug)
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")

        bot_session = session or BotSession.create(settings)
        runner = CycleRunner(bot_session)
        scheduler = build_scheduler(runner)

        app.state.session = bot_session
        app.state.cycle_runner = runner
        app.state.scheduler = scheduler
        app.state.command_router = build_router(settings)

        if settings.scheduler_enabled:
            await scheduler.start()
        else:
            logger.info("Scheduler disabled via SCHEDULER_ENABLED=false")

        yield

        # Shutdown
        logger.info("Shutting down...")
        await scheduler.stop()
        await bot_session.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    register_exception_handlers(app)
    app.include_router(commands_router)
    return app
