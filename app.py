"""
app.py - FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the calendar store and selection services, registers routers,
and seeds the local calendar store on first start.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from huddle.controllers.room_controller import router as room_router
from huddle.repository.calendar_repository import CalendarRepository
from huddle.services.auth_service import AuthService
from huddle.services.selection_service import RoomSelectionService, utc_now
from huddle.utils.config import get_settings
from huddle.utils.logger import get_logger


logger = get_logger(__name__)


def create_app() -> FastAPI:
    """
    Build and wire the FastAPI application.

    Every dependency is created here and exposed through app.state.
    """
    settings = get_settings()

    # --- Calendar store (directory + free/busy + reservations) ---
    repository = CalendarRepository(settings)

    # --- Services ---
    selection_service = RoomSelectionService(
        gateway=repository,
        settings=settings,
    )
    auth_service = AuthService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.include_router(room_router)

    app.state.repository = repository
    app.state.selection_service = selection_service
    app.state.auth_service = auth_service

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence.

    Demo events are only scattered when the directory was empty, so restarts
    do not pile up busy blocks.
    """
    repository: CalendarRepository = app.state.repository

    logger.info("Startup: initializing calendar store")
    repository.initialize_database()

    logger.info("Startup: seeding demo room directory (skipped if not empty)")
    if repository.seed_demo_directory_if_empty():
        repository.seed_demo_events(utc_now())

    logger.info("Startup complete - room finder ready")


# Module-level app object for uvicorn
app = create_app()
