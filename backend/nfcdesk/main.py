"""nfcdesk API - FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map NfcDeskError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Engine is ready (schema prepared, database reachable) before the scheduler starts

Design Decisions:
    - Lifespan over @app.on_event: cleaner startup/shutdown pairing
    - Engine and broadcaster live on app.state; routes reach them through dependencies
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from nfcdesk.api.error_handlers import register_error_handlers
from nfcdesk.api.routes import (
    appointments, cards, events_stream, health, loans, people, taps,
)
from nfcdesk.config import get_settings
from nfcdesk.infrastructure.broadcaster import EventBroadcaster
from nfcdesk.infrastructure.database import init_db
from nfcdesk.infrastructure.observability import setup_logging
from nfcdesk.infrastructure.reminder_sender import LoggingReminderSender
from nfcdesk.infrastructure.scheduler import build_scheduler
from nfcdesk.services.access_engine import AccessEngine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    broadcaster = EventBroadcaster()
    engine = AccessEngine(
        db, settings, sink=broadcaster, sender=LoggingReminderSender(),
    )
    await engine.ready()
    app.state.broadcaster = broadcaster
    app.state.engine = engine

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = build_scheduler(
            settings, engine.sweep_appointments, engine.send_reminders,
        )
        scheduler.start()
    logger.info("nfcdesk API started")
    yield
    logger.info("nfcdesk API shutting down")
    if scheduler is not None:
        scheduler.shutdown(wait=False)
    await db.dispose()


app = FastAPI(title="nfcdesk API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(taps.router)
app.include_router(people.router)
app.include_router(cards.router)
app.include_router(loans.router)
app.include_router(appointments.router)
app.include_router(events_stream.router)

register_error_handlers(app)

# Admin UI build; mounted after the API routes so /api/v1/* takes precedence
if os.path.isdir("static"):
    app.mount("/", StaticFiles(directory="static", html=True), name="static")
