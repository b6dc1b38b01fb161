"""Rize API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map RizeError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Stores, provider client and session manager built on startup via lifespan
      and torn down on shutdown
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rize.api.error_handlers import register_error_handlers
from rize.api.routes import auth_session, health, lists, navigation
from rize.config import get_settings
from rize.infrastructure.observability import setup_logging
from rize.services.runtime import init_runtime, shutdown_runtime

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    runtime = await init_runtime(settings)
    logger.info(
        "Rize API started",
        extra={"phase": runtime.auth_manager.current_route_hint().value},
    )
    yield
    await shutdown_runtime()
    logger.info("Rize API shutting down")


app = FastAPI(title="Rize API", version="1.0.0", lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth_session.router)
app.include_router(navigation.router)
app.include_router(lists.router)

register_error_handlers(app)
