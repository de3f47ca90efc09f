# backend/activity_booking/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from . import __version__
from . import models  # noqa: F401  registers tables on Base.metadata
from .core.config import settings
from .database import Base, engine
from .errors import register_error_handlers
from .routes.v1 import bookings as bookings_v1

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info("Activity booking API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if not settings.stripe_configured:
        logger.warning("Stripe is not configured; paid bookings will record failed payments")
    if settings.booking_debug:
        logger.info("Booking step logging enabled")
    Base.metadata.create_all(bind=engine)
    yield
    logger.info("Activity booking API shutting down...")
    engine.dispose()


app = FastAPI(
    title="Activity Booking API",
    description="Bookings and payments for birthday parties, one-to-one coaching and holiday camps",
    version=__version__,
    lifespan=app_lifespan,
)
register_error_handlers(app)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
app.include_router(api_v1)


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "healthy", "version": __version__}
