# backend/app/main.py
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator, Dict

from fastapi import APIRouter, FastAPI

from .core.config import settings
from .core.constants import BRAND_NAME
from .errors import register_error_handlers
from .routes import availability, bookings, payments, prometheus

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(
        f"Environment: {settings.environment}",
        extra={
            "shop_timezone": settings.shop_timezone,
            "booking_hold_minutes": settings.booking_hold_minutes,
            "slot_interval_minutes": settings.slot_interval_minutes,
        },
    )
    yield
    logger.info(f"{BRAND_NAME} API shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title=f"{BRAND_NAME} API",
        description="Barbershop booking core",
        version="1.0.0",
        lifespan=app_lifespan,
    )
    register_error_handlers(app)

    api = APIRouter(prefix="/api")
    api.include_router(bookings.router)
    api.include_router(availability.router)
    api.include_router(payments.router)
    app.include_router(api)
    app.include_router(prometheus.router)

    @app.get("/health", tags=["health"])
    def health_check() -> Dict[str, str]:
        return {"status": "healthy", "service": f"{BRAND_NAME.lower()}-api"}

    return app


app = create_app()
