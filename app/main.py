"""
Campaign Dispatch - main API.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_exception_handlers
from app.api.routes import campaigns, customers, health, orders
from app.core.config import settings
from app.core.logging import setup_logging
from app.services.delivery import create_delivery_provider

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Opens the delivery provider at startup and closes it at shutdown."""
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})")

    provider = create_delivery_provider()
    await provider.open()
    if not await provider.health_check():
        logger.warning(f"Delivery provider '{provider.provider_type.value}' is not healthy at startup")
    app.state.delivery_provider = provider

    try:
        yield
    finally:
        await provider.close()
        logger.info(f"Stopping {settings.APP_NAME}")


app = FastAPI(
    title=settings.APP_NAME,
    description="Customer segmentation and batched e-mail campaigns",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health.router, tags=["Health"])
app.include_router(campaigns.router)
app.include_router(customers.router)
app.include_router(orders.router)


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "status": "running",
        "docs": "/docs",
    }
