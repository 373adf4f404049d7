"""
Health check routes.

- /health: liveness (always 200 while the app runs)
- /health/ready: delivery provider health and circuit breaker states
"""
import logging

from fastapi import APIRouter, Depends, Response

from app.core.config import settings
from app.core.timezone import utc_now
from app.repositories.deps import get_delivery_provider
from app.services.circuit_breaker import get_circuits_status
from app.services.delivery import DeliveryProvider

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check():
    """Used by load balancers and monitoring."""
    return {
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "service": settings.APP_NAME,
    }


@router.get("/health/ready")
async def readiness_check(
    response: Response,
    provider: DeliveryProvider = Depends(get_delivery_provider),
):
    """Ready when the delivery provider accepts sends; 503 otherwise."""
    try:
        delivery_ok = await provider.health_check()
    except Exception as e:
        logger.warning(f"Delivery provider health check failed: {e}")
        delivery_ok = False

    if not delivery_ok:
        response.status_code = 503

    return {
        "status": "ready" if delivery_ok else "degraded",
        "checks": {
            "delivery": "ok" if delivery_ok else "error",
            "delivery_provider": provider.provider_type.value,
        },
        "circuits": get_circuits_status(),
        "timestamp": utc_now().isoformat(),
    }
