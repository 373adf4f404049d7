"""
E-mail delivery providers.

Usage:
    from app.services.delivery import create_delivery_provider

    provider = create_delivery_provider()
    await provider.open()
    result = await provider.deliver(OutboundEmail(to=..., subject=..., text=..., html=...))
    await provider.close()
"""
import logging
from typing import Optional

from app.core.config import settings
from app.core.exceptions import ConfigurationError
from app.services.delivery.base import (
    DeliveryProvider,
    DeliveryResult,
    OutboundEmail,
    ProviderType,
)
from app.services.delivery.http_provider import HttpEmailProvider
from app.services.delivery.mock_provider import MockDeliveryProvider

logger = logging.getLogger(__name__)

__all__ = [
    "DeliveryProvider",
    "DeliveryResult",
    "OutboundEmail",
    "ProviderType",
    "HttpEmailProvider",
    "MockDeliveryProvider",
    "create_delivery_provider",
]


def create_delivery_provider(provider_type: Optional[str] = None) -> DeliveryProvider:
    """
    Builds the provider named by EMAIL_PROVIDER.

    Raises:
        ConfigurationError: unknown provider type
    """
    name = (provider_type or settings.EMAIL_PROVIDER).lower()

    if name == ProviderType.HTTP.value:
        return HttpEmailProvider()
    if name == ProviderType.MOCK.value:
        logger.warning("Using MockDeliveryProvider: e-mails will not be sent")
        return MockDeliveryProvider()

    raise ConfigurationError(
        f"Unknown EMAIL_PROVIDER: {name}",
        details={"supported": [p.value for p in ProviderType]},
    )
