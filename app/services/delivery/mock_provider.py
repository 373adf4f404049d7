"""
Mock delivery provider - records sends instead of delivering.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Set

from app.core.logging import mask_email
from app.services.delivery.base import DeliveryResult, OutboundEmail, ProviderType

logger = logging.getLogger(__name__)


@dataclass
class MockDeliveryProvider:
    """
    Example:
        provider = MockDeliveryProvider(fail_for={"bob@example.com"})
        result = await provider.deliver(email)

    fail_for: addresses that get a failure result
    raise_for: addresses whose delivery raises RuntimeError
    """

    fail_for: Set[str] = field(default_factory=set)
    raise_for: Set[str] = field(default_factory=set)
    healthy: bool = True

    sent: List[OutboundEmail] = field(default_factory=list)
    attempts: List[str] = field(default_factory=list)
    opened: bool = False
    closed: bool = False

    provider_type = ProviderType.MOCK

    async def open(self) -> None:
        self.opened = True
        self.closed = False

    async def close(self) -> None:
        self.closed = True
        self.opened = False

    async def health_check(self) -> bool:
        return self.healthy

    async def deliver(self, email: OutboundEmail) -> DeliveryResult:
        self.attempts.append(email.to)

        if email.to in self.raise_for:
            raise RuntimeError(f"mock transport exploded for {email.to}")

        if email.to in self.fail_for:
            logger.debug(f"[mock] Rejecting {mask_email(email.to)}")
            return DeliveryResult(success=False, error="mock rejection", provider="mock")

        self.sent.append(email)
        return DeliveryResult(
            success=True,
            message_id=f"mock-{len(self.sent)}",
            provider="mock",
        )

    @property
    def sent_to(self) -> List[str]:
        return [email.to for email in self.sent]
