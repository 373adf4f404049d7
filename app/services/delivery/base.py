"""
Contract for e-mail delivery providers.

Every transport (HTTP API, mock) implements DeliveryProvider, so the
dispatcher never knows which one it is talking to.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, runtime_checkable


class ProviderType(str, Enum):
    """Supported transports."""

    HTTP = "http"
    MOCK = "mock"


@dataclass(frozen=True)
class OutboundEmail:
    """One personalized e-mail ready to send."""

    to: str
    subject: str
    text: str
    html: str


@dataclass
class DeliveryResult:
    """Outcome of one delivery attempt."""

    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    provider: Optional[str] = None


@runtime_checkable
class DeliveryProvider(Protocol):
    """
    E-mail transport.

    Lifecycle: open() once at startup, deliver() any number of times,
    close() at shutdown. deliver() reports failures in the DeliveryResult;
    it does not raise for transport errors.
    """

    provider_type: ProviderType

    async def open(self) -> None:
        ...

    async def deliver(self, email: OutboundEmail) -> DeliveryResult:
        """
        Sends one e-mail.

        Returns:
            DeliveryResult with success and message id, or the error
        """
        ...

    async def health_check(self) -> bool:
        """True when the transport can accept deliveries."""
        ...

    async def close(self) -> None:
        ...
