"""
Batch dispatcher.

Sends a campaign to its audience in waves: every delivery of a wave runs
concurrently, the wave is joined, then the dispatcher pauses before the
next one. One recipient's failure never stops the others.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence

from app.core.config import DispatchConfig
from app.core.exceptions import ValidationError
from app.core.logging import mask_email
from app.repositories.customer import Customer
from app.services.campaigns.types import CampaignData
from app.services.delivery.base import DeliveryProvider, OutboundEmail
from app.services.messaging.personalizer import personalize

logger = logging.getLogger(__name__)


@dataclass
class RecipientOutcome:
    email: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class DispatchReport:
    """
    Aggregated result of a dispatch.

    success_count + failure_count == total always holds.
    """

    total: int = 0
    success_count: int = 0
    failure_count: int = 0
    failed_emails: List[dict] = field(default_factory=list)
    waves: int = 0

    @property
    def failed_addresses(self) -> set:
        return {item["email"] for item in self.failed_emails}

    def record(self, outcome: RecipientOutcome) -> None:
        if outcome.success:
            self.success_count += 1
        else:
            self.failure_count += 1
            self.failed_emails.append({"email": outcome.email, "error": outcome.error})

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "failed_emails": list(self.failed_emails),
        }


def partition(audience: Sequence[Customer], size: int) -> List[List[Customer]]:
    """Consecutive waves of at most `size` recipients."""
    return [list(audience[i:i + size]) for i in range(0, len(audience), size)]


class BatchDispatcher:
    """
    Args:
        provider: Open DeliveryProvider; the dispatcher never closes it
        wave_size: Recipients per wave
        wave_delay_ms: Pause between waves
        sleep: Awaitable sleep, replaced in tests
    """

    def __init__(
        self,
        provider: DeliveryProvider,
        wave_size: int = DispatchConfig.WAVE_SIZE,
        wave_delay_ms: int = DispatchConfig.WAVE_DELAY_MS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if wave_size < 1:
            raise ValidationError("Wave size must be at least 1", {"wave_size": wave_size})
        self.provider = provider
        self.wave_size = wave_size
        self.wave_delay_ms = max(0, wave_delay_ms)
        self._sleep = sleep

    async def _send_one(self, campaign: CampaignData, customer: Customer) -> RecipientOutcome:
        """Delivers to one recipient. Never raises."""
        email = customer.email
        try:
            message = personalize(campaign.message, campaign.effective_subject, customer.name)
            result = await self.provider.deliver(
                OutboundEmail(
                    to=email,
                    subject=message.subject,
                    text=message.plain_text,
                    html=message.html,
                )
            )
        except Exception as e:
            error = (str(e) or type(e).__name__)[:DispatchConfig.MAX_ERROR_CHARS]
            logger.error(
                f"Unexpected error sending campaign {campaign.id} to {mask_email(email)}: {error}",
                extra={"campaign_id": campaign.id, "error_type": type(e).__name__},
            )
            return RecipientOutcome(email=email, success=False, error=error)

        if not result.success:
            return RecipientOutcome(
                email=email,
                success=False,
                error=(result.error or "delivery failed")[:DispatchConfig.MAX_ERROR_CHARS],
            )
        return RecipientOutcome(email=email, success=True, message_id=result.message_id)

    async def dispatch(self, campaign: CampaignData, audience: Sequence[Customer]) -> DispatchReport:
        """
        Sends the campaign to every audience member.

        Args:
            campaign: Campaign with its message template
            audience: Recipients, in order

        Returns:
            DispatchReport

        Raises:
            ValidationError: no message template, or audience is not a sequence
        """
        if not campaign.message or not campaign.message.strip():
            raise ValidationError("Campaign has no message template", {"campaign_id": campaign.id})
        if isinstance(audience, (str, bytes)) or not isinstance(audience, Sequence):
            raise ValidationError("Audience must be a sequence of customers")

        report = DispatchReport(total=len(audience))
        waves = partition(audience, self.wave_size)

        logger.info(
            f"Dispatching campaign {campaign.id}: {report.total} recipients "
            f"in {len(waves)} waves of up to {self.wave_size}",
            extra={"campaign_id": campaign.id},
        )

        for index, wave in enumerate(waves, start=1):
            outcomes = await asyncio.gather(
                *(self._send_one(campaign, customer) for customer in wave)
            )
            for outcome in outcomes:
                report.record(outcome)
            report.waves += 1

            logger.info(
                f"Campaign {campaign.id} wave {index}/{len(waves)} done: "
                f"{report.success_count} sent, {report.failure_count} failed so far",
                extra={"campaign_id": campaign.id, "wave": index},
            )

            if index < len(waves) and self.wave_delay_ms:
                await self._sleep(self.wave_delay_ms / 1000)

        return report
