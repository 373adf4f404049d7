"""
Campaign service.

Owns the campaign lifecycle:
- create/update: validate, recompute target_audience, derive status
- preview: resolve an audience without storing anything
- send: resolve, dispatch in waves, write the communication log

draft -> scheduled -> sent; sent is terminal.
"""
import logging
import math
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.timezone import parse_datetime, to_iso, utc_now
from app.repositories.customer import Customer
from app.services.campaigns.dispatcher import BatchDispatcher, DispatchReport
from app.services.campaigns.ledger import build_communication_log, tally
from app.services.campaigns.repository import CampaignRepository
from app.services.campaigns.types import CampaignData, CampaignStatus
from app.services.messaging.generator import GeneratedMessage, MessageGenerator
from app.services.segmentation.resolver import AudienceResolver
from app.services.segmentation.types import SegmentRule, parse_rules

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
MIN_MESSAGE_LENGTH = 10

EDITABLE_FIELDS = ("name", "description", "subject", "message", "segment_rules", "scheduled_for")


def _clean_campaign_input(data: dict) -> dict:
    """
    Validates campaign fields and returns them normalized for storage.

    Raises:
        ValidationError: short name or message, no rules, invalid rule
    """
    name = (data.get("name") or "").strip()
    if len(name) < MIN_NAME_LENGTH:
        raise ValidationError(
            f"Name must be at least {MIN_NAME_LENGTH} characters", {"field": "name"}
        )

    message = data.get("message") or ""
    if len(message.strip()) < MIN_MESSAGE_LENGTH:
        raise ValidationError(
            f"Message must be at least {MIN_MESSAGE_LENGTH} characters", {"field": "message"}
        )

    rules = parse_rules(data.get("segment_rules"))

    scheduled_for = data.get("scheduled_for")
    try:
        scheduled_for = parse_datetime(scheduled_for)
    except (TypeError, ValueError) as e:
        raise ValidationError("Invalid scheduled_for", {"field": "scheduled_for"}) from e

    return {
        "name": name,
        "description": (data.get("description") or "").strip(),
        "subject": (data.get("subject") or "").strip() or name,
        "message": message,
        "segment_rules": rules,
        "scheduled_for": scheduled_for,
    }


class CampaignService:
    """
    Args:
        campaigns: CampaignRepository
        resolver: AudienceResolver over the customer collection
        dispatcher: BatchDispatcher holding the open delivery provider
        generator: MessageGenerator for AI drafts
        clock: Current time, replaced in tests
    """

    def __init__(
        self,
        campaigns: CampaignRepository,
        resolver: AudienceResolver,
        dispatcher: BatchDispatcher,
        generator: Optional[MessageGenerator] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.campaigns = campaigns
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.generator = generator or MessageGenerator()
        self.clock = clock

    # Queries

    async def get_campaign(self, campaign_id: str) -> CampaignData:
        """
        Raises:
            NotFoundError: no such campaign
        """
        campaign = await self.campaigns.get_by_id(campaign_id)
        if campaign is None:
            raise NotFoundError("Campaign", campaign_id)
        return campaign

    async def list_campaigns(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> dict:
        """Paginated listing: {count, pagination{current, pages}, data}."""
        if status:
            try:
                status = CampaignStatus(status).value
            except ValueError as e:
                raise ValidationError(f"Unknown status: {status}", {"field": "status"}) from e

        page = max(1, page)
        limit = limit or settings.DEFAULT_PAGE_SIZE
        campaigns, total = await self.campaigns.list_page(
            status=status,
            search=search,
            limit=limit,
            offset=(page - 1) * limit,
        )
        return {
            "count": total,
            "pagination": {"current": page, "pages": math.ceil(total / limit) if total else 0},
            "data": [campaign.to_dict() for campaign in campaigns],
        }

    async def preview_audience(self, raw_rules: list) -> List[Customer]:
        """
        Customers a set of rules would target right now.

        Raises:
            ValidationError: empty or invalid rules
            AggregationError: spend unavailable
        """
        audience = await self.resolver.compile_and_resolve(parse_rules(raw_rules))
        logger.info(f"Audience preview: {len(audience)} customers")
        return audience

    # Commands

    async def _audience_size(self, rules: List[SegmentRule]) -> int:
        return len(await self.resolver.compile_and_resolve(rules))

    def _to_row(self, cleaned: dict, target_audience: int) -> dict:
        scheduled_for = cleaned["scheduled_for"]
        return {
            "name": cleaned["name"],
            "description": cleaned["description"],
            "subject": cleaned["subject"],
            "message": cleaned["message"],
            "segment_rules": [rule.to_dict() for rule in cleaned["segment_rules"]],
            "scheduled_for": to_iso(scheduled_for),
            "status": (
                CampaignStatus.SCHEDULED if scheduled_for else CampaignStatus.DRAFT
            ).value,
            "target_audience": target_audience,
        }

    async def create_campaign(self, data: dict) -> CampaignData:
        """
        Creates a draft (or scheduled) campaign.

        Raises:
            ValidationError: invalid fields or rules
        """
        cleaned = _clean_campaign_input(data)
        size = await self._audience_size(cleaned["segment_rules"])

        row = self._to_row(cleaned, size)
        row.update({"delivered": 0, "failed": 0, "communication_log": []})

        campaign = await self.campaigns.create(row)
        logger.info(
            f"Campaign {campaign.id} created ({campaign.status.value}), audience {size}",
            extra={"campaign_id": campaign.id},
        )
        return campaign

    async def update_campaign(self, campaign_id: str, data: dict) -> CampaignData:
        """
        Updates a campaign that has not been sent. Missing fields keep
        their current values.

        Raises:
            NotFoundError: no such campaign
            ConflictError: campaign already sent
            ValidationError: invalid fields or rules
        """
        existing = await self.get_campaign(campaign_id)
        if existing.is_sent:
            raise ConflictError("Cannot update a campaign that has already been sent")

        merged = {
            "name": existing.name,
            "description": existing.description,
            "subject": existing.subject,
            "message": existing.message,
            "segment_rules": existing.segment_rules,
            "scheduled_for": existing.scheduled_for,
        }
        merged.update({k: v for k, v in data.items() if k in EDITABLE_FIELDS})
        if "name" in data and "subject" not in data and existing.subject == existing.name:
            merged["subject"] = ""

        cleaned = _clean_campaign_input(merged)
        size = await self._audience_size(cleaned["segment_rules"])

        updated = await self.campaigns.update(campaign_id, self._to_row(cleaned, size))
        if updated is None:
            raise NotFoundError("Campaign", campaign_id)
        logger.info(f"Campaign {campaign_id} updated, audience {size}", extra={"campaign_id": campaign_id})
        return updated

    async def delete_campaign(self, campaign_id: str) -> None:
        """
        Raises:
            NotFoundError: no such campaign
            ConflictError: campaign already sent
        """
        existing = await self.get_campaign(campaign_id)
        if existing.is_sent:
            raise ConflictError("Cannot delete a campaign that has already been sent")
        if not await self.campaigns.delete(campaign_id):
            raise NotFoundError("Campaign", campaign_id)

    async def send_campaign(self, campaign_id: str) -> Tuple[CampaignData, DispatchReport]:
        """
        Sends a campaign to its current audience.

        The campaign is read once before dispatch and written once after;
        per-recipient failures end up in the log, not in an exception.

        Returns:
            (updated campaign, dispatch report)

        Raises:
            NotFoundError: no such campaign
            ConflictError: already sent, or empty audience
            AggregationError: spend unavailable while resolving
        """
        campaign = await self.get_campaign(campaign_id)
        if campaign.is_sent:
            raise ConflictError("Campaign has already been sent", {"campaign_id": campaign_id})

        audience = await self.resolver.compile_and_resolve(campaign.segment_rules)
        if not audience:
            raise ConflictError("Campaign has no target audience", {"campaign_id": campaign_id})

        report = await self.dispatcher.dispatch(campaign, audience)

        now = self.clock()
        log = build_communication_log(audience, report, now)
        counts = tally(log)

        updated = await self.campaigns.update(
            campaign_id,
            {
                "status": CampaignStatus.SENT.value,
                "sent_at": to_iso(now),
                "target_audience": len(audience),
                "delivered": counts["delivered"],
                "failed": counts["failed"],
                "communication_log": [entry.to_dict() for entry in log],
            },
        )
        if updated is None:
            raise NotFoundError("Campaign", campaign_id)

        logger.info(
            f"Campaign {campaign_id} sent: {counts['delivered']} delivered, "
            f"{counts['failed']} failed of {len(audience)}",
            extra={"campaign_id": campaign_id},
        )
        return updated, report

    async def generate_message(self, prompt: str, audience: str = "") -> GeneratedMessage:
        """AI draft of a campaign message (fallback template on LLM failure)."""
        return await self.generator.generate_text(prompt, audience)
