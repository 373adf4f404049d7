"""
Tests for CampaignService: lifecycle, preview and send.
"""
from datetime import datetime, timezone

import pytest

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.services.campaigns.dispatcher import BatchDispatcher
from app.services.campaigns.service import CampaignService
from app.services.campaigns.types import CampaignStatus, DeliveryStatus
from app.services.delivery import MockDeliveryProvider
from app.services.llm import MockLLMProvider
from app.services.messaging.generator import MessageGenerator
from app.services.segmentation.memory import InMemoryCustomerCollection
from app.services.segmentation.resolver import AudienceResolver
from tests.factories import InMemoryCampaignRepository, make_customer

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

LONDON = [{"field": "location", "operator": "equals", "value": "London"}]


@pytest.fixture
def london_audience():
    return [
        make_customer("c1", "Ada Lovelace", "ada@example.com", "London"),
        make_customer("c2", "Bob Stone", "bob@example.com", "London"),
        make_customer("c3", "Carla Mendes", "carla@example.com", "London"),
        make_customer("c4", "Dan Brown", "dan@example.com", "Paris"),
    ]


@pytest.fixture
def provider():
    return MockDeliveryProvider(fail_for={"bob@example.com"})


@pytest.fixture
def repo(campaign_row):
    campaign_row["segment_rules"] = LONDON
    return InMemoryCampaignRepository([campaign_row])


@pytest.fixture
def service(repo, london_audience, provider, no_sleep):
    return CampaignService(
        campaigns=repo,
        resolver=AudienceResolver(InMemoryCustomerCollection(london_audience)),
        dispatcher=BatchDispatcher(provider, wave_size=2, wave_delay_ms=10, sleep=no_sleep),
        generator=MessageGenerator(MockLLMProvider(default_response="Subject: Hi")),
        clock=lambda: NOW,
    )


def campaign_input(**overrides):
    data = {
        "name": "Spring Sale",
        "description": "Seasonal",
        "message": "Hello {customername}, spring is here!",
        "segment_rules": LONDON,
    }
    data.update(overrides)
    return data


class TestSendCampaign:
    """Tests for send_campaign."""

    @pytest.mark.asyncio
    async def test_audience_of_three_with_one_failure(self, service, repo, provider):
        campaign, report = await service.send_campaign("camp-1")

        assert campaign.status == CampaignStatus.SENT
        assert campaign.delivered == 2
        assert campaign.failed == 1
        assert campaign.target_audience == 3
        assert campaign.sent_at == NOW
        assert len(campaign.communication_log) == 3
        bob = campaign.communication_log[1]
        assert bob.customer_id == "c2"
        assert bob.status == DeliveryStatus.FAILED
        assert bob.delivered_at is None
        assert campaign.communication_log[0].delivered_at == NOW
        assert report.success_count == 2
        assert provider.sent_to == ["ada@example.com", "carla@example.com"]

    @pytest.mark.asyncio
    async def test_second_send_is_conflict(self, service, provider):
        await service.send_campaign("camp-1")

        with pytest.raises(ConflictError):
            await service.send_campaign("camp-1")

        assert len(provider.attempts) == 3

    @pytest.mark.asyncio
    async def test_written_once(self, service, repo):
        await service.send_campaign("camp-1")

        assert len(repo.updates) == 1

    @pytest.mark.asyncio
    async def test_empty_audience_is_conflict(self, service, repo, provider):
        repo.rows["camp-1"]["segment_rules"] = [
            {"field": "location", "operator": "equals", "value": "Tokyo"}
        ]

        with pytest.raises(ConflictError) as exc_info:
            await service.send_campaign("camp-1")

        assert "no target audience" in exc_info.value.message
        assert provider.attempts == []
        assert repo.rows["camp-1"]["status"] == "draft"

    @pytest.mark.asyncio
    async def test_unknown_campaign(self, service):
        with pytest.raises(NotFoundError):
            await service.send_campaign("nope")

    @pytest.mark.asyncio
    async def test_stored_rule_with_wrong_operator_is_dropped(self, service, repo):
        repo.rows["camp-1"]["segment_rules"] = [
            {"field": "location", "operator": "greaterThan", "value": "London"},
            {"field": "name", "operator": "startsWith", "value": "Ada", "logicOperator": "OR"},
        ]

        campaign, report = await service.send_campaign("camp-1")

        assert campaign.target_audience == 1
        assert report.success_count == 1

    @pytest.mark.asyncio
    async def test_log_is_replaced_not_appended(self, service, repo):
        repo.rows["camp-1"]["communication_log"] = [
            {"customer_id": "old", "status": "delivered", "delivered_at": None}
        ]

        campaign, _ = await service.send_campaign("camp-1")

        assert [e.customer_id for e in campaign.communication_log] == ["c1", "c2", "c3"]


class TestCreateAndUpdate:

    @pytest.mark.asyncio
    async def test_create_draft_with_audience_size(self, service):
        campaign = await service.create_campaign(campaign_input())

        assert campaign.status == CampaignStatus.DRAFT
        assert campaign.target_audience == 3
        assert campaign.subject == "Spring Sale"
        assert campaign.delivered == 0

    @pytest.mark.asyncio
    async def test_create_scheduled(self, service):
        campaign = await service.create_campaign(
            campaign_input(scheduled_for="2026-04-01T09:00:00Z")
        )

        assert campaign.status == CampaignStatus.SCHEDULED
        assert campaign.scheduled_for == datetime(2026, 4, 1, 9, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"name": "A"},
        {"message": "short"},
        {"segment_rules": []},
        {"segment_rules": [{"field": "name", "operator": "greaterThan", "value": 1}]},
        {"scheduled_for": "not a date"},
    ])
    async def test_create_validation(self, service, overrides):
        with pytest.raises(ValidationError):
            await service.create_campaign(campaign_input(**overrides))

    @pytest.mark.asyncio
    async def test_update_recomputes_audience(self, service):
        campaign = await service.update_campaign(
            "camp-1",
            {"segment_rules": [{"field": "location", "operator": "equals", "value": "Paris"}]},
        )

        assert campaign.target_audience == 1
        assert campaign.name == "Spring Sale"

    @pytest.mark.asyncio
    async def test_update_schedule_changes_status(self, service):
        scheduled = await service.update_campaign("camp-1", {"scheduled_for": "2026-05-01T00:00:00"})
        draft = await service.update_campaign("camp-1", {"scheduled_for": None})

        assert scheduled.status == CampaignStatus.SCHEDULED
        assert draft.status == CampaignStatus.DRAFT

    @pytest.mark.asyncio
    async def test_update_sent_campaign_is_conflict(self, service, repo):
        repo.rows["camp-1"]["status"] = "sent"

        with pytest.raises(ConflictError):
            await service.update_campaign("camp-1", {"name": "New name"})

    @pytest.mark.asyncio
    async def test_delete(self, service, repo):
        await service.delete_campaign("camp-1")

        assert "camp-1" not in repo.rows

    @pytest.mark.asyncio
    async def test_delete_sent_campaign_is_conflict(self, service, repo):
        repo.rows["camp-1"]["status"] = "sent"

        with pytest.raises(ConflictError):
            await service.delete_campaign("camp-1")


class TestQueries:

    @pytest.mark.asyncio
    async def test_preview_audience(self, service):
        audience = await service.preview_audience(LONDON)

        assert [c.id for c in audience] == ["c1", "c2", "c3"]

    @pytest.mark.asyncio
    async def test_preview_without_rules(self, service):
        with pytest.raises(ValidationError):
            await service.preview_audience([])

    @pytest.mark.asyncio
    async def test_preview_rejects_wrong_operator(self, service):
        with pytest.raises(ValidationError):
            await service.preview_audience(
                [{"field": "totalSpendings", "operator": "greaterThan", "value": "abc"}]
            )

    @pytest.mark.asyncio
    async def test_list_pagination(self, service):
        result = await service.list_campaigns(page=1, limit=10)

        assert result["count"] == 1
        assert result["pagination"] == {"current": 1, "pages": 1}
        assert result["data"][0]["id"] == "camp-1"

    @pytest.mark.asyncio
    async def test_list_unknown_status(self, service):
        with pytest.raises(ValidationError):
            await service.list_campaigns(status="archived")

    @pytest.mark.asyncio
    async def test_generate_message(self, service):
        result = await service.generate_message("spring sale", "London customers")

        assert result.message == "Subject: Hi"
