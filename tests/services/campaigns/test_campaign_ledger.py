"""
Tests for the communication log and campaign row mapping.
"""
from datetime import datetime, timezone

from app.services.campaigns.dispatcher import DispatchReport
from app.services.campaigns.ledger import build_communication_log, tally
from app.services.campaigns.types import (
    CampaignData,
    CampaignStatus,
    CommunicationLogEntry,
    DeliveryStatus,
)
from tests.factories import make_audience

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestBuildCommunicationLog:

    def test_one_entry_per_member_in_order(self):
        audience = make_audience(3)
        report = DispatchReport(total=3, success_count=2, failure_count=1)
        report.failed_emails.append({"email": audience[1].email, "error": "bounced"})

        log = build_communication_log(audience, report, NOW)

        assert [e.customer_id for e in log] == ["c0", "c1", "c2"]
        assert [e.status for e in log] == [
            DeliveryStatus.DELIVERED,
            DeliveryStatus.FAILED,
            DeliveryStatus.DELIVERED,
        ]
        assert log[0].delivered_at == NOW
        assert log[1].delivered_at is None
        assert tally(log) == {"delivered": 2, "failed": 1}

    def test_entry_serialization(self):
        entry = CommunicationLogEntry("c1", DeliveryStatus.DELIVERED, NOW)

        assert entry.to_dict() == {
            "customer_id": "c1",
            "status": "delivered",
            "delivered_at": "2026-03-01T12:00:00+00:00",
        }
        assert CommunicationLogEntry.from_dict(entry.to_dict()) == entry


class TestCampaignData:

    def test_from_db_row(self, campaign_row):
        campaign_row["communication_log"] = [
            {"customer_id": "c1", "status": "delivered", "delivered_at": "2026-03-01T12:00:00Z"},
        ]

        campaign = CampaignData.from_db_row(campaign_row)

        assert campaign.status == CampaignStatus.DRAFT
        assert campaign.segment_rules[0].value == "London"
        assert campaign.communication_log[0].delivered_at == NOW
        assert campaign.created_at.tzinfo is not None

    def test_unknown_status_falls_back_to_draft(self, campaign_row):
        campaign_row["status"] = "archived"

        assert CampaignData.from_db_row(campaign_row).status == CampaignStatus.DRAFT

    def test_subject_defaults_to_name(self, campaign_row):
        campaign_row["subject"] = ""

        campaign = CampaignData.from_db_row(campaign_row)

        assert campaign.effective_subject == "Spring Sale"
        assert campaign.to_dict()["subject"] == "Spring Sale"

    def test_to_dict_round_trips_rules(self, campaign_row):
        data = CampaignData.from_db_row(campaign_row).to_dict()

        assert data["segment_rules"] == campaign_row["segment_rules"]
        assert data["status"] == "draft"
