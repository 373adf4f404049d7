"""
Campaign types and enums.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from app.core.timezone import parse_datetime, to_iso
from app.services.segmentation.types import SegmentRule


class CampaignStatus(str, Enum):
    """Campaign lifecycle. FAILED is reserved: nothing sets it yet."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    SENT = "sent"
    FAILED = "failed"


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass
class CommunicationLogEntry:
    """Delivery outcome for one audience member."""

    customer_id: str
    status: DeliveryStatus
    delivered_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "customer_id": self.customer_id,
            "status": self.status.value,
            "delivered_at": to_iso(self.delivered_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CommunicationLogEntry":
        try:
            status = DeliveryStatus(data.get("status", "failed"))
        except ValueError:
            status = DeliveryStatus.FAILED
        return cls(
            customer_id=str(data.get("customer_id", "")),
            status=status,
            delivered_at=parse_datetime(data.get("delivered_at")),
        )


@dataclass
class CampaignData:
    """A stored campaign."""

    id: str
    name: str
    message: str
    segment_rules: List[SegmentRule] = field(default_factory=list)
    description: str = ""
    subject: str = ""
    status: CampaignStatus = CampaignStatus.DRAFT
    scheduled_for: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    target_audience: int = 0
    delivered: int = 0
    failed: int = 0
    communication_log: List[CommunicationLogEntry] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def effective_subject(self) -> str:
        """Subject line; the campaign name when none was given."""
        return self.subject or self.name

    @property
    def is_sent(self) -> bool:
        return self.status == CampaignStatus.SENT

    @classmethod
    def from_db_row(cls, row: dict) -> "CampaignData":
        """Builds from a database row."""
        status_raw = row.get("status", CampaignStatus.DRAFT.value)
        try:
            status = CampaignStatus(status_raw)
        except ValueError:
            status = CampaignStatus.DRAFT

        return cls(
            id=str(row["id"]),
            name=row.get("name", ""),
            message=row.get("message", ""),
            segment_rules=[
                SegmentRule.from_dict(rule)
                for rule in row.get("segment_rules") or []
            ],
            description=row.get("description") or "",
            subject=row.get("subject") or "",
            status=status,
            scheduled_for=parse_datetime(row.get("scheduled_for")),
            sent_at=parse_datetime(row.get("sent_at")),
            target_audience=row.get("target_audience") or 0,
            delivered=row.get("delivered") or 0,
            failed=row.get("failed") or 0,
            communication_log=[
                CommunicationLogEntry.from_dict(entry)
                for entry in row.get("communication_log") or []
            ],
            created_at=parse_datetime(row.get("created_at")),
            updated_at=parse_datetime(row.get("updated_at")),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "subject": self.effective_subject,
            "message": self.message,
            "segment_rules": [rule.to_dict() for rule in self.segment_rules],
            "status": self.status.value,
            "scheduled_for": to_iso(self.scheduled_for),
            "sent_at": to_iso(self.sent_at),
            "target_audience": self.target_audience,
            "delivered": self.delivered,
            "failed": self.failed,
            "communication_log": [entry.to_dict() for entry in self.communication_log],
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }
