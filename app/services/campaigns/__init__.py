"""
Campaigns: storage, batched dispatch, delivery ledger and lifecycle.
"""
from app.services.campaigns.dispatcher import BatchDispatcher, DispatchReport
from app.services.campaigns.repository import CampaignRepository
from app.services.campaigns.service import CampaignService
from app.services.campaigns.types import (
    CampaignData,
    CampaignStatus,
    CommunicationLogEntry,
    DeliveryStatus,
)

__all__ = [
    "BatchDispatcher",
    "CampaignData",
    "CampaignRepository",
    "CampaignService",
    "CampaignStatus",
    "CommunicationLogEntry",
    "DeliveryStatus",
    "DispatchReport",
]
