"""
Campaign endpoints: CRUD, audience preview, send and AI message drafts.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from app.repositories.deps import get_campaign_service
from app.services.campaigns.service import CampaignService

router = APIRouter(prefix="/campaigns", tags=["campaigns"])


class CampaignCreate(BaseModel):
    name: str
    description: str = ""
    subject: Optional[str] = None
    message: str
    segment_rules: List[Dict[str, Any]] = Field(default_factory=list)
    scheduled_for: Optional[datetime] = None


class CampaignUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    segment_rules: Optional[List[Dict[str, Any]]] = None
    scheduled_for: Optional[datetime] = None


class AudiencePreview(BaseModel):
    segment_rules: List[Dict[str, Any]] = Field(default_factory=list)


class GenerateMessage(BaseModel):
    prompt: str = ""
    audience: str = ""


@router.get("/")
async def list_campaigns(
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: CampaignService = Depends(get_campaign_service),
):
    """Campaigns, newest first."""
    return await service.list_campaigns(status=status, search=search, page=page, limit=limit)


@router.post("/preview-audience")
async def preview_audience(
    body: AudiencePreview,
    service: CampaignService = Depends(get_campaign_service),
):
    """Customers the rules would target, without saving anything."""
    audience = await service.preview_audience(body.segment_rules)
    return {
        "count": len(audience),
        "audience": [{"id": c.id, "name": c.name, "email": c.email} for c in audience],
    }


@router.post("/generate-message")
async def generate_message(
    body: GenerateMessage,
    service: CampaignService = Depends(get_campaign_service),
):
    result = await service.generate_message(body.prompt, body.audience)
    return result.to_dict()


@router.get("/{campaign_id}")
async def get_campaign(
    campaign_id: str,
    service: CampaignService = Depends(get_campaign_service),
):
    campaign = await service.get_campaign(campaign_id)
    return campaign.to_dict()


@router.post("/", status_code=201)
async def create_campaign(
    body: CampaignCreate,
    service: CampaignService = Depends(get_campaign_service),
):
    campaign = await service.create_campaign(body.model_dump())
    return campaign.to_dict()


@router.put("/{campaign_id}")
async def update_campaign(
    campaign_id: str,
    body: CampaignUpdate,
    service: CampaignService = Depends(get_campaign_service),
):
    campaign = await service.update_campaign(campaign_id, body.model_dump(exclude_unset=True))
    return campaign.to_dict()


@router.delete("/{campaign_id}")
async def delete_campaign(
    campaign_id: str,
    service: CampaignService = Depends(get_campaign_service),
):
    await service.delete_campaign(campaign_id)
    return {"success": True, "message": "Campaign deleted"}


@router.post("/{campaign_id}/send")
async def send_campaign(
    campaign_id: str,
    service: CampaignService = Depends(get_campaign_service),
):
    """Sends the campaign now; per-recipient failures are in the report."""
    campaign, report = await service.send_campaign(campaign_id)
    return {"campaign": campaign.to_dict(), "report": report.to_dict()}
