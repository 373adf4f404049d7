"""
Repository for campaigns.

segment_rules and communication_log are JSONB columns.
"""
import logging
from typing import List, Optional, Tuple

from app.core.exceptions import DatabaseError
from app.repositories.base import BaseRepository
from app.repositories.customer_filters import search_filter
from app.services.campaigns.types import CampaignData

logger = logging.getLogger(__name__)


class CampaignRepository(BaseRepository[CampaignData]):
    """Database access for campaigns."""

    SEARCH_FIELDS = ("name", "description")

    @property
    def table_name(self) -> str:
        return "campaigns"

    async def get_by_id(self, id: str) -> Optional[CampaignData]:
        response = await self.run(
            self.table().select("*").eq("id", id).limit(1),
            f"fetching campaign {id}",
        )
        if response.data:
            return CampaignData.from_db_row(response.data[0])
        return None

    async def list_page(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[CampaignData], int]:
        """
        One page of campaigns, newest first.

        Args:
            status: Filter by status value
            search: Case-insensitive match on name or description
            limit: Page size
            offset: Rows to skip

        Returns:
            (campaigns, total matching rows)
        """
        query = self.table().select("*", count="exact")
        if status:
            query = query.eq("status", status)
        search_clause = search_filter(self.SEARCH_FIELDS, search) if search else None
        if search_clause:
            query = query.or_(search_clause)

        response = await self.run(
            query.order("created_at", desc=True).range(offset, offset + limit - 1),
            "listing campaigns",
        )
        campaigns = [CampaignData.from_db_row(row) for row in response.data or []]
        return campaigns, response.count or 0

    async def create(self, data: dict) -> CampaignData:
        response = await self.run(self.table().insert(data), "creating campaign")
        if not response.data:
            raise DatabaseError("Campaign was not created", {"table": self.table_name})
        logger.info(f"Campaign created: {response.data[0].get('id')}")
        return CampaignData.from_db_row(response.data[0])

    async def update(self, id: str, data: dict) -> Optional[CampaignData]:
        response = await self.run(
            self.table().update(data).eq("id", id),
            f"updating campaign {id}",
        )
        if response.data:
            return CampaignData.from_db_row(response.data[0])
        return None

    async def delete(self, id: str) -> bool:
        response = await self.run(
            self.table().delete().eq("id", id),
            f"deleting campaign {id}",
        )
        if response.data:
            logger.info(f"Campaign deleted: {id}")
            return True
        return False
