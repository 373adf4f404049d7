"""
Base Repository - common interface for every repository.

Repositories receive the database client at construction time, so tests
can hand them a mock instead of patching imports.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, List, Optional, TypeVar

from app.core.exceptions import DatabaseError
from app.services.supabase import execute

logger = logging.getLogger(__name__)

T = TypeVar('T')

# PostgREST caps a single response (max-rows); bigger reads are paged
PAGE_SIZE = 1000


class BaseRepository(ABC, Generic[T]):
    """
    Interface base para repositories.

    Attributes:
        db: Database client (Supabase, Mock, ...)
        table_name: Table backing the entity

    Example:
        class CustomerRepository(BaseRepository[Customer]):
            @property
            def table_name(self) -> str:
                return "customers"
    """

    def __init__(self, db_client: Any):
        """
        Args:
            db_client: Database client (Supabase, Mock, ...)
        """
        self.db = db_client

    @property
    @abstractmethod
    def table_name(self) -> str:
        """Table name."""
        pass

    @abstractmethod
    async def get_by_id(self, id: str) -> Optional[T]:
        """
        Fetches one entity.

        Returns:
            Entity or None when it does not exist
        """
        pass

    @abstractmethod
    async def create(self, data: dict) -> T:
        """Inserts and returns the stored entity."""
        pass

    @abstractmethod
    async def update(self, id: str, data: dict) -> Optional[T]:
        """Updates and returns the entity, or None when it does not exist."""
        pass

    @abstractmethod
    async def delete(self, id: str) -> bool:
        """Deletes; False when nothing was deleted."""
        pass

    # Helpers

    def table(self):
        return self.db.table(self.table_name)

    async def run(self, query, action: str):
        """
        Executes a query, turning driver errors into DatabaseError.

        Args:
            query: Built query
            action: Short description for logs and the error message
        """
        try:
            return await execute(query)
        except Exception as e:
            logger.error(f"Error while {action} on {self.table_name}: {e}")
            raise DatabaseError(
                f"Database error while {action}",
                {"table": self.table_name},
                original_error=e,
            ) from e

    async def fetch_all(self, build_query: Callable[[], Any], action: str) -> List[dict]:
        """
        Reads every row of a query in PAGE_SIZE chunks.

        Args:
            build_query: Returns a fresh, ordered query builder for each page
            action: Description for logs
        """
        rows: List[dict] = []
        start = 0
        while True:
            response = await self.run(
                build_query().range(start, start + PAGE_SIZE - 1),
                action,
            )
            page = response.data or []
            rows.extend(page)
            if len(page) < PAGE_SIZE:
                return rows
            start += PAGE_SIZE
