"""
Repository for customers.

Besides CRUD it is the collection the audience resolver reads from:
find(predicate) and sum_order_price_for(customer_id).
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from app.core.exceptions import AggregationError, DatabaseError
from app.repositories.base import BaseRepository
from app.repositories.customer_filters import PushdownUnsupported, apply_predicate, search_filter
from app.services.segmentation.predicate import MatchNone, Predicate

logger = logging.getLogger(__name__)


@dataclass
class Customer:
    """
    Customer entity.

    total_spendings is derived from orders and never stored.
    """

    id: str
    name: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    notes: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Customer":
        """Builds a Customer from a database row."""
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            email=data.get("email") or "",
            phone=data.get("phone"),
            location=data.get("location"),
            tags=list(data.get("tags") or []),
            notes=data.get("notes") or "",
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "location": self.location,
            "tags": list(self.tags),
            "notes": self.notes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def normalize_customer_data(data: dict) -> dict:
    """Trims text fields and lowercases the e-mail, as stored."""
    clean = dict(data)
    for key in ("name", "phone", "location"):
        if isinstance(clean.get(key), str):
            clean[key] = clean[key].strip()
    if isinstance(clean.get("email"), str):
        clean["email"] = clean["email"].strip().lower()
    if "tags" in clean and clean["tags"] is not None:
        clean["tags"] = sorted({str(tag).strip() for tag in clean["tags"] if str(tag).strip()})
    return clean


class CustomerRepository(BaseRepository[Customer]):
    """
    Repository for Customer.

    Usage:
        repo = CustomerRepository(get_supabase_client())
        audience = await repo.find(compiled.predicate)
    """

    ORDERS_TABLE = "orders"
    SEARCH_FIELDS = ("name", "email", "phone", "location")

    @property
    def table_name(self) -> str:
        return "customers"

    def _ordered(self, query):
        return query.order("created_at").order("id")

    async def get_by_id(self, id: str) -> Optional[Customer]:
        response = await self.run(
            self.table().select("*").eq("id", id).limit(1),
            f"fetching customer {id}",
        )
        if response.data:
            return Customer.from_dict(response.data[0])
        return None

    async def get_by_email(self, email: str, exclude_id: Optional[str] = None) -> Optional[Customer]:
        """
        Fetches a customer by (normalized) e-mail.

        Args:
            email: E-mail address
            exclude_id: Ignore this customer (uniqueness check on update)
        """
        query = self.table().select("*").eq("email", email.strip().lower())
        if exclude_id:
            query = query.neq("id", exclude_id)
        response = await self.run(query.limit(1), "fetching customer by email")
        if response.data:
            return Customer.from_dict(response.data[0])
        return None

    async def get_by_emails(self, emails: Iterable[str]) -> List[Customer]:
        """Customers whose e-mail is in the list."""
        normalized = sorted({e.strip().lower() for e in emails if e})
        if not normalized:
            return []
        response = await self.run(
            self.table().select("*").in_("email", normalized),
            "fetching customers by email",
        )
        return [Customer.from_dict(row) for row in response.data or []]

    async def list_page(
        self,
        search: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Customer], int]:
        """
        One page of customers, newest first.

        Args:
            search: Case-insensitive match on name, email, phone or location
            limit: Page size
            offset: Rows to skip

        Returns:
            (customers, total matching rows)
        """
        query = self.table().select("*", count="exact")
        search_clause = search_filter(self.SEARCH_FIELDS, search) if search else None
        if search_clause:
            query = query.or_(search_clause)

        response = await self.run(
            query.order("created_at", desc=True).range(offset, offset + limit - 1),
            "listing customers",
        )
        customers = [Customer.from_dict(row) for row in response.data or []]
        return customers, response.count or 0

    async def create(self, data: dict) -> Customer:
        response = await self.run(
            self.table().insert(normalize_customer_data(data)),
            "creating customer",
        )
        if not response.data:
            raise DatabaseError("Customer was not created", {"table": self.table_name})
        logger.info(f"Customer created: {response.data[0].get('id')}")
        return Customer.from_dict(response.data[0])

    async def create_many(self, rows: List[dict]) -> List[Customer]:
        """Bulk insert, in one request."""
        response = await self.run(
            self.table().insert([normalize_customer_data(row) for row in rows]),
            "bulk creating customers",
        )
        created = [Customer.from_dict(row) for row in response.data or []]
        logger.info(f"Bulk import: {len(created)} customers created")
        return created

    async def update(self, id: str, data: dict) -> Optional[Customer]:
        response = await self.run(
            self.table().update(normalize_customer_data(data)).eq("id", id),
            f"updating customer {id}",
        )
        if response.data:
            logger.info(f"Customer updated: {id}")
            return Customer.from_dict(response.data[0])
        return None

    async def delete(self, id: str) -> bool:
        response = await self.run(
            self.table().delete().eq("id", id),
            f"deleting customer {id}",
        )
        if response.data:
            logger.info(f"Customer deleted: {id}")
            return True
        return False

    # Audience collection

    async def find(self, predicate: Predicate) -> List[Customer]:
        """
        All customers matching the predicate, oldest first.

        The predicate is pushed down to PostgREST when possible, otherwise
        every customer is read and filtered in memory.
        """
        if isinstance(predicate, MatchNone):
            return []

        try:
            # Fail fast if the predicate has no translation
            apply_predicate(self.table().select("*"), predicate)
            pushed_down = True
        except PushdownUnsupported as e:
            logger.info(f"Predicate evaluated in memory ({e})")
            pushed_down = False

        def build_query():
            query = self.table().select("*")
            if pushed_down:
                query = apply_predicate(query, predicate)
            return self._ordered(query)

        rows = await self.fetch_all(build_query, "finding customers")
        customers = [Customer.from_dict(row) for row in rows]
        if not pushed_down:
            customers = [c for c in customers if predicate.matches(c)]
        return customers

    async def sum_order_price_for(self, customer_id: str) -> float:
        """
        Total spend: sum of price over the customer's orders (0 without orders).

        Raises:
            AggregationError: orders could not be read
        """
        try:
            response = await self.run(
                self.db.table(self.ORDERS_TABLE).select("price").eq("customer_id", customer_id),
                f"summing orders of customer {customer_id}",
            )
        except DatabaseError as e:
            raise AggregationError(customer_id, original_error=e) from e

        return float(sum(float(row.get("price") or 0) for row in response.data or []))

    async def spend_by_customer(self, customer_ids: List[str]) -> Dict[str, float]:
        """Total spend for several customers in one query (listing pages)."""
        if not customer_ids:
            return {}
        response = await self.run(
            self.db.table(self.ORDERS_TABLE)
            .select("customer_id,price")
            .in_("customer_id", customer_ids),
            "summing orders per customer",
        )
        totals = {customer_id: 0.0 for customer_id in customer_ids}
        for row in response.data or []:
            key = str(row.get("customer_id"))
            totals[key] = totals.get(key, 0.0) + float(row.get("price") or 0)
        return totals
