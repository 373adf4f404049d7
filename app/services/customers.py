"""
Customer service.

E-mail uniqueness (single, bulk and update), derived total spend, and the
delete guard for customers that still have orders.
"""
import logging
import math
from typing import List, Optional

from app.core.config import DatabaseConfig, settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.repositories.customer import Customer, CustomerRepository
from app.repositories.order import OrderRepository

logger = logging.getLogger(__name__)


def _require_identity(data: dict, index: Optional[int] = None) -> None:
    where = {} if index is None else {"index": index}
    if not (data.get("name") or "").strip():
        raise ValidationError("Customer name is required", {"field": "name", **where})
    email = (data.get("email") or "").strip()
    if "@" not in email:
        raise ValidationError("A valid e-mail is required", {"field": "email", **where})


class CustomerService:
    """
    Args:
        customers: CustomerRepository
        orders: OrderRepository
    """

    def __init__(self, customers: CustomerRepository, orders: OrderRepository):
        self.customers = customers
        self.orders = orders

    async def get_customer(self, customer_id: str) -> Customer:
        customer = await self.customers.get_by_id(customer_id)
        if customer is None:
            raise NotFoundError("Customer", customer_id)
        return customer

    async def list_customers(
        self,
        search: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> dict:
        """Paginated listing; each row carries totalSpendings."""
        page = max(1, page)
        limit = limit or settings.DEFAULT_PAGE_SIZE
        customers, total = await self.customers.list_page(
            search=search, limit=limit, offset=(page - 1) * limit
        )
        spend = await self.customers.spend_by_customer([c.id for c in customers])
        return {
            "count": total,
            "pagination": {"current": page, "pages": math.ceil(total / limit) if total else 0},
            "data": [
                {**c.to_dict(), "totalSpendings": spend.get(c.id, 0.0)} for c in customers
            ],
        }

    async def get_customer_detail(self, customer_id: str) -> dict:
        """Customer with totalSpendings and the most recent orders."""
        customer = await self.get_customer(customer_id)
        total = await self.customers.sum_order_price_for(customer_id)
        recent = await self.orders.recent_for_customer(
            customer_id, limit=DatabaseConfig.RECENT_ORDERS_LIMIT
        )
        return {
            **customer.to_dict(),
            "totalSpendings": total,
            "orders": [order.to_dict() for order in recent],
        }

    async def create_customer(self, data: dict) -> Customer:
        """
        Raises:
            ValidationError: missing name or e-mail
            ConflictError: e-mail already used
        """
        _require_identity(data)
        if await self.customers.get_by_email(data["email"]):
            raise ConflictError("Customer with this email already exists", {"field": "email"})
        return await self.customers.create(data)

    async def create_customers_bulk(self, rows: List[dict]) -> List[Customer]:
        """
        Imports several customers at once; all or nothing.

        Raises:
            ValidationError: empty batch or invalid row
            ConflictError: duplicate e-mail in the batch or in the store
        """
        if not rows:
            raise ValidationError("At least one customer is required")

        seen = set()
        for index, row in enumerate(rows):
            _require_identity(row, index)
            email = row["email"].strip().lower()
            if email in seen:
                raise ConflictError(
                    "Duplicate email in batch", {"email": email, "index": index}
                )
            seen.add(email)

        existing = await self.customers.get_by_emails(seen)
        if existing:
            raise ConflictError(
                "Some customers already exist",
                {"emails": sorted(c.email for c in existing)},
            )

        return await self.customers.create_many(rows)

    async def update_customer(self, customer_id: str, data: dict) -> Customer:
        """
        Raises:
            NotFoundError: no such customer
            ConflictError: e-mail used by another customer
        """
        await self.get_customer(customer_id)
        if data.get("email"):
            if "@" not in data["email"]:
                raise ValidationError("A valid e-mail is required", {"field": "email"})
            if await self.customers.get_by_email(data["email"], exclude_id=customer_id):
                raise ConflictError("Email is already in use", {"field": "email"})

        updated = await self.customers.update(customer_id, data)
        if updated is None:
            raise NotFoundError("Customer", customer_id)
        return updated

    async def delete_customer(self, customer_id: str) -> None:
        """
        Raises:
            NotFoundError: no such customer
            ConflictError: customer still has orders
        """
        await self.get_customer(customer_id)
        order_count = await self.orders.count_for_customer(customer_id)
        if order_count:
            raise ConflictError(
                "Cannot delete customer with existing orders",
                {"orders": order_count},
            )
        if not await self.customers.delete(customer_id):
            raise NotFoundError("Customer", customer_id)
        logger.info(f"Customer {customer_id} deleted")
