"""
Repository for orders.

Orders reference exactly one customer and are the only source of a
customer's total spend.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from app.core.exceptions import DatabaseError
from app.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class OrderItem:
    name: str
    quantity: int
    price: float

    @classmethod
    def from_dict(cls, data: dict) -> "OrderItem":
        return cls(
            name=data.get("name", ""),
            quantity=int(data.get("quantity", 1)),
            price=float(data.get("price", 0)),
        )

    def to_dict(self) -> dict:
        return {"name": self.name, "quantity": self.quantity, "price": self.price}


@dataclass
class Order:
    """Order entity."""

    id: str
    order_ref: str
    customer_id: str
    items: List[OrderItem] = field(default_factory=list)
    price: float = 0.0
    status: OrderStatus = OrderStatus.PENDING
    payment_method: str = ""
    shipping_address: str = ""
    notes: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Order":
        try:
            status = OrderStatus(data.get("status") or "pending")
        except ValueError:
            status = OrderStatus.PENDING

        return cls(
            id=str(data.get("id", "")),
            order_ref=data.get("order_ref") or "",
            customer_id=str(data.get("customer_id", "")),
            items=[OrderItem.from_dict(item) for item in data.get("items") or []],
            price=float(data.get("price") or 0),
            status=status,
            payment_method=data.get("payment_method") or "",
            shipping_address=data.get("shipping_address") or "",
            notes=data.get("notes") or "",
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_ref": self.order_ref,
            "customer_id": self.customer_id,
            "items": [item.to_dict() for item in self.items],
            "price": self.price,
            "status": self.status.value,
            "payment_method": self.payment_method,
            "shipping_address": self.shipping_address,
            "notes": self.notes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class OrderRepository(BaseRepository[Order]):
    """Repository for Order."""

    @property
    def table_name(self) -> str:
        return "orders"

    async def get_by_id(self, id: str) -> Optional[Order]:
        response = await self.run(
            self.table().select("*").eq("id", id).limit(1),
            f"fetching order {id}",
        )
        if response.data:
            return Order.from_dict(response.data[0])
        return None

    async def get_by_ref(self, order_ref: str) -> Optional[Order]:
        response = await self.run(
            self.table().select("*").eq("order_ref", order_ref).limit(1),
            "fetching order by reference",
        )
        if response.data:
            return Order.from_dict(response.data[0])
        return None

    async def list_page(
        self,
        customer_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Tuple[List[Order], int]:
        """
        One page of orders, newest first.

        Returns:
            (orders, total matching rows)
        """
        query = self.table().select("*", count="exact")
        if customer_id:
            query = query.eq("customer_id", customer_id)
        if status:
            query = query.eq("status", status)

        response = await self.run(
            query.order("created_at", desc=True).range(offset, offset + limit - 1),
            "listing orders",
        )
        return [Order.from_dict(row) for row in response.data or []], response.count or 0

    async def recent_for_customer(self, customer_id: str, limit: int = 5) -> List[Order]:
        orders, _ = await self.list_page(customer_id=customer_id, limit=limit)
        return orders

    async def count_for_customer(self, customer_id: str) -> int:
        response = await self.run(
            self.table().select("id", count="exact").eq("customer_id", customer_id).limit(1),
            f"counting orders of customer {customer_id}",
        )
        return response.count or 0

    async def create(self, data: dict) -> Order:
        response = await self.run(self.table().insert(data), "creating order")
        if not response.data:
            raise DatabaseError("Order was not created", {"table": self.table_name})
        logger.info(
            f"Order created: {response.data[0].get('id')} "
            f"(customer {data.get('customer_id')})"
        )
        return Order.from_dict(response.data[0])

    async def update(self, id: str, data: dict) -> Optional[Order]:
        response = await self.run(
            self.table().update(data).eq("id", id),
            f"updating order {id}",
        )
        if response.data:
            return Order.from_dict(response.data[0])
        return None

    async def delete(self, id: str) -> bool:
        response = await self.run(
            self.table().delete().eq("id", id),
            f"deleting order {id}",
        )
        return bool(response.data)
