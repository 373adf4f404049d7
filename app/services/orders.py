"""
Order service.
"""
import logging
import math
from typing import List, Optional

from app.core.config import settings
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.repositories.customer import CustomerRepository
from app.repositories.order import Order, OrderItem, OrderRepository, OrderStatus

logger = logging.getLogger(__name__)


def items_total(items: List[OrderItem]) -> float:
    """Sum of quantity x price."""
    return round(sum(item.quantity * item.price for item in items), 2)


def _clean_items(raw_items) -> List[OrderItem]:
    items = []
    for index, raw in enumerate(raw_items or []):
        item = raw if isinstance(raw, OrderItem) else OrderItem.from_dict(raw)
        if not item.name:
            raise ValidationError("Item name is required", {"index": index})
        if item.quantity < 1:
            raise ValidationError("Quantity must be at least 1", {"index": index})
        if item.price < 0:
            raise ValidationError("Price cannot be negative", {"index": index})
        items.append(item)
    return items


def _check_status(status: Optional[str]) -> Optional[str]:
    if status is None:
        return None
    try:
        return OrderStatus(status).value
    except ValueError as e:
        raise ValidationError(f"Unknown order status: {status}", {"field": "status"}) from e


class OrderService:
    """
    Args:
        orders: OrderRepository
        customers: CustomerRepository
    """

    def __init__(self, orders: OrderRepository, customers: CustomerRepository):
        self.orders = orders
        self.customers = customers

    async def get_order(self, order_id: str) -> Order:
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    async def list_orders(
        self,
        customer_id: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> dict:
        page = max(1, page)
        limit = limit or settings.DEFAULT_PAGE_SIZE
        orders, total = await self.orders.list_page(
            customer_id=customer_id,
            status=_check_status(status),
            limit=limit,
            offset=(page - 1) * limit,
        )
        return {
            "count": total,
            "pagination": {"current": page, "pages": math.ceil(total / limit) if total else 0},
            "data": [order.to_dict() for order in orders],
        }

    async def create_order(self, data: dict) -> Order:
        """
        Creates an order for an existing customer.

        price defaults to the items total when omitted.

        Raises:
            ValidationError: missing order_ref, bad items or price
            NotFoundError: unknown customer
            ConflictError: order_ref already used
        """
        order_ref = (data.get("order_ref") or "").strip()
        if not order_ref:
            raise ValidationError("order_ref is required", {"field": "order_ref"})

        customer_id = data.get("customer_id")
        if not customer_id or await self.customers.get_by_id(customer_id) is None:
            raise NotFoundError("Customer", customer_id)

        if await self.orders.get_by_ref(order_ref):
            raise ConflictError("Order with this order_ref already exists", {"order_ref": order_ref})

        items = _clean_items(data.get("items"))
        price = data.get("price")
        if price is None:
            price = items_total(items)
        if price < 0:
            raise ValidationError("Price cannot be negative", {"field": "price"})

        row = {
            "order_ref": order_ref,
            "customer_id": customer_id,
            "items": [item.to_dict() for item in items],
            "price": float(price),
            "status": _check_status(data.get("status")) or OrderStatus.PENDING.value,
            "payment_method": data.get("payment_method") or "",
            "shipping_address": data.get("shipping_address") or "",
            "notes": data.get("notes") or "",
        }
        return await self.orders.create(row)

    async def update_order(self, order_id: str, data: dict) -> Order:
        """
        Raises:
            NotFoundError: unknown order, or unknown new customer
        """
        existing = await self.get_order(order_id)
        changes = {}

        if "customer_id" in data and data["customer_id"] != existing.customer_id:
            if await self.customers.get_by_id(data["customer_id"]) is None:
                raise NotFoundError("Customer", data["customer_id"])
            changes["customer_id"] = data["customer_id"]

        if "items" in data:
            items = _clean_items(data["items"])
            changes["items"] = [item.to_dict() for item in items]
            if data.get("price") is None:
                changes["price"] = items_total(items)

        if data.get("price") is not None:
            if data["price"] < 0:
                raise ValidationError("Price cannot be negative", {"field": "price"})
            changes["price"] = float(data["price"])

        if "status" in data:
            changes["status"] = _check_status(data["status"])

        for key in ("payment_method", "shipping_address", "notes"):
            if key in data:
                changes[key] = data[key] or ""

        if not changes:
            return existing

        updated = await self.orders.update(order_id, changes)
        if updated is None:
            raise NotFoundError("Order", order_id)
        return updated

    async def delete_order(self, order_id: str) -> None:
        await self.get_order(order_id)
        if not await self.orders.delete(order_id):
            raise NotFoundError("Order", order_id)
        logger.info(f"Order {order_id} deleted")
