"""
Order endpoints.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from app.repositories.deps import get_order_service
from app.services.orders import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


class OrderItemIn(BaseModel):
    name: str
    quantity: int = Field(1, ge=1)
    price: float = Field(0, ge=0)


class OrderIn(BaseModel):
    order_ref: str
    customer_id: str
    items: List[OrderItemIn] = Field(default_factory=list)
    price: Optional[float] = Field(None, ge=0)
    status: Optional[str] = None
    payment_method: str = ""
    shipping_address: str = ""
    notes: str = ""


class OrderUpdate(BaseModel):
    customer_id: Optional[str] = None
    items: Optional[List[OrderItemIn]] = None
    price: Optional[float] = Field(None, ge=0)
    status: Optional[str] = None
    payment_method: Optional[str] = None
    shipping_address: Optional[str] = None
    notes: Optional[str] = None


@router.get("/")
async def list_orders(
    customer_id: Optional[str] = None,
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: OrderService = Depends(get_order_service),
):
    return await service.list_orders(customer_id=customer_id, status=status, page=page, limit=limit)


@router.get("/{order_id}")
async def get_order(order_id: str, service: OrderService = Depends(get_order_service)):
    order = await service.get_order(order_id)
    return order.to_dict()


@router.post("/", status_code=201)
async def create_order(body: OrderIn, service: OrderService = Depends(get_order_service)):
    """Creates an order; price defaults to the items total."""
    order = await service.create_order(body.model_dump())
    return order.to_dict()


@router.put("/{order_id}")
async def update_order(
    order_id: str,
    body: OrderUpdate,
    service: OrderService = Depends(get_order_service),
):
    order = await service.update_order(order_id, body.model_dump(exclude_unset=True))
    return order.to_dict()


@router.delete("/{order_id}")
async def delete_order(order_id: str, service: OrderService = Depends(get_order_service)):
    await service.delete_order(order_id)
    return {"success": True, "message": "Order deleted"}
