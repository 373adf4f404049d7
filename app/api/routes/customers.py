"""
Customer endpoints.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from app.repositories.deps import get_customer_service
from app.services.customers import CustomerService

router = APIRouter(prefix="/customers", tags=["customers"])


class CustomerIn(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None
    location: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    notes: str = ""


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None


@router.get("/")
async def list_customers(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: CustomerService = Depends(get_customer_service),
):
    return await service.list_customers(search=search, page=page, limit=limit)


@router.get("/{customer_id}")
async def get_customer(
    customer_id: str,
    service: CustomerService = Depends(get_customer_service),
):
    """Customer with total spend and recent orders."""
    return await service.get_customer_detail(customer_id)


@router.post("/", status_code=201)
async def create_customer(
    body: CustomerIn,
    service: CustomerService = Depends(get_customer_service),
):
    customer = await service.create_customer(body.model_dump())
    return customer.to_dict()


@router.post("/bulk", status_code=201)
async def create_customers_bulk(
    body: List[CustomerIn],
    service: CustomerService = Depends(get_customer_service),
):
    created = await service.create_customers_bulk([c.model_dump() for c in body])
    return {
        "message": f"Successfully created {len(created)} customers",
        "data": [c.to_dict() for c in created],
    }


@router.put("/{customer_id}")
async def update_customer(
    customer_id: str,
    body: CustomerUpdate,
    service: CustomerService = Depends(get_customer_service),
):
    customer = await service.update_customer(customer_id, body.model_dump(exclude_unset=True))
    return customer.to_dict()


@router.delete("/{customer_id}")
async def delete_customer(
    customer_id: str,
    service: CustomerService = Depends(get_customer_service),
):
    await service.delete_customer(customer_id)
    return {"success": True, "message": "Customer deleted"}
