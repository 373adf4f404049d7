"""
Repositories - data access layer.

Business logic never talks to Supabase directly: it receives a repository
built around a database client.

Usage with dependency injection:
    from fastapi import Depends
    from app.repositories.deps import get_customer_repo

    @router.get("/customers/{id}")
    async def get_customer(
        id: str,
        repo: CustomerRepository = Depends(get_customer_repo)
    ):
        return await repo.get_by_id(id)

Usage in tests:
    repo = CustomerRepository(MockDatabase())
"""

from .base import BaseRepository
from .customer import Customer, CustomerRepository
from .order import Order, OrderItem, OrderRepository, OrderStatus

__all__ = [
    "BaseRepository",
    "Customer",
    "CustomerRepository",
    "Order",
    "OrderItem",
    "OrderRepository",
    "OrderStatus",
]
