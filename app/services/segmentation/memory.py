"""
In-memory customer collection.

Evaluates predicates directly. Used by tests and local dry runs, where no
database is available.
"""
from typing import Dict, Iterable, List, Optional, Set

from app.core.exceptions import AggregationError
from app.repositories.customer import Customer
from app.services.segmentation.predicate import Predicate


class InMemoryCustomerCollection:
    """
    Example:
        collection = InMemoryCustomerCollection(
            customers=[Customer(id="1", name="Ada", email="ada@example.com")],
            order_prices={"1": [100.0, 50.0]},
        )
    """

    def __init__(
        self,
        customers: Iterable[Customer] = (),
        order_prices: Optional[Dict[str, List[float]]] = None,
        failing_spend_ids: Optional[Set[str]] = None,
    ):
        self.customers = list(customers)
        self.order_prices = order_prices or {}
        self.failing_spend_ids = failing_spend_ids or set()
        self.find_calls = 0
        self.spend_calls = 0

    async def find(self, predicate: Predicate) -> List[Customer]:
        self.find_calls += 1
        return [c for c in self.customers if predicate.matches(c)]

    async def sum_order_price_for(self, customer_id: str) -> float:
        self.spend_calls += 1
        if customer_id in self.failing_spend_ids:
            raise AggregationError(customer_id)
        return float(sum(self.order_prices.get(customer_id, [])))
