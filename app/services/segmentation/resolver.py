"""
Audience resolver.

Runs a compiled segment against a customer collection: structural
predicate first, then the residual spend rules per candidate. Read-only,
so preview and send resolve the same audience on unchanged data.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Protocol, Sequence, runtime_checkable

from app.core.exceptions import AggregationError
from app.repositories.customer import Customer
from app.services.segmentation.compiler import CompiledSegment, compile_rules
from app.services.segmentation.predicate import Predicate
from app.services.segmentation.types import SegmentRule, parse_rules

logger = logging.getLogger(__name__)


@runtime_checkable
class CustomerCollection(Protocol):
    """What the resolver needs from storage."""

    async def find(self, predicate: Predicate) -> List[Customer]:
        """Customers matching the predicate, in a stable order."""
        ...

    async def sum_order_price_for(self, customer_id: str) -> float:
        """
        Sum of order prices for the customer.

        Raises:
            AggregationError: spend unavailable
        """
        ...


@dataclass
class AudienceResult:
    """Resolved audience plus how it was obtained."""

    customers: List[Customer]
    candidates: int
    spend_by_customer: Dict[str, float] = field(default_factory=dict)
    spend_failures: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.customers)


class AudienceResolver:
    """
    Resolves segment rules into the matching customers.

    Args:
        collection: CustomerCollection (CustomerRepository in production)
        treat_missing_spend_as_zero: When the spend of a candidate cannot be
            computed, use 0 and log a warning instead of raising
            AggregationError
    """

    def __init__(
        self,
        collection: CustomerCollection,
        treat_missing_spend_as_zero: bool = False,
    ):
        self.collection = collection
        self.treat_missing_spend_as_zero = treat_missing_spend_as_zero

    async def resolve(self, compiled: CompiledSegment) -> AudienceResult:
        """
        Resolves a compiled segment.

        Returns:
            AudienceResult, customers in the collection's order

        Raises:
            AggregationError: spend unavailable and not treated as zero
        """
        candidates = await self.collection.find(compiled.predicate)

        if not compiled.has_spend_rules:
            return AudienceResult(customers=list(candidates), candidates=len(candidates))

        result = AudienceResult(customers=[], candidates=len(candidates))
        for customer in candidates:
            spend = await self._spend_for(customer, result)
            if compiled.spend_matches(spend):
                result.customers.append(customer)

        if result.spend_failures:
            logger.warning(
                f"Audience resolved with {len(result.spend_failures)} customers "
                f"whose spend was unavailable and counted as 0"
            )

        logger.info(
            f"Audience: {result.count}/{result.candidates} candidates "
            f"passed {len(compiled.spend_rules)} spend rules"
        )
        return result

    async def _spend_for(self, customer: Customer, result: AudienceResult) -> float:
        try:
            spend = await self.collection.sum_order_price_for(customer.id)
        except AggregationError as e:
            if not self.treat_missing_spend_as_zero:
                logger.error(f"Spend unavailable for customer {customer.id}: {e}")
                raise
            logger.warning(f"Spend unavailable for customer {customer.id}, using 0: {e}")
            result.spend_failures.append(customer.id)
            spend = 0.0

        result.spend_by_customer[customer.id] = spend
        return spend

    async def compile_and_resolve(self, rules: Sequence) -> List[Customer]:
        """
        Parses, compiles and resolves rules. Used for preview and for send.

        Operator/field mismatches are not rejected here: the compiler drops
        those rules (they never match) and logs them. Callers that accept
        rules from users validate them first.

        Args:
            rules: SegmentRule objects or their dict form

        Raises:
            ValidationError: empty list, or unknown field/operator
            AggregationError: spend unavailable
        """
        parsed: List[SegmentRule] = parse_rules(list(rules), validate=False)
        result = await self.resolve(compile_rules(parsed))
        return result.customers
