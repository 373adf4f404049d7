"""
Backend-neutral boolean expression tree over customer records.

The compiler produces these nodes; a storage backend either pushes them
down (see app.repositories.customer_filters) or calls matches() on each
record.

Records can be mappings or objects with attributes.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Tuple, Union


class Comparison(str, Enum):
    """Leaf comparisons understood by every backend."""

    EQ = "eq"                  # exact, case-sensitive
    ICONTAINS = "icontains"    # case-insensitive substring
    ISTARTSWITH = "istartswith"
    IENDSWITH = "iendswith"
    HAS = "has"                # membership in a list/set attribute
    GT = "gt"
    LT = "lt"


def _get(record: Any, field: str) -> Any:
    if isinstance(record, dict):
        return record.get(field)
    return getattr(record, field, None)


def _as_float(value: Any):
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class MatchAll:
    """Matches every record."""

    def matches(self, record: Any) -> bool:
        return True

    def __eq__(self, other):
        return isinstance(other, MatchAll)

    def __hash__(self):
        return hash("MatchAll")

    def __repr__(self):
        return "MatchAll()"


class MatchNone:
    """Matches nothing. Used for rules that had to be dropped."""

    def matches(self, record: Any) -> bool:
        return False

    def __eq__(self, other):
        return isinstance(other, MatchNone)

    def __hash__(self):
        return hash("MatchNone")

    def __repr__(self):
        return "MatchNone()"


@dataclass(frozen=True)
class Condition:
    """field <comparison> value"""

    field: str
    comparison: Comparison
    value: Any

    def matches(self, record: Any) -> bool:
        actual = _get(record, self.field)

        if self.comparison == Comparison.HAS:
            if not actual:
                return False
            return self.value in actual

        if self.comparison in (Comparison.GT, Comparison.LT):
            left, right = _as_float(actual), _as_float(self.value)
            if left is None or right is None:
                return False
            return left > right if self.comparison == Comparison.GT else left < right

        if actual is None:
            return False

        if self.comparison == Comparison.EQ:
            return str(actual) == str(self.value)

        haystack, needle = str(actual).lower(), str(self.value).lower()
        if self.comparison == Comparison.ICONTAINS:
            return needle in haystack
        if self.comparison == Comparison.ISTARTSWITH:
            return haystack.startswith(needle)
        if self.comparison == Comparison.IENDSWITH:
            return haystack.endswith(needle)
        return False


@dataclass(frozen=True)
class AllOf:
    """Conjunction."""

    children: Tuple["Predicate", ...]

    def matches(self, record: Any) -> bool:
        return all(child.matches(record) for child in self.children)


@dataclass(frozen=True)
class AnyOf:
    """Disjunction."""

    children: Tuple["Predicate", ...]

    def matches(self, record: Any) -> bool:
        return any(child.matches(record) for child in self.children)


@dataclass(frozen=True)
class Not:
    """Negation."""

    child: "Predicate"

    def matches(self, record: Any) -> bool:
        return not self.child.matches(record)


Predicate = Union[MatchAll, MatchNone, Condition, AllOf, AnyOf, Not]


def all_of(children: Iterable[Predicate]) -> Predicate:
    """
    Builds a simplified conjunction.

    MatchAll children are dropped, any MatchNone makes the whole thing
    MatchNone, a single child is returned as-is, no children is MatchAll.
    """
    kept = []
    for child in children:
        if isinstance(child, MatchNone):
            return MatchNone()
        if isinstance(child, MatchAll):
            continue
        kept.append(child)

    if not kept:
        return MatchAll()
    if len(kept) == 1:
        return kept[0]
    return AllOf(tuple(kept))


def any_of(children: Iterable[Predicate]) -> Predicate:
    """
    Builds a simplified disjunction.

    MatchNone children are dropped, any MatchAll makes the whole thing
    MatchAll, a single child is returned as-is, no children is MatchNone.
    """
    kept = []
    for child in children:
        if isinstance(child, MatchAll):
            return MatchAll()
        if isinstance(child, MatchNone):
            continue
        kept.append(child)

    if not kept:
        return MatchNone()
    if len(kept) == 1:
        return kept[0]
    return AnyOf(tuple(kept))
