"""
Pushes segmentation predicates down to PostgREST filters.

Top-level conjunctions become chained filters (.eq, .ilike, .contains),
OR-groups become a single .or_() with PostgREST's filter syntax. Anything
that cannot be expressed safely raises PushdownUnsupported and the caller
evaluates the predicate in memory instead.
"""
from typing import Optional

from app.services.segmentation.predicate import (
    AllOf,
    AnyOf,
    Comparison,
    Condition,
    MatchAll,
    Not,
    Predicate,
)

# Characters that force a value to be double-quoted inside or=(...)
_RESERVED = set(',.:()"\\ ')


class PushdownUnsupported(Exception):
    """Predicate has no PostgREST translation."""
    pass


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _quote(value: str) -> str:
    if any(ch in _RESERVED for ch in value):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return value


def _like_pattern(condition: Condition, wildcard: str) -> str:
    value = str(condition.value)
    if "*" in value:
        # "*" is a wildcard for PostgREST and cannot be escaped
        raise PushdownUnsupported(f"'*' in value for {condition.field}")

    value = _escape_like(value)
    if condition.comparison == Comparison.ICONTAINS:
        return f"{wildcard}{value}{wildcard}"
    if condition.comparison == Comparison.ISTARTSWITH:
        return f"{value}{wildcard}"
    return f"{wildcard}{value}"


def _array_literal(value: str) -> str:
    if any(ch in value for ch in '{}"\\'):
        raise PushdownUnsupported("Unsupported character in tag")
    return '{"' + value + '"}'


def _operator_and_value(condition: Condition, for_or: bool):
    """PostgREST operator and literal for a condition."""
    comparison = condition.comparison
    value = str(condition.value)

    if comparison == Comparison.EQ:
        return "eq", _quote(value) if for_or else value
    if comparison in (Comparison.ICONTAINS, Comparison.ISTARTSWITH, Comparison.IENDSWITH):
        pattern = _like_pattern(condition, "*" if for_or else "%")
        return "ilike", _quote(pattern) if for_or else pattern
    if comparison == Comparison.HAS:
        return "cs", _array_literal(value)
    if comparison == Comparison.GT:
        return "gt", str(float(condition.value))
    if comparison == Comparison.LT:
        return "lt", str(float(condition.value))
    raise PushdownUnsupported(f"Comparison {comparison}")


def condition_to_filter(condition: Condition, negate: bool = False) -> str:
    """
    Renders one condition in or=(...) syntax, e.g.
    'name.ilike.*ada*' or 'tags.cs.{"vip"}'.
    """
    operator, value = _operator_and_value(condition, for_or=True)
    prefix = "not." if negate else ""
    return f"{condition.field}.{prefix}{operator}.{value}"


def search_filter(fields, text: str) -> Optional[str]:
    """
    or=(...) body for a free-text search: case-insensitive contains on any
    of the fields. None when nothing is left to search for.

    Example:
        search_filter(("name", "email"), "ada") -> "name.ilike.*ada*,email.ilike.*ada*"
    """
    value = text.replace("*", " ").strip()
    if not value:
        return None
    return ",".join(
        condition_to_filter(Condition(field, Comparison.ICONTAINS, value)) for field in fields
    )


def _apply_condition(query, condition: Condition):
    field, comparison = condition.field, condition.comparison

    if comparison == Comparison.EQ:
        return query.eq(field, str(condition.value))
    if comparison in (Comparison.ICONTAINS, Comparison.ISTARTSWITH, Comparison.IENDSWITH):
        return query.ilike(field, _like_pattern(condition, "%"))
    if comparison == Comparison.HAS:
        return query.contains(field, [str(condition.value)])
    if comparison == Comparison.GT:
        return query.gt(field, float(condition.value))
    if comparison == Comparison.LT:
        return query.lt(field, float(condition.value))
    raise PushdownUnsupported(f"Comparison {comparison}")


def _or_member(child: Predicate) -> str:
    if isinstance(child, Condition):
        return condition_to_filter(child)
    if isinstance(child, Not) and isinstance(child.child, Condition):
        return condition_to_filter(child.child, negate=True)
    if isinstance(child, AllOf):
        return "and(" + ",".join(_or_member(c) for c in child.children) + ")"
    raise PushdownUnsupported(f"{type(child).__name__} inside an OR-group")


def apply_predicate(query, predicate: Predicate):
    """
    Adds the predicate's filters to a PostgREST query builder.

    Raises:
        PushdownUnsupported: the predicate must be evaluated in memory
    """
    if isinstance(predicate, MatchAll):
        return query
    if isinstance(predicate, Condition):
        return _apply_condition(query, predicate)
    if isinstance(predicate, AllOf):
        for child in predicate.children:
            query = apply_predicate(query, child)
        return query
    if isinstance(predicate, AnyOf):
        return query.or_(",".join(_or_member(child) for child in predicate.children))
    if isinstance(predicate, Not) and isinstance(predicate.child, Condition):
        operator, value = _operator_and_value(predicate.child, for_or=False)
        return query.filter(predicate.child.field, f"not.{operator}", value)
    raise PushdownUnsupported(type(predicate).__name__)
