"""
Compiles ordered segment rules into a predicate plus residual spend rules.

Grammar: the non-spend rules are cut into runs. A rule whose own logic
operator is OR joins the current run, any other rule starts a new run.
Every run is an OR-group and the audience is the AND of all groups:

    A, B(OR), C(AND), D(OR), E(OR)   ->   (A or B) and (C or D or E)

totalSpendings is derived from orders and cannot be checked against the
stored customer, so those rules are kept aside and always ANDed together
by the resolver.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from app.services.segmentation.predicate import (
    Comparison,
    Condition,
    MatchNone,
    Predicate,
    all_of,
    any_of,
)
from app.services.segmentation.types import (
    LogicOperator,
    RuleField,
    RuleOperator,
    STRING_FIELDS,
    SegmentRule,
    parse_number,
)

logger = logging.getLogger(__name__)


_STRING_COMPARISONS = {
    RuleOperator.EQUALS: Comparison.EQ,
    RuleOperator.CONTAINS: Comparison.ICONTAINS,
    RuleOperator.STARTS_WITH: Comparison.ISTARTSWITH,
    RuleOperator.ENDS_WITH: Comparison.IENDSWITH,
}


@dataclass(frozen=True)
class SpendRule:
    """Residual rule evaluated against a customer's total spend."""

    operator: RuleOperator
    threshold: Optional[float]

    def holds(self, spend: float) -> bool:
        # Unparseable threshold: the rule was dropped and never matches
        if self.threshold is None:
            return False
        if self.operator == RuleOperator.GREATER_THAN:
            return spend > self.threshold
        if self.operator == RuleOperator.LESS_THAN:
            return spend < self.threshold
        if self.operator == RuleOperator.EQUALS:
            return spend == self.threshold
        return False


@dataclass(frozen=True)
class CompiledSegment:
    """Output of compile_rules()."""

    predicate: Predicate
    spend_rules: Tuple[SpendRule, ...] = ()
    dropped_rules: Tuple[SegmentRule, ...] = field(default=(), compare=False)

    @property
    def has_spend_rules(self) -> bool:
        return bool(self.spend_rules)

    def spend_matches(self, spend: float) -> bool:
        """True when every spend rule holds."""
        return all(rule.holds(spend) for rule in self.spend_rules)


def _drop(rule: SegmentRule, reason: str, dropped: List[SegmentRule]) -> Predicate:
    logger.warning(
        f"Dropping segment rule {rule.field.value} {rule.operator.value} "
        f"{rule.value!r}: {reason}"
    )
    dropped.append(rule)
    return MatchNone()


def _build_condition(rule: SegmentRule, dropped: List[SegmentRule]) -> Predicate:
    """Leaf predicate for a non-spend rule."""
    if rule.field == RuleField.TAGS:
        # Tags only support membership, whatever the declared operator
        return Condition(RuleField.TAGS.value, Comparison.HAS, str(rule.value))

    if rule.field in STRING_FIELDS:
        comparison = _STRING_COMPARISONS.get(rule.operator)
        if comparison is None:
            if parse_number(rule.value) is None:
                return _drop(rule, "numeric operator with a non-numeric value", dropped)
            return _drop(rule, "numeric operator on a text field", dropped)
        return Condition(rule.field.value, comparison, str(rule.value))

    return _drop(rule, "unsupported field", dropped)


def _build_spend_rule(rule: SegmentRule, dropped: List[SegmentRule]) -> SpendRule:
    threshold = parse_number(rule.value)
    if threshold is None:
        _drop(rule, "value is not a number", dropped)
    elif rule.operator not in (
        RuleOperator.GREATER_THAN,
        RuleOperator.LESS_THAN,
        RuleOperator.EQUALS,
    ):
        _drop(rule, "text operator on totalSpendings", dropped)
        threshold = None
    return SpendRule(operator=rule.operator, threshold=threshold)


def compile_rules(rules: Sequence[SegmentRule]) -> CompiledSegment:
    """
    Compiles the ordered rules.

    Args:
        rules: Ordered segment rules (already parsed)

    Returns:
        CompiledSegment with the structural predicate and the spend rules.
        With no structural rules the predicate is MatchAll.
    """
    dropped: List[SegmentRule] = []
    spend_rules: List[SpendRule] = []
    groups: List[List[Predicate]] = []
    current: List[Predicate] = []

    for rule in rules:
        if rule.is_spend_rule:
            spend_rules.append(_build_spend_rule(rule, dropped))
            continue

        condition = _build_condition(rule, dropped)
        if rule.logic_operator == LogicOperator.OR and current:
            current.append(condition)
        else:
            if current:
                groups.append(current)
            current = [condition]

    if current:
        groups.append(current)

    predicate = all_of(any_of(group) for group in groups)

    logger.debug(
        f"Compiled {len(rules)} rules into {len(groups)} groups "
        f"({len(spend_rules)} spend rules, {len(dropped)} dropped): {predicate!r}"
    )

    return CompiledSegment(
        predicate=predicate,
        spend_rules=tuple(spend_rules),
        dropped_rules=tuple(dropped),
    )
