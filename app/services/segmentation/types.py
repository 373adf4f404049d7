"""
Segment rule types.

A campaign audience is described by an ordered list of SegmentRule. The
order matters: OR rules join the group opened by the rule before them.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from app.core.exceptions import ValidationError


class RuleField(str, Enum):
    """Customer attributes a rule can target."""

    NAME = "name"
    EMAIL = "email"
    PHONE = "phone"
    LOCATION = "location"
    TAGS = "tags"
    TOTAL_SPENDINGS = "totalSpendings"


class RuleOperator(str, Enum):
    """Comparison operators."""

    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    ENDS_WITH = "endsWith"
    GREATER_THAN = "greaterThan"
    LESS_THAN = "lessThan"


class LogicOperator(str, Enum):
    """How a rule combines with the rule before it."""

    AND = "AND"
    OR = "OR"


STRING_FIELDS = frozenset({RuleField.NAME, RuleField.EMAIL, RuleField.PHONE, RuleField.LOCATION})

STRING_OPERATORS = frozenset({
    RuleOperator.EQUALS,
    RuleOperator.CONTAINS,
    RuleOperator.STARTS_WITH,
    RuleOperator.ENDS_WITH,
})

NUMERIC_OPERATORS = frozenset({
    RuleOperator.EQUALS,
    RuleOperator.GREATER_THAN,
    RuleOperator.LESS_THAN,
})


def parse_number(value) -> Optional[float]:
    """Parses a rule value as a number; None when it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class SegmentRule:
    """One field/operator/value/logic tuple."""

    field: RuleField
    operator: RuleOperator
    value: Union[str, int, float]
    logic_operator: LogicOperator = LogicOperator.AND

    @property
    def is_spend_rule(self) -> bool:
        return self.field == RuleField.TOTAL_SPENDINGS

    def validate(self) -> None:
        """
        Checks operator/field compatibility.

        - string fields take string operators
        - totalSpendings takes numeric operators and a numeric value
        - tags takes any operator (always compiled to membership)

        Raises:
            ValidationError: incompatible combination or empty value
        """
        if self.value is None or (isinstance(self.value, str) and not self.value.strip()):
            raise ValidationError(
                "Segment rule value is required",
                {"field": self.field.value, "operator": self.operator.value},
            )

        if self.field in STRING_FIELDS and self.operator not in STRING_OPERATORS:
            raise ValidationError(
                f"Operator '{self.operator.value}' is not valid for text field '{self.field.value}'",
                {"field": self.field.value, "operator": self.operator.value},
            )

        if self.is_spend_rule:
            if self.operator not in NUMERIC_OPERATORS:
                raise ValidationError(
                    f"Operator '{self.operator.value}' is not valid for '{self.field.value}'",
                    {"field": self.field.value, "operator": self.operator.value},
                )
            if parse_number(self.value) is None:
                raise ValidationError(
                    f"'{self.field.value}' needs a numeric value",
                    {"field": self.field.value, "value": str(self.value)},
                )

    @classmethod
    def from_dict(cls, data: dict) -> "SegmentRule":
        """
        Builds a rule from its stored/API form.

        Accepts both "logicOperator" and "logic_operator" keys.

        Raises:
            ValidationError: unknown field, operator or logic operator
        """
        if not isinstance(data, dict):
            raise ValidationError("Segment rule must be an object")

        try:
            field = RuleField(data.get("field"))
            operator = RuleOperator(data.get("operator"))
            logic_raw = data.get("logicOperator", data.get("logic_operator")) or "AND"
            logic = LogicOperator(str(logic_raw).upper())
        except ValueError as e:
            raise ValidationError(f"Invalid segment rule: {e}", {"rule": data}) from e

        return cls(
            field=field,
            operator=operator,
            value=data.get("value"),
            logic_operator=logic,
        )

    def to_dict(self) -> dict:
        return {
            "field": self.field.value,
            "operator": self.operator.value,
            "value": self.value,
            "logicOperator": self.logic_operator.value,
        }


def parse_rules(raw_rules: Optional[list], validate: bool = True) -> List[SegmentRule]:
    """
    Parses a list of rule dicts.

    Args:
        raw_rules: Rules as stored or received from the API
        validate: Also check operator/field compatibility

    Returns:
        Ordered list of SegmentRule

    Raises:
        ValidationError: empty list or invalid rule
    """
    if not raw_rules:
        raise ValidationError("At least one segment rule is required")

    rules = [
        rule if isinstance(rule, SegmentRule) else SegmentRule.from_dict(rule)
        for rule in raw_rules
    ]
    if validate:
        for rule in rules:
            rule.validate()
    return rules
