"""
Tests for SegmentRule parsing and validation.
"""
import pytest

from app.core.exceptions import ValidationError
from app.services.segmentation.types import (
    LogicOperator,
    RuleField,
    RuleOperator,
    SegmentRule,
    parse_number,
    parse_rules,
)


class TestSegmentRuleFromDict:
    """Tests for SegmentRule.from_dict."""

    def test_parses_camel_case_logic_operator(self):
        rule = SegmentRule.from_dict(
            {"field": "name", "operator": "contains", "value": "ada", "logicOperator": "or"}
        )

        assert rule.field == RuleField.NAME
        assert rule.operator == RuleOperator.CONTAINS
        assert rule.logic_operator == LogicOperator.OR

    def test_accepts_snake_case_logic_operator(self):
        rule = SegmentRule.from_dict(
            {"field": "tags", "operator": "equals", "value": "vip", "logic_operator": "OR"}
        )

        assert rule.logic_operator == LogicOperator.OR

    def test_logic_operator_defaults_to_and(self):
        rule = SegmentRule.from_dict({"field": "email", "operator": "endsWith", "value": ".org"})

        assert rule.logic_operator == LogicOperator.AND

    def test_unknown_field_is_validation_error(self):
        with pytest.raises(ValidationError):
            SegmentRule.from_dict({"field": "age", "operator": "equals", "value": 3})

    def test_unknown_operator_is_validation_error(self):
        with pytest.raises(ValidationError):
            SegmentRule.from_dict({"field": "name", "operator": "matches", "value": "x"})

    def test_not_a_dict_is_validation_error(self):
        with pytest.raises(ValidationError):
            SegmentRule.from_dict("name equals Ada")

    def test_to_dict_uses_camel_case(self):
        rule = SegmentRule(RuleField.LOCATION, RuleOperator.EQUALS, "London", LogicOperator.OR)

        assert rule.to_dict() == {
            "field": "location",
            "operator": "equals",
            "value": "London",
            "logicOperator": "OR",
        }


class TestSegmentRuleValidate:
    """Operator/field compatibility."""

    def test_numeric_operator_on_text_field_is_rejected(self):
        rule = SegmentRule(RuleField.NAME, RuleOperator.GREATER_THAN, "5")

        with pytest.raises(ValidationError):
            rule.validate()

    def test_text_operator_on_spend_is_rejected(self):
        rule = SegmentRule(RuleField.TOTAL_SPENDINGS, RuleOperator.CONTAINS, "100")

        with pytest.raises(ValidationError):
            rule.validate()

    def test_spend_needs_numeric_value(self):
        rule = SegmentRule(RuleField.TOTAL_SPENDINGS, RuleOperator.GREATER_THAN, "lots")

        with pytest.raises(ValidationError):
            rule.validate()

    def test_tags_accept_any_operator(self):
        SegmentRule(RuleField.TAGS, RuleOperator.GREATER_THAN, "vip").validate()

    def test_empty_value_is_rejected(self):
        with pytest.raises(ValidationError):
            SegmentRule(RuleField.NAME, RuleOperator.EQUALS, "  ").validate()

    def test_valid_spend_rule(self):
        SegmentRule(RuleField.TOTAL_SPENDINGS, RuleOperator.LESS_THAN, "99.5").validate()


class TestParseRules:

    def test_empty_list_is_rejected(self):
        with pytest.raises(ValidationError):
            parse_rules([])

    def test_none_is_rejected(self):
        with pytest.raises(ValidationError):
            parse_rules(None)

    def test_keeps_order(self):
        rules = parse_rules([
            {"field": "name", "operator": "equals", "value": "A"},
            {"field": "email", "operator": "equals", "value": "B"},
        ])

        assert [r.field for r in rules] == [RuleField.NAME, RuleField.EMAIL]

    def test_accepts_rule_objects(self):
        rule = SegmentRule(RuleField.NAME, RuleOperator.EQUALS, "Ada")

        assert parse_rules([rule]) == [rule]

    def test_validation_can_be_skipped(self):
        rules = parse_rules(
            [{"field": "name", "operator": "greaterThan", "value": "5"}],
            validate=False,
        )

        assert rules[0].operator == RuleOperator.GREATER_THAN


class TestParseNumber:

    @pytest.mark.parametrize("value,expected", [
        (100, 100.0),
        ("99.5", 99.5),
        (" 42 ", 42.0),
        ("abc", None),
        (None, None),
        (True, None),
    ])
    def test_parse(self, value, expected):
        assert parse_number(value) == expected
