"""
Audience segmentation.

Layout:
- types: SegmentRule and its enums
- predicate: backend-neutral expression tree
- compiler: rules -> predicate + residual spend rules
- resolver: predicate + spend rules -> audience (import it from
  app.services.segmentation.resolver; it depends on the repositories)
- memory: in-memory collection for tests and dry runs
"""
from app.services.segmentation.compiler import CompiledSegment, SpendRule, compile_rules
from app.services.segmentation.types import (
    LogicOperator,
    RuleField,
    RuleOperator,
    SegmentRule,
    parse_rules,
)

__all__ = [
    "CompiledSegment",
    "LogicOperator",
    "RuleField",
    "RuleOperator",
    "SegmentRule",
    "SpendRule",
    "compile_rules",
    "parse_rules",
]
