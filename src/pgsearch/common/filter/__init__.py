"""Public exports for filter parsing."""

from .filter_parser import (
    And,
    Comparison,
    Conjunction,
    FieldOp,
    FilterExpr,
    IsNull,
    Not,
    Or,
    is_field_ops,
    parse_filter,
)

__all__ = [
    "And",
    "Comparison",
    "Conjunction",
    "FieldOp",
    "FilterExpr",
    "IsNull",
    "Not",
    "Or",
    "is_field_ops",
    "parse_filter",
]
