"""Module for parsing MongoDB-style filter mappings into expression trees."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from pgsearch.common.errors import FilterParseError


class FilterExpr(Protocol):
    """Marker protocol for filter expression nodes."""


class FieldOp(Enum):
    """Field-level filter operators, in the order they are compiled."""

    EQ = "$eq"
    NEQ = "$neq"
    GT = "$gt"
    GTE = "$gte"
    LT = "$lt"
    LTE = "$lte"
    IN = "$in"
    NIN = "$nin"
    CONTAINS = "$contains"
    STARTS_WITH = "$startsWith"
    ENDS_WITH = "$endsWith"
    EXISTS = "$exists"


_FIELD_OPS = {op.value: op for op in FieldOp}


@dataclass(frozen=True)
class Comparison(FilterExpr):
    """Comparison of a field against a value with a single operator."""

    field: str
    op: FieldOp
    value: Any


@dataclass(frozen=True)
class IsNull(FilterExpr):
    """Equality shorthand against null (field IS NULL)."""

    field: str


@dataclass(frozen=True)
class Conjunction(FilterExpr):
    """Predicates listed side by side in one filter mapping."""

    exprs: tuple[FilterExpr, ...]


@dataclass(frozen=True)
class And(FilterExpr):
    """Logical conjunction of sub-filters ($and)."""

    exprs: tuple[FilterExpr, ...]


@dataclass(frozen=True)
class Or(FilterExpr):
    """Logical disjunction of sub-filters ($or)."""

    exprs: tuple[FilterExpr, ...]


@dataclass(frozen=True)
class Not(FilterExpr):
    """Logical negation of a sub-filter ($not)."""

    expr: FilterExpr


def is_field_ops(value: object) -> bool:
    """Return True if *value* is an operator mapping (has $-prefixed keys)."""
    if not isinstance(value, Mapping):
        return False
    return any(isinstance(k, str) and k.startswith("$") for k in value)


def parse_filter(spec: Mapping[str, Any] | None) -> FilterExpr | None:
    """
    Parse a MongoDB-style filter mapping.

    Returns None for a missing filter. An empty mapping parses to an
    empty Conjunction, which compiles to no predicate.
    """
    if spec is None:
        return None
    return _parse_mapping(spec)


def _parse_mapping(spec: Mapping[str, Any]) -> Conjunction:
    if not isinstance(spec, Mapping):
        raise FilterParseError(f"Filter must be a mapping, got {type(spec).__name__}")

    exprs: list[FilterExpr] = []
    for key, value in spec.items():
        if key == "$and":
            exprs.append(And(exprs=_parse_list(key, value)))
        elif key == "$or":
            exprs.append(Or(exprs=_parse_list(key, value)))
        elif key == "$not":
            if not isinstance(value, Mapping):
                raise FilterParseError("$not expects a filter mapping")
            exprs.append(Not(expr=_parse_mapping(value)))
        elif key.startswith("$"):
            raise FilterParseError(f"Unknown logical operator: {key}")
        elif isinstance(value, Mapping) and (not value or is_field_ops(value)):
            exprs.extend(_parse_field_ops(key, value))
        elif value is None:
            exprs.append(IsNull(field=key))
        else:
            exprs.append(Comparison(field=key, op=FieldOp.EQ, value=value))
    return Conjunction(exprs=tuple(exprs))


def _parse_list(key: str, value: object) -> tuple[FilterExpr, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise FilterParseError(f"{key} expects a list of filter mappings")
    return tuple(_parse_mapping(sub) for sub in value)


def _parse_field_ops(field: str, ops: Mapping[str, Any]) -> list[FilterExpr]:
    for key in ops:
        if key not in _FIELD_OPS:
            raise FilterParseError(f"Unknown operator {key!r} on field {field!r}")

    exprs: list[FilterExpr] = []
    for op in FieldOp:
        if op.value not in ops:
            continue
        value = ops[op.value]
        _validate_operand(field, op, value)
        exprs.append(Comparison(field=field, op=op, value=value))
    return exprs


def _validate_operand(field: str, op: FieldOp, value: Any) -> None:
    match op:
        case FieldOp.IN | FieldOp.NIN:
            if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
                raise FilterParseError(f"{op.value} on {field!r} expects a list")
        case FieldOp.CONTAINS | FieldOp.STARTS_WITH | FieldOp.ENDS_WITH:
            if not isinstance(value, str):
                raise FilterParseError(f"{op.value} on {field!r} expects a string")
        case FieldOp.EXISTS:
            if not isinstance(value, bool):
                raise FilterParseError(f"$exists on {field!r} expects a boolean")
        case (
            FieldOp.EQ | FieldOp.NEQ | FieldOp.GT | FieldOp.GTE | FieldOp.LT | FieldOp.LTE
        ):
            if isinstance(value, (Mapping, list, tuple)):
                raise FilterParseError(f"{op.value} on {field!r} expects a scalar")

