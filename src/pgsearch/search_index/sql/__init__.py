"""SQL clause builders for pgvector search."""

from .data_types import (
    LimitInput,
    OrderInput,
    SelectInput,
    SqlizedQuery,
    SQLClause,
    WhereInput,
)
from .field_type import column_type, distance_operator, operator_class
from .limit import encode_limit
from .order import encode_order
from .query import assemble_query, normalize_query, sqlize
from .select import encode_select
from .where import compile_where, encode_where

__all__ = [
    "LimitInput",
    "OrderInput",
    "SQLClause",
    "SelectInput",
    "SqlizedQuery",
    "WhereInput",
    "assemble_query",
    "column_type",
    "compile_where",
    "distance_operator",
    "encode_limit",
    "encode_order",
    "encode_select",
    "encode_where",
    "normalize_query",
    "operator_class",
    "sqlize",
]
