"""Compile filter expression trees into WHERE predicates with positional parameters."""

from collections.abc import Callable
from typing import Any

from pgsearch.common.filter.filter_parser import (
    And,
    Comparison,
    Conjunction,
    FieldOp,
    FilterExpr,
    IsNull,
    Not,
    Or,
)
from pgsearch.search_index.utils import quote_ident

from .data_types import SQLClause, WhereInput

ColumnResolver = Callable[[str], str]

_COMPARISON_OPS: dict[FieldOp, str] = {
    FieldOp.EQ: "=",
    FieldOp.NEQ: "!=",
    FieldOp.GT: ">",
    FieldOp.GTE: ">=",
    FieldOp.LT: "<",
    FieldOp.LTE: "<=",
}


def _identity(field: str) -> str:
    return field


class _WhereCompiler:
    """Walks a filter tree, numbering placeholders from a running index."""

    def __init__(self, start_idx: int, resolve_column: ColumnResolver) -> None:
        self._idx = start_idx
        self._resolve_column = resolve_column
        self.params: list[Any] = []

    def _bind(self, value: Any) -> str:
        placeholder = f"${self._idx}"
        self.params.append(value)
        self._idx += 1
        return placeholder

    def _column(self, field: str) -> str:
        return quote_ident(self._resolve_column(field))

    def compile(self, expr: FilterExpr) -> str:
        """Compile *expr*; an empty string means no predicate."""
        if isinstance(expr, Conjunction):
            parts = [sql for sql in map(self.compile, expr.exprs) if sql]
            return " AND ".join(parts)
        if isinstance(expr, And):
            return self._group(expr.exprs, " AND ")
        if isinstance(expr, Or):
            return self._group(expr.exprs, " OR ")
        if isinstance(expr, Not):
            inner = self.compile(expr.expr)
            return f"NOT ({inner})" if inner else ""
        if isinstance(expr, IsNull):
            return f"{self._column(expr.field)} IS NULL"
        if isinstance(expr, Comparison):
            return self._compile_comparison(expr)
        raise TypeError(f"Unsupported filter expression type: {type(expr)!r}")

    def _group(self, exprs: tuple[FilterExpr, ...], joiner: str) -> str:
        parts = [f"({sql})" for sql in map(self.compile, exprs) if sql]
        if not parts:
            return ""
        return f"({joiner.join(parts)})"

    def _compile_comparison(self, expr: Comparison) -> str:
        column = self._column(expr.field)
        match expr.op:
            case FieldOp.EQ | FieldOp.NEQ | FieldOp.GT | FieldOp.GTE | FieldOp.LT | FieldOp.LTE:
                return f"{column} {_COMPARISON_OPS[expr.op]} {self._bind(expr.value)}"
            case FieldOp.IN:
                return f"{column} = ANY({self._bind(list(expr.value))})"
            case FieldOp.NIN:
                return f"{column} != ALL({self._bind(list(expr.value))})"
            case FieldOp.CONTAINS:
                return f"{column} ILIKE {self._bind(f'%{expr.value}%')}"
            case FieldOp.STARTS_WITH:
                return f"{column} ILIKE {self._bind(f'{expr.value}%')}"
            case FieldOp.ENDS_WITH:
                return f"{column} ILIKE {self._bind(f'%{expr.value}')}"
            case FieldOp.EXISTS:
                return f"{column} IS NOT NULL" if expr.value else f"{column} IS NULL"


def compile_where(
    expr: FilterExpr | None,
    start_idx: int,
    resolve_column: ColumnResolver | None = None,
) -> SQLClause:
    """
    Compile a filter tree into a boolean SQL predicate.

    Placeholders are numbered from *start_idx* and the returned params
    line up with them. A missing or empty filter yields an empty clause,
    which callers treat as "match all".
    """
    if expr is None:
        return SQLClause(sql="", params=[])
    compiler = _WhereCompiler(start_idx, resolve_column or _identity)
    sql = compiler.compile(expr)
    return SQLClause(sql=sql, params=compiler.params)


def encode_where(where: WhereInput, start_idx: int) -> SQLClause:
    """Build the WHERE clause for a sqlized query."""
    resolve = where.binding.column_for if where.binding is not None else None
    return compile_where(where.filter, start_idx, resolve)
