"""Inputs and outputs of the SQL clause builders."""

from dataclasses import dataclass, field
from typing import Any

from pgsearch.common.filter.filter_parser import FilterExpr
from pgsearch.search_index.data_types import IndexBinding, OrderBy, RankingSignal


@dataclass(kw_only=True)
class SQLClause:
    """A SQL fragment and the values for its $N placeholders."""

    sql: str
    params: list[Any] = field(default_factory=list)


@dataclass(kw_only=True)
class SelectInput:
    pkey: str
    signals: list[RankingSignal]
    binding: IndexBinding | None = None
    include: list[str] | bool | None = None


@dataclass(kw_only=True)
class WhereInput:
    filter: FilterExpr | None = None
    binding: IndexBinding | None = None


@dataclass(kw_only=True)
class OrderInput:
    signals: list[RankingSignal]
    order_by: OrderBy | None = None
    binding: IndexBinding | None = None
    schema: str | None = None
    table: str | None = None


@dataclass(kw_only=True)
class LimitInput:
    top_k: int
    offset: int = 0


@dataclass(kw_only=True)
class SqlizedQuery:
    """Clause builder inputs for one search query."""

    select: SelectInput
    where: WhereInput
    order: OrderInput
    limit: LimitInput
