"""Normalize search queries and assemble the full SELECT statement.

pgvector constraints:
- Only a single ranking signal is supported (no multi-signal fusion)
- No multi-vector or hybrid (vector + text) fusion within that signal
- Filter-only and order-only queries are allowed
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from pgsearch.common.errors import QueryValidationError
from pgsearch.common.filter.filter_parser import parse_filter
from pgsearch.search_index.data_types import (
    IndexBinding,
    RankingSignal,
    SearchQuery,
)
from pgsearch.search_index.utils import is_vector, qualified_table

from .data_types import (
    LimitInput,
    OrderInput,
    SelectInput,
    SqlizedQuery,
    SQLClause,
    WhereInput,
)
from .limit import encode_limit
from .order import encode_order
from .select import encode_select
from .where import encode_where

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 10

_FUSION_HINT = "Use a single vector signal, or run multiple queries and fuse client-side."

_QUERY_OPTION_KEYS = frozenset(
    {"query", "max", "filter", "orderBy", "order_by", "topK", "top_k"}
)

QueryInput = RankingSignal | Sequence[RankingSignal] | SearchQuery


def normalize_query(query_input: QueryInput) -> SearchQuery:
    """
    Normalize the accepted query shapes to a SearchQuery.

    A list of signals is sum-fusion shorthand, a mapping without query
    option keys is a single signal, and anything else is a full query.
    """
    if isinstance(query_input, SearchQuery):
        query = query_input
    elif isinstance(query_input, Mapping):
        if _QUERY_OPTION_KEYS.intersection(query_input):
            query = SearchQuery.model_validate(dict(query_input))
        else:
            return SearchQuery(query=[dict(query_input)])
    elif isinstance(query_input, Sequence) and not isinstance(query_input, str):
        if len(query_input) == 0:
            raise QueryValidationError("No ranking signals provided")
        return SearchQuery(query=[dict(signal) for signal in query_input])
    else:
        raise QueryValidationError(
            f"Unsupported query input type: {type(query_input).__name__}"
        )

    if query.query is not None and len(query.query) == 0:
        raise QueryValidationError("No ranking signals provided")
    if query.max is not None and len(query.max) == 0:
        raise QueryValidationError("No ranking signals provided")
    return query


def _validate_signals(signals: list[dict[str, Any]]) -> None:
    if len(signals) > 1:
        raise QueryValidationError(
            f"pgvector does not support multi-signal fusion. {_FUSION_HINT}"
        )
    if not signals:
        return

    vector_count = 0
    text_count = 0
    for key, value in signals[0].items():
        if key == "weight" or value is None:
            continue
        if is_vector(value):
            vector_count += 1
        elif isinstance(value, str):
            text_count += 1

    if vector_count > 1:
        raise QueryValidationError(
            f"pgvector does not support multi-vector fusion. {_FUSION_HINT}"
        )
    if vector_count > 0 and text_count > 0:
        raise QueryValidationError(
            f"pgvector does not support hybrid (vector + text) fusion. {_FUSION_HINT}"
        )
    if text_count > 0:
        logger.warning(
            "Ignoring text ranking signal: pgvector only supports vector search"
        )


def sqlize(
    query: SearchQuery,
    *,
    pkey: str,
    schema: str,
    table: str,
    binding: IndexBinding | None = None,
) -> SqlizedQuery:
    """Validate a query and split it into clause builder inputs."""
    signals = query.signals
    _validate_signals(signals)

    return SqlizedQuery(
        select=SelectInput(
            pkey=pkey,
            signals=signals,
            binding=binding,
            include=query.include,
        ),
        where=WhereInput(filter=parse_filter(query.filter), binding=binding),
        order=OrderInput(
            signals=signals,
            order_by=query.order_by,
            binding=binding,
            schema=schema,
            table=table,
        ),
        limit=LimitInput(
            top_k=query.top_k if query.top_k is not None else DEFAULT_TOP_K,
            offset=query.offset or 0,
        ),
    )


def assemble_query(sqlized: SqlizedQuery, *, schema: str, table: str) -> SQLClause:
    """
    Compile every clause and concatenate them into one statement.

    Each parameterized clause starts numbering right after the parameters
    of the clauses before it, so the params list matches $1..$N exactly.
    """
    select = encode_select(sqlized.select)
    where = encode_where(sqlized.where, start_idx=1 + len(select.params))
    order = encode_order(sqlized.order)
    limit = encode_limit(
        sqlized.limit,
        start_idx=1 + len(select.params) + len(where.params),
    )

    lines = [
        f"SELECT {select.sql}",
        f"FROM {qualified_table(schema, table)}",
    ]
    if where.sql:
        lines.append(f"WHERE {where.sql}")
    lines.append(f"ORDER BY {order.sql}")
    lines.append(limit.sql)

    return SQLClause(
        sql="\n".join(lines),
        params=[*select.params, *where.params, *limit.params],
    )
