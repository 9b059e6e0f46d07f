"""Build the SELECT list: id, score expression and projected columns."""

from collections.abc import Iterable

from pgsearch.search_index.data_types import IndexBinding, RankingSignal
from pgsearch.search_index.utils import encode_vector, is_vector, quote_ident

from .data_types import SelectInput, SQLClause
from .field_type import score_expression


def find_vector_signal(
    signals: Iterable[RankingSignal],
) -> tuple[str, list[float]] | None:
    """Return (field, vector) of the first vector-valued signal field."""
    for signal in signals:
        for key, value in signal.items():
            if key != "weight" and is_vector(value):
                return key, list(value)
    return None


def encode_select(select: SelectInput) -> SQLClause:
    """
    Build the projection for a query.

    The query vector, when present, is always bound at $1, so this clause
    must be compiled before any other clause contributes parameters.
    """
    parts = [f"{quote_ident(select.pkey)} as id"]
    params: list[object] = []
    binding = select.binding

    vector_signal = find_vector_signal(select.signals)
    if vector_signal is not None:
        field_name, vector = vector_signal
        field_binding = binding.fields.get(field_name) if binding else None
        column = field_binding.column if field_binding else field_name
        similarity = field_binding.similarity if field_binding else None

        params.append(encode_vector(vector))
        parts.append(f"{score_expression(quote_ident(column), similarity)} as score")
    else:
        parts.append("1 as score")

    parts.extend(_projected_columns(binding, select.include))
    return SQLClause(sql=", ".join(parts), params=params)


def _projected_columns(
    binding: IndexBinding | None,
    include: list[str] | bool | None,
) -> list[str]:
    if binding is None:
        return []
    return [
        quote_ident(binding.fields[name].column)
        for name in binding.projected_fields(include)
    ]
