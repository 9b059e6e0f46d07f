"""Decode result rows into search hits."""

from collections.abc import Mapping
from numbers import Real
from typing import Any

from pgsearch.common.data_types import FieldValue
from pgsearch.search_index.data_types import IndexBinding, SearchHit
from pgsearch.search_index.utils import decode_object, decode_vector


def _looks_like_vector_literal(value: object) -> bool:
    return isinstance(value, str) and value.startswith("[") and value.endswith("]")


def decode_search_hit(
    row: Mapping[str, Any],
    index: str,
    binding: IndexBinding | None = None,
    include: list[str] | bool | None = None,
) -> SearchHit:
    """
    Convert a result row into a SearchHit.

    With a binding, the fields projected for *include* are mapped back from
    their columns. The primary-key field is filled from the row id, since
    its column is folded into the id alias. Without a binding, every
    column other than id and score is returned as-is, with vector
    literals parsed. The document is None when no fields were found.
    """
    rest = {k: v for k, v in row.items() if k not in ("id", "score")}
    document: dict[str, FieldValue] = {}

    if binding is not None:
        pkey_field = binding.pkey_field()
        for field_name in binding.projected_fields(include):
            if field_name == pkey_field:
                document[field_name] = str(row["id"])
                continue
            field_binding = binding.fields[field_name]
            if field_binding.column not in rest:
                continue
            value = rest[field_binding.column]
            if field_binding.is_vector:
                value = decode_vector(value)
            elif field_binding.type == "object":
                value = decode_object(value)
            document[field_name] = value
    else:
        for column, value in rest.items():
            if _looks_like_vector_literal(value):
                value = decode_vector(value)
            document[column] = value

    score = row.get("score")
    return SearchHit(
        id=str(row["id"]),
        index=index,
        score=float(score)
        if isinstance(score, Real) and not isinstance(score, bool)
        else 0.0,
        document=document or None,
    )
