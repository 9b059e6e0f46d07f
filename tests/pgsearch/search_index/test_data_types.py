import json

import pytest
from pydantic import ValidationError

from pgsearch.common.data_types import SimilarityMetric
from pgsearch.search_index.data_types import (
    FieldBinding,
    IndexBinding,
    ScalarFieldSchema,
    SearchQuery,
    VectorFieldSchema,
    to_field_schema,
)


def test_to_field_schema() -> None:
    vector = to_field_schema({"type": "vector", "dimensions": 8})
    assert isinstance(vector, VectorFieldSchema)
    assert vector.similarity == SimilarityMetric.COSINE

    scalar = to_field_schema({"type": "float[]"})
    assert isinstance(scalar, ScalarFieldSchema)
    assert scalar.is_array


@pytest.mark.parametrize(
    "spec",
    [
        {"type": "uuid"},
        {"type": "vector", "dimensions": 0},
        {"type": "vector", "dimensions": 3, "similarity": "manhattan"},
    ],
)
def test_invalid_field_schema(spec) -> None:
    with pytest.raises(ValidationError):
        to_field_schema(spec)


def test_index_binding_helpers() -> None:
    binding = IndexBinding(
        table="articles",
        pkey="article_id",
        fields={
            "id": FieldBinding(column="article_id"),
            "body": FieldBinding(column="content"),
            "embedding": FieldBinding(column="vec", type="vector", dimensions=3),
        },
    )

    assert binding.schema_name == "public"
    assert binding.column_for("body") == "content"
    assert binding.column_for("unbound") == "unbound"
    assert binding.pkey_field() == "id"
    assert binding.vector_field().column == "vec"


def test_index_binding_json_uses_schema_alias() -> None:
    binding = IndexBinding(schema="tenant", table="docs")

    data = json.loads(binding.to_json())

    assert data == {"schema": "tenant", "table": "docs", "pkey": "id", "fields": {}}
    assert IndexBinding.model_validate(data) == binding


def test_search_query_signals_prefer_query() -> None:
    query = SearchQuery(query=[{"a": [1.0]}], max=[{"b": [2.0]}])
    assert query.signals == [{"a": [1.0]}]
    assert SearchQuery().signals == []


def test_search_query_rejects_negative_top_k() -> None:
    with pytest.raises(ValidationError):
        SearchQuery.model_validate({"topK": -1})


def test_projected_fields() -> None:
    binding = IndexBinding(
        table="docs",
        fields={
            "id": FieldBinding(column="id"),
            "score": FieldBinding(column="rating", type="float"),
            "title": FieldBinding(column="title"),
        },
    )

    assert binding.projected_fields() == ["id", "title"]
    assert binding.projected_fields(True) == ["id", "title"]
    assert binding.projected_fields(False) == []
    assert binding.projected_fields(["title", "score", "missing", "id"]) == [
        "title",
        "id",
    ]
