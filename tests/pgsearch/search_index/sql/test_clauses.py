import pytest

from pgsearch.common.data_types import SimilarityMetric
from pgsearch.search_index.data_types import (
    FieldBinding,
    IndexBinding,
    OrderBy,
    ScalarFieldSchema,
    VectorFieldSchema,
)
from pgsearch.search_index.sql import (
    LimitInput,
    OrderInput,
    SelectInput,
    column_type,
    distance_operator,
    encode_limit,
    encode_order,
    encode_select,
    operator_class,
)
from pgsearch.search_index.sql.field_type import score_expression


@pytest.fixture
def binding() -> IndexBinding:
    return IndexBinding(
        schema="public",
        table="docs",
        pkey="doc_id",
        fields={
            "id": FieldBinding(column="doc_id"),
            "title": FieldBinding(column="title"),
            "score": FieldBinding(column="rating", type="float"),
            "embedding": FieldBinding(
                column="vec",
                type="vector",
                dimensions=3,
                similarity=SimilarityMetric.EUCLIDEAN,
            ),
        },
    )


def test_select_without_vector() -> None:
    result = encode_select(SelectInput(pkey="id", signals=[]))
    assert result.sql == '"id" as id, 1 as score'
    assert result.params == []


def test_select_with_vector_defaults_to_cosine() -> None:
    result = encode_select(
        SelectInput(pkey="id", signals=[{"embedding": [0.1, 0.2, 0.3]}])
    )
    assert result.sql == '"id" as id, 1 - ("embedding" <=> $1::vector) as score'
    assert result.params == ["[0.1,0.2,0.3]"]


def test_select_ignores_weight_key() -> None:
    result = encode_select(
        SelectInput(pkey="id", signals=[{"weight": 2, "embedding": [1, 0]}])
    )
    assert result.params == ["[1.0,0.0]"]


def test_select_uses_bound_column_and_metric(binding: IndexBinding) -> None:
    result = encode_select(
        SelectInput(
            pkey="doc_id",
            signals=[{"embedding": [1, 2, 3]}],
            binding=binding,
            include=False,
        )
    )
    assert result.sql == '"doc_id" as id, 1 / (1 + ("vec" <-> $1::vector)) as score'


def test_select_projects_all_fields_except_score(binding: IndexBinding) -> None:
    result = encode_select(SelectInput(pkey="doc_id", signals=[], binding=binding))
    assert result.sql == '"doc_id" as id, 1 as score, "doc_id", "title", "vec"'


def test_select_projects_included_fields(binding: IndexBinding) -> None:
    result = encode_select(
        SelectInput(
            pkey="doc_id",
            signals=[],
            binding=binding,
            include=["title", "score", "missing"],
        )
    )
    assert result.sql == '"doc_id" as id, 1 as score, "title"'


def test_order_by_vector_distance(binding: IndexBinding) -> None:
    result = encode_order(
        OrderInput(signals=[{"embedding": [1, 2, 3]}], binding=binding)
    )
    assert result.sql == '"vec" <-> $1::vector'
    assert result.params == []


def test_order_by_explicit_field_is_table_qualified() -> None:
    result = encode_order(
        OrderInput(
            signals=[{"embedding": [1, 0]}],
            order_by=OrderBy(field="created_at", direction="desc"),
            schema="public",
            table="docs",
        )
    )
    assert result.sql == '"public"."docs"."created_at" DESC'


def test_order_by_explicit_field_resolves_binding(binding: IndexBinding) -> None:
    result = encode_order(
        OrderInput(
            signals=[],
            order_by=OrderBy(field="score", direction="asc"),
            binding=binding,
        )
    )
    assert result.sql == '"rating" ASC'


def test_order_defaults_to_score() -> None:
    assert encode_order(OrderInput(signals=[])).sql == "score DESC"


def test_limit_without_offset() -> None:
    result = encode_limit(LimitInput(top_k=10), start_idx=4)
    assert result.sql == "LIMIT $4"
    assert result.params == [10]


def test_limit_with_offset() -> None:
    result = encode_limit(LimitInput(top_k=10, offset=20), start_idx=2)
    assert result.sql == "LIMIT $2 OFFSET $3"
    assert result.params == [10, 20]


@pytest.mark.parametrize(
    ("schema", "expected"),
    [
        (VectorFieldSchema(dimensions=1536), "vector(1536)"),
        (ScalarFieldSchema(type="string"), "TEXT"),
        (ScalarFieldSchema(type="int"), "INTEGER"),
        (ScalarFieldSchema(type="bigint"), "BIGINT"),
        (ScalarFieldSchema(type="float"), "DOUBLE PRECISION"),
        (ScalarFieldSchema(type="boolean"), "BOOLEAN"),
        (ScalarFieldSchema(type="date"), "TIMESTAMPTZ"),
        (ScalarFieldSchema(type="object"), "JSONB"),
        (ScalarFieldSchema(type="geopoint"), "POINT"),
        (ScalarFieldSchema(type="string[]"), "TEXT[]"),
        (ScalarFieldSchema(type="int[]"), "INTEGER[]"),
    ],
)
def test_column_type(schema, expected) -> None:
    assert column_type(schema) == expected


def test_operator_class_and_distance_operator() -> None:
    assert operator_class(SimilarityMetric.COSINE) == "vector_cosine_ops"
    assert operator_class(SimilarityMetric.EUCLIDEAN) == "vector_l2_ops"
    assert operator_class(SimilarityMetric.DOT_PRODUCT) == "vector_ip_ops"
    assert operator_class(None) == "vector_cosine_ops"

    assert distance_operator(SimilarityMetric.COSINE) == "<=>"
    assert distance_operator(SimilarityMetric.EUCLIDEAN) == "<->"
    assert distance_operator(SimilarityMetric.DOT_PRODUCT) == "<#>"


def test_dot_product_score_is_negated_distance() -> None:
    assert (
        score_expression('"v"', SimilarityMetric.DOT_PRODUCT)
        == '-("v" <#> $1::vector)'
    )
