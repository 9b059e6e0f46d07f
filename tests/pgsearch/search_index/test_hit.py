from pgsearch.common.data_types import SimilarityMetric
from pgsearch.search_index.data_types import FieldBinding, IndexBinding
from pgsearch.search_index.hit import decode_search_hit


def test_decode_with_binding_maps_columns_to_fields() -> None:
    binding = IndexBinding(
        table="docs",
        pkey="doc_id",
        fields={
            "title": FieldBinding(column="doc_title"),
            "meta": FieldBinding(column="meta", type="object"),
            "embedding": FieldBinding(
                column="vec",
                type="vector",
                dimensions=2,
                similarity=SimilarityMetric.COSINE,
            ),
        },
    )
    row = {
        "id": "d1",
        "score": 0.75,
        "doc_title": "Hello",
        "meta": '{"lang": "en"}',
        "vec": "[1,0]",
        "unbound": "ignored",
    }

    hit = decode_search_hit(row, "docs", binding)

    assert hit.id == "d1"
    assert hit.index == "docs"
    assert hit.score == 0.75
    assert hit.document == {
        "title": "Hello",
        "meta": {"lang": "en"},
        "embedding": [1.0, 0.0],
    }


def test_decode_without_binding_returns_all_columns() -> None:
    hit = decode_search_hit(
        {"id": 7, "score": 1, "title": "A", "embedding": "[0.5,0.5]"}, "docs"
    )

    assert hit.id == "7"
    assert hit.score == 1.0
    assert hit.document == {"title": "A", "embedding": [0.5, 0.5]}


def test_decode_missing_score_and_document() -> None:
    hit = decode_search_hit({"id": "d1", "score": None}, "docs")

    assert hit.score == 0.0
    assert hit.document is None


def test_decode_fills_pk_field_from_row_id() -> None:
    binding = IndexBinding(
        table="docs",
        fields={
            "id": FieldBinding(column="id"),
            "title": FieldBinding(column="title"),
        },
    )
    # "id" is selected twice (alias and projected pk column); the alias wins
    row = {"id": "d1", "score": 1, "title": "A"}

    assert decode_search_hit(row, "docs", binding).document == {
        "id": "d1",
        "title": "A",
    }
    assert decode_search_hit(row, "docs", binding, ["title"]).document == {
        "title": "A"
    }
    assert decode_search_hit(row, "docs", binding, False).document is None


def test_decode_fills_renamed_pk_field() -> None:
    binding = IndexBinding(
        table="articles",
        pkey="article_id",
        fields={"id": FieldBinding(column="article_id")},
    )

    hit = decode_search_hit({"id": 42, "score": 0.5}, "articles", binding)

    assert hit.document == {"id": "42"}
