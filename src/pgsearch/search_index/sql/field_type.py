"""Mapping of logical field schemas to Postgres column types and pgvector operators."""

from pgsearch.common.data_types import SimilarityMetric
from pgsearch.search_index.data_types import (
    FieldSchema,
    ScalarFieldSchema,
    VectorFieldSchema,
)

_SCALAR_COLUMN_TYPES: dict[str, str] = {
    "string": "TEXT",
    "int": "INTEGER",
    "bigint": "BIGINT",
    "float": "DOUBLE PRECISION",
    "boolean": "BOOLEAN",
    "date": "TIMESTAMPTZ",
    "object": "JSONB",
    "geopoint": "POINT",
}

_OPERATOR_CLASSES: dict[SimilarityMetric, str] = {
    SimilarityMetric.COSINE: "vector_cosine_ops",
    SimilarityMetric.EUCLIDEAN: "vector_l2_ops",
    SimilarityMetric.DOT_PRODUCT: "vector_ip_ops",
}

_DISTANCE_OPERATORS: dict[SimilarityMetric, str] = {
    SimilarityMetric.COSINE: "<=>",
    SimilarityMetric.EUCLIDEAN: "<->",
    SimilarityMetric.DOT_PRODUCT: "<#>",
}


def column_type(field: FieldSchema) -> str:
    """Return the column type for a field schema."""
    if isinstance(field, VectorFieldSchema):
        return f"vector({field.dimensions})"
    assert isinstance(field, ScalarFieldSchema)
    base = _SCALAR_COLUMN_TYPES[field.type.removesuffix("[]")]
    return f"{base}[]" if field.is_array else base


def operator_class(similarity: SimilarityMetric | None) -> str:
    """Return the HNSW operator class for a similarity metric (default cosine)."""
    return _OPERATOR_CLASSES[similarity or SimilarityMetric.COSINE]


def distance_operator(similarity: SimilarityMetric | None) -> str:
    """Return the pgvector distance operator for a similarity metric."""
    return _DISTANCE_OPERATORS[similarity or SimilarityMetric.COSINE]


def score_expression(column: str, similarity: SimilarityMetric | None) -> str:
    """
    Return an expression turning the distance to the $1 query vector into a score.

    Higher scores are always better: cosine maps to 1 - distance,
    euclidean to 1 / (1 + distance), and dot product to the negated
    (already negative) inner product.
    """
    metric = similarity or SimilarityMetric.COSINE
    distance = f"{column} {distance_operator(metric)} $1::vector"
    match metric:
        case SimilarityMetric.COSINE:
            return f"1 - ({distance})"
        case SimilarityMetric.EUCLIDEAN:
            return f"1 / (1 + ({distance}))"
        case SimilarityMetric.DOT_PRODUCT:
            return f"-({distance})"
