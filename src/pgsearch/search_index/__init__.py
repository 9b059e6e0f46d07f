"""Public exports for the pgvector search index."""

from .data_types import (
    DeleteResult,
    FieldBinding,
    FieldSchema,
    IndexBinding,
    IndexStats,
    IndexSummary,
    OrderBy,
    PatchResult,
    ScalarFieldSchema,
    SearchCapabilities,
    SearchHit,
    SearchQuery,
    UpsertResult,
    VectorFieldSchema,
)
from .handle import PGIndexHandle
from .pg_search_index import PGSearchIndex, PGSearchIndexParams

__all__ = [
    "DeleteResult",
    "FieldBinding",
    "FieldSchema",
    "IndexBinding",
    "IndexStats",
    "IndexSummary",
    "OrderBy",
    "PGIndexHandle",
    "PGSearchIndex",
    "PGSearchIndexParams",
    "PatchResult",
    "ScalarFieldSchema",
    "SearchCapabilities",
    "SearchHit",
    "SearchQuery",
    "UpsertResult",
    "VectorFieldSchema",
]
