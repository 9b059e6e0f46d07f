"""Document search over Postgres tables with pgvector."""

from pgsearch.common.configuration import LogConf, SearchIndexConf
from pgsearch.common.data_types import SimilarityMetric
from pgsearch.search_index import (
    IndexBinding,
    PGIndexHandle,
    PGSearchIndex,
    PGSearchIndexParams,
    SearchHit,
    SearchQuery,
)

__all__ = [
    "IndexBinding",
    "LogConf",
    "PGIndexHandle",
    "PGSearchIndex",
    "PGSearchIndexParams",
    "SearchHit",
    "SearchIndexConf",
    "SearchQuery",
    "SimilarityMetric",
]
