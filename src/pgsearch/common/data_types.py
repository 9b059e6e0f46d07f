"""
Common data types for pgsearch.
"""

from datetime import datetime
from enum import Enum
from typing import TypeAlias


class SimilarityMetric(Enum):
    """Similarity metrics supported by pgvector."""

    COSINE = "cosine"
    EUCLIDEAN = "euclidean"
    DOT_PRODUCT = "dot_product"


# Type alias for JSON-compatible data structures.
JSONValue: TypeAlias = (
    None | bool | int | float | str | list["JSONValue"] | dict[str, "JSONValue"]
)

# Types that can be compared against in a filter.
ScalarValue: TypeAlias = str | int | float | bool | datetime | None

# Types that can be stored in a document field.
FieldValue: TypeAlias = (
    ScalarValue
    | list[float]
    | list[ScalarValue]
    | dict[str, JSONValue]
    | tuple[float, float]
)
