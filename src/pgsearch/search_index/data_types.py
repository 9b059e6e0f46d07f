"""Data types for search indexes."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    TypeAdapter,
    field_validator,
)

from pgsearch.common.data_types import FieldValue, SimilarityMetric

SCALAR_TYPES = (
    "string",
    "int",
    "bigint",
    "float",
    "boolean",
    "date",
    "object",
    "geopoint",
)

# A ranking signal maps field names to a query vector or query text.
# The reserved key "weight" carries the fusion weight.
RankingSignal: TypeAlias = Mapping[str, Any]

Document: TypeAlias = Mapping[str, FieldValue]

Filter: TypeAlias = Mapping[str, Any]

# The computed score is always aliased "score"; a document field with the
# same name is never projected so hit.score stays the similarity score.
RESERVED_SCORE_FIELD = "score"


class ScalarFieldSchema(BaseModel):
    """Schema of a scalar, complex or array field."""

    type: str = Field(
        ...,
        description="Scalar kind, optionally suffixed with [] for arrays",
    )
    pk: bool = Field(False, description="Whether this field is the primary key")

    @field_validator("type")
    @classmethod
    def _validate_type(cls, value: str) -> str:
        base = value.removesuffix("[]")
        if base not in SCALAR_TYPES:
            raise ValueError(f"Unknown field type: {value!r}")
        return value

    @property
    def is_array(self) -> bool:
        """Whether the field holds an array of the scalar kind."""
        return self.type.endswith("[]")


class VectorFieldSchema(BaseModel):
    """Schema of a dense vector field."""

    type: Literal["vector"] = "vector"
    dimensions: PositiveInt = Field(..., description="Number of dimensions")
    similarity: SimilarityMetric = Field(
        SimilarityMetric.COSINE,
        description="Similarity metric used for scoring and indexing",
    )
    pk: bool = False


FieldSchema: TypeAlias = VectorFieldSchema | ScalarFieldSchema

_field_schema_adapter: TypeAdapter[FieldSchema] = TypeAdapter(FieldSchema)


def to_field_schema(value: FieldSchema | Mapping[str, Any]) -> FieldSchema:
    """Validate a field schema given as a model or a plain mapping."""
    if isinstance(value, (VectorFieldSchema, ScalarFieldSchema)):
        return value
    return _field_schema_adapter.validate_python(value)


class FieldBinding(BaseModel):
    """Binding of one logical field to a physical column."""

    column: str
    type: str = "string"
    dimensions: int | None = None
    similarity: SimilarityMetric | None = None

    @property
    def is_vector(self) -> bool:
        """Whether the bound column holds a vector."""
        return self.type == "vector"


class IndexBinding(BaseModel):
    """Mapping from an index's logical fields to a physical table."""

    model_config = ConfigDict(populate_by_name=True)

    schema_name: str = Field("public", alias="schema")
    table: str
    pkey: str = "id"
    fields: dict[str, FieldBinding] = Field(default_factory=dict)

    def column_for(self, field_name: str) -> str:
        """Return the column bound to *field_name*, or the name itself."""
        binding = self.fields.get(field_name)
        return binding.column if binding is not None else field_name

    def pkey_field(self) -> str:
        """Return the logical field whose column is the primary key."""
        for field_name, binding in self.fields.items():
            if binding.column == self.pkey:
                return field_name
        return self.pkey

    def projected_fields(self, include: list[str] | bool | None = None) -> list[str]:
        """
        Return the logical fields a query projects for *include*.

        None or True selects every field, False none, and a list the named
        bound fields in the given order. The field named "score" is never
        projected since the computed score is aliased to that name.
        """
        if include is False:
            return []
        if isinstance(include, list):
            return [
                name
                for name in include
                if name != RESERVED_SCORE_FIELD and name in self.fields
            ]
        return [name for name in self.fields if name != RESERVED_SCORE_FIELD]

    def vector_field(self) -> FieldBinding | None:
        """Return the first vector field binding, if any."""
        for binding in self.fields.values():
            if binding.is_vector:
                return binding
        return None

    def to_json(self) -> str:
        """Serialize to the JSON document stored in the metadata table."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class OrderBy(BaseModel):
    """Explicit sort order."""

    field: str
    direction: Literal["asc", "desc"] = "desc"


class SearchQuery(BaseModel):
    """Full search query options."""

    model_config = ConfigDict(populate_by_name=True)

    query: list[dict[str, Any]] | None = Field(
        None,
        description="Sum-fusion ranking signals",
    )
    max: list[dict[str, Any]] | None = Field(
        None,
        description="Max-fusion ranking signals, used when query is absent",
    )
    filter: dict[str, Any] | None = None
    order_by: OrderBy | None = Field(None, alias="orderBy")
    top_k: int | None = Field(None, ge=0, alias="topK")
    offset: int | None = Field(None, ge=0)
    min_score: float | None = Field(None, alias="minScore")
    include: list[str] | bool | None = None

    @property
    def signals(self) -> list[dict[str, Any]]:
        """Ranking signals of this query, preferring query over max."""
        if self.query is not None:
            return self.query
        return self.max or []


@dataclass(kw_only=True)
class SearchHit:
    """A ranked search result."""

    id: str
    index: str
    score: float
    document: dict[str, FieldValue] | None = None


@dataclass(kw_only=True)
class UpsertResult:
    """Outcome of an upsert."""

    count: int = 0
    inserted: int = 0
    updated: int = 0


@dataclass(kw_only=True)
class PatchResult:
    """Outcome of a patch."""

    count: int = 0


@dataclass(kw_only=True)
class DeleteResult:
    """Outcome of a delete."""

    count: int = 0


IndexStatus: TypeAlias = Literal["ready", "initializing", "error"]


@dataclass(kw_only=True)
class IndexSummary:
    """Entry of an index listing."""

    id: str
    status: IndexStatus = "ready"


@dataclass(kw_only=True)
class IndexStats:
    """Statistics about an index."""

    id: str
    count: int
    size_bytes: int
    dimensions: int | None = None
    similarity: SimilarityMetric | None = None
    status: IndexStatus = "ready"


@dataclass(kw_only=True, frozen=True)
class SearchCapabilities:
    """Query features a search backend supports."""

    modes: frozenset[str] = field(default_factory=frozenset)
    multi_signal: bool = False
    multi_vector: bool = False
    filters: bool = False
    order_by: bool = False
