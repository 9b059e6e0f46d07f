"""pgvector-backed search index: index lifecycle and binding registry."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import BaseModel, Field, InstanceOf
from sqlalchemy.ext.asyncio import AsyncEngine

from pgsearch.common.configuration import DEFAULT_METADATA_SCHEMA, SearchIndexConf
from pgsearch.common.errors import IndexNotBoundError, SchemaValidationError
from pgsearch.common.pagination import (
    CursorPage,
    CursorPageParams,
    CursorPageResponse,
)
from pgsearch.search_index.data_types import (
    FieldBinding,
    FieldSchema,
    IndexBinding,
    IndexStats,
    IndexSummary,
    SearchCapabilities,
    VectorFieldSchema,
    to_field_schema,
)
from pgsearch.search_index.handle import PGIndexHandle
from pgsearch.search_index.sql.field_type import column_type, operator_class
from pgsearch.search_index.utils import (
    DEFAULT_SCHEMA,
    decode_object,
    qualified_table,
    quote_ident,
    run_statement,
)

logger = logging.getLogger(__name__)

BACKEND_ID = "pgvector"
META_TABLE = "search_indexes"
DEFAULT_LIST_LIMIT = 100


class PGSearchIndexParams(BaseModel):
    """Parameters for PGSearchIndex.

    Attributes:
        engine: SQLAlchemy async engine (postgresql+asyncpg).
        metadata_schema: Postgres schema holding the metadata table.
        create_extension: Whether to create the vector extension on init.
        ensure_init: Optional coroutine function run before initialization.

    """

    engine: InstanceOf[AsyncEngine] = Field(
        ...,
        description="SQLAlchemy async engine (postgresql+asyncpg)",
    )
    metadata_schema: str = Field(
        DEFAULT_METADATA_SCHEMA,
        description="Postgres schema holding the search_indexes table",
    )
    create_extension: bool = Field(
        False,
        description="Run CREATE EXTENSION IF NOT EXISTS vector on initialization",
    )
    ensure_init: Callable[[], Awaitable[None]] | None = Field(
        None,
        description="Coroutine function run once before initialization",
    )

    @classmethod
    def from_conf(cls, conf: SearchIndexConf) -> "PGSearchIndexParams":
        """Build parameters, and a new engine, from a configuration."""
        return cls(
            engine=conf.build_engine(),
            metadata_schema=conf.metadata_schema,
            create_extension=conf.create_extension,
        )


class PGSearchIndex:
    """
    Search index backed by Postgres tables with pgvector columns.

    Bindings are persisted in the search_indexes metadata table and cached
    per instance. Initialization (metadata table and cache load) runs at
    most once, under a lock, on first use.
    """

    id = BACKEND_ID

    def __init__(self, params: PGSearchIndexParams) -> None:
        """Initialize the search index with the provided parameters."""
        self._engine = params.engine
        self._meta_schema = params.metadata_schema
        self._create_extension = params.create_extension
        self._user_init = params.ensure_init

        self._bindings: dict[str, IndexBinding] = {}
        self._ready = False
        self._init_lock = asyncio.Lock()

    @property
    def _meta_table(self) -> str:
        return qualified_table(self._meta_schema, META_TABLE)

    async def startup(self) -> None:
        """Initialize eagerly instead of on first use."""
        await self.ensure_init()

    async def shutdown(self) -> None:
        """Dispose of the engine."""
        await self._engine.dispose()

    async def ensure_init(self) -> None:
        """Create the metadata table if needed and load persisted bindings."""
        if self._ready:
            return
        async with self._init_lock:
            if self._ready:
                return

            if self._user_init is not None:
                await self._user_init()

            if self._create_extension:
                await run_statement(self._engine, "CREATE EXTENSION IF NOT EXISTS vector")

            await run_statement(
                self._engine,
                f"CREATE SCHEMA IF NOT EXISTS {quote_ident(self._meta_schema)}",
            )
            await run_statement(
                self._engine,
                f"CREATE TABLE IF NOT EXISTS {self._meta_table} (\n"
                "  id TEXT PRIMARY KEY,\n"
                "  backend TEXT NOT NULL,\n"
                "  config JSONB NOT NULL,\n"
                "  created_at BIGINT NOT NULL\n"
                ")",
            )

            result = await run_statement(
                self._engine,
                f"SELECT id, config FROM {self._meta_table} WHERE backend = $1",
                [BACKEND_ID],
            )
            for row in result.rows:
                self._bindings[row["id"]] = IndexBinding.model_validate(
                    decode_object(row["config"])
                )

            logger.debug("Loaded %d index bindings", len(self._bindings))
            self._ready = True

    def _get_binding(self, index_id: str) -> IndexBinding | None:
        return self._bindings.get(index_id)

    def _require_binding(self, index_id: str) -> IndexBinding:
        binding = self._bindings.get(index_id)
        if binding is None:
            raise IndexNotBoundError(index_id)
        return binding

    async def _save_binding(self, index_id: str, binding: IndexBinding) -> None:
        await run_statement(
            self._engine,
            f"INSERT INTO {self._meta_table} (id, backend, config, created_at)\n"
            "VALUES ($1, $2, $3, $4)\n"
            "ON CONFLICT (id) DO UPDATE SET config = EXCLUDED.config",
            [index_id, BACKEND_ID, binding.to_json(), int(time.time() * 1000)],
        )
        self._bindings[index_id] = binding

    async def create_index(
        self,
        index_id: str,
        schema: Mapping[str, FieldSchema | Mapping[str, Any]],
        *,
        schema_name: str = DEFAULT_SCHEMA,
    ) -> None:
        """
        Create a table for a new index and bind it.

        Exactly one field must have pk set. Every vector field gets an
        HNSW index using the operator class of its similarity metric.
        The index is usable as soon as this returns.
        """
        fields = {name: to_field_schema(spec) for name, spec in schema.items()}

        pk_fields = [name for name, spec in fields.items() if spec.pk]
        if not pk_fields:
            raise SchemaValidationError("schema must have a field with pk: true")
        if len(pk_fields) > 1:
            raise SchemaValidationError(
                f"schema must have exactly one pk field, got {pk_fields}"
            )
        pkey = pk_fields[0]

        await self.ensure_init()

        table = qualified_table(schema_name, index_id)
        columns = [
            f"{quote_ident(name)} {column_type(spec)}{' PRIMARY KEY' if spec.pk else ''}"
            for name, spec in fields.items()
        ]
        await run_statement(
            self._engine,
            f"CREATE TABLE {table} (\n  " + ",\n  ".join(columns) + "\n)",
        )

        for name, spec in fields.items():
            if not isinstance(spec, VectorFieldSchema):
                continue
            await run_statement(
                self._engine,
                f"CREATE INDEX {quote_ident(f'{index_id}_{name}_idx')}\n"
                f"ON {table}\n"
                f"USING hnsw ({quote_ident(name)} {operator_class(spec.similarity)})",
            )

        binding = IndexBinding(
            schema=schema_name,
            table=index_id,
            pkey=pkey,
            fields={name: _field_binding(name, spec) for name, spec in fields.items()},
        )
        await self._save_binding(index_id, binding)
        logger.info("Created index %s in schema %s", index_id, schema_name)

    async def bind_index(
        self,
        index_id: str,
        binding: IndexBinding | Mapping[str, Any],
    ) -> None:
        """Register (or replace) the binding of an existing table, without DDL."""
        if not isinstance(binding, IndexBinding):
            binding = IndexBinding.model_validate(binding)

        await self.ensure_init()
        await self._save_binding(index_id, binding)
        logger.info(
            "Bound index %s to %s.%s", index_id, binding.schema_name, binding.table
        )

    async def describe_index(self, index_id: str) -> IndexStats:
        """Return row count, storage size and vector settings of an index."""
        await self.ensure_init()
        binding = self._require_binding(index_id)
        table = qualified_table(binding.schema_name, binding.table)

        count_result = await run_statement(
            self._engine, f"SELECT COUNT(*) AS count FROM {table}"
        )
        size_result = await run_statement(
            self._engine,
            "SELECT pg_total_relation_size($1::text::regclass) AS size",
            [table],
        )

        vector_field = binding.vector_field()
        return IndexStats(
            id=index_id,
            count=int(count_result.rows[0]["count"]) if count_result.rows else 0,
            size_bytes=int(size_result.rows[0]["size"]) if size_result.rows else 0,
            dimensions=vector_field.dimensions if vector_field else None,
            similarity=vector_field.similarity if vector_field else None,
        )

    async def delete_index(self, index_id: str) -> None:
        """Drop an index's table and remove its binding."""
        await self.ensure_init()
        binding = self._require_binding(index_id)

        await run_statement(
            self._engine,
            f"DROP TABLE IF EXISTS {qualified_table(binding.schema_name, binding.table)}",
        )
        await run_statement(
            self._engine,
            f"DELETE FROM {self._meta_table} WHERE id = $1",
            [index_id],
        )
        self._bindings.pop(index_id, None)
        logger.info("Deleted index %s", index_id)

    async def list_indexes(
        self,
        *,
        prefix: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> CursorPage[IndexSummary]:
        """List indexes ordered by id, one page at a time."""
        await self.ensure_init()
        params = CursorPageParams(prefix=prefix, cursor=cursor, limit=limit)
        response = await self._load_index_page(params)
        return CursorPage(params=params, response=response, loader=self._load_index_page)

    async def _load_index_page(
        self,
        params: CursorPageParams,
    ) -> CursorPageResponse[IndexSummary]:
        limit = params.limit if params.limit is not None else DEFAULT_LIST_LIMIT

        sql = f"SELECT id FROM {self._meta_table}\nWHERE backend = $1"
        sql_params: list[Any] = [BACKEND_ID]
        if params.prefix:
            sql_params.append(params.prefix)
            sql += f" AND starts_with(id, ${len(sql_params)})"
        if params.cursor:
            sql_params.append(params.cursor)
            sql += f" AND id > ${len(sql_params)}"
        # fetch one extra row to learn whether another page exists
        sql_params.append(limit + 1)
        sql += f"\nORDER BY id ASC LIMIT ${len(sql_params)}"

        result = await run_statement(self._engine, sql, sql_params)

        has_more = len(result.rows) > limit
        rows = result.rows[:limit]
        data = [IndexSummary(id=row["id"], status="ready") for row in rows]
        return CursorPageResponse(
            data=data,
            next=rows[-1]["id"] if has_more and rows else None,
            last=not has_more,
        )

    async def warm(self, index_id: str) -> None:
        """No-op: pgvector indexes need no warming."""

    def capabilities(self) -> SearchCapabilities:
        """Report the query features supported by pgvector."""
        return SearchCapabilities(
            modes=frozenset({"vector"}),
            multi_signal=False,
            multi_vector=False,
            filters=True,
            order_by=True,
        )

    def index(self, index_id: str) -> PGIndexHandle:
        """Get a handle for operating on a specific index."""
        return PGIndexHandle(
            engine=self._engine,
            ensure_init=self.ensure_init,
            index_id=index_id,
            resolve_binding=self._get_binding,
        )


def _field_binding(name: str, spec: FieldSchema) -> FieldBinding:
    if isinstance(spec, VectorFieldSchema):
        return FieldBinding(
            column=name,
            type="vector",
            dimensions=spec.dimensions,
            similarity=spec.similarity,
        )
    return FieldBinding(column=name, type=spec.type)
