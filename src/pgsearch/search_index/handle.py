"""Per-index handle for querying and mutating documents."""

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine

from pgsearch.common.errors import DocumentValidationError
from pgsearch.search_index.data_types import (
    DeleteResult,
    Document,
    IndexBinding,
    PatchResult,
    SearchHit,
    UpsertResult,
)
from pgsearch.search_index.hit import decode_search_hit
from pgsearch.search_index.sql.query import (
    QueryInput,
    assemble_query,
    normalize_query,
    sqlize,
)
from pgsearch.search_index.utils import (
    encode_object,
    encode_vector,
    is_vector,
    parse_index_id,
    qualified_table,
    quote_ident,
    run_statement,
)

logger = logging.getLogger(__name__)

BindingResolver = Callable[[str], IndexBinding | None]


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, (str, Mapping)):
        return [value]
    return list(value)


class PGIndexHandle:
    """
    pgvector-backed handle for one index.

    The handle resolves its binding on every operation, after the owning
    search index has initialized, so it sees bindings created later.
    Unbound ids fall back to the convention: table named after the id in
    the public schema (or "schema.table"), primary key column "id".
    """

    def __init__(
        self,
        *,
        engine: AsyncEngine,
        ensure_init: Callable[[], Awaitable[None]],
        index_id: str,
        resolve_binding: BindingResolver,
    ) -> None:
        """Initialize the handle."""
        self.id = index_id
        self._engine = engine
        self._ensure_init = ensure_init
        self._resolve_binding = resolve_binding

    async def _binding(self) -> IndexBinding:
        await self._ensure_init()
        binding = self._resolve_binding(self.id)
        if binding is not None:
            return binding
        schema, table = parse_index_id(self.id)
        return IndexBinding(schema=schema, table=table, pkey="id")

    async def query(self, query_input: QueryInput) -> list[SearchHit]:
        """Query the index by vector similarity, filters and ordering."""
        query = normalize_query(query_input)
        binding = await self._binding()

        sqlized = sqlize(
            query,
            pkey=binding.pkey,
            schema=binding.schema_name,
            table=binding.table,
            binding=binding,
        )
        statement = assemble_query(
            sqlized,
            schema=binding.schema_name,
            table=binding.table,
        )

        result = await run_statement(self._engine, statement.sql, statement.params)
        hits = [
            decode_search_hit(row, self.id, binding, query.include)
            for row in result.rows
        ]
        if query.min_score is not None:
            hits = [hit for hit in hits if hit.score >= query.min_score]
        return hits

    def _encode_value(
        self,
        binding: IndexBinding,
        field_name: str,
        value: Any,
        placeholder: str,
    ) -> tuple[Any, str]:
        """Return the bind value and placeholder expression for one field."""
        if value is None:
            return None, placeholder
        field_binding = binding.fields.get(field_name)
        if field_binding is None:
            # unbound fields fall back to a runtime check
            if is_vector(value):
                return encode_vector(value), f"{placeholder}::vector"
            return value, placeholder
        if field_binding.is_vector:
            return encode_vector(value), f"{placeholder}::vector"
        if field_binding.type == "object":
            return encode_object(value), f"{placeholder}::jsonb"
        return value, placeholder

    async def upsert(self, docs: Document | Sequence[Document]) -> UpsertResult:
        """
        Insert or update documents keyed by primary key.

        The columns written are the union of the documents' fields. Each
        affected row is classified as inserted or updated from xmax, which
        is 0 only for tuples inserted by this statement.
        """
        documents = _as_list(docs)
        if not documents:
            return UpsertResult()

        binding = await self._binding()
        pkey = binding.pkey
        pkey_field = binding.pkey_field()

        field_names: list[str] = []
        for doc in documents:
            for key in doc:
                if key != pkey_field and key not in field_names:
                    field_names.append(key)

        columns = [pkey, *(binding.column_for(name) for name in field_names)]

        params: list[Any] = []
        rows: list[str] = []
        for doc in documents:
            pkey_value = doc.get(pkey_field)
            if not isinstance(pkey_value, str):
                raise DocumentValidationError(pkey_field)

            params.append(pkey_value)
            placeholders = [f"${len(params)}"]
            for name in field_names:
                value, placeholder = self._encode_value(
                    binding, name, doc.get(name), f"${len(params) + 1}"
                )
                params.append(value)
                placeholders.append(placeholder)
            rows.append(f"({', '.join(placeholders)})")

        quoted = [quote_ident(column) for column in columns]
        if len(quoted) > 1:
            sets = ", ".join(f"{c} = EXCLUDED.{c}" for c in quoted[1:])
            conflict = f"DO UPDATE SET {sets}"
        else:
            conflict = "DO NOTHING"

        sql = (
            f"INSERT INTO {qualified_table(binding.schema_name, binding.table)} "
            f"({', '.join(quoted)})\n"
            f"VALUES {', '.join(rows)}\n"
            f"ON CONFLICT ({quoted[0]}) {conflict}\n"
            f"RETURNING (xmax = 0) as inserted"
        )

        result = await run_statement(self._engine, sql, params)
        count = len(result.rows)
        inserted = sum(1 for row in result.rows if row["inserted"])
        logger.debug(
            "Upserted %d documents into %s (%d inserted)", count, self.id, inserted
        )
        return UpsertResult(count=count, inserted=inserted, updated=count - inserted)

    async def patch(
        self,
        patches: Mapping[str, Any] | Sequence[Mapping[str, Any]],
    ) -> PatchResult:
        """
        Update only the fields present in each patch.

        A None value clears the column. Patches with no fields besides the
        primary key are skipped without issuing a statement.
        """
        patch_list = _as_list(patches)
        if not patch_list:
            return PatchResult()

        binding = await self._binding()
        pkey = binding.pkey
        pkey_field = binding.pkey_field()
        table = qualified_table(binding.schema_name, binding.table)

        for patch in patch_list:
            if not isinstance(patch.get(pkey_field), str):
                raise DocumentValidationError(pkey_field, kind="Patch")

        total = 0
        for patch in patch_list:
            params: list[Any] = []
            updates: list[str] = []
            for name, value in patch.items():
                if name in (pkey_field, pkey):
                    continue
                encoded, placeholder = self._encode_value(
                    binding, name, value, f"${len(params) + 1}"
                )
                params.append(encoded)
                updates.append(f"{quote_ident(binding.column_for(name))} = {placeholder}")

            if not updates:
                continue

            params.append(patch[pkey_field])
            sql = (
                f"UPDATE {table}\n"
                f"SET {', '.join(updates)}\n"
                f"WHERE {quote_ident(pkey)} = ${len(params)}"
            )
            result = await run_statement(self._engine, sql, params)
            total += result.rowcount

        return PatchResult(count=total)

    async def delete(self, ids: str | Sequence[str]) -> DeleteResult:
        """Delete documents by primary key."""
        id_list = _as_list(ids)
        if not id_list:
            return DeleteResult()

        binding = await self._binding()
        placeholders = ", ".join(f"${i}" for i in range(1, len(id_list) + 1))
        sql = (
            f"DELETE FROM {qualified_table(binding.schema_name, binding.table)}\n"
            f"WHERE {quote_ident(binding.pkey)} IN ({placeholders})"
        )
        result = await run_statement(self._engine, sql, id_list)
        logger.debug("Deleted %d documents from %s", result.rowcount, self.id)
        return DeleteResult(count=result.rowcount)
