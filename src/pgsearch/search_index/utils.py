"""Helpers shared by the search index modules."""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from numbers import Real
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"


def quote_ident(name: str) -> str:
    """Quote a Postgres identifier, doubling embedded quotes."""
    return '"' + name.replace('"', '""') + '"'


def qualified_table(schema: str, table: str) -> str:
    """Return the quoted "schema"."table" reference."""
    return f"{quote_ident(schema)}.{quote_ident(table)}"


def parse_index_id(index_id: str) -> tuple[str, str]:
    """Split an index id into (schema, table) by convention."""
    schema, sep, table = index_id.partition(".")
    if sep and schema and table:
        return schema, table
    return DEFAULT_SCHEMA, index_id


def is_vector(value: object) -> bool:
    """Return True if *value* is a non-empty list of numbers."""
    if not isinstance(value, (list, tuple)) or not value:
        return False
    return all(isinstance(x, Real) and not isinstance(x, bool) for x in value)


def encode_vector(vector: Sequence[float]) -> str:
    """Encode a vector as a pgvector text literal, to be cast ::vector."""
    return json.dumps([float(x) for x in vector], separators=(",", ":"))


def decode_vector(raw: object) -> list[float] | object:
    """Decode a pgvector value returned by the driver."""
    if isinstance(raw, str) and raw.startswith("["):
        return [float(x) for x in json.loads(raw)]
    if isinstance(raw, (list, tuple)):
        return [float(x) for x in raw]
    return raw


def encode_object(value: object) -> str:
    """Encode a JSON document for a jsonb parameter."""
    return json.dumps(value)


def decode_object(raw: object) -> object:
    """Decode a jsonb value returned by the driver."""
    if isinstance(raw, (str, bytes)):
        return json.loads(raw)
    return raw


@dataclass
class StatementResult:
    """Rows and affected row count of an executed statement."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = 0


async def run_statement(
    engine: AsyncEngine,
    sql: str,
    params: Sequence[Any] = (),
) -> StatementResult:
    """
    Execute one compiled statement with positional $N parameters.

    The statement runs in its own transaction. When a result column
    name repeats, the first occurrence wins.
    """
    logger.debug("Executing SQL: %s", " ".join(sql.split()))
    async with engine.begin() as conn:
        if params:
            result = await conn.exec_driver_sql(sql, tuple(params))
        else:
            result = await conn.exec_driver_sql(sql)

        rows: list[dict[str, Any]] = []
        if result.returns_rows:
            columns = list(result.keys())
            for raw in result.all():
                row: dict[str, Any] = {}
                for column, value in zip(columns, raw, strict=True):
                    row.setdefault(column, value)
                rows.append(row)

        rowcount = result.rowcount if result.rowcount >= 0 else len(rows)
        return StatementResult(rows=rows, rowcount=rowcount)
