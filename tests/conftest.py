from collections.abc import Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine


class FakeResult:
    """Stand-in for a SQLAlchemy CursorResult."""

    def __init__(
        self,
        columns: Sequence[str] | None = None,
        rows: Sequence[Sequence[Any]] | None = None,
        rowcount: int = -1,
    ) -> None:
        self._columns = list(columns or [])
        self._rows = [tuple(row) for row in rows or []]
        self.returns_rows = columns is not None
        self.rowcount = rowcount

    def keys(self) -> list[str]:
        return self._columns

    def all(self) -> list[tuple[Any, ...]]:
        return self._rows


class FakeConnection:
    def __init__(self, engine: "FakeEngine") -> None:
        self._engine = engine

    async def exec_driver_sql(self, sql: str, params: tuple[Any, ...] = ()) -> Any:
        self._engine.statements.append((sql, list(params)))
        return self._engine.result_for(sql)


class FakeEngine:
    """
    Records executed statements and replays queued results.

    A queued result is used once, by the first statement containing its
    SQL fragment. Statements with no queued result return no rows.
    """

    def __init__(self) -> None:
        self.statements: list[tuple[str, list[Any]]] = []
        self._responses: list[tuple[str, FakeResult]] = []

        self.mock = MagicMock(spec=AsyncEngine)
        self.mock.begin.side_effect = self._begin
        self.mock.dispose = AsyncMock()

    @asynccontextmanager
    async def _begin(self):
        yield FakeConnection(self)

    def respond(
        self,
        fragment: str,
        rows: Sequence[Mapping[str, Any]] = (),
        rowcount: int = -1,
    ) -> None:
        columns = list(rows[0].keys()) if rows else []
        result = FakeResult(
            columns=columns,
            rows=[[row[c] for c in columns] for row in rows],
            rowcount=rowcount,
        )
        self._responses.append((fragment, result))

    def respond_raw(
        self,
        fragment: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
    ) -> None:
        self._responses.append((fragment, FakeResult(columns=columns, rows=rows)))

    def respond_rowcount(self, fragment: str, rowcount: int) -> None:
        self._responses.append((fragment, FakeResult(rowcount=rowcount)))

    def result_for(self, sql: str) -> FakeResult:
        for i, (fragment, result) in enumerate(self._responses):
            if fragment in sql:
                del self._responses[i]
                return result
        return FakeResult(rowcount=0)

    def sql_matching(self, fragment: str) -> list[tuple[str, list[Any]]]:
        return [(sql, params) for sql, params in self.statements if fragment in sql]


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()
