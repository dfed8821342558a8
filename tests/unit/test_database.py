from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

import pytest

from veryfiable.core.config import DatabaseConfig
from veryfiable.core.database import SCHEMA_PATH, Database
from veryfiable.core.exceptions import DatabaseError


class FakeConn:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.executed: list[str] = []

    async def execute(self, sql: str) -> None:
        if self.error is not None:
            raise self.error
        self.executed.append(sql)


class FakePool:
    def __init__(self, conn: FakeConn) -> None:
        self.conn = conn
        self.acquired = 0
        self.released = 0
        self.closed = False

    @asynccontextmanager
    async def connection(self):
        self.acquired += 1
        try:
            yield self.conn
        finally:
            self.released += 1

    async def close(self) -> None:
        self.closed = True


@pytest.mark.anyio
async def test_test_connection_round_trips_and_releases() -> None:
    pool = FakePool(FakeConn())
    db = Database(DatabaseConfig(), pool=pool)

    assert await db.test_connection() is True
    assert pool.conn.executed == ["SELECT NOW()"]
    assert pool.acquired == pool.released == 1


@pytest.mark.anyio
async def test_test_connection_failure_raises_database_error() -> None:
    pool = FakePool(FakeConn(error=OSError("connection refused")))
    db = Database(DatabaseConfig(), pool=pool)

    with pytest.raises(DatabaseError) as e:
        await db.test_connection()
    assert "connection refused" in str(e.value)
    assert pool.released == 1


@pytest.mark.anyio
async def test_apply_schema_executes_schema_file() -> None:
    pool = FakePool(FakeConn())
    db = Database(DatabaseConfig(), pool=pool)

    await db.apply_schema()
    (sql,) = pool.conn.executed
    assert "CREATE TABLE IF NOT EXISTS attestations" in sql
    assert "CHECK (rating BETWEEN 1 AND 10)" in sql


@pytest.mark.anyio
async def test_apply_schema_missing_file(tmp_path: Path) -> None:
    db = Database(DatabaseConfig(), pool=FakePool(FakeConn()))
    with pytest.raises(DatabaseError):
        await db.apply_schema(tmp_path / "nope.sql")


@pytest.mark.anyio
async def test_close_without_pool_is_noop_and_close_releases_pool() -> None:
    await Database(DatabaseConfig()).close()

    pool = FakePool(FakeConn())
    await Database(DatabaseConfig(), pool=pool).close()
    assert pool.closed is True


def test_schema_file_declares_both_tables_and_indexes() -> None:
    sql = SCHEMA_PATH.read_text(encoding="utf-8")
    assert "CREATE TABLE IF NOT EXISTS schemas" in sql
    assert "uid VARCHAR(66) UNIQUE NOT NULL" in sql
    for idx in ("idx_platform_item", "idx_platform", "idx_attester", "idx_rating", "idx_created_at", "idx_review_text_search"):
        assert idx in sql
