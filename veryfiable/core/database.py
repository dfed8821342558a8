"""veryfiable.core.database

PostgreSQL connection pool.

The service owns no tables in-process: `database/schema.sql` is the contract.
This module only hands out pooled connections, answers liveness checks, and
applies the schema file on demand.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from psycopg_pool import AsyncConnectionPool

from veryfiable.core.config import DatabaseConfig
from veryfiable.core.exceptions import DatabaseError

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


class Database:
    """Bounded async pool: acquire on demand, release on completion."""

    def __init__(self, config: DatabaseConfig, *, pool: Any | None = None) -> None:
        self.config = config
        self._pool = pool

    @property
    def pool(self) -> AsyncConnectionPool:
        if self._pool is None:
            self._pool = AsyncConnectionPool(
                conninfo=self.config.url,
                min_size=self.config.min_size,
                max_size=self.config.max_size,
                timeout=self.config.timeout_s,
                open=False,
            )
        return self._pool

    async def open(self) -> None:
        # Do not wait for the first connection: the process must come up (and
        # report itself unhealthy) even while the database is down.
        await self.pool.open(wait=False)
        logger.info("Database pool opened (max_size=%d)", self.config.max_size)

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        logger.info("Database pool closed")

    async def test_connection(self) -> bool:
        """Round-trip a trivial query. Returns True or raises DatabaseError."""

        try:
            async with self.pool.connection() as conn:
                await conn.execute("SELECT NOW()")
        except Exception as e:
            logger.error("Database connection check failed: %s", e)
            raise DatabaseError(f"Database connection failed: {e}") from e
        return True

    async def apply_schema(self, path: Path = SCHEMA_PATH) -> None:
        if not path.exists():
            raise DatabaseError(f"Schema file not found: {path}")
        sql = path.read_text(encoding="utf-8")
        try:
            async with self.pool.connection() as conn:
                await conn.execute(sql)
        except Exception as e:
            raise DatabaseError(f"Applying {path.name} failed: {e}") from e
        logger.info("Applied %s", path)
