"""Database connector: runs gated SQL on registered target databases.

One async SQLAlchemy engine per connection id, created on first use and
replaced when the stored connection parameters change. Statements are sent
with exec_driver_sql so text such as ``:name`` is not treated as a bind
parameter.
"""

from __future__ import annotations

import asyncio
from typing import Any

from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from sqlgate.application.dtos.connection import ConnectionWithCredentials
from sqlgate.application.dtos.query import ConnectorResult
from sqlgate.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

# db_type -> async SQLAlchemy driver name. Drivers other than asyncpg are
# optional installs.
DRIVERS: dict[str, str] = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "mysql": "mysql+aiomysql",
    "mariadb": "mysql+aiomysql",
    "mssql": "mssql+aioodbc",
    "sqlite": "sqlite+aiosqlite",
}


def build_url(connection: ConnectionWithCredentials) -> URL:
    """Build the SQLAlchemy URL for a connection. Raises ValueError on unknown db_type."""
    driver = DRIVERS.get(connection.db_type.lower())
    if driver is None:
        raise ValueError(f"Unsupported database type: {connection.db_type}")
    if driver.startswith("sqlite"):
        return URL.create(driver, database=connection.database)
    return URL.create(
        driver,
        username=connection.username or None,
        password=connection.password or None,
        host=connection.host,
        port=connection.port,
        database=connection.database,
    )


class SqlAlchemyDatabaseConnector:
    """IDatabaseConnector backed by per-connection async engines."""

    def __init__(self, pool_size: int = 5, pool_recycle: int = 1800) -> None:
        self._pool_size = pool_size
        self._pool_recycle = pool_recycle
        self._engines: dict[str, tuple[str, AsyncEngine]] = {}
        self._lock = asyncio.Lock()

    async def _get_engine(self, connection: ConnectionWithCredentials) -> AsyncEngine:
        url = build_url(connection)
        key = url.render_as_string(hide_password=False)
        async with self._lock:
            cached = self._engines.get(connection.id)
            if cached is not None and cached[0] == key:
                return cached[1]
            if cached is not None:
                logger.info("Connection %s parameters changed; recreating engine", connection.id)
                await cached[1].dispose()
            kwargs: dict[str, Any] = {"pool_pre_ping": True}
            if not url.drivername.startswith("sqlite"):
                kwargs["pool_size"] = self._pool_size
                kwargs["pool_recycle"] = self._pool_recycle
            engine = create_async_engine(url, **kwargs)
            self._engines[connection.id] = (key, engine)
            return engine

    async def execute(
        self, connection: ConnectionWithCredentials, sql: str
    ) -> ConnectorResult:
        """Execute sql and commit. Row-returning statements yield dict rows."""
        engine = await self._get_engine(connection)
        async with engine.connect() as conn:
            # Sent verbatim: "%" and "?" in ad hoc SQL are not bind markers.
            result = await conn.exec_driver_sql(
                sql, execution_options={"no_parameters": True}
            )
            if result.returns_rows:
                fields = list(result.keys())
                rows = [dict(row._mapping) for row in result.fetchall()]
                row_count = len(rows)
            else:
                fields = []
                rows = []
                row_count = max(result.rowcount, 0)
            await conn.commit()
        return ConnectorResult(rows=rows, fields=fields, row_count=row_count)

    async def dispose(self) -> None:
        """Dispose every engine (application shutdown)."""
        async with self._lock:
            engines = [engine for _, engine in self._engines.values()]
            self._engines.clear()
        for engine in engines:
            await engine.dispose()
