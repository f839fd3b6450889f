from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import psycopg
from psycopg_pool import ConnectionPool, PoolTimeout

from moderation.config.settings import Settings
from moderation.logging.logger import Log

_pool: ConnectionPool | None = None


def _conninfo(settings: Settings) -> str:
    return (
        f"host={settings.db_host} "
        f"port={settings.db_port} "
        f"dbname={settings.db_database} "
        f"user={settings.db_username} "
        f"password={settings.db_password}"
    )


def init_pool(settings: Settings) -> None:
    """Open the global pool and block until a first connection is established.

    Every worker thread may hold one connection for a claim while a sink
    writes through another, so the pool is sized from worker_pool_size.

    Raises:
        PoolTimeout: if the database is unreachable within db_connect_timeout_seconds.
    """
    global _pool  # noqa: PLW0603
    pool = ConnectionPool(
        _conninfo(settings),
        min_size=1,
        max_size=settings.worker_pool_size * 2 + 2,
        name="moderation",
        open=True,
    )
    try:
        pool.wait(timeout=settings.db_connect_timeout_seconds)
    except PoolTimeout:
        pool.close()
        raise
    _pool = pool
    Log.info(f"Database pool ready ({settings.db_host}:{settings.db_port}/{settings.db_database})")


def close_pool() -> None:
    """Close the global connection pool."""
    global _pool  # noqa: PLW0603
    if _pool is not None:
        _pool.close()
        _pool = None


@contextmanager
def get_connection() -> Generator[psycopg.Connection[Any], None, None]:
    """Yield a connection from the pool. Caller manages commit/rollback."""
    if _pool is None:
        raise RuntimeError("Connection pool not initialized. Call init_pool() first.")
    with _pool.connection() as conn:
        yield conn
