"""Database connection management."""

from typing import Any, Dict

import psycopg
from psycopg.conninfo import make_conninfo
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool


class DatabaseConfig:
    """Database configuration."""

    def __init__(self, config: Dict[str, Any]) -> None:
        """Initialize database config from dict."""
        self.host = config.get("host", "localhost")
        self.port = config.get("port", 5432)
        self.database = config.get("database", "autonews")
        self.user = config.get("user", "autonews_user")
        self.password = config.get("password") or ""
        self.min_size = config.get("min_pool_size", 1)
        self.max_size = config.get("max_pool_size", 5)

    @property
    def connection_string(self) -> str:
        """Get psycopg connection string."""
        return make_conninfo(
            host=self.host,
            port=self.port,
            dbname=self.database,
            user=self.user,
            password=self.password,
        )


async def create_connection_pool(config: Dict[str, Any]) -> AsyncConnectionPool:
    """
    Create and open an async connection pool.

    The pool checks each connection before handing it out, so connections
    dropped by the server are replaced transparently instead of failing the
    next query.
    """
    db_config = DatabaseConfig(config)
    pool = AsyncConnectionPool(
        db_config.connection_string,
        min_size=db_config.min_size,
        max_size=db_config.max_size,
        kwargs={"row_factory": dict_row},
        check=AsyncConnectionPool.check_connection,
        open=False,
    )
    await pool.open()
    return pool


async def connect(config: Dict[str, Any]) -> psycopg.AsyncConnection:
    """Open a single connection outside any pool."""
    db_config = DatabaseConfig(config)
    return await psycopg.AsyncConnection.connect(
        db_config.connection_string,
        row_factory=dict_row,
    )
