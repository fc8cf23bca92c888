"""Database management for the news pipeline."""

from .connection import DatabaseConfig, connect, create_connection_pool
from .init import SCHEMA_SQL, init_database, validate_connection
from .store import ContentStore, PostgresContentStore

__all__ = [
    "ContentStore",
    "DatabaseConfig",
    "PostgresContentStore",
    "SCHEMA_SQL",
    "connect",
    "create_connection_pool",
    "init_database",
    "validate_connection",
]
