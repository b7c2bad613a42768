"""
Storage backend selection.

Supported backends:
- etcd (historical default)
- SQLite (embedded file)
- PostgreSQL
"""

from core.config import (
    BackendConfig,
    DatabaseBackend,
    EtcdConfig,
    PostgresConfig,
    SqliteConfig,
)
from core.storage.factory import get_database_backend, select_backend

__all__ = [
    # Backend groups
    "BackendConfig",
    "DatabaseBackend",
    "EtcdConfig",
    "PostgresConfig",
    "SqliteConfig",
    # Selection
    "get_database_backend",
    "select_backend",
]
