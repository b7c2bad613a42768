"""
Database backend selection.

The storage subsystem opens exactly one backend, chosen by the
dbbackend option. This module hands it the matching configuration group
so that settings of unselected backends are never read by mistake.
Credentials are not checked here; the backend validates them on open.
"""

from typing import TYPE_CHECKING

from core.config import BackendConfig, DatabaseBackend
from core.logging import get_logger


if TYPE_CHECKING:
    from core.config import Config


logger = get_logger(__name__, subsystem="APER")


def get_database_backend(config: "Config") -> DatabaseBackend:
    """
    Determine which database backend to use based on the configuration.

    The value is already a DatabaseBackend: Config converts strings on
    construction and on assignment and rejects unknown backends.
    """
    return config.database_backend


def select_backend(config: "Config") -> BackendConfig:
    """
    Return the configuration group of the selected backend.

    Args:
        config: Gateway configuration

    Returns:
        EtcdConfig, SqliteConfig or PostgresConfig
    """
    group = config.backend
    logger.info(
        "Database backend selected",
        database_backend=get_database_backend(config).value,
    )
    return group
