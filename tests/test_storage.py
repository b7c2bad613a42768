"""
Tests for database backend selection.
"""

import pytest
from pydantic import ValidationError

from core.storage import (
    DatabaseBackend,
    get_database_backend,
    select_backend,
)


def test_default_selects_etcd(default_config):
    assert get_database_backend(default_config) == DatabaseBackend.ETCD
    assert select_backend(default_config) is default_config.etcd


@pytest.mark.parametrize(
    "backend, group",
    [
        (DatabaseBackend.SQLITE, "sqlite"),
        (DatabaseBackend.POSTGRES, "postgres"),
        (DatabaseBackend.ETCD, "etcd"),
    ],
)
def test_select_backend_returns_matching_group(default_config, backend, group):
    default_config.database_backend = backend
    assert select_backend(default_config) is getattr(default_config, group)


def test_assigned_string_is_converted(default_config):
    default_config.database_backend = "SQLite"

    assert default_config.database_backend is DatabaseBackend.SQLITE
    assert get_database_backend(default_config) == DatabaseBackend.SQLITE
    assert select_backend(default_config) is default_config.sqlite
    assert default_config.backend is default_config.sqlite


def test_unknown_backend_is_rejected_on_assignment(default_config):
    with pytest.raises(ValidationError):
        default_config.database_backend = "mysql"

    assert default_config.database_backend == DatabaseBackend.ETCD
    assert select_backend(default_config) is default_config.etcd


def test_selection_does_not_validate_credentials(default_config):
    default_config.database_backend = DatabaseBackend.POSTGRES
    postgres = select_backend(default_config)
    assert postgres.host == ""
