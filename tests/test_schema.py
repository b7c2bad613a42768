"""
Tests for the option schema and dotted overrides.
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from core.config import DatabaseBackend, SqliteConfig
from core.errors import ConfigError, UnknownOptionError
from core.schema import apply_overrides, config_schema


@pytest.fixture
def schema():
    return config_schema()


def test_schema_uses_canonical_option_paths(schema):
    for path in (
        "listenaddr",
        "servername",
        "autocert",
        "insecure",
        "staticroot",
        "servestatic",
        "dbbackend",
        "service",
        "debuglevel",
        "configfile",
        "basedir",
        "profile",
        "authenticator.lndhost",
        "authenticator.tlspath",
        "authenticator.macdir",
        "authenticator.network",
        "authenticator.disable",
        "sqlite.databasefilename",
        "sqlite.skipmigrations",
        "postgres.maxconnections",
        "postgres.dbname",
        "etcd.host",
        "tor.listenport",
        "tor.virtualport",
        "tor.v3",
        "hashmail.messagerate",
        "hashmail.messageburstallowance",
        "hashmail.staletimeout",
        "prometheus.listenaddr",
    ):
        assert path in schema, path


def test_schema_lists_only_leaf_options(schema):
    assert "authenticator" not in schema
    assert "sqlite" not in schema


def test_schema_exposes_choices(schema):
    assert schema["dbbackend"].choices == ("etcd", "sqlite", "postgres")
    assert schema["authenticator.network"].choices == (
        "regtest",
        "simnet",
        "testnet",
        "mainnet",
    )
    assert schema["listenaddr"].choices is None


def test_schema_carries_defaults_and_descriptions(schema):
    assert schema["dbbackend"].default == "etcd"
    assert schema["authenticator.disable"].default is False
    assert schema["hashmail.staletimeout"].type == "timedelta"
    assert schema["authenticator.lndhost"].description == (
        "Hostname of the LND instance to connect to"
    )
    assert schema["sqlite.databasefilename"].attrs == ("sqlite", "database_file_name")


def test_schema_for_single_group():
    schema = config_schema(SqliteConfig)
    assert set(schema) == {"skipmigrations", "databasefilename"}


def test_apply_overrides_sets_nested_fields(default_config):
    config = apply_overrides(
        default_config,
        {
            "listenaddr": "0.0.0.0:8081",
            "dbbackend": "sqlite",
            "authenticator.lndhost": "localhost:10009",
            "authenticator.network": "regtest",
            "hashmail.staletimeout": -1,
            "service": [{"name": "service1", "hostregexp": "^.*$"}],
        },
    )

    assert config.listen_addr == "0.0.0.0:8081"
    assert config.database_backend == DatabaseBackend.SQLITE
    assert config.authenticator.lnd_host == "localhost:10009"
    assert config.authenticator.network == "regtest"
    assert not config.hashmail.evicts_stale
    assert config.services == [{"name": "service1", "hostregexp": "^.*$"}]


def test_apply_overrides_does_not_mutate_input(default_config):
    apply_overrides(default_config, {"authenticator.lndhost": "localhost:10009"})
    assert default_config.authenticator.lnd_host == ""


def test_apply_overrides_is_case_insensitive(default_config):
    config = apply_overrides(default_config, {"Authenticator.LndHost": "localhost:10009"})
    assert config.authenticator.lnd_host == "localhost:10009"


def test_apply_overrides_rejects_unknown_option(default_config):
    with pytest.raises(UnknownOptionError) as exc_info:
        apply_overrides(default_config, {"authenticator.password": "hunter2"})

    assert exc_info.value.path == "authenticator.password"
    assert isinstance(exc_info.value, ConfigError)
    assert isinstance(exc_info.value, LookupError)


@pytest.mark.parametrize(
    "path, value",
    [
        ("dbbackend", "mysql"),
        ("authenticator.network", "signet"),
        ("tor.listenport", 70000),
    ],
)
def test_apply_overrides_enforces_choices(default_config, path, value):
    with pytest.raises(ValidationError):
        apply_overrides(default_config, {path: value})


def test_apply_overrides_accepts_go_durations(default_config):
    config = apply_overrides(
        default_config,
        {"hashmail.staletimeout": "-1s", "hashmail.messagerate": "20ms"},
    )

    assert not config.hashmail.evicts_stale
    assert config.hashmail.message_rate == timedelta(milliseconds=20)
