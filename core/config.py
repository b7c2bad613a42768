"""
Gateway configuration.

The root Config aggregates one instance of every sub-configuration group
(storage backends, authenticator, Tor, mailbox, Prometheus) together with the
top-level server options. Groups are plain pydantic models owned by value;
the root is a pydantic-settings model so the same shape can be bound from
environment variables by core.loader.

Typical start-up:

    config = load_config()
    config.validate_config()
"""

import re
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.errors import MissingFieldError
from core.paths import DEFAULT_LOG_LEVEL, default_sqlite_database_path


ENV_PREFIX = "APERTURE_"

# json_schema_extra key holding an option name that differs from the
# field name with its underscores removed.
OPTION_KEY = "option"

Network = Literal["regtest", "simnet", "testnet", "mainnet"]

# Stale timeout value that disables mailbox eviction.
NEVER_EVICT = timedelta(seconds=-1)


def _option(name: str) -> dict[str, str]:
    return {OPTION_KEY: name}


def _default_sqlite_path() -> str:
    return str(default_sqlite_database_path())


_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: Any) -> Any:
    """
    Accept Go-style duration strings such as "-1s", "100ms" or "1m30s".

    Anything that is not in that form is passed through unchanged so
    pydantic's own timedelta parsing (seconds, ISO 8601) still applies.
    """
    if not isinstance(value, str):
        return value

    text = value.strip()
    sign = 1.0
    if text[:1] in ("+", "-"):
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    if text == "0":
        return timedelta(0)

    parts = list(_DURATION_PART.finditer(text))
    if not parts or "".join(part.group(0) for part in parts) != text:
        return value

    seconds = sum(float(part.group(1)) * _DURATION_UNITS[part.group(2)] for part in parts)
    return timedelta(seconds=sign * seconds)


Duration = Annotated[timedelta, BeforeValidator(parse_duration)]


class DatabaseBackend(str, Enum):
    """Supported database backends."""
    ETCD = "etcd"
    SQLITE = "sqlite"
    POSTGRES = "postgres"


# =========================================
# Storage backend groups
# =========================================

class EtcdConfig(BaseModel):
    """Connection settings for the etcd backend."""
    host: str = Field(default="", description="host:port of an active etcd instance")
    user: str = Field(default="", description="user authorized to access the etcd host")
    password: str = Field(default="", description="password of the etcd user")


class SqliteConfig(BaseModel):
    """Settings for the embedded SQLite backend."""
    skip_migrations: bool = Field(
        default=False,
        description="Skip applying migrations on startup.",
    )
    database_file_name: str = Field(
        default_factory=_default_sqlite_path,
        description="The full path to the database.",
    )


class PostgresConfig(BaseModel):
    """Connection settings for the Postgres backend."""
    skip_migrations: bool = Field(default=False, description="Skip applying migrations on startup.")
    host: str = Field(default="", description="Database server hostname.")
    port: int = Field(default=0, ge=0, le=65535, description="Database server port.")
    user: str = Field(default="", description="Database user.")
    password: str = Field(default="", description="Database user's password.")
    db_name: str = Field(default="", description="Database name to use.")
    max_open_connections: int = Field(
        default=0,
        ge=0,
        description="Max open connections to keep alive to the database server.",
        json_schema_extra=_option("maxconnections"),
    )
    max_idle_connections: int = Field(
        default=0,
        ge=0,
        description="Max number of idle connections to keep in the connection pool.",
    )
    conn_max_lifetime: Duration = Field(
        default=timedelta(0),
        description="Max amount of time a connection can be reused for (0 means unlimited).",
    )
    conn_max_idle_time: Duration = Field(
        default=timedelta(0),
        description="Max amount of time a connection can be idle (0 means unlimited).",
    )
    require_ssl: bool = Field(default=False, description="Whether to require using SSL (mode: require) when connecting to the server.")

    @property
    def dsn(self) -> str:
        sslmode = "require" if self.require_ssl else "disable"
        return (
            f"postgresql://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.db_name}?sslmode={sslmode}"
        )


BackendConfig = Union[EtcdConfig, SqliteConfig, PostgresConfig]


# =========================================
# Authenticator
# =========================================

@dataclass(frozen=True)
class AuthDisabled:
    """Authentication against lnd is switched off."""


@dataclass(frozen=True)
class AuthEnabled:
    """Everything needed to reach the lnd instance that issues invoices."""
    host: str
    tls_path: str
    mac_dir: str
    network: Optional[str] = None


Authenticator = Union[AuthDisabled, AuthEnabled]


class AuthConfig(BaseModel):
    """How the gateway reaches its lnd authenticator."""
    lnd_host: str = Field(default="", description="Hostname of the LND instance to connect to")
    tls_path: str = Field(default="", description="Path to LND instance's tls certificate")
    mac_dir: str = Field(default="", description="Directory containing LND instance's macaroons")
    network: Optional[Network] = Field(default=None, description="The network LND is connected to.")
    disable: bool = Field(default=False, description="Whether to disable LND auth.")

    def resolve(self) -> Authenticator:
        """
        Turn the flat option set into a tagged authenticator value.

        A disabled authenticator ignores every other field. An enabled one
        needs host, TLS path and macaroon directory, checked in that order.
        The network is left to the loader's choice constraint.

        Raises:
            MissingFieldError: If a required field is empty
        """
        if self.disable:
            return AuthDisabled()

        if not self.lnd_host:
            raise MissingFieldError("authenticator.lndhost", "missing lnd host")

        if not self.tls_path:
            raise MissingFieldError(
                "authenticator.tlspath", "missing lnd tls certificate path"
            )

        if not self.mac_dir:
            raise MissingFieldError(
                "authenticator.macdir", "missing lnd macaroon directory"
            )

        return AuthEnabled(
            host=self.lnd_host,
            tls_path=self.tls_path,
            mac_dir=self.mac_dir,
            network=self.network,
        )

    def validate_auth(self) -> None:
        """Raise MissingFieldError if the authenticator is enabled but incomplete."""
        self.resolve()


# =========================================
# Tor, mailbox and metrics
# =========================================

class TorConfig(BaseModel):
    control: str = Field(default="", description="The host:port of the Tor instance.")
    listen_port: int = Field(
        default=0,
        ge=0,
        le=65535,
        description=(
            "The port we should listen on for client requests over Tor. Note "
            "that this port should not be exposed to the outside world, it is "
            "only intended to be reached by clients through the onion service."
        ),
    )
    virtual_port: int = Field(
        default=0,
        ge=0,
        le=65535,
        description="The port through which the onion services created can be reached at.",
    )
    v3: bool = Field(
        default=False,
        description="Whether we should listen for client requests through a v3 onion service.",
    )


class HashMailConfig(BaseModel):
    """Rate and eviction policy for the Lightning Node Connect mailbox server."""
    enabled: bool = Field(default=False, description="Whether the mailbox server is enabled.")
    message_rate: Duration = Field(
        default=timedelta(0),
        description="The average minimum time that should pass between each message.",
    )
    message_burst_allowance: int = Field(
        default=0,
        description="The burst rate we allow for messages.",
    )
    stale_timeout: Duration = Field(
        default=timedelta(0),
        description="The time after the last activity that a mailbox should be removed. Set to -1s to disable.",
    )

    @property
    def evicts_stale(self) -> bool:
        return self.stale_timeout != NEVER_EVICT


class PrometheusConfig(BaseModel):
    enabled: bool = Field(default=False, description="If true prometheus metrics will be exported.")
    listen_addr: str = Field(
        default="",
        description="The interface we should listen on for prometheus.",
    )


# =========================================
# Root configuration
# =========================================

class Config(BaseSettings):
    """
    Root gateway configuration.

    Instances only take values from keyword arguments; environment binding
    is done by core.loader.load_config. Run validate_config() once after all
    loading has completed and treat the value as read-only afterwards.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    # Server
    listen_addr: str = Field(
        default="",
        description="The interface we should listen on for client requests.",
    )
    server_name: str = Field(
        default="",
        description="Server name (FQDN) to use for the TLS certificate.",
    )
    auto_cert: bool = Field(
        default=False,
        description="Automatically create a Let's Encrypt cert using ServerName.",
    )
    insecure: bool = Field(
        default=False,
        description="Listen on an insecure connection, disabling TLS for incoming connections.",
    )
    static_root: str = Field(default="", description="The folder where the static content is located.")
    serve_static: bool = Field(default=False, description="Flag to enable or disable static content serving.")

    # Storage Backend Selection
    # etcd stays the default even though sqlite has a ready-made path.
    database_backend: DatabaseBackend = Field(
        default=DatabaseBackend.ETCD,
        description="The database backend to use for storing all asset related data.",
        json_schema_extra=_option("dbbackend"),
    )
    sqlite: SqliteConfig = Field(default_factory=SqliteConfig)
    postgres: PostgresConfig = Field(default_factory=PostgresConfig)
    etcd: EtcdConfig = Field(default_factory=EtcdConfig)

    authenticator: AuthConfig = Field(default_factory=AuthConfig)
    tor: TorConfig = Field(default_factory=TorConfig)

    services: list[Any] = Field(
        default_factory=list,
        description="Configurations for each Aperture backend service.",
        json_schema_extra=_option("service"),
    )

    hashmail: HashMailConfig = Field(
        default_factory=HashMailConfig,
        description="Configuration for the Lightning Node Connect mailbox server.",
    )
    prometheus: PrometheusConfig = Field(
        default_factory=PrometheusConfig,
        description="Configuration setting up an endpoint that a Prometheus server can scrape.",
    )

    # Logging and file locations
    debug_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        description="Debug level for the Aperture application and its subsystems.",
    )
    config_file: str = Field(default="", description="Custom path to a config file.")
    base_dir: str = Field(default="", description="Directory to place all of aperture's files in.")
    profile_port: int = Field(
        default=0,
        ge=0,
        le=65535,
        description="Enable HTTP profiling on given port -- NOTE port must be between 1024 and 65535",
        json_schema_extra=_option("profile"),
    )

    @field_validator("database_backend", mode="before")
    @classmethod
    def _lowercase_backend(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (init_settings,)

    @property
    def backend(self) -> BackendConfig:
        """The group of the selected database backend."""
        if self.database_backend == DatabaseBackend.SQLITE:
            return self.sqlite
        if self.database_backend == DatabaseBackend.POSTGRES:
            return self.postgres
        if self.database_backend == DatabaseBackend.ETCD:
            return self.etcd
        raise ValueError(f"Unsupported database backend: {self.database_backend}")

    @property
    def auth(self) -> Authenticator:
        return self.authenticator.resolve()

    def validate_config(self) -> None:
        """
        Start-up gate, run once before any subsystem is started.

        Only the authenticator and the listen address are checked here;
        every other group is validated by the subsystem that consumes it.

        Raises:
            MissingFieldError: From the authenticator, unchanged, or for an
                empty listen address
        """
        self.authenticator.validate_auth()

        if not self.listen_addr:
            raise MissingFieldError("listenaddr", "missing listen address for server")


def default_sqlite_config(app_data_dir: Optional[Path] = None) -> SqliteConfig:
    """Default configuration for the SQLite backend."""
    return SqliteConfig(
        skip_migrations=False,
        database_file_name=str(default_sqlite_database_path(app_data_dir)),
    )


def new_default_config(app_data_dir: Optional[Path] = None) -> Config:
    """
    Build a fully populated default configuration.

    Every group gets its own instance regardless of which backend is
    selected later. Nothing is read from the environment or the disk.

    Args:
        app_data_dir: Directory for default data files; the process-wide
            application data directory when omitted
    """
    return Config(
        database_backend=DatabaseBackend.ETCD,
        etcd=EtcdConfig(),
        sqlite=default_sqlite_config(app_data_dir),
        postgres=PostgresConfig(),
        authenticator=AuthConfig(),
        tor=TorConfig(),
        hashmail=HashMailConfig(),
        prometheus=PrometheusConfig(),
    )
