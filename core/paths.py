"""
File-system locations used by the gateway.

The application data directory is resolved once per process and cached.
Nothing in this module creates directories or touches the disk; callers that
need a directory to exist create it themselves at start-up.
"""

import sys
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from platformdirs import user_data_path


if TYPE_CHECKING:
    from core.config import Config


APP_NAME = "aperture"

DEFAULT_CONFIG_FILENAME = "aperture.yaml"
DEFAULT_TLS_KEY_FILENAME = "tls.key"
DEFAULT_TLS_CERT_FILENAME = "tls.cert"
DEFAULT_LOG_LEVEL = "info"
DEFAULT_LOG_FILENAME = "aperture.log"
DEFAULT_MAX_LOG_FILES = 3
DEFAULT_MAX_LOG_FILE_SIZE_MB = 10
DEFAULT_SQLITE_DATABASE_FILENAME = "aperture.db"


@lru_cache
def app_data_dir(app_name: str = APP_NAME) -> Path:
    """
    OS-appropriate application data directory.

    macOS and Windows use the platform data directory with a capitalised
    name (e.g. ~/Library/Application Support/Aperture). Other POSIX systems
    use a hidden directory in the home directory (~/.aperture), which is
    where existing deployments keep their database and TLS files.

    Cached so that every default derived from it agrees for the lifetime of
    the process. Tests should pass their own directory to the default factory
    instead of relying on this value.
    """
    if sys.platform in ("darwin", "win32"):
        return user_data_path(app_name[:1].upper() + app_name[1:], appauthor=False)
    return Path.home() / f".{app_name.lower()}"


def default_sqlite_database_path(data_dir: Optional[Path] = None) -> Path:
    """Default SQLite database file, placed directly under the data directory."""
    if data_dir is None:
        data_dir = app_data_dir()
    return Path(data_dir) / DEFAULT_SQLITE_DATABASE_FILENAME


@dataclass(frozen=True)
class FileLocations:
    """Resolved locations of the files the gateway reads and writes."""
    base_dir: Path
    config_file: Path
    tls_cert_path: Path
    tls_key_path: Path
    log_file: Path


def resolve_locations(
    config: "Config",
    data_dir: Optional[Path] = None,
) -> FileLocations:
    """
    Fill in the file locations the configuration leaves empty.

    An empty base_dir falls back to the application data directory and an
    empty config_file to the default file name inside base_dir. TLS material
    and the log file always live inside base_dir.
    """
    if config.base_dir:
        base_dir = Path(config.base_dir).expanduser()
    elif data_dir is not None:
        base_dir = Path(data_dir)
    else:
        base_dir = app_data_dir()

    if config.config_file:
        config_file = Path(config.config_file).expanduser()
    else:
        config_file = base_dir / DEFAULT_CONFIG_FILENAME

    return FileLocations(
        base_dir=base_dir,
        config_file=config_file,
        tls_cert_path=base_dir / DEFAULT_TLS_CERT_FILENAME,
        tls_key_path=base_dir / DEFAULT_TLS_KEY_FILENAME,
        log_file=base_dir / DEFAULT_LOG_FILENAME,
    )
