"""
Environment binding for the gateway configuration.

Values are layered in this order, later ones winning:

1. The defaults from new_default_config()
2. APERTURE_* environment variables (nested groups use "__",
   e.g. APERTURE_AUTHENTICATOR__LND_HOST)
3. Explicit dotted option overrides

The result is not validated; call Config.validate_config() once after
loading has finished.
"""

from pathlib import Path
from typing import Any, Mapping, Optional

from core.config import Config, new_default_config
from core.logging import get_logger
from core.schema import apply_overrides


logger = get_logger(__name__, subsystem="APER")


class _EnvironmentConfig(Config):
    """Config variant that also reads APERTURE_* environment variables."""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment first so it takes precedence over the defaults
        # passed in as keyword arguments.
        return env_settings, init_settings


def load_config(
    app_data_dir: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Config:
    """
    Build the configuration from defaults, environment and overrides.

    Args:
        app_data_dir: Directory for default data files
        overrides: Option path to value, applied last

    Returns:
        The loaded (not yet validated) configuration
    """
    defaults = new_default_config(app_data_dir).model_dump()
    loaded = _EnvironmentConfig(**defaults)
    config = Config.model_validate(loaded.model_dump())

    if overrides:
        config = apply_overrides(config, overrides)

    logger.debug(
        "Configuration loaded",
        database_backend=config.database_backend.value,
        overrides=sorted(overrides) if overrides else [],
    )
    return config
