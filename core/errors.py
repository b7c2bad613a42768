"""
Configuration error hierarchy.

Every failure raised while building, overriding or validating the gateway
configuration derives from ConfigError, so start-up code can catch a single
type and decide how to report it.
"""


class ConfigError(Exception):
    """Base class for all configuration errors."""


class ConfigValidationError(ConfigError, ValueError):
    """A populated configuration failed a start-up check."""


class MissingFieldError(ConfigValidationError):
    """
    A required field was left empty.

    Attributes:
        field: Dotted option path of the missing field (e.g. "authenticator.tlspath")
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class UnknownOptionError(ConfigError, LookupError):
    """An override referenced an option path that the schema does not define."""

    def __init__(self, path: str) -> None:
        super().__init__(f"unknown configuration option: {path}")
        self.path = path
