"""
Structured logging configuration.

Uses structlog for machine-readable, context-rich logging.
Supports both JSON (production) and human-readable (development) output.
The level comes from the gateway's debuglevel option.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from core.errors import ConfigValidationError
from core.paths import DEFAULT_LOG_LEVEL


_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "off": logging.CRITICAL + 10,
}


def _level(name: str) -> int:
    try:
        return _LEVELS[name.strip().lower()]
    except KeyError:
        raise ConfigValidationError(
            f"invalid debug level: {name!r}. "
            f"Supported levels: {sorted(_LEVELS)}"
        ) from None


def parse_debug_level(value: str) -> tuple[int, dict[str, int]]:
    """
    Parse a debuglevel string.

    Accepts either a single global level ("debug") or a comma separated
    list mixing a global level and subsystem=level pairs
    ("info,PRXY=debug,AUTH=warn").

    Returns:
        The global level and a mapping of subsystem to level
    """
    global_level = _level(DEFAULT_LOG_LEVEL)
    subsystems: dict[str, int] = {}

    for part in (value or "").split(","):
        part = part.strip()
        if not part:
            continue
        if "=" in part:
            subsystem, level = part.split("=", 1)
            subsystems[subsystem.strip()] = _level(level)
        else:
            global_level = _level(part)

    return global_level, subsystems


_METHOD_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "msg": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "exception": logging.ERROR,
    "critical": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}


class SubsystemLevelFilter:
    """
    Processor dropping events below the level of their subsystem.

    The subsystem is read from the "subsystem" key bound on the logger,
    e.g. get_logger(__name__, subsystem="PRXY"). Events without one use
    the global level.
    """

    def __init__(self, default_level: int, subsystems: dict[str, int]) -> None:
        self.default_level = default_level
        self.subsystems = dict(subsystems)

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        threshold = self.subsystems.get(event_dict.get("subsystem"), self.default_level)
        if _METHOD_LEVELS.get(method_name, logging.INFO) < threshold:
            raise structlog.DropEvent
        return event_dict


def configure_logging(debug_level: str = DEFAULT_LOG_LEVEL, json_output: bool = False) -> None:
    """
    Configure structlog with appropriate processors.

    Console: Human-readable colored output
    JSON: Output for log aggregation systems

    subsystem=level pairs apply to structlog loggers bound with a matching
    "subsystem" key and to standard library loggers of the same name.
    """
    level, subsystems = parse_debug_level(debug_level)
    lowest = min([level, *subsystems.values()])

    # Shared processors for all environments
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        SubsystemLevelFilter(level, subsystems),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if json_output:
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(lowest),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # Configure standard library logging to follow the same levels
    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for subsystem, subsystem_level in subsystems.items():
        logging.getLogger(subsystem).setLevel(subsystem_level)


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)
        **initial_context: Initial context values to bind

    Returns:
        A bound logger with the given context

    Usage:
        logger = get_logger(__name__, backend="sqlite")
        logger.info("Backend selected")
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
