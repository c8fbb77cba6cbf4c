"""Logging setup and key=value context logging for spherectl."""

import logging
import sys
from enum import Enum
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "spherectl"

# Third-party loggers that only matter when something is wrong
NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


class LogLevel(str, Enum):
    """Log level enumeration."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def resolve_level(verbose: int, quiet: bool, configured: LogLevel = LogLevel.WARNING) -> LogLevel:
    """Pick the log level from -v/-q flags, falling back to the config value."""
    if verbose >= 2:
        return LogLevel.DEBUG
    if verbose == 1:
        return LogLevel.INFO
    if quiet:
        return LogLevel.ERROR
    return configured


def setup_logging(level: LogLevel = LogLevel.WARNING, rich_output: bool = True) -> logging.Logger:
    """Route log records to stderr, through Rich when colour is on.

    Args:
        level: Level for spherectl's own loggers
        rich_output: Use RichHandler instead of a plain stream handler

    Returns:
        The package root logger
    """
    log_level = getattr(logging, level.value.upper())

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    if rich_output:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"))

    root.addHandler(handler)
    root.setLevel(log_level)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under ``spherectl``."""
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def _render_value(value: Any) -> str:
    text = str(value)
    if not text or any(c.isspace() for c in text):
        return repr(text)
    return text


class StructuredLogger:
    """Logger that appends ``key=value`` context to every message.

    Context bound with :meth:`bind` (network, step, artifact, ...) is
    carried by the returned logger; per-call keyword arguments are added
    after it and win on clashes.
    """

    def __init__(self, name: str, context: dict[str, Any] | None = None):
        self._logger = get_logger(name)
        self._context: dict[str, Any] = dict(context or {})

    def bind(self, **kwargs: Any) -> "StructuredLogger":
        return StructuredLogger(self._logger.name, {**self._context, **kwargs})

    def format(self, message: str, **kwargs: Any) -> str:
        context = {**self._context, **kwargs}
        if not context:
            return message
        pairs = " ".join(f"{k}={_render_value(v)}" for k, v in context.items())
        return f"{message} [{pairs}]"

    def _log(self, level: int, message: str, kwargs: dict[str, Any]) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, self.format(message, **kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)
