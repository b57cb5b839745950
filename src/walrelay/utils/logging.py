"""
Structured logging for walrelay.

Modules obtain a logger with ``get_logger(__name__)`` and attach context
through ``extra={...}``. ``configure_logging`` installs a handler that
renders those extra fields after the message.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

ROOT_LOGGER_NAME = "walrelay"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Attributes present on every LogRecord; anything else came from ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """Formatter that appends ``extra`` fields as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not extras:
            return base
        rendered = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
        return f"{base} | {rendered}"


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the package namespace.

    Args:
        name: Usually ``__name__`` of the calling module

    Returns:
        Logger instance
    """
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def configure_logging(
    level: Union[int, str] = logging.INFO,
    fmt: str = DEFAULT_FORMAT,
    handler: Optional[logging.Handler] = None,
) -> logging.Logger:
    """
    Configure the package root logger.

    Safe to call more than once; previously installed handlers are replaced.

    Args:
        level: Log level name or number
        fmt: Format string for the message prefix
        handler: Optional handler (defaults to a stream handler on stderr)

    Returns:
        The package root logger
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = handler or logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(fmt))
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False
    return root


def set_level(level: Union[int, str]) -> None:
    """Set the package root log level."""
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)


class LogContext(logging.LoggerAdapter):
    """
    Logger adapter that merges fixed context into every record.

    Example:
        ```python
        log = LogContext(_logger, {"request_id": request_id})
        log.info("Phase completed", extra={"phase": "bridge"})
        ```
    """

    def __init__(self, logger: logging.Logger, context: Dict[str, Any]) -> None:
        super().__init__(logger, dict(context))

    def process(self, msg: Any, kwargs: Any) -> Any:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs
