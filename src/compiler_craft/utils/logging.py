"""Structured logging for the Compiler Craft server.

Every log event goes through structlog and then the stdlib handlers:
- JSON lines for log collectors, or colored console output for development
- API keys stripped from event values before rendering
- Per-request fields (request id, path) merged in from contextvars
- An optional log file next to stderr
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import StrEnum
from pathlib import Path
from typing import Any, cast

import structlog
from structlog.typing import WrappedLogger

from compiler_craft.utils.security import SecretRedactor

SERVICE_NAME = "compiler-craft"


class LogFormat(StrEnum):
    """Rendering used for log lines."""

    JSON = "json"
    CONSOLE = "console"


class LogLevel(StrEnum):
    """Minimum level that reaches the handlers."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


_redactor: SecretRedactor | None = None


def _get_redactor() -> SecretRedactor:
    global _redactor
    if _redactor is None:
        _redactor = SecretRedactor(placeholder="[REDACTED]")
    return _redactor


def sanitize_log_value(value: Any) -> Any:
    """Redact secrets from a log value, walking into dicts, lists and tuples.

    Non-text leaves are returned untouched.
    """
    if isinstance(value, str):
        return _get_redactor().redact(value)
    if isinstance(value, dict):
        return {key: sanitize_log_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize_log_value(item) for item in value)
    return value


def secret_sanitizer(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor applying ``sanitize_log_value`` to the whole event."""
    return cast(MutableMapping[str, Any], sanitize_log_value(event_dict))


def add_context_processor(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Stamp each event with the service name and package version."""
    event_dict["service"] = SERVICE_NAME

    try:
        from compiler_craft._version import __version__

        event_dict["version"] = __version__
    except (ImportError, RuntimeError):
        pass

    return event_dict


def _processors(log_format: LogFormat) -> list[Any]:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        add_context_processor,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        # Must run before rendering so no renderer sees raw secrets
        secret_sanitizer,
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == LogFormat.JSON:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True, exception_formatter=structlog.dev.plain_traceback
            )
        )
    return processors


def _handlers(numeric_level: int, file_path: Path | None) -> list[logging.Handler]:
    stderr = logging.StreamHandler(sys.stderr)
    stderr.setLevel(numeric_level)
    handlers: list[logging.Handler] = [stderr]

    if file_path is None:
        return handlers

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(file_path, encoding="utf-8")
    except OSError as e:
        # stderr only
        logging.getLogger("compiler_craft.logging").warning(
            "Could not open log file %s: %s", file_path, e
        )
        return handlers

    file_handler.setLevel(numeric_level)
    handlers.append(file_handler)
    return handlers


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_format: LogFormat | str = LogFormat.JSON,
    file_path: Path | str | None = None,
    file_enabled: bool = False,
) -> None:
    """Set up structlog and the root stdlib logger.

    Safe to call more than once; the CLI calls it at startup and again
    after the config file has been read.

    Args:
        level: Minimum level (case-insensitive string or LogLevel)
        log_format: "json" or "console"
        file_path: Log file location, used when ``file_enabled`` is set
        file_enabled: Also write log lines to ``file_path``

    Example:
        configure_logging(level="DEBUG", log_format="console")
    """
    level = LogLevel(level.upper()) if isinstance(level, str) else level
    log_format = LogFormat(log_format.lower()) if isinstance(log_format, str) else log_format
    numeric_level = getattr(logging, level.value)

    structlog.configure(
        processors=_processors(log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    target = Path(file_path) if file_enabled and file_path else None
    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        handlers=_handlers(numeric_level, target),
        force=True,
    )


def get_logger(name: str | None = None) -> WrappedLogger:
    """Return a structlog logger, optionally named."""
    return cast(WrappedLogger, structlog.get_logger(name))


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every event logged from the current context.

    Example:
        bind_context(request_id="3f2a", path="/api/analyze")
        log.info("analysis_requested")  # carries request_id and path
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Drop all fields bound with ``bind_context``."""
    structlog.contextvars.clear_contextvars()
