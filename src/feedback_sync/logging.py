"""Loguru setup for the sync engine.

Console lines carry the sync context when one is bound, e.g.

    12:00:01 | WARNING  | sync [clickup #42] - Could not post comment

Provider credentials (tokens in query strings, bearer headers, known
token prefixes, Slack webhook paths) are masked before any sink sees
the message. Standard library loggers (SQLAlchemy, httpx) are routed
through loguru.
"""

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger, Record

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

_configured = False

_SECRET_PATTERNS = (
    re.compile(r"((?:token|key)=)[^&\s]+", re.IGNORECASE),
    re.compile(r"(Bearer\s+)\S+"),
    re.compile(r"\b(ghp_|gho_|github_pat_|lin_api_|secret_|ntn_|pk_)\w+"),
    re.compile(r"(hooks\.slack\.com/services/)\S+"),
)

# Noisy third-party loggers and the level they get outside of debug runs
_QUIET_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "githubkit": logging.WARNING,
}


def redact(text: str) -> str:
    """Mask provider credentials in ``text``."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(r"\1***", text)
    return text


def _redact_record(record: Record) -> None:
    record["message"] = redact(record["message"])


def _console_format(record: Record) -> str:
    extra = record["extra"]
    source = "{extra[name]}" if "name" in extra else "{name}"
    context = ""
    if "provider" in extra:
        feedback = " #{extra[feedback]}" if "feedback" in extra else ""
        context = " [{extra[provider]}" + feedback + "]"
    return (
        "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | "
        f"<cyan>{source}</cyan>{context} - <level>{{message}}</level>\n{{exception}}"
    )


class InterceptHandler(logging.Handler):
    """Route standard library records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(
    level: LogLevel = "INFO",
    *,
    verbose: bool = False,
    quiet: bool = False,
    log_file: Path | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    serialize: bool = False,
) -> Logger:
    """Configure console (and optional file) logging.

    Args:
        level: Base log level from config
        verbose: Use DEBUG and let SQLAlchemy/httpx through
        quiet: Use WARNING
        log_file: Optional path for a rotating DEBUG log
        rotation: When to rotate the log file (e.g. "10 MB", "1 day")
        retention: How long to keep rotated logs
        serialize: Write the log file as JSON lines

    verbose wins over quiet if both are set.
    """
    global _configured

    effective_level: LogLevel = "DEBUG" if verbose else "WARNING" if quiet else level

    logger.remove()
    logger.configure(patcher=_redact_record)
    logger.add(
        sys.stderr,
        level=effective_level,
        format=_console_format,
        backtrace=True,
        diagnose=False,
    )

    if log_file:
        logger.add(
            log_file,
            level="DEBUG",
            format=(
                "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
                "{name}:{function}:{line} | {extra} | {message}"
            ),
            rotation=rotation,
            retention=retention,
            compression="gz",
            serialize=serialize,
        )

    _route_stdlib_logging(debug=effective_level in ("TRACE", "DEBUG"))

    _configured = True
    return logger


def _route_stdlib_logging(*, debug: bool) -> None:
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name, quiet_level in _QUIET_LOGGERS.items():
        # SQL echo at INFO is plenty even when debugging
        debug_level = logging.INFO if name == "sqlalchemy.engine" else logging.DEBUG
        logging.getLogger(name).setLevel(debug_level if debug else quiet_level)


def get_logger(name: str) -> Logger:
    """Logger with ``name`` bound; use ``get_logger(__name__)`` per module."""
    return logger.bind(name=name)


def bind_sync(
    provider: str,
    *,
    project_id: int | None = None,
    feedback_id: int | None = None,
) -> Logger:
    """Logger bound to one push or fan-out call.

    Args:
        provider: Provider, "slack" or "email"
        project_id: Project being synced
        feedback_id: Feedback item being synced

    Returns:
        Logger whose console lines read ``sync [provider #feedback]``
    """
    context: dict[str, Any] = {"name": "sync", "provider": provider}
    if project_id is not None:
        context["project"] = project_id
    if feedback_id is not None:
        context["feedback"] = feedback_id
    return logger.bind(**context)


def is_configured() -> bool:
    return _configured


def reset_logging() -> None:
    """Remove all sinks (tests)."""
    global _configured
    logger.remove()
    _configured = False
