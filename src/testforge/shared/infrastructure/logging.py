"""
Structured logging configuration using structlog.

Provides consistent, structured logging across all modules.
"""

import logging
import re
import sys
from typing import Any, Optional

import structlog

from testforge.shared.infrastructure.config import Settings, settings as default_settings

_HOME_PATTERNS = {
    r"/Users/[^/\s]+": "[HOME_REDACTED]",
    r"/home/[^/\s]+": "[HOME_REDACTED]",
    r"[A-Za-z]:\\Users\\[^\\\s]+": "[HOME_REDACTED]",
}


def path_redactor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Redact home directories from string values in log events.

    Source and output paths are logged for every pipeline item, so user
    names leak through them unless redacted.
    """

    def redact_string(text: str) -> str:
        for pattern, replacement in _HOME_PATTERNS.items():
            text = re.sub(pattern, replacement, text)
        return text

    return {k: redact_string(v) if isinstance(v, str) else v for k, v in event_dict.items()}


def configure_logging(stream: Any = sys.stderr, settings: Optional[Settings] = None) -> None:
    """
    Configure structlog for the application.

    Sets up:
    - Pretty console output for development
    - JSON output otherwise
    - Log level from settings
    """
    settings = settings or default_settings

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.log_redaction_enabled:
        shared_processors.append(path_redactor)

    if settings.is_development:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=stream.isatty() if hasattr(stream, "isatty") else False),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        force=True,  # Force reconfiguration in case it was already set
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Structured logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("unit_written", path="out/FooTests.cs")
    """
    return structlog.get_logger(name)
