from __future__ import annotations

import logging
import os
import sys
from typing import Any, Optional

import structlog

from tradementor.utils.config import Settings, get_settings

_configured = False

REDACTED = "***REDACTED***"
SENSITIVE_KEYS = {"notes", "note", "reflection", "password", "token", "authorization"}


def setup_logging(settings: Optional[Settings] = None, force: bool = False) -> None:
    """Configure stdlib handlers and structlog once per process."""
    global _configured
    if _configured and not force:
        return
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    os.makedirs(os.path.dirname(settings.log_file) or ".", exist_ok=True)
    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(settings.log_file, mode="a"),
        ],
        force=force,
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_request_context(**values: Any) -> None:
    """Attach request-scoped fields (user_id, path) to every event logged in this context."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def sanitize_log_data(data: dict[str, Any]) -> dict[str, Any]:
    """Redact free-text journal fields before a payload is logged."""
    sanitized = {}
    for key, value in data.items():
        if key.lower() in SENSITIVE_KEYS:
            sanitized[key] = REDACTED if value else value
        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)
        else:
            sanitized[key] = value
    return sanitized
