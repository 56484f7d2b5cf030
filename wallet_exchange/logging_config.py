"""
Structured logging configuration using structlog.

JSON lines in production, a console renderer at DEBUG. Every event passes
through ``redact_credentials`` so bearer tokens, signatures and secrets never
reach a log sink even when a caller binds them by mistake.
"""

import logging
import sys
from typing import Any, MutableMapping, Optional

import structlog

from .config import settings


REDACTED = "[redacted]"
TOKEN_PREFIX_LENGTH = 10

# Event keys whose values are credentials
CREDENTIAL_KEYS = frozenset({
    "access_token",
    "authorization",
    "hashed_token",
    "password",
    "refresh_token",
    "secret",
    "service_role_key",
    "session_signing_secret",
    "signature",
})

# Event keys holding a session token; only a short prefix is kept
TOKEN_KEYS = frozenset({"token", "bearer_token"})

QUIET_LOGGERS = ("uvicorn.access", "httpcore", "httpx", "sqlalchemy.engine", "aiosqlite")


def redact_credentials(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking credential values in an event."""
    for key in list(event_dict):
        lowered = key.lower()
        if lowered in CREDENTIAL_KEYS:
            event_dict[key] = REDACTED
        elif lowered in TOKEN_KEYS and isinstance(event_dict[key], str):
            event_dict[key] = f"{event_dict[key][:TOKEN_PREFIX_LENGTH]}..."
    return event_dict


def setup_logging(log_level: Optional[str] = None) -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        log_level: Override log level (default: from settings.log_level)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        redact_credentials,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if level == logging.DEBUG:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            # stdlib records from libraries get the same redaction
            foreign_pre_chain=[structlog.stdlib.add_log_level, redact_credentials],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # SQL echo and provider traffic stay out of INFO logs
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
