"""Structured logging setup for the pass converter.

Configures structlog with the same processor chain for direct structlog
loggers and for foreign stdlib loggers (httpx, google-auth), rendering
JSON by default.
"""

import logging
import sys
import typing as t

import structlog

# Keys whose values must never reach the logs
SENSITIVE_KEYS = (
    "token",
    "private_key",
    "password",
    "secret",
    "authorization",
)


def scrub_secrets(logger: t.Any, method_name: str, event_dict: dict[str, t.Any]) -> dict[str, t.Any]:
    """Redact credentials from log events.

    Nested dictionaries are scrubbed recursively.
    """

    def _scrub(d: dict[str, t.Any]) -> dict[str, t.Any]:
        for key in list(d.keys()):
            if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
                d[key] = "[REDACTED]"
            elif isinstance(d[key], dict):
                d[key] = _scrub(d[key])
        return d

    return _scrub(event_dict)


SHARED_PROCESSORS: list[t.Any] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
    scrub_secrets,
]


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Root log level name.
        json_output: Render JSON lines when True, human-readable console output otherwise.
    """
    renderer: t.Any = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[*SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=SHARED_PROCESSORS,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)
