"""structlog setup shared by the app and third-party loggers.

Production renders one JSON object per line; debug mode uses the console
renderer. uvicorn, SQLAlchemy, httpx and openai log through the same
formatter, so every line carries the request id and a timestamp.
"""

import logging
import logging.config

import structlog
from asgi_correlation_id.context import correlation_id

# Event keys whose values must never reach the log stream
REDACTED_KEYS = frozenset(
    {"api_key", "api_keys", "guest_token", "password", "password_hash", "token", "system_keys"}
)
REDACTED = "***"

NOISY_LOGGERS = {
    "uvicorn.access": "WARNING",
    "httpx": "WARNING",
    "openai": "WARNING",
    "sqlalchemy.engine": "WARNING",
}


def inject_request_id(logger, method, event_dict):
    request_id = correlation_id.get(None)
    if request_id:
        event_dict["correlation_id"] = request_id
    return event_dict


def redact_secrets(logger, method, event_dict):
    for key in REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def _pre_chain() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        inject_request_id,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_structlog(log_level: str = "INFO", json_logs: bool = True) -> None:
    """Install the processor chain and the stdlib handler.

    Must run before the first ``structlog.get_logger`` call binds a logger,
    because loggers are cached on first use.
    """
    pre_chain = _pre_chain()
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
                "foreign_pre_chain": pre_chain,
            },
        },
        "handlers": {
            "stdout": {
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {"handlers": ["stdout"], "level": log_level},
        "loggers": {name: {"level": level} for name, level in NOISY_LOGGERS.items()},
    })

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
