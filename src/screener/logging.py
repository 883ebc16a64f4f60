"""structlog setup for the screener API and fetch pipeline.

Events are snake_case names with key/value context, e.g.
``logger.info("rows_fetched", table="funding_dashboard_mv", rows=1834)``.
Request-scoped values (method, path) are bound per request via
structlog.contextvars and show up on every event logged while the request
is handled, including events from the fetch layer.
"""

import logging
import os

import structlog

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = ("aiohttp.access", "uvicorn.access")

LOG_FORMATS = ("console", "json")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO", log_format: str | None = None) -> None:
    """Route stdlib and structlog output through one ProcessorFormatter handler.

    ``log_format`` is "console" or "json"; when omitted it is read from
    LOG_FORMAT, and anything unrecognised falls back to console. Timestamps
    are ISO 8601 in UTC.
    """
    log_format = (log_format or os.environ.get("LOG_FORMAT", "console")).lower()
    if log_format not in LOG_FORMATS:
        log_format = "console"

    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        timestamper,
    ]

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # foreign_pre_chain gives uvicorn/aiohttp records the same level and timestamp keys
    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(**values: str) -> None:
    """Attach request-scoped values to every event logged in this context."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
