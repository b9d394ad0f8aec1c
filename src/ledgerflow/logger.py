"""Structured logging configuration.

structlog renders every record, including records emitted through the stdlib
logging module by SQLAlchemy or other libraries, with a timestamp and level.
"""

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.stdlib import BoundLogger
from structlog.types import Processor


def _build_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def configure_logging(level: int = logging.WARNING) -> None:
    """Configure structlog on top of the stdlib root logger.

    Safe to call repeatedly; each call replaces the root handler so the
    current sys.stderr is used.
    """
    processors = _build_processors()

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(colors=False),
        foreign_pre_chain=processors,
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    logging.basicConfig(handlers=[handler], level=level, force=True)


def get_logger(name: str | None = None) -> BoundLogger:
    """Get a structured logger."""
    return structlog.get_logger(name)


@contextmanager
def log_timing(
    operation: str,
    logger: BoundLogger | None = None,
    level: str = "info",
    **context: Any,
) -> Iterator[dict[str, Any]]:
    """Context manager to log operation timing.

    Usage:
        with log_timing("process_statement", logger=logger, statement_id=3) as ctx:
            ctx["rows"] = len(rows)

    Args:
        operation: Name of the operation being timed
        logger: Logger instance (uses module logger if not provided)
        level: Log level to use (default: info)
        **context: Additional context to include in the log

    Yields:
        A dict that can be updated with additional context during the operation.

    An exception raised inside the block is logged at error level as
    "<operation> failed" and re-raised.
    """
    log = logger or get_logger(__name__)
    start = time.perf_counter()
    result_context: dict[str, Any] = {}

    try:
        yield result_context
    except Exception as e:
        log.error(
            f"{operation} failed",
            operation=operation,
            status="error",
            error=str(e),
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
            **context,
            **result_context,
        )
        raise
    else:
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        log_method = getattr(log, level, log.info)
        log_method(
            f"{operation} completed",
            operation=operation,
            status="success",
            duration_ms=duration_ms,
            **context,
            **result_context,
        )
