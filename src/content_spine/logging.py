"""
Logging configuration.

Provides a single entry point for configuring structured logging with
structlog. Configuration is read from arguments or environment variables:

- CONTENT_SPINE_LOG_LEVEL: DEBUG | INFO | WARNING | ERROR (default: INFO)
- CONTENT_SPINE_LOG_FORMAT: json | console (default: console)

Usage:
    from content_spine.logging import configure_logging, get_logger, bind_run

    configure_logging(format="json")
    bind_run(content_type="techTip")

    log = get_logger(__name__)
    log.info("page_fetched", skip=0, count=50)
"""

import logging
import os
import sys
import uuid
from typing import Any, Literal

import structlog
from structlog.types import Processor

_configured = False


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
    force: bool = False,
) -> None:
    """
    Configure structured logging for the application.

    Should be called once at startup (CLI entry, serverless handler).
    Subsequent calls are no-ops unless force=True.
    """
    global _configured

    if _configured and not force:
        return

    log_level = (level or os.environ.get("CONTENT_SPINE_LOG_LEVEL", "INFO")).upper()
    log_format = (format or os.environ.get("CONTENT_SPINE_LOG_FORMAT", "console")).lower()

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        # run_id / content_type bound via bind_run()
        structlog.contextvars.merge_contextvars,
        structlog.processors.format_exc_info,
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level),
        force=True,
    )

    # httpx logs every request at INFO, including query strings with index keys
    logging.getLogger("httpx").setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str | None = None) -> Any:
    """Get a structlog logger."""
    return structlog.get_logger(name)


def bind_run(**kwargs: Any) -> str:
    """
    Bind run-level context (content type, section, ...) to all subsequent logs.

    Returns the run id, generated unless supplied.
    """
    run_id = kwargs.pop("run_id", None) or uuid.uuid4().hex[:12]
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(run_id=run_id, **{k: v for k, v in kwargs.items() if v is not None})
    return run_id


def clear_run() -> None:
    """Drop run-level context."""
    structlog.contextvars.clear_contextvars()


def redact(value: str | None) -> str:
    """Mask a secret for logging, keeping two characters on each side."""
    if not value:
        return "(none)"
    if len(value) <= 4:
        return "••••"
    return f"{value[:2]}••••{value[-2:]}"
