"""Structured logging utilities for ccloud."""

import logging
import sys
from typing import Any

import structlog

# Event keys whose values must never reach a log sink
SENSITIVE_KEYS = frozenset(
    {
        "api_secret",
        "client_secret",
        "access_token",
        "subject_token",
        "password",
        "secret",
    }
)

REDACTED = "**REDACTED**"


def redact_sensitive_values(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Replace values of sensitive keys in the event dict.

    Args:
        logger: Wrapped logger (unused)
        method_name: Log method name (unused)
        event_dict: Event dictionary being processed

    Returns:
        Event dictionary with sensitive values masked
    """
    for key in event_dict.keys() & SENSITIVE_KEYS:
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        redact_sensitive_values,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def setup_logging(level: str = "INFO", format: str = "json", output: str = "stderr") -> None:
    """Configure structured logging for ccloud.

    Terraform reads provider output from stdout, so logs default to stderr.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: Log format (json or console)
        output: Output destination (stdout or stderr)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    stream = sys.stdout if output == "stdout" else sys.stderr

    logging.basicConfig(format="%(message)s", stream=stream, level=log_level)
    # basicConfig is a no-op once the root logger has handlers
    logging.root.setLevel(log_level)

    processors = _shared_processors()
    if format == "json":
        processors += [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structured logger, typically with ``__name__``."""
    return structlog.get_logger(name)


def log_operation(logger: structlog.BoundLogger, operation: str, **kwargs: Any) -> None:
    """Log a completed operation as ``operation_<name>``."""
    logger.info(f"operation_{operation}", **kwargs)


def log_error(
    logger: structlog.BoundLogger,
    error: Exception,
    operation: str | None = None,
    **kwargs: Any,
) -> None:
    """Log an error with structured context.

    API errors also contribute their HTTP status code.

    Args:
        logger: Logger instance
        error: Exception instance
        operation: Operation name (optional)
        **kwargs: Additional context fields
    """
    context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        **kwargs,
    }

    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        context["status_code"] = status_code

    if operation:
        context["operation"] = operation

    logger.error("error_occurred", **context, exc_info=True)
