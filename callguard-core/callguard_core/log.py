"""
Logging Setup
=============
structlog configuration for services that use the policies.

The policies log through ``structlog.get_logger(__name__)``; this module
only decides where those events go and how they are rendered.

Usage:
    from callguard_core.log import setup_logging

    setup_logging(service_name="payments-api")
"""

import logging
import sys

import structlog


def setup_logging(
    service_name: str,
    level: str = "INFO",
    json_output: bool = True,
) -> structlog.stdlib.BoundLogger:
    """
    Configure stdlib logging and structlog for a service.

    Args:
        service_name: Name of the service, bound into every event
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Whether to render JSON (for production) or console text

    Returns:
        Configured logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
        force=True,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=service_name)

    logger = structlog.stdlib.get_logger("callguard_core")
    logger.info("logging_configured", level=level.upper(), json=json_output)
    return logger


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger with the given name."""
    return structlog.get_logger(name)
