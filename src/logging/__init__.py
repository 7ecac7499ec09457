"""Structured logging for the drone mission control service.

Usage:
    from src.logging import bind_context, get_logger, setup_logging

    setup_logging()
    logger = get_logger(__name__)
    with bind_context(drone_id="d-001"):
        logger.info("Telemetry ingested", extra={"battery": 87.5})
"""

from src.logging.config import LoggingConfig
from src.logging.context import (
    bind_context,
    clear_context,
    correlation_id,
    get_correlation_id,
    get_extra_context,
    set_correlation_id,
    set_extra_context,
)
from src.logging.formatters import HumanFormatter, JSONFormatter
from src.logging.logger import get_logger, setup_logging

__all__ = [
    "HumanFormatter",
    "JSONFormatter",
    "LoggingConfig",
    "bind_context",
    "clear_context",
    "correlation_id",
    "get_correlation_id",
    "get_extra_context",
    "get_logger",
    "set_correlation_id",
    "set_extra_context",
    "setup_logging",
]
