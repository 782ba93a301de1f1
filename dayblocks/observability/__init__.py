"""
Observability module: structured logging and operation IDs.

Usage:
    from dayblocks.observability import get_logger, OperationContext

    logger = get_logger(__name__)
    logger.info("Refreshing progress", extra={"day": "2026-03-02"})

    with OperationContext(name="today") as ctx:
        logger.info("Command started")  # carries ctx.operation_id and "today"
"""

from .context import Operation, OperationContext, current_operation, generate_operation_id, get_operation_id
from .logging import (
    HumanFormatter,
    JSONFormatter,
    configure_log_rotation,
    configure_logging,
    get_logger,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "configure_log_rotation",
    "JSONFormatter",
    "HumanFormatter",
    # Context
    "Operation",
    "OperationContext",
    "current_operation",
    "generate_operation_id",
    "get_operation_id",
]
