"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across import, formula and admin
operations.

Usage:
    from paintmix.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="import_colors",
        outcome="committed",
        created_rows=12,
        updated_rows=3,
        skipped_rows=40,
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger with the 'paintmix.services' prefix.

    Example:
        >>> logger = get_service_logger(__name__)
        >>> logger.name
        'paintmix.services.staged_import_service'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"paintmix.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The context is passed via the 'extra' parameter for structured logging.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "import_brands", "delete_color")
        outcome: Outcome description (e.g., "committed", "blocked", "dry_run")
        level: Log level (default: INFO)
        **context: Additional context fields (counts, ids, error details)

    Example:
        >>> log_operation(
        ...     logger,
        ...     operation="import_batch",
        ...     outcome="blocked",
        ...     level=logging.WARNING,
        ...     error_count=4,
        ... )
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
