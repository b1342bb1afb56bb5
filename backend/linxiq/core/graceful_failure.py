"""
Graceful failure utilities.

Reusable context manager for non-critical operations that should not block
the main execution flow:
1. Attempting an operation
2. Logging any exceptions with context
3. Continuing execution without raising

Skill-gap analysis and notifications both run under it, so a failure there
never costs a candidate their score.

Usage:
    from linxiq.core.graceful_failure import graceful_failure

    with graceful_failure("send result notification", logger):
        notifier.result_created(result)

    with graceful_failure(
        "generate skill-gap analysis",
        logger,
        log_level=logging.ERROR,
        context={"result_id": result.id},
    ):
        analysis = build_analysis(result)
"""

import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[dict[str, Any]] = None,
) -> Generator[None, None, None]:
    """Context manager for non-critical operations that should not block execution.

    Unlike the service-layer error paths, this does NOT:
    - Raise an AssessmentError or HTTPException
    - Rollback the database session
    - Stop execution

    Args:
        operation_name: Human-readable name of the operation for logging
            (e.g., "generate skill-gap analysis").
        logger: The logger instance to use for logging errors.
        log_level: Logging level for error messages. Defaults to WARNING.
        exc_info: Whether to include exception traceback in log.
        context: Optional dictionary of additional context to include in log
            message (e.g., {"session_id": 123}).
    """
    try:
        yield
    except Exception as e:
        if context:
            context_str = ", ".join(f"{k}={v}" for k, v in context.items())
            message = f"Failed to {operation_name} ({context_str}): {e}"
        else:
            message = f"Failed to {operation_name}: {e}"

        logger.log(log_level, message, exc_info=exc_info)

