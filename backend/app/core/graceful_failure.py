"""
Best-effort execution for work that must never interrupt a quiz.

Session syncs are fire-and-forget from the quiz's point of view: when a save
fails the attempt continues and the failure is only logged. Endpoint code
that needs a rollback and an HTTP error uses `db_error_handling` instead.

Usage:
    with graceful_failure("save quiz progress", logger, context={"session_id": sid}):
        await client.save_progress(sid, 3, answers)
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional


def _describe(operation_name: str, context: Optional[Dict[str, Any]]) -> str:
    if not context:
        return operation_name
    pairs = ", ".join(f"{key}={value}" for key, value in context.items())
    return f"{operation_name} ({pairs})"


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[Dict[str, Any]] = None,
) -> Iterator[None]:
    """
    Run the block, logging and swallowing any Exception it raises.

    Args:
        operation_name: What the block does, phrased to follow "Failed to"
        logger: Logger that receives the failure line
        log_level: Level of the failure line
        exc_info: Attach the traceback to the failure line
        context: Key/value pairs rendered into the message, e.g. the session id
    """
    try:
        yield
    except Exception as e:
        logger.log(
            log_level,
            f"Failed to {_describe(operation_name, context)}: {e}",
            exc_info=exc_info,
        )
