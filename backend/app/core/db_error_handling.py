"""
Database error handling for the session endpoints and the session sync client.

Endpoints wrap their unit of work in `async_handle_db_error`: on failure the
session is rolled back, the error is logged with the operation name and the
caller gets an HTTPException. Code outside a request raises
`DatabaseOperationError` instead.

Usage:
    async with async_handle_db_error(db, "update quiz session"):
        record.current_question = 4
        await db.commit()
        return SessionUpdateResponse(success=True)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession


logger = logging.getLogger(__name__)


class DatabaseOperationError(Exception):
    """
    A failed database operation outside an HTTP request.

    Attributes:
        operation_name: What was being attempted, e.g. "save quiz progress"
        original_error: The exception raised by the database layer
        message: Rendered message, "Failed to <operation>: <error>" by default
    """

    def __init__(
        self,
        operation_name: str,
        original_error: Exception,
        message: Optional[str] = None,
    ):
        self.operation_name = operation_name
        self.original_error = original_error
        self.message = message or f"Failed to {operation_name}: {original_error}"
        super().__init__(self.message)


@asynccontextmanager
async def async_handle_db_error(
    db: AsyncSession,
    operation_name: str,
    *,
    reraise_http_exceptions: bool = True,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    detail_template: Optional[str] = None,
    log_level: int = logging.ERROR,
) -> AsyncIterator[None]:
    """
    Roll back and convert any error raised in the block into an HTTPException.

    HTTPExceptions raised on purpose inside the block (404, 409) pass through
    untouched unless ``reraise_http_exceptions`` is False.

    Args:
        db: Session to roll back on failure
        operation_name: Used in the log line and the default detail
        reraise_http_exceptions: Let deliberate HTTPExceptions through
        status_code: Status of the raised HTTPException
        detail_template: Format string with ``{operation_name}`` and
            optionally ``{error}``; defaults to "Failed to {operation_name}: {error}"
        log_level: Level of the log line
    """
    try:
        yield
    except Exception as e:
        if isinstance(e, HTTPException):
            if reraise_http_exceptions:
                raise
            error_text = str(e.detail)
        else:
            error_text = str(e)

        await db.rollback()
        logger.log(
            log_level,
            f"Database error during {operation_name}: {error_text}",
            exc_info=True,
        )

        template = detail_template or "Failed to {operation_name}: {error}"
        raise HTTPException(
            status_code=status_code,
            detail=template.format(operation_name=operation_name, error=error_text),
        )
