"""
User-facing error messages and HTTPException builders for the session API.

Messages are sentence case and end with a period. Session ids are included
in parentheses so a support request can be matched to a stored record;
technical details stay in the logs.
"""

from typing import NoReturn

from fastapi import HTTPException, status


class ErrorMessages:
    """Static messages as constants, parameterized ones as static methods."""

    SESSION_NOT_COMPLETED = (
        "Quiz session is not completed yet. Results are available once the "
        "quiz is finished."
    )

    @staticmethod
    def session_not_found(session_id: str) -> str:
        return f"Quiz session not found (ID: {session_id})."

    @staticmethod
    def session_already_completed(session_id: str) -> str:
        return (
            f"Quiz session is already completed (ID: {session_id}). "
            "Progress updates are no longer accepted."
        )


def raise_not_found(detail: str) -> NoReturn:
    """404: the requested quiz session does not exist."""
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def raise_conflict(detail: str) -> NoReturn:
    """409: the request does not fit the session's current status."""
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
