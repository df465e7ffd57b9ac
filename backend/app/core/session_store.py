"""
Read and write helpers for the quiz session record.

Shared by the session API and the database-backed session sync client so
that both apply the same partial-update rules.
"""
import logging
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from libs.domain_types import SessionStatus

from app.core.datetime_utils import utc_now
from app.models.models import QuizSessionRecord
from app.schemas.quiz_sessions import SessionUpdateRequest

logger = logging.getLogger(__name__)


class SessionAlreadyCompletedError(Exception):
    """A progress-only update arrived after the session was completed."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Quiz session {session_id} is already completed")


async def create_session_record(
    db: AsyncSession,
    *,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    utm: Optional[Dict[str, Optional[str]]] = None,
) -> QuizSessionRecord:
    """
    Insert a new in-progress session record and commit it.

    Args:
        db: Database session
        ip_address: Client IP (first X-Forwarded-For hop or peer host)
        user_agent: Client user agent
        utm: Attribution parameters keyed utm_source/medium/campaign/content

    Returns:
        The persisted record
    """
    utm = utm or {}
    record = QuizSessionRecord(
        status=SessionStatus.IN_PROGRESS,
        current_question=0,
        answers=[],
        ip_address=ip_address,
        user_agent=user_agent,
        utm_source=utm.get("utm_source"),
        utm_medium=utm.get("utm_medium"),
        utm_campaign=utm.get("utm_campaign"),
        utm_content=utm.get("utm_content"),
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)
    logger.info(f"Created quiz session {record.id}")
    return record


async def get_session_record(
    db: AsyncSession, session_id: str
) -> Optional[QuizSessionRecord]:
    return await db.get(QuizSessionRecord, session_id)


async def apply_session_update(
    db: AsyncSession,
    record: QuizSessionRecord,
    update: SessionUpdateRequest,
) -> QuizSessionRecord:
    """
    Apply a partial update to a session record and commit it.

    Only fields present in the update are written. A completion update
    stores the score fields and marks the record completed. Progress-only
    updates for a completed record are rejected so that a late progress
    sync cannot overwrite the completion write.

    Raises:
        SessionAlreadyCompletedError: Progress-only update on a completed record
    """
    if record.is_completed and update.is_progress_only:
        raise SessionAlreadyCompletedError(record.id)

    if update.current_question is not None:
        record.current_question = update.current_question
    if update.answers is not None:
        record.answers = [answer.model_dump() for answer in update.answers]
    if update.score is not None:
        record.score = update.score
    if update.iq_score is not None:
        record.iq_score = update.iq_score
    if update.percentile is not None:
        record.percentile = update.percentile
    if update.email is not None:
        record.email = update.email

    if update.completed:
        record.status = SessionStatus.COMPLETED
        record.completed_at = utc_now()

    record.updated_at = utc_now()

    await db.commit()
    await db.refresh(record)
    return record
