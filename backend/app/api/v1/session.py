"""
Quiz session endpoints.

The quiz engine syncs each attempt to a server-side session record:
POST creates it when the test flow starts, PUT records progress after each
answer and the score on completion, and GET reads it back for the results
view.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.answer_evaluation import Answer
from app.core.datetime_utils import ensure_timezone_aware
from app.core.db_error_handling import async_handle_db_error
from app.core.error_responses import (
    ErrorMessages,
    raise_conflict,
    raise_not_found,
)
from app.core.question_bank import default_bank
from app.core.scoring import (
    calculate_answer_statistics,
    calculate_difficulty_scores,
    calculate_domain_scores,
    get_iq_classification,
    get_percentile_interpretation,
    get_strongest_weakest_domains,
)
from app.core.session_store import (
    SessionAlreadyCompletedError,
    apply_session_update,
    create_session_record,
    get_session_record,
)
from app.core.validators import StringSanitizer, first_forwarded_ip
from app.models import get_db
from app.models.models import QuizSessionRecord
from app.schemas.quiz_sessions import (
    AnswerRecord,
    SessionCreateRequest,
    SessionCreateResponse,
    SessionRecordResponse,
    SessionResultsResponse,
    SessionUpdateRequest,
    SessionUpdateResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> Optional[str]:
    """Client IP: first X-Forwarded-For hop, else the peer address."""
    forwarded = first_forwarded_ip(request.headers.get("x-forwarded-for"))
    if forwarded:
        return forwarded
    return request.client.host if request.client else None


async def _get_record_or_404(db: AsyncSession, session_id: str) -> QuizSessionRecord:
    record = await get_session_record(db, session_id)
    if record is None:
        raise_not_found(ErrorMessages.session_not_found(session_id))
    return record


def _stored_answers(record: QuizSessionRecord) -> List[Answer]:
    return [
        Answer(**AnswerRecord.model_validate(raw).model_dump())
        for raw in (record.answers or [])
    ]


@router.post("", response_model=SessionCreateResponse)
async def create_session(
    request: Request,
    body: Optional[SessionCreateRequest] = None,
    db: AsyncSession = Depends(get_db),
):
    """
    Start a quiz session.

    Records the client IP, user agent and any UTM attribution parameters.

    Returns:
        The new session id
    """
    body = body or SessionCreateRequest()

    async with async_handle_db_error(db, "create quiz session"):
        record = await create_session_record(
            db,
            ip_address=get_client_ip(request),
            user_agent=StringSanitizer.sanitize_user_agent(
                request.headers.get("user-agent")
            ),
            utm=body.model_dump(),
        )
        return SessionCreateResponse(session_id=record.id)


@router.put("", response_model=SessionUpdateResponse)
async def update_session(
    update: SessionUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Update a quiz session.

    Only provided fields are written. ``completed=true`` stores the score,
    IQ and percentile and marks the session completed. Progress-only updates
    for a completed session are rejected with 409.

    Raises:
        HTTPException: 404 if the session does not exist, 409 if it is
            already completed and the update only carries progress
    """
    async with async_handle_db_error(db, "update quiz session"):
        record = await _get_record_or_404(db, update.session_id)
        try:
            await apply_session_update(db, record, update)
        except SessionAlreadyCompletedError:
            logger.info(
                f"Rejected progress update for completed session {update.session_id}"
            )
            raise_conflict(ErrorMessages.session_already_completed(update.session_id))

        if update.completed:
            logger.info(
                f"Quiz session {record.id} completed: score={record.score}, "
                f"iq={record.iq_score}, percentile={record.percentile}"
            )
        return SessionUpdateResponse(success=True)


@router.get("/{session_id}", response_model=SessionRecordResponse)
async def get_session(session_id: str, db: AsyncSession = Depends(get_db)):
    """Fetch a stored quiz session."""
    record = await _get_record_or_404(db, session_id)
    return SessionRecordResponse.model_validate(record)


@router.get("/{session_id}/results", response_model=SessionResultsResponse)
async def get_session_results(session_id: str, db: AsyncSession = Depends(get_db)):
    """
    Get the score report for a completed quiz session.

    The breakdowns are computed from the stored answers against the current
    question bank; answers for questions no longer in the bank are skipped.

    Raises:
        HTTPException: 404 if the session does not exist, 409 if it is not
            completed yet
    """
    record = await _get_record_or_404(db, session_id)
    if not record.is_completed:
        raise_conflict(ErrorMessages.SESSION_NOT_COMPLETED)

    answers = _stored_answers(record)
    domain_scores = calculate_domain_scores(default_bank, answers)
    strongest_weakest = get_strongest_weakest_domains(domain_scores)

    return SessionResultsResponse(
        session_id=record.id,
        score=record.score,
        total_questions=len(default_bank),
        iq_score=record.iq_score,
        percentile=record.percentile,
        classification=get_iq_classification(record.iq_score),
        percentile_interpretation=get_percentile_interpretation(record.percentile),
        domain_scores=domain_scores,
        difficulty_scores=calculate_difficulty_scores(default_bank, answers),
        strongest_domain=strongest_weakest["strongest_domain"],
        weakest_domain=strongest_weakest["weakest_domain"],
        statistics=calculate_answer_statistics(answers),
        completed_at=ensure_timezone_aware(record.completed_at),
    )
