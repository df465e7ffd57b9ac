"""
Database models for the IQScore application.

One row per quiz attempt. The quiz engine itself keeps its state in memory;
this record is what the session sync writes to and what the results view
reads back.
"""
import uuid

from sqlalchemy import (
    Column,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
)

from libs.domain_types import SessionStatus

from app.core.datetime_utils import utc_now

from .base import Base
from .types import JSONDocument


def _new_session_id() -> str:
    return str(uuid.uuid4())


class QuizSessionRecord(Base):
    """Server-side record of a single quiz attempt."""

    __tablename__ = "quiz_sessions"

    id = Column(String(36), primary_key=True, default=_new_session_id)
    status = Column(
        Enum(SessionStatus, values_callable=lambda e: [m.value for m in e]),
        default=SessionStatus.IN_PROGRESS,
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Progress, written by every progress sync (last write wins)
    current_question = Column(Integer, default=0, nullable=False)
    answers = Column(JSONDocument(), default=list, nullable=False)

    # Result, written once by the completion sync
    score = Column(Integer, nullable=True)  # number of correct answers
    iq_score = Column(Integer, nullable=True)
    percentile = Column(Integer, nullable=True)

    email = Column(String(320), nullable=True)

    # Attribution captured when the session is created
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
    utm_source = Column(String(255), nullable=True)
    utm_medium = Column(String(255), nullable=True)
    utm_campaign = Column(String(255), nullable=True)
    utm_content = Column(String(255), nullable=True)

    __table_args__ = (Index("ix_quiz_sessions_status_created", "status", "created_at"),)

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED
