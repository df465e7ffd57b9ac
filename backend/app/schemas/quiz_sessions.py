"""
Pydantic schemas for quiz session endpoints.
"""
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Dict, List, Optional, Union
from datetime import datetime

from libs.domain_types import SessionStatus

from app.core.datetime_utils import ensure_timezone_aware
from app.core.validators import EmailValidator, StringSanitizer


class AnswerRecord(BaseModel):
    """One recorded answer as synced to the session store."""

    question_id: int = Field(..., gt=0, description="Question ID")
    selected_answer: Optional[Union[bool, int, float, List[int]]] = Field(
        None,
        description="Submitted answer; null when the question timed out",
    )
    correct: bool = Field(..., description="Whether the answer was correct")
    time_spent: float = Field(..., ge=0, description="Seconds spent on the question")


class SessionCreateRequest(BaseModel):
    """Schema for starting a quiz session. All attribution fields are optional."""

    utm_source: Optional[str] = Field(None, description="UTM source")
    utm_medium: Optional[str] = Field(None, description="UTM medium")
    utm_campaign: Optional[str] = Field(None, description="UTM campaign")
    utm_content: Optional[str] = Field(None, description="UTM content")

    @field_validator("utm_source", "utm_medium", "utm_campaign", "utm_content")
    @classmethod
    def sanitize_utm(cls, v: Optional[str]) -> Optional[str]:
        return StringSanitizer.sanitize_attribution(v)


class SessionCreateResponse(BaseModel):
    session_id: str = Field(..., description="ID of the created session")


class SessionUpdateRequest(BaseModel):
    """
    Schema for updating a quiz session.

    Only fields that are provided are written. A completion update
    (``completed=true``) must carry the score, IQ and percentile.
    """

    session_id: str = Field(..., min_length=1, description="Session ID")
    current_question: Optional[int] = Field(
        None, ge=0, description="Index of the next question to be asked"
    )
    answers: Optional[List[AnswerRecord]] = Field(
        None, description="Full answer list so far (replaces the stored list)"
    )
    score: Optional[int] = Field(None, ge=0, description="Number of correct answers")
    iq_score: Optional[int] = Field(None, description="IQ estimate")
    percentile: Optional[int] = Field(
        None, ge=1, le=99, description="Percentile rank (1-99)"
    )
    email: Optional[EmailStr] = Field(None, description="Email captured after the quiz")
    completed: bool = Field(False, description="Marks the session as completed")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return EmailValidator.normalize_email(v)

    @model_validator(mode="after")
    def validate_completion_fields(self) -> "SessionUpdateRequest":
        if self.completed:
            missing = [
                name
                for name in ("score", "iq_score", "percentile")
                if getattr(self, name) is None
            ]
            if missing:
                raise ValueError(
                    f"A completion update requires: {', '.join(missing)}"
                )
        return self

    @property
    def is_progress_only(self) -> bool:
        """True when the update carries nothing but quiz progress."""
        return not self.completed and self.email is None and all(
            getattr(self, name) is None for name in ("score", "iq_score", "percentile")
        )


class SessionUpdateResponse(BaseModel):
    success: bool = Field(True, description="Whether the update was applied")


class SessionRecordResponse(BaseModel):
    """Schema for a stored quiz session."""

    id: str = Field(..., description="Session ID")
    status: SessionStatus = Field(..., description="Session status (in_progress, completed)")
    current_question: int = Field(..., description="Index of the next question")
    answers: List[AnswerRecord] = Field(
        default_factory=list, description="Recorded answers in quiz order"
    )
    score: Optional[int] = Field(None, description="Number of correct answers")
    iq_score: Optional[int] = Field(None, description="IQ estimate")
    percentile: Optional[int] = Field(None, description="Percentile rank")
    email: Optional[str] = Field(None, description="Captured email")
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_content: Optional[str] = None
    created_at: datetime = Field(..., description="Session creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    completed_at: Optional[datetime] = Field(
        None, description="Completion timestamp"
    )

    @field_validator("created_at", "updated_at", "completed_at")
    @classmethod
    def attach_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_timezone_aware(v)

    class Config:
        """Pydantic configuration."""

        from_attributes = True


class CategoryScore(BaseModel):
    correct: int = Field(..., description="Correct answers in this group")
    total: int = Field(..., description="Answers in this group")
    pct: Optional[float] = Field(None, description="Percentage correct (1 dp)")


class AnswerStatistics(BaseModel):
    total: int = Field(..., description="Answers recorded")
    answered: int = Field(..., description="Answers excluding timeouts")
    correct: int = Field(..., description="Correct answers")
    timed_out: int = Field(..., description="Questions that ran out of time")
    accuracy_pct: Optional[float] = Field(None, description="Percentage correct")
    average_time_spent: Optional[float] = Field(
        None, description="Average seconds per question"
    )


class SessionResultsResponse(BaseModel):
    """Schema for the score report of a completed session."""

    session_id: str = Field(..., description="Session ID")
    score: int = Field(..., description="Number of correct answers")
    total_questions: int = Field(..., description="Questions in the quiz")
    iq_score: int = Field(..., description="IQ estimate")
    percentile: int = Field(..., description="Percentile rank (1-99)")
    classification: str = Field(
        ..., description="Descriptive IQ classification (e.g. 'High Average')"
    )
    percentile_interpretation: str = Field(
        ..., description="Human-readable percentile (e.g. 'Higher than 84% of test takers')"
    )
    domain_scores: Dict[str, CategoryScore] = Field(
        ..., description="Breakdown by question category"
    )
    difficulty_scores: Dict[int, CategoryScore] = Field(
        ..., description="Breakdown by difficulty level"
    )
    strongest_domain: Optional[str] = Field(None, description="Best category")
    weakest_domain: Optional[str] = Field(None, description="Weakest category")
    statistics: AnswerStatistics = Field(..., description="Answer statistics")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")
