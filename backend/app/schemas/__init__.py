"""
Pydantic schemas for request/response validation.
"""
from .questions import (
    QuestionResponse,
    QuestionCatalogResponse,
)
from .quiz_sessions import (
    AnswerRecord,
    AnswerStatistics,
    CategoryScore,
    SessionCreateRequest,
    SessionCreateResponse,
    SessionRecordResponse,
    SessionResultsResponse,
    SessionUpdateRequest,
    SessionUpdateResponse,
)

__all__ = [
    "QuestionResponse",
    "QuestionCatalogResponse",
    "AnswerRecord",
    "AnswerStatistics",
    "CategoryScore",
    "SessionCreateRequest",
    "SessionCreateResponse",
    "SessionRecordResponse",
    "SessionResultsResponse",
    "SessionUpdateRequest",
    "SessionUpdateResponse",
]
