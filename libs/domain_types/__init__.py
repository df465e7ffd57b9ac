"""Shared domain types for IQScore services.

This package is the single source of truth for domain enums used across
the quiz engine, the session API, and (indirectly via OpenAPI) the web client.

Usage:
    from libs.domain_types import QuestionType, AnswerType
"""

import enum


class QuestionType(str, enum.Enum):
    """Cognitive category of a quiz question (reporting only)."""

    PATTERN = "pattern"
    LOGIC = "logic"
    VERBAL = "verbal"
    MATH = "math"
    SPATIAL = "spatial"
    MEMORY = "memory"
    VISUAL = "visual"


class AnswerType(str, enum.Enum):
    """Answer format of a question; selects the evaluation rule."""

    MULTIPLE_CHOICE = "multiple_choice"
    SEQUENCE = "sequence"
    TRUE_FALSE = "true_false"
    SLIDER = "slider"
    ORDER = "order"
    MULTI_SELECT = "multi_select"


class SessionStatus(str, enum.Enum):
    """Server-side quiz session record status."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class EngagementKind(str, enum.Enum):
    """Tone of an engagement interstitial shown between questions."""

    ENCOURAGEMENT = "encouragement"
    MILESTONE = "milestone"
    CHALLENGE = "challenge"


__all__ = [
    "QuestionType",
    "AnswerType",
    "SessionStatus",
    "EngagementKind",
]
