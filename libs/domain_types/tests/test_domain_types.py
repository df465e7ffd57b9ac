"""Tests for shared domain types package."""

import json

from libs.domain_types import (
    AnswerType,
    EngagementKind,
    QuestionType,
    SessionStatus,
)


class TestQuestionType:
    """Tests for QuestionType enum."""

    def test_values(self):
        assert {qt.value for qt in QuestionType} == {
            "pattern",
            "logic",
            "verbal",
            "math",
            "spatial",
            "memory",
            "visual",
        }

    def test_str_mixin(self):
        assert QuestionType("pattern") == QuestionType.PATTERN

    def test_json_serializable(self):
        assert json.dumps(QuestionType.VISUAL) == '"visual"'

    def test_count(self):
        assert len(QuestionType) == 7


class TestAnswerType:
    """Tests for AnswerType enum."""

    def test_values(self):
        assert {at.value for at in AnswerType} == {
            "multiple_choice",
            "sequence",
            "true_false",
            "slider",
            "order",
            "multi_select",
        }

    def test_round_trip_from_string(self):
        assert AnswerType("multi_select") is AnswerType.MULTI_SELECT


class TestSessionStatus:
    """Tests for SessionStatus enum."""

    def test_values(self):
        assert SessionStatus.IN_PROGRESS.value == "in_progress"
        assert SessionStatus.COMPLETED.value == "completed"
        assert len(SessionStatus) == 2


class TestEngagementKind:
    """Tests for EngagementKind enum."""

    def test_json_serializable(self):
        assert json.dumps(EngagementKind.MILESTONE) == '"milestone"'
