"""
Answer evaluation for quiz questions.

`is_correct` maps a question and a submitted answer to a correctness boolean.
It is called synchronously from the quiz state machine's submit transition
and is total: it never raises. A ``None`` submission (the timeout sentinel)
and a submission whose shape does not match the question's answer type both
evaluate as incorrect.

Values outside a slider's configured range are compared against the
tolerance as-is. Input constraints (ranges, selection counts) are enforced by
the client.
"""
import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

from libs.domain_types import AnswerType

from app.core.question_bank import (
    MultiSelectQuestion,
    MultipleChoiceQuestion,
    OrderQuestion,
    Question,
    SequenceQuestion,
    SliderQuestion,
    TrueFalseQuestion,
)

logger = logging.getLogger(__name__)

# Shapes a submitted answer can take: option index, index list, boolean, or
# slider value. None is the "no answer" sentinel recorded on timeout.
SubmittedAnswer = Optional[Union[int, float, bool, List[int]]]


@dataclass(frozen=True)
class Answer:
    """One resolved question of a quiz attempt. Immutable once recorded."""

    question_id: int
    selected_answer: SubmittedAnswer
    correct: bool  # computed once at submission, never recomputed
    time_spent: float  # seconds

    @property
    def timed_out(self) -> bool:
        return self.selected_answer is None


def _is_index(value: object) -> bool:
    # bool is an int subclass; True must not select option 1
    return isinstance(value, int) and not isinstance(value, bool)


def _is_index_list(value: object) -> bool:
    return isinstance(value, (list, tuple)) and all(_is_index(v) for v in value)


def _check_choice(
    question: Union[MultipleChoiceQuestion, SequenceQuestion], submitted: object
) -> bool:
    return _is_index(submitted) and submitted == question.correct_answer


def _check_true_false(question: TrueFalseQuestion, submitted: object) -> bool:
    return isinstance(submitted, bool) and submitted is question.correct_answer


def _check_slider(question: SliderQuestion, submitted: object) -> bool:
    if isinstance(submitted, bool) or not isinstance(submitted, (int, float)):
        return False
    if not math.isfinite(submitted):
        return False
    return abs(submitted - question.correct_answer) <= question.tolerance


def _check_order(question: OrderQuestion, submitted: object) -> bool:
    if not _is_index_list(submitted):
        return False
    return list(submitted) == list(question.correct_order)  # type: ignore[arg-type]


def _check_multi_select(question: MultiSelectQuestion, submitted: object) -> bool:
    if not _is_index_list(submitted):
        return False
    return sorted(set(submitted)) == sorted(question.correct_answers)  # type: ignore[arg-type]


_EVALUATORS: Dict[AnswerType, Callable[..., bool]] = {
    AnswerType.MULTIPLE_CHOICE: _check_choice,
    AnswerType.SEQUENCE: _check_choice,
    AnswerType.TRUE_FALSE: _check_true_false,
    AnswerType.SLIDER: _check_slider,
    AnswerType.ORDER: _check_order,
    AnswerType.MULTI_SELECT: _check_multi_select,
}


def is_correct(question: Question, submitted: SubmittedAnswer) -> bool:
    """
    Evaluate a submitted answer against a question.

    Args:
        question: The question being answered
        submitted: The client's answer; its shape depends on the answer type
            (index, index list, boolean or number). None means no answer.

    Returns:
        True only when the submission exactly satisfies the question's rule.
        No partial credit is given for order or multi-select questions.

    Example:
        >>> is_correct(slider_question, 9.5)  # correct_answer=9.5, tolerance=0
        True
        >>> is_correct(order_question, [1, 0, 2])  # correct_order=(1, 2, 0)
        False
    """
    if submitted is None:
        return False

    evaluator = _EVALUATORS.get(question.answer_type)
    if evaluator is None:
        logger.warning(
            f"No evaluator for answer type {question.answer_type!r} "
            f"(question {question.id})"
        )
        return False

    return evaluator(question, submitted)
