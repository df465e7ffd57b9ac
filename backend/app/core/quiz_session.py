"""
Quiz session state machine.

One QuizSession owns all the mutable state of a single quiz attempt: the
current question index, the answers recorded so far, the countdown for the
current question, the one-time time extension and the streak counter. It is
created when the test flow starts, mutated only through its transition
methods, and discarded once the result has been handed off.

Phases::

    AWAITING_ANSWER --submit/timeout--> TRANSITIONING
    TRANSITIONING --advance--> AWAITING_ANSWER (next question)
                           --> ENGAGEMENT (interstitial configured)
                           --> COMPLETE (last question answered)
    ENGAGEMENT --acknowledge--> AWAITING_ANSWER (next question)

The machine is synchronous and time-agnostic: ``tick()`` is an abstract
one-second event and the clock used to measure time spent per question is
injectable. The async driver in `app.core.quiz_driver` supplies real time,
the transition delay and persistence.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from app.core.answer_evaluation import Answer, SubmittedAnswer, is_correct
from app.core.config import settings
from app.core.question_bank import (
    EngagementMessage,
    Question,
    QuestionBank,
    default_bank,
    get_engagement_message,
)
from app.core.scoring import ScoreResult, score

logger = logging.getLogger(__name__)


class QuizPhase(str, Enum):
    AWAITING_ANSWER = "awaiting_answer"
    TRANSITIONING = "transitioning"
    ENGAGEMENT = "engagement"
    COMPLETE = "complete"


@dataclass(frozen=True)
class QuizResult:
    """Handoff object emitted when the quiz completes."""

    score: ScoreResult
    correct_count: int
    total_questions: int
    answers: Tuple[Answer, ...]


class QuizSession:
    """
    Explicit finite-state object for one quiz attempt.

    Invariants:
        - ``0 <= current_index <= len(bank)`` and it never decreases.
        - ``answers`` is append-only; while awaiting an answer its length
          equals ``current_index``, and it ends with exactly ``len(bank)``
          entries.
        - At most one extension per question.

    Args:
        bank: Question bank to progress through
        clock: Monotonic clock in seconds, used for time spent per question
        low_time_threshold: Seconds left at which the extension is offered
        time_extension: Seconds added by ``extend()``
        engagement_messages: Interstitial table keyed by questions completed;
            defaults to the built-in table
    """

    def __init__(
        self,
        bank: QuestionBank = default_bank,
        *,
        clock: Callable[[], float] = time.monotonic,
        low_time_threshold: Optional[int] = None,
        time_extension: Optional[int] = None,
        engagement_messages: Optional[Dict[int, EngagementMessage]] = None,
    ):
        self.bank = bank
        self._clock = clock
        self.low_time_threshold = (
            settings.QUIZ_LOW_TIME_THRESHOLD_SECONDS
            if low_time_threshold is None
            else low_time_threshold
        )
        self.time_extension = (
            settings.QUIZ_TIME_EXTENSION_SECONDS
            if time_extension is None
            else time_extension
        )
        self._engagement_messages = engagement_messages

        self.current_index = 0
        self.answers: List[Answer] = []
        self.streak = 0
        self.phase = QuizPhase.AWAITING_ANSWER
        self.engagement: Optional[EngagementMessage] = None
        self._result: Optional[QuizResult] = None

        self.time_left = 0
        self.extended_this_question = False
        self.extend_available = False
        self._question_started_at = 0.0
        self._start_question(0)

    # -------------------------------------------------------------------------
    # Read accessors
    # -------------------------------------------------------------------------

    @property
    def total_questions(self) -> int:
        return len(self.bank)

    @property
    def current_question(self) -> Optional[Question]:
        if self.current_index >= len(self.bank):
            return None
        return self.bank.get_question(self.current_index)

    @property
    def correct_count(self) -> int:
        return sum(1 for a in self.answers if a.correct)

    @property
    def is_complete(self) -> bool:
        return self.phase is QuizPhase.COMPLETE

    @property
    def result(self) -> Optional[QuizResult]:
        """The QuizResult once the quiz is complete, else None."""
        return self._result

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def tick(self) -> Optional[Answer]:
        """
        Advance the countdown by one second.

        Offers the extension once the time left drops to the low-time
        threshold (unless it was already used on this question). When the
        countdown reaches zero a timeout answer is recorded and the session
        moves to TRANSITIONING.

        Returns:
            The synthesized timeout Answer, or None if time remains or the
            session is not awaiting an answer.
        """
        if self.phase is not QuizPhase.AWAITING_ANSWER:
            return None

        self.time_left = max(0, self.time_left - 1)

        if self.time_left <= self.low_time_threshold and not self.extended_this_question:
            self.extend_available = True

        if self.time_left > 0:
            return None

        question = self.bank.get_question(self.current_index)
        logger.info(
            f"Question {question.id} timed out at index {self.current_index}",
            extra={"question_id": question.id, "question_index": self.current_index},
        )
        return self._record(question, None, correct=False)

    def submit(self, selected: SubmittedAnswer) -> Optional[Answer]:
        """
        Submit an answer for the current question.

        Submissions outside AWAITING_ANSWER (during a transition, an
        interstitial or after completion) are ignored.

        Args:
            selected: Client answer in the shape the question's answer type
                expects; None is treated as no answer

        Returns:
            The recorded Answer, or None if the submission was ignored.
        """
        if self.phase is not QuizPhase.AWAITING_ANSWER:
            logger.debug(f"Ignoring submission in phase {self.phase.value}")
            return None

        if isinstance(selected, (list, tuple)):
            selected = list(selected)

        question = self.bank.get_question(self.current_index)
        return self._record(question, selected, correct=is_correct(question, selected))

    def extend(self) -> bool:
        """
        Use the one-time extension for the current question.

        Returns:
            True if time was added, False if the extension is not on offer.
        """
        if (
            self.phase is not QuizPhase.AWAITING_ANSWER
            or not self.extend_available
            or self.extended_this_question
        ):
            return False

        self.time_left += self.time_extension
        self.extended_this_question = True
        self.extend_available = False
        return True

    def advance(self) -> QuizPhase:
        """
        Leave TRANSITIONING.

        After the last question the score is computed and the session
        completes. Otherwise an engagement interstitial is shown if one is
        configured for the number of questions completed, else the next
        question starts.

        Returns:
            The phase after the transition (unchanged if not transitioning).
        """
        if self.phase is not QuizPhase.TRANSITIONING:
            return self.phase

        if self.current_index >= len(self.bank) - 1:
            self._complete()
            return self.phase

        message = get_engagement_message(
            self.current_index + 1, self._engagement_messages
        )
        if message is not None:
            self.engagement = message
            self.phase = QuizPhase.ENGAGEMENT
            return self.phase

        self._start_question(self.current_index + 1)
        return self.phase

    def acknowledge(self) -> bool:
        """Dismiss the engagement interstitial and start the next question."""
        if self.phase is not QuizPhase.ENGAGEMENT:
            return False

        self.engagement = None
        self._start_question(self.current_index + 1)
        return True

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _start_question(self, index: int) -> None:
        question = self.bank.get_question(index)
        self.current_index = index
        self.time_left = question.time_limit
        self.extended_this_question = False
        self.extend_available = False
        self._question_started_at = self._clock()
        self.phase = QuizPhase.AWAITING_ANSWER

    def _record(
        self, question: Question, selected: SubmittedAnswer, *, correct: bool
    ) -> Answer:
        answer = Answer(
            question_id=question.id,
            selected_answer=selected,
            correct=correct,
            time_spent=max(0.0, self._clock() - self._question_started_at),
        )
        self.answers.append(answer)
        self.streak = self.streak + 1 if correct else 0
        self.extend_available = False
        self.phase = QuizPhase.TRANSITIONING
        return answer

    def _complete(self) -> None:
        correct_count = self.correct_count
        total = len(self.bank)
        self._result = QuizResult(
            score=score(correct_count, total),
            correct_count=correct_count,
            total_questions=total,
            answers=tuple(self.answers),
        )
        self.current_index = total
        self.phase = QuizPhase.COMPLETE
        logger.info(
            f"Quiz complete: {correct_count}/{total} correct, "
            f"IQ {self._result.score.iq}, percentile {self._result.score.percentile}"
        )
