"""
Async driver for a quiz session.

QuizDriver is the single owner of a QuizSession during an attempt. It turns
stimuli (one-second ticks, submissions, extension requests, interstitial
acknowledgments) into state machine transitions and performs the side
effects around them:

- after every recorded answer a progress sync is scheduled as a background
  task (failures are logged, never surfaced)
- the transition delay elapses before the next question is shown
- on completion the completion sync is awaited, then the QuizResult is
  returned and passed to the optional ``on_complete`` callback

Everything runs on one event loop; no locks are needed because only the
driver touches the session.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set, Union

from app.core.answer_evaluation import Answer, SubmittedAnswer
from app.core.config import settings
from app.core.graceful_failure import graceful_failure
from app.core.logging_config import quiz_session_context
from app.core.quiz_session import QuizPhase, QuizResult, QuizSession
from app.core.session_sync import SessionSyncClient

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[QuizResult], Union[None, Awaitable[None]]]


class QuizDriver:
    """
    Drives one QuizSession and keeps the session store in sync.

    Args:
        session: The state machine for this attempt
        sync_client: Persistence client; None disables syncing
        session_id: Server-side session id; None when session creation
            failed, in which case syncing is skipped
        transition_delay: Seconds between recording an answer and moving on
            (default: settings.QUIZ_TRANSITION_DELAY_SECONDS)
        on_complete: Called with the QuizResult once the quiz completes
    """

    def __init__(
        self,
        session: QuizSession,
        sync_client: Optional[SessionSyncClient] = None,
        session_id: Optional[str] = None,
        *,
        transition_delay: Optional[float] = None,
        on_complete: Optional[CompletionCallback] = None,
    ):
        self.session = session
        self.sync_client = sync_client
        self.session_id = session_id
        self.transition_delay = (
            settings.QUIZ_TRANSITION_DELAY_SECONDS
            if transition_delay is None
            else transition_delay
        )
        self.on_complete = on_complete
        self._pending_syncs: Set["asyncio.Task[None]"] = set()
        self._completed = asyncio.Event()

    @property
    def syncing_enabled(self) -> bool:
        return self.sync_client is not None and self.session_id is not None

    # -------------------------------------------------------------------------
    # Stimuli
    # -------------------------------------------------------------------------

    async def submit(self, selected: SubmittedAnswer) -> Optional[QuizResult]:
        """
        Submit an answer for the current question and move on.

        Returns:
            The QuizResult if this answer completed the quiz, else None.
            Submissions while a transition is in progress are ignored.
        """
        answer = self.session.submit(selected)
        if answer is None:
            return None
        return await self._after_answer(answer)

    async def tick(self) -> Optional[QuizResult]:
        """One second elapsed. Records a timeout and moves on when time runs out."""
        answer = self.session.tick()
        if answer is None:
            return None
        return await self._after_answer(answer)

    def extend(self) -> bool:
        return self.session.extend()

    def acknowledge(self) -> bool:
        return self.session.acknowledge()

    async def run_clock(self, interval: float = 1.0) -> Optional[QuizResult]:
        """
        Tick once per ``interval`` seconds until the quiz completes.

        The countdown pauses while an interstitial is showing or a
        transition is in progress, since ``tick()`` only acts while
        awaiting an answer.
        """
        while not self.session.is_complete:
            await asyncio.sleep(interval)
            if self.session.phase is QuizPhase.AWAITING_ANSWER:
                await self.tick()
        return self.session.result

    async def wait_until_complete(self) -> Optional[QuizResult]:
        await self._completed.wait()
        return self.session.result

    async def drain(self) -> None:
        """Wait for outstanding progress syncs to finish."""
        if self._pending_syncs:
            await asyncio.gather(*list(self._pending_syncs), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _after_answer(self, answer: Answer) -> Optional[QuizResult]:
        self._schedule_progress_sync()

        if self.transition_delay > 0:
            await asyncio.sleep(self.transition_delay)

        phase = self.session.advance()
        if phase is not QuizPhase.COMPLETE:
            return None

        result = self.session.result
        assert result is not None
        # Progress syncs settle before the completion write
        await self.drain()
        await self._save_completion(result)
        await self._hand_off(result)
        self._completed.set()
        return result

    def _schedule_progress_sync(self) -> None:
        if not self.syncing_enabled:
            return

        # Snapshot now; the session keeps mutating while the task runs.
        # The answered count does not depend on whether advance() has run.
        current_index = len(self.session.answers)
        answers = tuple(self.session.answers)
        task = asyncio.create_task(self._save_progress(current_index, answers))
        self._pending_syncs.add(task)
        task.add_done_callback(self._pending_syncs.discard)

    async def _save_progress(self, current_index: int, answers: tuple) -> None:
        assert self.sync_client is not None and self.session_id is not None
        token = quiz_session_context.set(self.session_id)
        try:
            with graceful_failure(
                "save quiz progress",
                logger,
                context={"session_id": self.session_id, "current_index": current_index},
            ):
                await self.sync_client.save_progress(
                    self.session_id, current_index, answers
                )
        finally:
            quiz_session_context.reset(token)

    async def _save_completion(self, result: QuizResult) -> None:
        if not self.syncing_enabled:
            logger.info("No quiz session id; skipping completion sync")
            return

        assert self.sync_client is not None and self.session_id is not None
        token = quiz_session_context.set(self.session_id)
        try:
            with graceful_failure(
                "save quiz completion",
                logger,
                context={"session_id": self.session_id},
            ):
                await self.sync_client.save_completion(
                    self.session_id,
                    result.correct_count,
                    result.score.iq,
                    result.score.percentile,
                    result.answers,
                )
        finally:
            quiz_session_context.reset(token)

    async def _hand_off(self, result: QuizResult) -> None:
        if self.on_complete is None:
            return
        outcome = self.on_complete(result)
        if asyncio.iscoroutine(outcome):
            await outcome
