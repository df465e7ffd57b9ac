"""
Tests for the async quiz driver.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from app.core.logging_config import quiz_session_context
from app.core.quiz_driver import QuizDriver
from app.core.quiz_session import QuizPhase, QuizSession
from app.core.scoring import ScoreResult


@pytest.fixture
def sync_client():
    client = AsyncMock()
    client.save_progress.return_value = None
    client.save_completion.return_value = None
    return client


@pytest.fixture
def session():
    return QuizSession(low_time_threshold=6, time_extension=30)


async def _play(driver, submission_for):
    """Answer every question through the driver, dismissing interstitials."""
    result = None
    while result is None:
        if driver.session.phase is QuizPhase.ENGAGEMENT:
            driver.acknowledge()
            continue
        result = await driver.submit(submission_for(driver.session.current_question))
    await driver.drain()
    return result


class TestQuizDriverRun:
    """End-to-end runs with a mocked sync client."""

    @pytest.mark.asyncio
    async def test_full_run_returns_result(self, session, sync_client, correct_for):
        driver = QuizDriver(session, sync_client, "s-1", transition_delay=0)

        result = await _play(driver, correct_for)

        assert result.score == ScoreResult(iq=145, percentile=99)
        assert result.correct_count == 25
        assert session.is_complete

    @pytest.mark.asyncio
    async def test_progress_synced_after_every_answer(
        self, session, sync_client, correct_for
    ):
        driver = QuizDriver(session, sync_client, "s-1", transition_delay=0)

        await _play(driver, correct_for)
        await driver.drain()

        assert sync_client.save_progress.await_count == 25
        indexes = sorted(call.args[1] for call in sync_client.save_progress.await_args_list)
        assert indexes == list(range(1, 26))

        # Each snapshot carries the full answer list up to that point
        for call in sync_client.save_progress.await_args_list:
            session_id, current_index, answers = call.args
            assert session_id == "s-1"
            assert len(answers) == current_index

    @pytest.mark.asyncio
    async def test_completion_synced_once(self, session, sync_client, wrong_for):
        driver = QuizDriver(session, sync_client, "s-1", transition_delay=0)

        result = await _play(driver, wrong_for)

        sync_client.save_completion.assert_awaited_once_with(
            "s-1", 0, 75, 1, result.answers
        )

    @pytest.mark.asyncio
    async def test_wait_until_complete(self, session, sync_client, correct_for):
        driver = QuizDriver(session, sync_client, "s-1", transition_delay=0)
        waiter = asyncio.create_task(driver.wait_until_complete())

        await _play(driver, correct_for)

        result = await asyncio.wait_for(waiter, timeout=1)
        assert result is session.result


class TestQuizDriverWithoutSync:
    @pytest.mark.asyncio
    async def test_no_session_id_skips_sync(self, session, sync_client, correct_for):
        driver = QuizDriver(session, sync_client, None, transition_delay=0)
        assert driver.syncing_enabled is False

        result = await _play(driver, correct_for)
        await driver.drain()

        assert result.correct_count == 25
        sync_client.save_progress.assert_not_awaited()
        sync_client.save_completion.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_client(self, session, correct_for):
        driver = QuizDriver(session, transition_delay=0)
        result = await _play(driver, correct_for)
        assert result.total_questions == 25


class TestSyncFailures:
    """Sync failures are logged and never surface to the quiz."""

    @pytest.mark.asyncio
    async def test_progress_failure_is_swallowed(
        self, session, sync_client, correct_for, monkeypatch
    ):
        mock_logger = MagicMock()
        monkeypatch.setattr("app.core.quiz_driver.logger", mock_logger)
        sync_client.save_progress.side_effect = RuntimeError("store down")
        driver = QuizDriver(session, sync_client, "s-1", transition_delay=0)

        result = await _play(driver, correct_for)
        await driver.drain()

        assert result.correct_count == 25
        assert mock_logger.log.call_count == 25
        assert "Failed to save quiz progress" in mock_logger.log.call_args[0][1]

    @pytest.mark.asyncio
    async def test_completion_failure_still_completes(
        self, session, sync_client, correct_for, monkeypatch
    ):
        mock_logger = MagicMock()
        monkeypatch.setattr("app.core.quiz_driver.logger", mock_logger)
        request = httpx.Request("PUT", "http://test/v1/session")
        sync_client.save_completion.side_effect = httpx.ConnectError(
            "refused", request=request
        )
        on_complete = MagicMock()
        driver = QuizDriver(
            session, sync_client, "s-1", transition_delay=0, on_complete=on_complete
        )

        result = await _play(driver, correct_for)

        assert result is not None
        on_complete.assert_called_once_with(result)
        messages = [call.args[1] for call in mock_logger.log.call_args_list]
        assert any("Failed to save quiz completion" in m for m in messages)


class TestHandOff:
    @pytest.mark.asyncio
    async def test_sync_callback(self, session, correct_for):
        received = []
        driver = QuizDriver(session, transition_delay=0, on_complete=received.append)

        result = await _play(driver, correct_for)

        assert received == [result]

    @pytest.mark.asyncio
    async def test_async_callback(self, session, correct_for):
        on_complete = AsyncMock()
        driver = QuizDriver(session, transition_delay=0, on_complete=on_complete)

        result = await _play(driver, correct_for)

        on_complete.assert_awaited_once_with(result)

    @pytest.mark.asyncio
    async def test_completion_sync_happens_before_hand_off(
        self, session, sync_client, correct_for
    ):
        order = []
        sync_client.save_completion.side_effect = lambda *args: order.append("sync")
        driver = QuizDriver(
            session,
            sync_client,
            "s-1",
            transition_delay=0,
            on_complete=lambda result: order.append("hand_off"),
        )

        await _play(driver, correct_for)

        assert order == ["sync", "hand_off"]


class TestStimuli:
    @pytest.mark.asyncio
    async def test_submission_during_transition_is_ignored(
        self, session, correct_for, wrong_for
    ):
        driver = QuizDriver(session, transition_delay=0.01)
        question = session.current_question

        first, second = await asyncio.gather(
            driver.submit(correct_for(question)),
            driver.submit(wrong_for(question)),
        )

        assert first is None and second is None
        assert len(session.answers) == 1
        assert session.answers[0].correct is True
        assert session.current_index == 1

    @pytest.mark.asyncio
    async def test_timeout_through_tick(self, session, sync_client):
        driver = QuizDriver(session, sync_client, "s-1", transition_delay=0)

        for _ in range(20):
            await driver.tick()
        await driver.drain()

        assert len(session.answers) == 1
        assert session.answers[0].timed_out is True
        assert session.current_index == 1
        sync_client.save_progress.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_extend_through_driver(self, session):
        driver = QuizDriver(session, transition_delay=0)
        for _ in range(14):
            await driver.tick()

        assert driver.extend() is True
        assert driver.extend() is False
        assert session.time_left == 36

    @pytest.mark.asyncio
    async def test_run_clock_times_out_every_question(self):
        session = QuizSession(engagement_messages={})
        driver = QuizDriver(session, transition_delay=0)

        result = await asyncio.wait_for(driver.run_clock(interval=0), timeout=10)

        assert result.score == ScoreResult(iq=75, percentile=1)
        assert all(answer.timed_out for answer in result.answers)

    @pytest.mark.asyncio
    async def test_sync_runs_with_session_log_context(self, session, sync_client, correct_for):
        seen = []
        sync_client.save_progress.side_effect = (
            lambda *args: seen.append(quiz_session_context.get())
        )
        driver = QuizDriver(session, sync_client, "s-42", transition_delay=0)

        await driver.submit(correct_for(session.current_question))
        await driver.drain()

        assert seen == ["s-42"]
        assert quiz_session_context.get() is None


class OrderedSyncClient:
    """Records sync calls in the order they reach the store."""

    def __init__(self):
        self.calls = []

    async def save_progress(self, session_id, current_index, answers):
        await asyncio.sleep(0)
        self.calls.append(("progress", current_index))

    async def save_completion(self, session_id, correct_count, iq, percentile, answers):
        self.calls.append(("completion", correct_count))


class TestSyncOrdering:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("delay", [0, 0.001])
    async def test_completion_is_the_last_write(self, session, correct_for, delay):
        client = OrderedSyncClient()
        driver = QuizDriver(session, client, "s-1", transition_delay=delay)

        await _play(driver, correct_for)

        assert client.calls[-1] == ("completion", 25)
        progress = [index for kind, index in client.calls if kind == "progress"]
        assert sorted(progress) == list(range(1, 26))

    @pytest.mark.asyncio
    async def test_progress_count_independent_of_advance(self, session, correct_for):
        client = OrderedSyncClient()
        driver = QuizDriver(session, client, "s-1", transition_delay=0)

        session.submit(correct_for(session.current_question))
        session.advance()
        driver._schedule_progress_sync()
        await driver.drain()

        assert client.calls == [("progress", 1)]
