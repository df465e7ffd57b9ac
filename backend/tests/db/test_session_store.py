"""
Tests for the database layer: URL mapping, the get_db dependency, the quiz
session model and the session store helpers.
"""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from libs.domain_types import SessionStatus

from app.core.session_store import (
    SessionAlreadyCompletedError,
    apply_session_update,
    create_session_record,
    get_session_record,
)
from app.models.base import engine_options, to_async_url
from app.models.models import QuizSessionRecord
from app.schemas.quiz_sessions import SessionUpdateRequest


class TestAsyncUrl:
    """String-prefix mapping of DATABASE_URL onto async drivers."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            (
                "postgresql://postgres-6_4y.internal:5432/iqscore",
                "postgresql+asyncpg://postgres-6_4y.internal:5432/iqscore",
            ),
            (
                "postgresql+psycopg2://db:5432/iqscore",
                "postgresql+asyncpg://db:5432/iqscore",
            ),
            ("postgres://db/iqscore", "postgresql+asyncpg://db/iqscore"),
            (
                "postgresql+asyncpg://db/iqscore",
                "postgresql+asyncpg://db/iqscore",
            ),
            ("sqlite:///./iqscore.db", "sqlite+aiosqlite:///./iqscore.db"),
            ("sqlite:////tmp/test.db", "sqlite+aiosqlite:////tmp/test.db"),
        ],
    )
    def test_mapping(self, url, expected):
        assert to_async_url(url) == expected

    def test_underscore_hostname_preserved(self):
        result = to_async_url("postgresql://postgres-6_4y.internal:5432/iqscore")
        assert "postgres-6_4y" in result

    def test_unsupported_prefix_raises(self):
        with pytest.raises(ValueError, match="No async driver mapping"):
            to_async_url("mysql://host/db")


class TestEngineOptions:
    def test_sqlite_uses_default_pool(self):
        assert set(engine_options("sqlite+aiosqlite:///./iqscore.db")) == {"echo"}

    def test_postgres_gets_pool_settings(self):
        with patch("app.models.base.settings") as mock_settings:
            mock_settings.DB_ECHO = False
            mock_settings.DB_POOL_SIZE = 5
            mock_settings.DB_POOL_MAX_OVERFLOW = 0
            mock_settings.DB_POOL_TIMEOUT = 15
            mock_settings.DB_POOL_RECYCLE = 600
            mock_settings.DB_POOL_PRE_PING = True

            options = engine_options("postgresql+asyncpg://db/iqscore")

        assert options["pool_size"] == 5
        assert options["max_overflow"] == 0
        assert options["pool_timeout"] == 15
        assert options["pool_pre_ping"] is True


class TestGetDb:
    """Tests for get_db() exception handling and rollback behavior."""

    @staticmethod
    def _mock_factory():
        mock_session = AsyncMock(spec=AsyncSession)
        mock_cm = AsyncMock()
        mock_cm.__aenter__ = AsyncMock(return_value=mock_session)
        mock_cm.__aexit__ = AsyncMock(return_value=False)
        return mock_session, mock_cm

    @pytest.mark.asyncio
    async def test_rollback_and_reraise_on_exception(self):
        mock_session, mock_cm = self._mock_factory()

        with patch("app.models.base.AsyncSessionLocal", return_value=mock_cm):
            from app.models.base import get_db

            gen = get_db()
            db = await gen.__anext__()
            assert db is mock_session

            with pytest.raises(RuntimeError, match="Original error message"):
                await gen.athrow(RuntimeError("Original error message"))

            mock_session.rollback.assert_called_once()

    @pytest.mark.asyncio
    async def test_clean_close_does_not_roll_back(self):
        mock_session, mock_cm = self._mock_factory()

        with patch("app.models.base.AsyncSessionLocal", return_value=mock_cm):
            from app.models.base import get_db

            gen = get_db()
            await gen.__anext__()
            await gen.aclose()

            mock_session.rollback.assert_not_called()


class TestQuizSessionRecord:
    @pytest.mark.asyncio
    async def test_engine_connects(self, async_db_session):
        result = await async_db_session.execute(text("SELECT 1"))
        assert result.scalar() == 1

    @pytest.mark.asyncio
    async def test_defaults(self, async_db_session):
        record = QuizSessionRecord()
        async_db_session.add(record)
        await async_db_session.commit()
        await async_db_session.refresh(record)

        assert len(record.id) == 36
        assert record.status == SessionStatus.IN_PROGRESS
        assert record.current_question == 0
        assert record.answers == []
        assert record.created_at is not None
        assert record.completed_at is None
        assert record.is_completed is False

    @pytest.mark.asyncio
    async def test_status_stored_as_value(self, async_db_session):
        record = QuizSessionRecord(status=SessionStatus.COMPLETED)
        async_db_session.add(record)
        await async_db_session.commit()

        result = await async_db_session.execute(
            text("SELECT status FROM quiz_sessions WHERE id = :id"), {"id": record.id}
        )
        assert result.scalar() == "completed"

    @pytest.mark.asyncio
    async def test_tuple_answers_read_back_as_lists(self, async_db_session):
        record = QuizSessionRecord(
            answers=(
                {"question_id": 7, "selected_answer": [1, 2, 0], "correct": True, "time_spent": 3.0},
            )
        )
        async_db_session.add(record)
        await async_db_session.commit()

        await async_db_session.refresh(record)
        assert record.answers == [
            {"question_id": 7, "selected_answer": [1, 2, 0], "correct": True, "time_spent": 3.0}
        ]


class TestSessionStore:
    """Tests for the shared partial-update rules."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, async_db_session):
        record = await create_session_record(
            async_db_session,
            ip_address="203.0.113.7",
            user_agent="QuizBrowser/1.0",
            utm={"utm_source": "ads", "utm_medium": None},
        )

        loaded = await get_session_record(async_db_session, record.id)
        assert loaded is record
        assert loaded.ip_address == "203.0.113.7"
        assert loaded.utm_source == "ads"
        assert loaded.utm_medium is None

    @pytest.mark.asyncio
    async def test_get_missing(self, async_db_session):
        assert await get_session_record(async_db_session, "missing") is None

    @pytest.mark.asyncio
    async def test_partial_update_writes_only_given_fields(self, async_db_session):
        record = await create_session_record(async_db_session)
        await apply_session_update(
            async_db_session,
            record,
            SessionUpdateRequest(session_id=record.id, current_question=4),
        )

        assert record.current_question == 4
        assert record.answers == []
        assert record.status == SessionStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_completion_sets_status_and_timestamp(self, async_db_session):
        record = await create_session_record(async_db_session)
        with patch("app.core.session_store.utc_now") as mock_now:
            mock_now.return_value = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
            await apply_session_update(
                async_db_session,
                record,
                SessionUpdateRequest(
                    session_id=record.id,
                    score=20,
                    iq_score=125,
                    percentile=96,
                    completed=True,
                ),
            )

        assert record.is_completed is True
        assert (record.score, record.iq_score, record.percentile) == (20, 125, 96)
        assert record.completed_at.replace(tzinfo=None) == datetime(2026, 3, 1, 12, 0)

    @pytest.mark.asyncio
    async def test_progress_after_completion_raises(self, async_db_session):
        record = await create_session_record(async_db_session)
        await apply_session_update(
            async_db_session,
            record,
            SessionUpdateRequest(
                session_id=record.id, score=0, iq_score=75, percentile=1, completed=True
            ),
        )

        with pytest.raises(SessionAlreadyCompletedError) as exc_info:
            await apply_session_update(
                async_db_session,
                record,
                SessionUpdateRequest(session_id=record.id, current_question=3),
            )

        assert exc_info.value.session_id == record.id
        assert record.current_question == 0

    @pytest.mark.asyncio
    async def test_repeated_completion_is_accepted(self, async_db_session):
        """Completion writes are idempotent: a retried sync simply overwrites."""
        record = await create_session_record(async_db_session)
        update = SessionUpdateRequest(
            session_id=record.id, score=10, iq_score=95, percentile=37, completed=True
        )

        await apply_session_update(async_db_session, record, update)
        await apply_session_update(async_db_session, record, update)

        assert record.score == 10
        assert record.is_completed is True
