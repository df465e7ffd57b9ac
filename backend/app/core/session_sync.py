"""
Session persistence clients.

The quiz driver pushes the state of an attempt to a server-side session
record through the `SessionSyncClient` protocol:

- ``save_progress`` after every recorded answer. Fire-and-forget: each call
  carries the full answer list, so a lost or reordered call is repaired by
  the next one (last write wins).
- ``save_completion`` once, when the quiz completes. Awaited by the driver
  before it reports completion.
- ``create_session`` when the flow starts, returning the session id or None
  if the store is unreachable (the quiz then runs without syncing).

Two implementations are provided. `HttpSessionSyncClient` talks to the
session API over HTTP; `DatabaseSessionSyncClient` writes the record
directly through an async SQLAlchemy session factory, for callers running
inside the backend process.

Clients raise on failure. Swallowing and logging failures is the caller's
job (see `app.core.quiz_driver`), except for ``create_session`` which
returns None.
"""
import logging
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.answer_evaluation import Answer
from app.core.config import settings
from app.core.db_error_handling import DatabaseOperationError
from app.core.session_store import (
    apply_session_update,
    create_session_record,
    get_session_record,
)
from app.schemas.quiz_sessions import SessionUpdateRequest

logger = logging.getLogger(__name__)


def serialize_answers(answers: Sequence[Answer]) -> List[Dict[str, Any]]:
    """Convert recorded answers to the JSON shape stored on the session record."""
    return [asdict(answer) for answer in answers]


class SessionSyncClient(Protocol):
    """Contract between the quiz driver and the session store."""

    async def create_session(
        self, utm: Optional[Dict[str, Optional[str]]] = None
    ) -> Optional[str]:
        ...

    async def save_progress(
        self, session_id: str, current_index: int, answers: Sequence[Answer]
    ) -> None:
        ...

    async def save_completion(
        self,
        session_id: str,
        correct_count: int,
        iq: int,
        percentile: int,
        answers: Sequence[Answer],
    ) -> None:
        ...


class HttpSessionSyncClient:
    """Syncs quiz sessions to the session API over HTTP.

    Attributes:
        base_url: Base URL of the backend (e.g. "https://api.example.com")
        timeout: HTTP request timeout in seconds
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            base_url: Backend base URL (default: settings.SESSION_SYNC_BASE_URL)
            timeout: Request timeout in seconds
                (default: settings.SESSION_SYNC_TIMEOUT_SECONDS)
            transport: Optional httpx transport, e.g. a MockTransport in tests
        """
        self.base_url = (base_url or settings.SESSION_SYNC_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.SESSION_SYNC_TIMEOUT_SECONDS
        self._transport = transport
        self._session_url = f"{self.base_url}{settings.API_V1_PREFIX}/session"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def create_session(
        self, utm: Optional[Dict[str, Optional[str]]] = None
    ) -> Optional[str]:
        payload = {k: v for k, v in (utm or {}).items() if v is not None}
        try:
            async with self._client() as client:
                response = await client.post(self._session_url, json=payload)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to create quiz session: {e}")
            return None

        session_id = body.get("session_id") if isinstance(body, dict) else None
        if not isinstance(session_id, str) or not session_id:
            logger.error(f"Failed to create quiz session: unexpected response {body!r}")
            return None

        logger.info(f"Created quiz session {session_id}")
        return session_id

    async def _put(self, payload: Dict[str, Any]) -> None:
        async with self._client() as client:
            response = await client.put(self._session_url, json=payload)
            response.raise_for_status()

    async def save_progress(
        self, session_id: str, current_index: int, answers: Sequence[Answer]
    ) -> None:
        await self._put(
            {
                "session_id": session_id,
                "current_question": current_index,
                "answers": serialize_answers(answers),
            }
        )

    async def save_completion(
        self,
        session_id: str,
        correct_count: int,
        iq: int,
        percentile: int,
        answers: Sequence[Answer],
    ) -> None:
        await self._put(
            {
                "session_id": session_id,
                "current_question": len(answers),
                "answers": serialize_answers(answers),
                "score": correct_count,
                "iq_score": iq,
                "percentile": percentile,
                "completed": True,
            }
        )


class DatabaseSessionSyncClient:
    """Syncs quiz sessions straight to the session table.

    Applies the same partial-update rules as the session API. Database
    errors are rolled back and re-raised as DatabaseOperationError.
    """

    def __init__(self, session_factory: Optional[Callable[[], AsyncSession]] = None):
        if session_factory is None:
            from app.models.base import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        self._session_factory = session_factory

    async def create_session(
        self, utm: Optional[Dict[str, Optional[str]]] = None
    ) -> Optional[str]:
        try:
            async with self._session_factory() as db:
                record = await create_session_record(db, utm=utm)
                return record.id
        except SQLAlchemyError as e:
            logger.error(f"Failed to create quiz session: {e}")
            return None

    async def _update(self, operation: str, update: SessionUpdateRequest) -> None:
        async with self._session_factory() as db:
            try:
                record = await get_session_record(db, update.session_id)
                if record is None:
                    raise LookupError(f"Quiz session {update.session_id} not found")
                await apply_session_update(db, record, update)
            except SQLAlchemyError as e:
                await db.rollback()
                raise DatabaseOperationError(operation, e) from e

    async def save_progress(
        self, session_id: str, current_index: int, answers: Sequence[Answer]
    ) -> None:
        await self._update(
            "save quiz progress",
            SessionUpdateRequest(
                session_id=session_id,
                current_question=current_index,
                answers=serialize_answers(answers),
            ),
        )

    async def save_completion(
        self,
        session_id: str,
        correct_count: int,
        iq: int,
        percentile: int,
        answers: Sequence[Answer],
    ) -> None:
        await self._update(
            "save quiz completion",
            SessionUpdateRequest(
                session_id=session_id,
                current_question=len(answers),
                answers=serialize_answers(answers),
                score=correct_count,
                iq_score=iq,
                percentile=percentile,
                completed=True,
            ),
        )
