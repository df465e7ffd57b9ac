"""
Pytest configuration and shared fixtures for testing.
"""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Callable, List

import pytest
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from app.core.answer_evaluation import Answer
from app.core.question_bank import default_bank
from app.main import app
from app.models import Base, get_db


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests.

    Skips table creation against the configured database; tests create
    tables in their own sqlite file.
    """
    yield


# Neutralize the production lifespan on the singleton app.
app.router.lifespan_context = _test_lifespan


# Use SQLite for sync fixtures; the path is relative to this file so the .db
# lands inside tests/ regardless of the working directory.
_TEST_DB = Path(__file__).parent / "test.db"
SQLALCHEMY_DATABASE_URL = f"sqlite:///{_TEST_DB}"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Async test engine (aiosqlite) on the same DB file as the sync engine so that
# sync fixtures can create data visible to async endpoint overrides.
ASYNC_SQLALCHEMY_DATABASE_URL = f"sqlite+aiosqlite:///{_TEST_DB}"

async_test_engine = create_async_engine(
    ASYNC_SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)
AsyncTestingSessionLocal = async_sessionmaker(
    async_test_engine, class_=AsyncSession, expire_on_commit=False
)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database dependency override.

    Overrides get_db (async) to use a test async session backed by
    the same test.db file where db_session created the tables.
    """

    async def override_get_db():
        async with AsyncTestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def async_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh async database session for each test.
    """
    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncTestingSessionLocal() as session:
        yield session

    async with async_test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(scope="function")
async def async_client(
    async_db_session: AsyncSession,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async test client with async database dependency override.
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


def correct_submission(question):
    """The submission that answers a bank question correctly."""
    answer_type = question.answer_type.value
    if answer_type in ("multiple_choice", "sequence", "true_false"):
        return question.correct_answer
    if answer_type == "slider":
        return question.correct_answer
    if answer_type == "order":
        return list(question.correct_order)
    return list(question.correct_answers)


def wrong_submission(question):
    """A well-formed submission that answers a bank question incorrectly."""
    answer_type = question.answer_type.value
    if answer_type in ("multiple_choice", "sequence"):
        return (question.correct_answer + 1) % len(question.options)
    if answer_type == "true_false":
        return not question.correct_answer
    if answer_type == "slider":
        return question.correct_answer + question.tolerance + question.step
    if answer_type == "order":
        order = list(question.correct_order)
        order[0], order[1] = order[1], order[0]
        return order
    return list(question.correct_answers)[:-1] or [
        i for i in range(len(question.options)) if i not in question.correct_answers
    ][:1]


@pytest.fixture
def make_answers() -> Callable[..., List[Answer]]:
    """
    Build recorded answers for the default bank.

    ``make_answers(correct_ids={1, 2})`` answers every question, correct
    for the given ids and wrong for the rest.
    """

    def _make(correct_ids=(), time_spent: float = 10.0, count=None) -> List[Answer]:
        questions = list(default_bank)[: count if count is not None else len(default_bank)]
        answers = []
        for question in questions:
            correct = question.id in set(correct_ids)
            answers.append(
                Answer(
                    question_id=question.id,
                    selected_answer=(
                        correct_submission(question)
                        if correct
                        else wrong_submission(question)
                    ),
                    correct=correct,
                    time_spent=time_spent,
                )
            )
        return answers

    return _make


@pytest.fixture
def correct_for():
    """Fixture form of ``correct_submission`` for test modules."""
    return correct_submission


@pytest.fixture
def wrong_for():
    """Fixture form of ``wrong_submission`` for test modules."""
    return wrong_submission
