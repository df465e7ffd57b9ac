"""
Models package for the IQScore backend.
"""
from .base import Base, AsyncSessionLocal, async_engine, get_db
from .models import QuizSessionRecord

__all__ = [
    "Base",
    "AsyncSessionLocal",
    "async_engine",
    "get_db",
    "QuizSessionRecord",
]
