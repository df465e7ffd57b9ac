"""Custom SQLAlchemy types for cross-database compatibility.

This module provides custom column types that work across the database
backends used in production (PostgreSQL) and testing (SQLite).
"""

from typing import Any

from sqlalchemy import JSON, TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB


class JSONDocument(TypeDecorator):
    """
    A JSON column that uses JSONB on PostgreSQL.

    - On PostgreSQL: native JSONB
    - On SQLite and others: the generic JSON type (stored as text)

    Usage:
        answers = Column(JSONDocument(), default=list)
    """

    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        """Choose implementation based on database dialect."""
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value: Any, dialect) -> Any:
        # Tuples become lists so reads return the same shape that was written
        if isinstance(value, tuple):
            return list(value)
        return value
