"""
Core module for application configuration, quiz engine and utilities.

Note: the quiz engine modules are not imported at package level so that
importing settings stays cheap. Import them directly:
from app.core.scoring import ... or from app.core.quiz_session import ...
"""
from .config import settings

__all__ = ["settings"]
