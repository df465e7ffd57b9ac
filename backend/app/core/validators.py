"""
Input validation and sanitization utilities.
"""

import re
from typing import Optional


class StringSanitizer:
    """
    String sanitization for free-form request data we store verbatim
    (attribution parameters, user agents).
    """

    # Control characters to strip (except newlines, tabs, carriage returns)
    CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

    ATTRIBUTION_MAX_LENGTH = 255
    USER_AGENT_MAX_LENGTH = 1000

    @classmethod
    def _base_sanitize(cls, value: str, max_length: int) -> str:
        """
        Strip control characters and surrounding whitespace, then truncate.

        Args:
            value: String to sanitize
            max_length: Maximum length kept

        Returns:
            Sanitized string
        """
        value = cls.CONTROL_CHARS_PATTERN.sub("", value)
        value = value.strip()
        return value[:max_length]

    @classmethod
    def sanitize_attribution(cls, value: Optional[str]) -> Optional[str]:
        """
        Sanitize a UTM parameter. Empty values become None.

        Args:
            value: Raw parameter value

        Returns:
            Sanitized value, or None if nothing remains
        """
        if value is None:
            return None
        value = cls._base_sanitize(value, cls.ATTRIBUTION_MAX_LENGTH)
        return value or None

    @classmethod
    def sanitize_user_agent(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return cls._base_sanitize(value, cls.USER_AGENT_MAX_LENGTH) or None


class EmailValidator:
    """
    Email normalization utilities.
    """

    @classmethod
    def normalize_email(cls, email: str) -> str:
        """
        Normalize email address for consistency.

        Args:
            email: Email address to normalize

        Returns:
            Normalized email address
        """
        return email.lower().strip().replace(" ", "")


def first_forwarded_ip(forwarded_for: Optional[str]) -> Optional[str]:
    """
    Return the client hop of an ``X-Forwarded-For`` header.

    The header lists the client first, followed by each proxy.

    Example:
        >>> first_forwarded_ip("203.0.113.7, 10.0.0.2")
        '203.0.113.7'
    """
    if not forwarded_for:
        return None
    first = forwarded_for.split(",")[0].strip()
    return first or None
