"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "IQScore API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # Database. Empty means a local sqlite file, which production refuses.
    DATABASE_URL: str = ""
    DB_ECHO: bool = False
    # Pool settings apply to postgres only
    DB_POOL_SIZE: int = Field(default=10, ge=1)
    DB_POOL_MAX_OVERFLOW: int = Field(default=20, ge=0)
    DB_POOL_TIMEOUT: int = Field(
        default=30, gt=0, description="Seconds to wait for a free connection"
    )
    DB_POOL_RECYCLE: int = Field(
        default=3600, description="Seconds before a connection is replaced"
    )
    DB_POOL_PRE_PING: bool = True

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
    ]

    # Quiz timing
    # The extend affordance appears once time_left drops to this value
    QUIZ_LOW_TIME_THRESHOLD_SECONDS: int = Field(
        default=6,
        description="Seconds remaining at which the one-time extension is offered",
    )
    QUIZ_TIME_EXTENSION_SECONDS: int = Field(
        default=30,
        description="Seconds added by the one-time extension on a question",
    )
    QUIZ_TRANSITION_DELAY_SECONDS: float = Field(
        default=0.4,
        ge=0.0,
        description="Pause between resolving a question and moving on",
    )

    # Session sync (client side of the session API)
    SESSION_SYNC_BASE_URL: str = Field(
        default="http://localhost:8000",
        description="Base URL of the session API used by the HTTP sync client",
    )
    SESSION_SYNC_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        gt=0.0,
        description="Request timeout for session sync calls",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_quiz_timing(self) -> Self:
        """Validate quiz timer configuration at startup."""
        non_positive = [
            name
            for name in (
                "QUIZ_LOW_TIME_THRESHOLD_SECONDS",
                "QUIZ_TIME_EXTENSION_SECONDS",
            )
            if getattr(self, name) <= 0
        ]
        if non_positive:
            raise ValueError(
                f"Quiz timer settings must be positive, got non-positive: {non_positive}"
            )
        if self.QUIZ_LOW_TIME_THRESHOLD_SECONDS >= self.QUIZ_TIME_EXTENSION_SECONDS:
            raise ValueError(
                "QUIZ_LOW_TIME_THRESHOLD_SECONDS must be below "
                "QUIZ_TIME_EXTENSION_SECONDS, got "
                f"{self.QUIZ_LOW_TIME_THRESHOLD_SECONDS} >= "
                f"{self.QUIZ_TIME_EXTENSION_SECONDS}"
            )
        return self

    @model_validator(mode="after")
    def validate_database_url(self) -> Self:
        if not self.DATABASE_URL and self.ENV.lower() == "production":
            raise ValueError("DATABASE_URL must be set in production")
        return self

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL or "sqlite:///./iqscore.db"


settings = Settings()
