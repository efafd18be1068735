from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AnyUrl, Field, field_validator
import secrets


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables or .env.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # Ignore extra fields in .env file
    )

    # -------------------------
    # Database
    # -------------------------
    DATABASE_URL: AnyUrl

    SQLALCHEMY_ECHO: bool = False
    DB_POOL_SIZE: int = Field(default=5, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=10, ge=0)

    # -------------------------
    # Security / Auth
    # -------------------------
    # Tokens are issued by the identity service; we only verify them.
    SECRET_KEY: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # -------------------------
    # Application
    # -------------------------
    PROJECT_NAME: str = "University LMS API"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # -------------------------
    # Redis (for ARQ task queue)
    # -------------------------
    REDIS_URL: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the notification queue"
    )
    NOTIFICATIONS_ENABLED: bool = Field(
        default=True,
        description="Dispatch in-app notifications (e.g. when a quiz is published)"
    )

    # =========================================================
    # Quiz Settings
    # =========================================================
    QUIZ_DEFAULT_DURATION_MINUTES: int = Field(
        default=30,
        ge=1,
        description="Duration applied to new quizzes when none is given"
    )

    QUIZ_DEFAULT_PASSING_SCORE: float = Field(
        default=60.0,
        ge=0.0,
        le=100.0,
        description="Passing percentage applied to new quizzes"
    )

    AI_MAX_GENERATED_QUESTIONS: int = Field(
        default=20,
        ge=1,
        le=100,
        description="Maximum number of generated questions accepted in one import"
    )

    @field_validator("ALGORITHM")
    def validate_algorithm(cls, v):
        allowed = {"HS256", "HS384", "HS512", "RS256", "RS384", "RS512"}
        if v not in allowed:
            raise ValueError(f"ALGORITHM must be one of: {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    def validate_log_level(cls, v):
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return v.upper()


settings = Settings()
