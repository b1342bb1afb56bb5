"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Literal, Self


# Shortest JWT secret accepted when ENV=production
_MIN_PRODUCTION_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "LinxIQ Assessment API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5000",
    ]

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Security
    # IMPORTANT: This MUST be set in .env file - no default for security
    JWT_SECRET_KEY: str = Field(..., description="JWT signing secret key (required)")
    JWT_ALGORITHM: str = "HS256"

    # Request logging middleware
    REQUEST_LOGGING_ENABLED: bool = True

    # Scoring
    # Applied when a test has no passing score of its own
    DEFAULT_PASSING_SCORE: int = Field(
        default=70,
        ge=0,
        le=100,
        description="Passing percentage used when a test does not define one",
    )

    # Security analysis of proctoring events
    # "severity": deduct per event by its severity (high/medium)
    # "flat": deduct a fixed amount per event regardless of severity
    # "auto": severity mode when every event carries a severity, flat otherwise
    SECURITY_SCORING_MODE: Literal["auto", "severity", "flat"] = "auto"
    HIGH_SEVERITY_PENALTY: int = 10
    MEDIUM_SEVERITY_PENALTY: int = 5
    FLAT_EVENT_PENALTY: int = 5

    # Domain aggregation
    TRAINING_PRIORITY_THRESHOLD: int = Field(
        default=70,
        ge=0,
        le=100,
        description="Domains averaging below this percentage become training priorities",
    )
    TRAINING_PRIORITY_LIMIT: int = Field(
        default=5, ge=1, description="Maximum number of training priorities reported"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_penalties(self) -> Self:
        """Reject negative security penalties."""
        penalties = {
            "HIGH_SEVERITY_PENALTY": self.HIGH_SEVERITY_PENALTY,
            "MEDIUM_SEVERITY_PENALTY": self.MEDIUM_SEVERITY_PENALTY,
            "FLAT_EVENT_PENALTY": self.FLAT_EVENT_PENALTY,
        }
        negative = [name for name, value in penalties.items() if value < 0]
        if negative:
            raise ValueError(f"Security penalties must not be negative: {negative}")
        return self

    @model_validator(mode="after")
    def validate_production_secret(self) -> Self:
        """Refuse to boot production with a short JWT secret."""
        if (
            self.ENV == "production"
            and len(self.JWT_SECRET_KEY) < _MIN_PRODUCTION_SECRET_LENGTH
        ):
            raise ValueError(
                f"JWT_SECRET_KEY must be at least {_MIN_PRODUCTION_SECRET_LENGTH} "
                "characters in production"
            )
        return self


# mypy doesn't understand that pydantic_settings loads required fields from env vars
settings = Settings()  # type: ignore[call-arg]
