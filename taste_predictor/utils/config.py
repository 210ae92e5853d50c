"""Configuration management for Taste Predictor.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os
from typing import Optional

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _as_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Gemini API Key: optional. Without it every model call is treated as a
        # transport failure and the fallback responses are served instead.
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Default: gemini-2.5-flash (fast, cheap, good at short JSON replies)
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        # Temperature: taste predictions and recipes benefit from some creativity
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.7"))
        # Max Output Tokens: a full recipe with tips fits comfortably in 1024
        self.MAX_OUTPUT_TOKENS: int = int(os.getenv("MAX_OUTPUT_TOKENS", "1024"))
        # Per-attempt timeout for the model call, in seconds
        self.REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))

        # Retry Configuration - handles transient API failures
        # MAX_RETRIES: total attempts per model call (1 = no retry)
        self.MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
        # DELAY_BETWEEN_RETRIES: initial delay in seconds (doubled each retry if EXPONENTIAL_BACKOFF)
        self.DELAY_BETWEEN_RETRIES: float = float(os.getenv("DELAY_BETWEEN_RETRIES", "1"))
        self.EXPONENTIAL_BACKOFF: bool = _as_bool(os.getenv("EXPONENTIAL_BACKOFF", "true"))

        # Server Port (the frontend defaults to http://localhost:5001)
        self.PORT: int = int(os.getenv("PORT", "5001"))
        # Comma-separated list of allowed CORS origins ("*" allows all)
        self.CORS_ORIGINS: list[str] = [
            origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()
        ]

        # Database URL: optional SQLAlchemy URL (sqlite:///taste.db, postgresql://...).
        # When unset, accounts live in an in-memory repository and vanish on restart.
        self.DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL") or None

        # Auth Configuration
        self.JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-secret-key-change-in-production")
        self.JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
        # Token lifetime. Default: 7 days
        self.JWT_EXPIRES_MINUTES: int = int(os.getenv("JWT_EXPIRES_MINUTES", str(60 * 24 * 7)))
        # bcrypt cost factor. Default: 12
        self.BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "12"))
        self.MIN_PASSWORD_LENGTH: int = int(os.getenv("MIN_PASSWORD_LENGTH", "6"))

        # Request limits
        # Maximum length of the free-text ingredient list. Default: 2000 chars
        self.MAX_INGREDIENTS_CHARS: int = int(os.getenv("MAX_INGREDIENTS_CHARS", "2000"))
        # Prediction history kept per account (oldest entries dropped first)
        self.MAX_HISTORY_ITEMS: int = int(os.getenv("MAX_HISTORY_ITEMS", "100"))

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If a value is out of range or not one of the allowed options.
        """
        if not (0.0 <= self.TEMPERATURE <= 2.0):
            raise ValueError(f"TEMPERATURE must be between 0.0 and 2.0, got: {self.TEMPERATURE}")
        if self.MAX_OUTPUT_TOKENS < 256:
            raise ValueError(f"MAX_OUTPUT_TOKENS must be at least 256, got: {self.MAX_OUTPUT_TOKENS}")
        if self.REQUEST_TIMEOUT_SECONDS <= 0:
            raise ValueError(
                f"REQUEST_TIMEOUT_SECONDS must be positive, got: {self.REQUEST_TIMEOUT_SECONDS}"
            )
        if self.MAX_RETRIES < 1:
            raise ValueError(f"MAX_RETRIES must be at least 1, got: {self.MAX_RETRIES}")
        if self.DELAY_BETWEEN_RETRIES < 0:
            raise ValueError(
                f"DELAY_BETWEEN_RETRIES must not be negative, got: {self.DELAY_BETWEEN_RETRIES}"
            )
        if not (1 <= self.PORT <= 65535):
            raise ValueError(f"PORT must be between 1 and 65535, got: {self.PORT}")
        if not self.JWT_SECRET:
            raise ValueError("JWT_SECRET must not be empty")
        if self.JWT_ALGORITHM not in ("HS256", "HS384", "HS512"):
            raise ValueError(
                f"JWT_ALGORITHM must be 'HS256', 'HS384' or 'HS512', got: {self.JWT_ALGORITHM}"
            )
        if self.JWT_EXPIRES_MINUTES < 1:
            raise ValueError(f"JWT_EXPIRES_MINUTES must be at least 1, got: {self.JWT_EXPIRES_MINUTES}")
        if not (4 <= self.BCRYPT_ROUNDS <= 31):
            raise ValueError(f"BCRYPT_ROUNDS must be between 4 and 31, got: {self.BCRYPT_ROUNDS}")
        if self.MIN_PASSWORD_LENGTH < 1:
            raise ValueError(f"MIN_PASSWORD_LENGTH must be at least 1, got: {self.MIN_PASSWORD_LENGTH}")
        if self.MAX_INGREDIENTS_CHARS < 1:
            raise ValueError(
                f"MAX_INGREDIENTS_CHARS must be at least 1, got: {self.MAX_INGREDIENTS_CHARS}"
            )
        if self.MAX_HISTORY_ITEMS < 1:
            raise ValueError(f"MAX_HISTORY_ITEMS must be at least 1, got: {self.MAX_HISTORY_ITEMS}")


# Create module-level config instance and validate immediately
config = Config()
config.validate()
