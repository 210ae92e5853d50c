"""Pytest configuration and fixtures for integration tests.

Ensures environment variables are loaded and skips the live model tests when
no Gemini API key is configured.
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv


def pytest_configure(config):
    """Load .env from the project root before the integration tests run."""
    env_path = Path(__file__).parent.parent.parent / ".env"
    load_dotenv(env_path)

    # Fail fast against the live API instead of waiting through long backoffs
    os.environ.setdefault("MAX_RETRIES", "2")
    os.environ.setdefault("DELAY_BETWEEN_RETRIES", "1")


@pytest.fixture(scope="session", autouse=True)
def check_api_keys():
    """Skip integration tests if GEMINI_API_KEY is not configured in .env."""
    if not os.getenv("GEMINI_API_KEY"):
        pytest.skip(
            "Integration tests skipped. Missing API key: GEMINI_API_KEY. Please set it in your .env file.",
            allow_module_level=True,
        )


@pytest.fixture
def gemini_client():
    from taste_predictor.llm.gemini import GeminiCompletionClient

    return GeminiCompletionClient(api_key=os.getenv("GEMINI_API_KEY"))
