"""Pytest configuration and fixtures for E2E tests.

These tests call the real Gemini API and are skipped without a key.
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv


def pytest_configure(config):
    """Register custom markers and load .env file."""
    config.addinivalue_line("markers", "e2e: mark test as end-to-end test")
    load_dotenv(Path(__file__).parent / ".env", override=True)


@pytest.fixture(scope="session")
def gemini_api_key() -> str:
    """Get Gemini API key from environment.

    Raises:
        pytest.skip: If GEMINI_API_KEY is not set
    """
    api_key = os.getenv("GEMINI_API_KEY")
    if not api_key:
        pytest.skip("GEMINI_API_KEY environment variable not set")
    return api_key
