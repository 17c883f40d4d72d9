"""Pytest configuration and fixtures."""

import os
from collections.abc import Callable, Iterator

import pytest

from resume_tailor_api.config import Settings

# Set test environment variables before importing app modules
os.environ.setdefault("OPENROUTER_API_KEY", "")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("RATE_LIMIT_PER_MINUTE", "1000")
os.environ.setdefault("MOCK_OPENROUTER", "true")


@pytest.fixture(autouse=True)
def reset_caches() -> Iterator[None]:
    """Reset cached settings and the global client before each test."""
    from resume_tailor_api.config import get_settings
    from resume_tailor_api.openrouter_client import reset_openrouter_client

    get_settings.cache_clear()
    reset_openrouter_client()

    # Reset rate limiter storage
    try:
        from resume_tailor_api.main import limiter

        if hasattr(limiter, "_storage") and limiter._storage:
            limiter._storage.reset()
    except (ImportError, AttributeError):
        pass

    yield
    get_settings.cache_clear()
    reset_openrouter_client()


@pytest.fixture
def mock_settings(monkeypatch: pytest.MonkeyPatch) -> Callable[..., Settings]:
    """Fixture to set test settings."""

    def _mock_settings(**kwargs: str) -> Settings:
        for key, value in kwargs.items():
            monkeypatch.setenv(key.upper(), str(value))
        from resume_tailor_api.config import get_settings

        get_settings.cache_clear()
        return get_settings()

    return _mock_settings
