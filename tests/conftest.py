"""
Shared test configuration.

Settings are read once at import time, so the test environment is set up
here before any application module is imported.
"""

import os

os.environ.setdefault("PYTHON_ENV", "test")
os.environ.setdefault("EMAIL_PROVIDER", "mock")
os.environ.setdefault("EMAIL_MOCK_FAILURE_RATE", "0")
os.environ.setdefault("EMAIL_RETRY_BASE_DELAY_SECONDS", "0")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest  # noqa: E402

from app.core.rate_limit import reset_memory_store  # noqa: E402


@pytest.fixture(autouse=True)
def _clear_rate_limits():
    """Every test starts with empty in-memory rate limit windows."""
    reset_memory_store()
    yield
    reset_memory_store()
