"""Pytest session hooks for backend test runs.

Lives at the backend/ root so testing mode is switched on before any test
module imports the app.
"""
import pytest

from fomi.core.config import settings


@pytest.fixture(scope="session", autouse=True)
def force_testing_mode():
    """Force TESTING=True early in the test session so imports can read it."""
    settings.TESTING = True
    # Magic links are logged, never mailed, unless a test opts in
    settings.RESEND_API_KEY = ""


def pytest_collection_modifyitems(items):
    """Treat legacy pytest.mark.asyncio as anyio-compatible so tests run under pytest-anyio."""
    for item in items:
        if 'asyncio' in getattr(item, 'keywords', {}):
            item.add_marker(pytest.mark.anyio)


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"
