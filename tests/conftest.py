"""
Pytest configuration file for the HealthNet test suite.

This file defines shared fixtures used across the unit, integration and system tests:
- Settings that remove the simulated latency and keep the key file and the local
  session storage inside pytest's temporary directory, so tests never touch real files.
- A fresh, seeded `HealthNetService` per test. Every service owns its own store,
  which isolates tests from one another.
- Helpers for signing in as one of the seeded accounts.
"""
import pytest

from healthnet.config import Settings
from healthnet.seed import SEED_PASSWORD
from healthnet.service import HealthNetService

STRONG_PASSWORD = "V4lid!Pass"


@pytest.fixture
def settings(tmp_path):
    """Provides zero-latency settings whose files live in a temporary directory."""
    return Settings(
        LATENCY_SECONDS=0,
        STORAGE_FILE=str(tmp_path / "session.json"),
        KEY_FILE=str(tmp_path / "secret.key"),
        SEED_DATA=True,
    )


@pytest.fixture
def service(settings):
    """Provides a new service backed by a freshly seeded store."""
    return HealthNetService(settings=settings)


@pytest.fixture
def login_as(service):
    """
    Provides a function that signs in as a seeded account.

    Usage:
        login_as("drsmith")

    Returns:
        callable: Takes a username and returns the signed-in user's public record.
    """
    def _login(username, password=SEED_PASSWORD):
        envelope = service.login(username, password).result()
        assert envelope["ok"], envelope
        return envelope["user"]
    return _login


@pytest.fixture
def register_client(service):
    """Provides a function that registers a client account and leaves it signed in."""
    def _register(username, email=None, password=STRONG_PASSWORD):
        envelope = service.register(username, email or f"{username}@x.com", password, "client").result()
        assert envelope["ok"], envelope
        return envelope["user"]
    return _register
