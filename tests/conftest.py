"""Pytest configuration and shared fixtures."""

import tempfile
from pathlib import Path

import pytest

from talentflow.auth import (
    AuthUser,
    InMemorySessionOracle,
    RecordingNavigator,
    RoutePolicy,
    SessionGuard,
    SessionPresence,
)
from talentflow.config import reset_config


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    dir_path = tempfile.mkdtemp()
    yield dir_path
    # Cleanup
    import shutil
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture
def isolated_config(temp_dir, monkeypatch):
    """Point HOME at a temp dir and drop any cached configuration."""
    config_dir = Path(temp_dir) / ".config" / "talentflow"
    config_dir.mkdir(parents=True)

    monkeypatch.setenv("HOME", temp_dir)
    for name in (
        "SUPABASE_URL",
        "SUPABASE_ANON_KEY",
        "TALENTFLOW_SUPABASE_URL",
        "TALENTFLOW_SUPABASE_ANON_KEY",
        "TALENTFLOW_VERIFY_TIMEOUT",
        "TALENTFLOW_DEBUG",
        "TALENTFLOW_PREFERS_DARK",
        "COLORFGBG",
    ):
        monkeypatch.delenv(name, raising=False)

    reset_config()
    yield config_dir
    reset_config()


@pytest.fixture
def user():
    return AuthUser(id="user-1", email="ada@example.com", name="Ada", avatar_url=None)


@pytest.fixture
def live_session(user):
    return SessionPresence.for_user(user, access_token="token-1")


@pytest.fixture
def oracle():
    return InMemorySessionOracle()


@pytest.fixture
def navigator():
    return RecordingNavigator()


@pytest.fixture
def policy():
    return RoutePolicy()


@pytest.fixture
def make_guard(oracle, navigator, policy):
    """Factory for guards that never touch the global configuration."""
    def _make(pathname="/dashboard", verify_timeout=1.0, **kwargs):
        return SessionGuard(
            kwargs.pop("oracle", oracle),
            navigator,
            pathname=pathname,
            policy=policy,
            verify_timeout=verify_timeout,
            loading_message="Verifying authentication...",
            **kwargs
        )
    return _make


# Markers for slow tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
