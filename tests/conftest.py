"""Shared fixtures for the test suite."""
from pathlib import Path

import pytest

from gcp_secret_cleaner.cleaner.domains.models import CleanerConfig, ExecutionMode, RetentionPolicy
from tests.fakes import PROJECT_ID, RecordingSink


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_config():
    """Factory for CleanerConfig with test defaults."""
    def _make(keep=2, dry_run=False, continue_on_error=False):
        return CleanerConfig(
            project_id=PROJECT_ID,
            retention=RetentionPolicy(keep_disabled_count=keep),
            mode=ExecutionMode.DRY_RUN if dry_run else ExecutionMode.LIVE,
            continue_on_error=continue_on_error,
        )
    return _make


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Fixture to create a temporary home directory with a clean environment."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setattr(Path, "home", lambda: fake_home)
    monkeypatch.delenv("GCP_PROJECT", raising=False)
    monkeypatch.delenv("SECRET_CLEANER_CONFIG", raising=False)
    return fake_home
