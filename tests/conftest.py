"""
Shared fixtures for Stepwright tests.
"""

import os

import pytest

from stepwright.config.settings import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Run every test from an empty directory with fresh settings."""
    for key in list(os.environ):
        if key.startswith("STEPWRIGHT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
