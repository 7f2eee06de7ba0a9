"""Shared pytest fixtures for all tests."""

import pytest

from reposcripter.config import load_settings
from reposcripter.repo.snapshot import SampleSnapshotProvider, StaticSnapshotProvider

from stubs import StubLLMClient


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the load_settings cache around each test."""
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


@pytest.fixture
def stub_client():
    """Create a recording stub LLM client."""
    return StubLLMClient()


@pytest.fixture
def sample_provider():
    """Snapshot of the bundled sample project."""
    return SampleSnapshotProvider()


@pytest.fixture
def empty_provider():
    """Snapshot containing no summarizable files."""
    return StaticSnapshotProvider({"README.md": "# nothing here\n", "notes.txt": "todo\n"})
