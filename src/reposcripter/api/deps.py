"""FastAPI dependency injection functions."""

from functools import lru_cache

from fastapi import Depends

from reposcripter.config import Settings, load_settings
from reposcripter.generation.orchestrator import GenerationOrchestrator
from reposcripter.llm.client import LLMClient
from reposcripter.repo.snapshot import SampleSnapshotProvider, SnapshotProvider


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return load_settings()


def get_llm_client(settings: Settings = Depends(get_settings)) -> LLMClient:
    """Get an LLM client for the active provider."""
    return LLMClient.from_settings(settings)


def get_snapshot_provider() -> SnapshotProvider:
    """Get the repository snapshot to document.

    Repositories are not cloned; every request documents the bundled sample.
    """
    return SampleSnapshotProvider()


def get_orchestrator(
    settings: Settings = Depends(get_settings),
    llm_client: LLMClient = Depends(get_llm_client),
    snapshot_provider: SnapshotProvider = Depends(get_snapshot_provider),
) -> GenerationOrchestrator:
    """Get a generation orchestrator wired from settings."""
    return GenerationOrchestrator.from_settings(settings, llm_client, snapshot_provider)
