"""Repository snapshot access and target validation."""

from reposcripter.repo.file_filter import ExtensionFilter
from reposcripter.repo.snapshot import (
    FilePredicate,
    SampleSnapshotProvider,
    SnapshotProvider,
    SourceFile,
    StaticSnapshotProvider,
    load_sample_project,
)
from reposcripter.repo.url_parser import (
    TargetValidationError,
    validate_github_url,
)

__all__ = [
    "ExtensionFilter",
    "FilePredicate",
    "SampleSnapshotProvider",
    "SnapshotProvider",
    "SourceFile",
    "StaticSnapshotProvider",
    "TargetValidationError",
    "load_sample_project",
    "validate_github_url",
]
