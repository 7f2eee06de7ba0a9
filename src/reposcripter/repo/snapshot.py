"""Source snapshots: ordered path to content pairs for one repository."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Protocol

import yaml


@dataclass(frozen=True)
class SourceFile:
    """One file of a snapshot.

    Attributes:
        path: Relative, slash-separated path, unique within its snapshot.
        content: Full text content of the file.
    """

    path: str
    content: str


FilePredicate = Callable[[SourceFile], bool]


class SnapshotProvider(Protocol):
    """Supplies the files of the target repository in a stable order."""

    def enumerate(self, path_filter: FilePredicate | None = None) -> list[SourceFile]: ...

    def read(self, path: str) -> str | None: ...


def normalize_path(path: str) -> str:
    """Normalise a snapshot path to a relative, slash-separated form."""
    return path.replace("\\", "/").strip().lstrip("/")


class StaticSnapshotProvider:
    """In-memory snapshot built from a mapping of path to content.

    Mapping order is preserved and defines enumeration order.
    """

    def __init__(self, files: Mapping[str, str]):
        """Initialize the provider.

        Args:
            files: Mapping of file path to file content.

        Raises:
            ValueError: If a path is empty or two paths normalise to the same value.
        """
        self._files: dict[str, SourceFile] = {}
        for raw_path, content in files.items():
            path = normalize_path(raw_path)
            if not path:
                raise ValueError(f"Snapshot path must not be empty: {raw_path!r}")
            if path in self._files:
                raise ValueError(f"Duplicate snapshot path: {path}")
            self._files[path] = SourceFile(path=path, content=content)

    def enumerate(self, path_filter: FilePredicate | None = None) -> list[SourceFile]:
        """Return snapshot files in order, optionally filtered by a predicate."""
        files = list(self._files.values())
        if path_filter is None:
            return files
        return [f for f in files if path_filter(f)]

    def read(self, path: str) -> str | None:
        """Return the content of one file, or None if the snapshot lacks it."""
        source = self._files.get(normalize_path(path))
        return source.content if source is not None else None

    def __len__(self) -> int:
        return len(self._files)


SAMPLE_PROJECT_PATH = Path(__file__).parent.parent / "constants" / "sample_project.yaml"


@lru_cache(maxsize=1)
def load_sample_project() -> dict[str, str]:
    """Load the bundled sample repository.

    Returns:
        Ordered mapping of file path to content.
    """
    with open(SAMPLE_PROJECT_PATH, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return {entry["path"]: entry["content"] for entry in data.get("files", [])}


class SampleSnapshotProvider(StaticSnapshotProvider):
    """Snapshot of the bundled sample project, used in place of a real clone."""

    def __init__(self):
        super().__init__(load_sample_project())
