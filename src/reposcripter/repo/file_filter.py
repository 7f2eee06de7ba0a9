"""Eligibility predicates deciding which snapshot files get summarized."""

import fnmatch
from collections.abc import Iterable
from pathlib import PurePosixPath

from reposcripter.constants.files import DEFAULT_EXCLUDES, DEFAULT_EXTENSIONS, MAX_FILE_SIZE_KB
from reposcripter.repo.snapshot import SourceFile


class ExtensionFilter:
    """Select source files by extension, skipping excluded paths and large files.

    Instances are callable and can be passed anywhere a FilePredicate is
    expected, so another ecosystem only needs a different extension list.
    """

    def __init__(
        self,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        exclude_patterns: Iterable[str] = DEFAULT_EXCLUDES,
        max_file_size_kb: int | None = MAX_FILE_SIZE_KB,
    ):
        """Initialize the filter.

        Args:
            extensions: File suffixes to accept, with or without a leading dot.
            exclude_patterns: Glob patterns matched against each path component.
            max_file_size_kb: Largest accepted content size, or None for no limit.
        """
        self.extensions = frozenset(
            (ext if ext.startswith(".") else f".{ext}").lower() for ext in extensions
        )
        self.exclude_patterns = tuple(exclude_patterns)
        self.max_file_size_bytes = (
            max_file_size_kb * 1024 if max_file_size_kb is not None else None
        )

    def _is_excluded(self, path: str) -> bool:
        parts = PurePosixPath(path).parts
        return any(
            fnmatch.fnmatch(part, pattern) for part in parts for pattern in self.exclude_patterns
        )

    def __call__(self, source: SourceFile) -> bool:
        if PurePosixPath(source.path).suffix.lower() not in self.extensions:
            return False
        if self._is_excluded(source.path):
            return False
        if (
            self.max_file_size_bytes is not None
            and len(source.content.encode("utf-8")) > self.max_file_size_bytes
        ):
            return False
        return True

    def __repr__(self) -> str:
        return f"ExtensionFilter(extensions={sorted(self.extensions)!r})"
