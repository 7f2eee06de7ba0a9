"""Dependency manifest inspection for section context.

The manifest is parsed leniently: a missing or unparseable manifest yields
empty metadata, and callers fall back to conventional defaults.
"""

import json
import logging
from collections.abc import Iterable
from pathlib import PurePosixPath
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_POINT = "index.js"
ROUTES_DIRECTORY = "routes"


def parse_manifest(content: str | None) -> dict[str, Any]:
    """Parse a package.json manifest, returning {} when it is absent or invalid."""
    if not content or not content.strip():
        return {}
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning(f"Dependency manifest is not valid JSON: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning("Dependency manifest is not a JSON object")
        return {}
    return data


def detect_entry_point(manifest: dict[str, Any]) -> str:
    """Return the entry-point file declared by the manifest's `main` field."""
    main = manifest.get("main")
    if isinstance(main, str) and main.strip():
        return main.strip().removeprefix("./")
    return DEFAULT_ENTRY_POINT


def infer_start_command(manifest: dict[str, Any]) -> str:
    """Infer how the project is started from its scripts and entry point."""
    scripts = manifest.get("scripts")
    if isinstance(scripts, dict) and "start" in scripts:
        return "npm start"
    return f"node {detect_entry_point(manifest)}"


def find_routing_files(paths: Iterable[str]) -> list[str]:
    """Return paths that live under a `routes` directory, in input order."""
    return [
        path for path in paths if ROUTES_DIRECTORY in PurePosixPath(path).parts[:-1]
    ]
