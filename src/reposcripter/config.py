"""Configuration for RepoScripter.

Settings come from two places: environment variables choose the LLM provider
and credentials, and an optional `config.ini` in the workspace tunes the
pipeline. Every INI key is declared in CONFIG_SCHEMA with its type, default
and allowed range, so a bad value fails at startup instead of mid-run.
"""

import os
from configparser import ConfigParser
from dataclasses import dataclass, fields
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional


class ConfigError(Exception):
    """Raised when a config.ini value has the wrong type or is out of range."""

    pass


# section -> key -> (type, default, min, max, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "generation": {
        "temperature": (float, 0.3, 0.0, 1.0, "LLM temperature for README writing"),
        "parallel_limit": (int, 1, 1, 50, "Concurrent file summary calls"),
        "sections": (
            str,
            "Installation, Usage, API Reference",
            None,
            None,
            "Comma-separated README sections, in document order",
        ),
        "manifest_path": (str, "package.json", None, None, "Dependency manifest path"),
    },
    "files": {
        "extensions": (str, ".js", None, None, "Comma-separated summarizable extensions"),
        "max_file_size_kb": (int, 500, 1, 10000, "Largest file sent for summary, in KB"),
    },
    "llm": {
        "max_tokens": (int, 8192, 256, 32768, "Response token cap per call"),
    },
    "paths": {
        "logs_dir": (str, ".reposcripter-logs", None, None, "Workspace directory for logs"),
    },
}

TRUE_VALUES = ("true", "1", "yes", "on")


def split_list(raw: str) -> list[str]:
    """Split a comma-separated config value, dropping blanks."""
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True)
class GenerationConfig:
    """Pipeline settings."""

    temperature: float
    parallel_limit: int
    sections: str
    manifest_path: str

    @property
    def section_titles(self) -> list[str]:
        """Configured section titles in document order."""
        return split_list(self.sections)


@dataclass(frozen=True)
class FilesConfig:
    """Which snapshot files are eligible for summaries."""

    extensions: str
    max_file_size_kb: int

    @property
    def extension_list(self) -> list[str]:
        """Configured extensions, each with a leading dot."""
        return [ext if ext.startswith(".") else f".{ext}" for ext in split_list(self.extensions)]


@dataclass(frozen=True)
class LLMConfig:
    max_tokens: int


@dataclass(frozen=True)
class PathsConfig:
    logs_dir: str


SECTION_TYPES: dict[str, type] = {
    "generation": GenerationConfig,
    "files": FilesConfig,
    "llm": LLMConfig,
    "paths": PathsConfig,
}


def _coerce(section: str, key: str, typ: type, raw_value: str) -> Any:
    if typ in (int, float):
        try:
            return typ(raw_value)
        except ValueError as e:
            raise ConfigError(
                f"Invalid value for [{section}].{key}: {raw_value!r} (expected {typ.__name__})"
            ) from e
    return raw_value


def _load_section(parser: ConfigParser, section: str) -> dict[str, Any]:
    """Read one INI section, filling gaps from CONFIG_SCHEMA.

    Raises:
        ConfigError: If a value cannot be converted or falls outside its range.
    """
    values = {}
    for key, (typ, default, min_val, max_val, _) in CONFIG_SCHEMA[section].items():
        if parser.has_option(section, key):
            value = _coerce(section, key, typ, parser.get(section, key))
        else:
            value = default

        if typ in (int, float):
            if min_val is not None and value < min_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but minimum is {min_val}"
                )
            if max_val is not None and value > max_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but maximum is {max_val}"
                )
        values[key] = value
    return values


def _schema_defaults(section: str) -> dict[str, Any]:
    return {key: spec[1] for key, spec in CONFIG_SCHEMA[section].items()}


def _load_config(config_path: Optional[Path] = None) -> "Config":
    """Load the INI sections into a Config with a placeholder workspace.

    load_settings() swaps in the real workspace path.

    Raises:
        ConfigError: If validation fails.
    """
    parser = ConfigParser()
    if config_path and config_path.exists():
        parser.read(config_path)

    sections = {
        name: section_type(**_load_section(parser, name))
        for name, section_type in SECTION_TYPES.items()
    }
    return Config(workspace_path=Path("."), **sections)


@dataclass(frozen=True)
class Config:
    """Complete application configuration."""

    workspace_path: Path
    active_provider: str = "ollama"
    active_model: str = "llama3"
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    ollama_endpoint: str = "http://localhost:11434"
    log_queries: bool = False

    # Left as None, each section falls back to its schema defaults
    generation: GenerationConfig = None  # type: ignore[assignment]
    files: FilesConfig = None  # type: ignore[assignment]
    llm: LLMConfig = None  # type: ignore[assignment]
    paths: PathsConfig = None  # type: ignore[assignment]

    def __post_init__(self):
        for f in fields(self):
            section_type = SECTION_TYPES.get(f.name)
            if section_type is not None and getattr(self, f.name) is None:
                object.__setattr__(self, f.name, section_type(**_schema_defaults(f.name)))

    @property
    def llm_log_path(self) -> Path | None:
        """JSONL file receiving every LLM request, or None when query logging is off."""
        if not self.log_queries:
            return None
        return self.workspace_path / self.paths.logs_dir / "llm-queries.jsonl"

    @property
    def llm_api_key(self) -> Optional[str]:
        keys = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "gemini": self.gemini_api_key,
        }
        return keys.get(self.active_provider)

    @property
    def llm_endpoint(self) -> Optional[str]:
        """Base URL for self-hosted providers; hosted APIs use LiteLLM's default."""
        return self.ollama_endpoint if self.active_provider == "ollama" else None


PROVIDER_DEFAULT_MODELS = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-4o",
    "anthropic": "claude-3-5-sonnet-20241022",
    "ollama": "llama3",
}


def _gemini_key() -> Optional[str]:
    return os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")


def _detect_provider_from_keys() -> str:
    """Pick the provider whose API key is set, preferring Gemini.

    Falls back to a local Ollama server when no key is present.
    """
    if _gemini_key():
        return "gemini"
    for provider in ("openai", "anthropic"):
        if os.getenv(f"{provider.upper()}_API_KEY"):
            return provider
    return "ollama"


def _resolve_provider() -> tuple[str, str]:
    """Return (provider, model) from ACTIVE_PROVIDER/ACTIVE_MODEL or key detection."""
    provider = os.getenv("ACTIVE_PROVIDER") or _detect_provider_from_keys()
    model = os.getenv("ACTIVE_MODEL") or PROVIDER_DEFAULT_MODELS.get(
        provider, PROVIDER_DEFAULT_MODELS["ollama"]
    )
    return provider, model


@lru_cache(maxsize=1)
def load_settings() -> Config:
    """Load settings from the environment and the workspace config.ini.

    Cached for the lifetime of the process; call load_settings.cache_clear()
    to pick up changes.

    Raises:
        ConfigError: If config.ini contains invalid values.
    """
    workspace_path = Path(os.getenv("WORKSPACE_PATH") or Path.cwd())

    config_file = workspace_path / "config.ini"
    try:
        has_config = config_file.exists()
    except PermissionError:
        has_config = False
    base = _load_config(config_file if has_config else None)

    provider, model = _resolve_provider()

    return Config(
        workspace_path=workspace_path,
        active_provider=provider,
        active_model=model,
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
        gemini_api_key=_gemini_key(),
        ollama_endpoint=os.getenv("OLLAMA_ENDPOINT", "http://localhost:11434"),
        log_queries=os.getenv("LOG_LLM_QUERIES", "").lower() in TRUE_VALUES,
        generation=base.generation,
        files=base.files,
        llm=base.llm,
        paths=base.paths,
    )


# Alias for code that imports Settings instead of Config
Settings = Config
