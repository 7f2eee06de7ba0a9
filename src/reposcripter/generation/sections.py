"""README section writing and section-specific context policy."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from reposcripter.constants.generation import (
    MISSING_SUMMARY_PLACEHOLDER,
    STATUS_WRITE_API_REFERENCE,
    STATUS_WRITE_INSTALLATION,
    STATUS_WRITE_USAGE,
)
from reposcripter.generation.manifest import (
    detect_entry_point,
    find_routing_files,
    infer_start_command,
    parse_manifest,
)
from reposcripter.generation.prompts import SYSTEM_PROMPT, format_summaries, get_section_prompt
from reposcripter.generation.summaries import summary_or_placeholder

if TYPE_CHECKING:
    from reposcripter.generation.orchestrator import RunState

logger = logging.getLogger(__name__)

# Manifest extension -> code fence language; anything else gets a bare fence
MANIFEST_FENCE_LANGUAGES = {
    ".json": "json",
    ".toml": "toml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".xml": "xml",
}


@dataclass(frozen=True)
class Section:
    """One generated README section.

    Attributes:
        title: Section name, also used as its level-2 heading.
        body: Markdown for the whole section, heading included, ending in a
            blank line so sections concatenate cleanly.
    """

    title: str
    body: str


def format_section(title: str, generated: str) -> str:
    """Wrap generated text in a level-2 heading and a trailing blank line."""
    return f"## {title}\n\n{generated.strip()}\n\n"


class SectionWriter:
    """Writes single README sections grounded in the architecture overview."""

    def __init__(self, llm_client):
        """Initialize the section writer.

        Args:
            llm_client: LLM client for generation.
        """
        self.llm_client = llm_client

    async def write_section(self, section_title: str, overview: str, context: str) -> Section:
        """Generate one section with a single generation call.

        Args:
            section_title: Name of the section to write.
            overview: Architecture overview of the project.
            context: Section-specific supporting context.

        Returns:
            Section whose body starts with `## {section_title}`.
        """
        prompt = get_section_prompt(section_title, overview, context)
        generated = await self.llm_client.generate(prompt=prompt, system_prompt=SYSTEM_PROMPT)
        return Section(title=section_title, body=format_section(section_title, generated))


ContextBuilder = Callable[["RunState"], str]


@dataclass(frozen=True)
class SectionSpec:
    """A configured README section.

    Attributes:
        title: Section name.
        status_message: Status reported before the section is written.
        build_context: Builds the section-specific context from the run state.
    """

    title: str
    status_message: str
    build_context: ContextBuilder


def installation_context(state: RunState) -> str:
    """Context for Installation: the raw dependency manifest."""
    suffix = PurePosixPath(state.manifest_path).suffix.lower()
    language = MANIFEST_FENCE_LANGUAGES.get(suffix, "")
    return (
        f"Dependencies file ({state.manifest_path}):\n"
        f"```{language}\n{state.manifest_content}\n```"
    )


def usage_context(state: RunState) -> str:
    """Context for Usage: the entry point's summary and the inferred start command."""
    manifest = parse_manifest(state.manifest_content)
    entry_point = detect_entry_point(manifest)
    entry_summary = summary_or_placeholder(
        state.summaries, entry_point, MISSING_SUMMARY_PLACEHOLDER
    )
    return (
        f'The main entry point is `{entry_point}`. Its summary is: "{entry_summary}". '
        f"Based on the {state.manifest_path}, the start command is likely "
        f'"{infer_start_command(manifest)}".'
    )


def api_reference_context(state: RunState) -> str:
    """Context for API Reference: routing file summaries and an endpoint instruction."""
    routing_files = find_routing_files(f.path for f in state.eligible_files)
    if not routing_files:
        logger.warning("No routing files found; API Reference context is degraded")
        return (
            "No routing files were found in this project. "
            f'The summary is: "{MISSING_SUMMARY_PLACEHOLDER}". '
            "Describe the public interface only as far as the architectural overview supports it."
        )

    lines = []
    for path in routing_files:
        summary = summary_or_placeholder(state.summaries, path, MISSING_SUMMARY_PLACEHOLDER)
        lines.append(f'API routes are defined in `{path}`. The summary is: "{summary}".')
    lines.append("List the available endpoints and their purpose based on this summary.")
    return " ".join(lines)


def generic_context(state: RunState) -> str:
    """Context for sections without a dedicated policy: every file summary."""
    return format_summaries(state.summaries) or MISSING_SUMMARY_PLACEHOLDER


DEFAULT_SECTION_SPECS: tuple[SectionSpec, ...] = (
    SectionSpec("Installation", STATUS_WRITE_INSTALLATION, installation_context),
    SectionSpec("Usage", STATUS_WRITE_USAGE, usage_context),
    SectionSpec("API Reference", STATUS_WRITE_API_REFERENCE, api_reference_context),
)


def resolve_section_specs(titles: Iterable[str]) -> list[SectionSpec]:
    """Map configured section titles to specs, keeping the configured order.

    Titles without a dedicated context policy get the generic context.
    """
    known = {spec.title.lower(): spec for spec in DEFAULT_SECTION_SPECS}
    specs = []
    for title in titles:
        spec = known.get(title.lower())
        if spec is None:
            spec = SectionSpec(title, f"Writing {title} section...", generic_context)
        specs.append(spec)
    return specs
