# src/reposcripter/generation/architecture.py
"""Architecture overview synthesizer."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from reposcripter.generation.prompts import SYSTEM_PROMPT, get_architecture_prompt

if TYPE_CHECKING:
    from reposcripter.generation.summaries import FileSummary


def render_file_listing(paths: Iterable[str]) -> str:
    """Render paths as a flat Markdown list, one `- path` per line."""
    return "\n".join(f"- {path}" for path in paths)


class ArchitectureSynthesizer:
    """Infers a short project overview from the file listing and file summaries.

    The overview becomes the introduction of the README and is shared
    context for every section written afterwards.
    """

    def __init__(self, llm_client):
        """Initialize the synthesizer.

        Args:
            llm_client: LLM client for generation.
        """
        self.llm_client = llm_client

    async def synthesize(
        self,
        file_listing: str,
        dependency_manifest: str | None,
        summaries: Sequence[FileSummary],
    ) -> str:
        """Generate the architecture overview.

        Args:
            file_listing: Every enumerated path, one per line.
            dependency_manifest: Raw manifest content. None is treated as empty.
            summaries: All file summaries of the run, in production order.
                May be empty.

        Returns:
            Overview text of two to three sentences.
        """
        prompt = get_architecture_prompt(
            file_listing=file_listing,
            dependency_manifest=dependency_manifest,
            summaries=summaries,
        )
        content = await self.llm_client.generate(prompt=prompt, system_prompt=SYSTEM_PROMPT)
        return content.strip()
