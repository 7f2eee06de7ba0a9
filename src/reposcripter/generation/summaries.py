"""File summaries: the bottom layer of README generation.

Each eligible file is summarized once; later stages look summaries up by
path when building their own prompts.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from reposcripter.generation.prompts import SYSTEM_PROMPT, get_file_summary_prompt

logger = logging.getLogger(__name__)


class MissingSummaryError(LookupError):
    """Raised when a stage looks up a summary for a path that was never summarized.

    Callers building section context treat this as non-fatal and continue
    with degraded context.
    """

    def __init__(self, path: str):
        super().__init__(f"No summary available for {path}")
        self.path = path


@dataclass(frozen=True)
class FileSummary:
    """Natural-language summary of one source file.

    Attributes:
        path: Path of the summarized file, matching its SourceFile.
        summary: One paragraph describing the file's purpose and responsibilities.
    """

    path: str
    summary: str


def find_summary(summaries: Sequence[FileSummary], path: str) -> FileSummary:
    """Return the summary for a path.

    Raises:
        MissingSummaryError: If no summary exists for the path.
    """
    for summary in summaries:
        if summary.path == path:
            return summary
    raise MissingSummaryError(path)


def summary_or_placeholder(
    summaries: Sequence[FileSummary], path: str, placeholder: str
) -> str:
    """Return the summary text for a path, or the placeholder if it is missing."""
    try:
        return find_summary(summaries, path).summary
    except MissingSummaryError as e:
        logger.warning(f"{e}; continuing with placeholder context")
        return placeholder


class FileSummarizer:
    """Produces one-paragraph summaries of individual files."""

    def __init__(self, llm_client):
        """Initialize the summarizer.

        Args:
            llm_client: LLM client for generation.
        """
        self.llm_client = llm_client

    async def summarize(self, path: str, content: str) -> FileSummary:
        """Summarize one file with a single generation call.

        Failures of the LLM client propagate unchanged.

        Args:
            path: Path of the file within the snapshot.
            content: Full file content.

        Returns:
            FileSummary for the file.
        """
        prompt = get_file_summary_prompt(path, content)
        text = await self.llm_client.generate(prompt=prompt, system_prompt=SYSTEM_PROMPT)
        return FileSummary(path=path, summary=text.strip())
