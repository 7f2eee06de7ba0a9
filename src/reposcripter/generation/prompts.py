# src/reposcripter/generation/prompts.py
"""Prompt templates for README generation."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from reposcripter.generation.summaries import FileSummary


@dataclass
class PromptTemplate:
    """A template for generating prompts with variable substitution."""

    template: str

    def render(self, **kwargs: Any) -> str:
        """Render the template with the given variables.

        Args:
            **kwargs: Variables to substitute into the template.

        Returns:
            The rendered template string.

        Raises:
            KeyError: If a required variable is missing.
        """
        return self.template.format(**kwargs)


# =============================================================================
# System Prompt
# =============================================================================

SYSTEM_PROMPT = """You are a professional technical writer and an expert in creating
README.md files for software projects. Follow these guidelines:

1. Be precise and factual - only describe what exists in the code
2. Use clear, concise language appropriate for developers
3. Prefer short paragraphs and lists over long prose
4. Do not invent features, endpoints, or commands that the context does not support

Output clean Markdown."""


# =============================================================================
# File Summary Template
# =============================================================================

FILE_SUMMARY_TEMPLATE = PromptTemplate(
    """You are a File-Level Summarizer Agent. Your task is to generate a concise, one-paragraph summary of the following file's purpose, its main functions or classes, and its key responsibilities within the project. Focus on the high-level logic, not line-by-line details.

File Path: `{path}`

File Content:
```
{content}
```

Summary:"""
)


# =============================================================================
# Architecture Template
# =============================================================================

ARCHITECTURE_TEMPLATE = PromptTemplate(
    """You are an Architectural Synthesizer Agent. Based on the following file structure, dependencies, and file summaries, infer the project's overall purpose and architecture. Provide a concise, high-level overview in 2-3 sentences.

File Structure:
```
{file_listing}
```

Dependencies:
```
{dependency_manifest}
```

File Summaries:
{summaries}

Project Overview:"""
)


# =============================================================================
# Section Template
# =============================================================================

SECTION_TEMPLATE = PromptTemplate(
    """Your current task is to write the "{section_title}" section of a README.md file.

Project Architectural Overview: "{overview}"

Use the following specific context to write a clear and concise "{section_title}" section in Markdown format. Write only the body of this one section; do not repeat its heading and do not write any other section.

Context:
{context}

## {section_title}
"""
)


def format_summaries(summaries: Iterable[FileSummary]) -> str:
    """Render file summaries as `**path**: summary` lines, keeping their order."""
    return "\n".join(f"**{s.path}**: {s.summary}" for s in summaries)


def get_file_summary_prompt(path: str, content: str) -> str:
    """Build the prompt asking for a one-paragraph summary of one file.

    Args:
        path: Path of the file within the snapshot.
        content: Full file content.

    Returns:
        Rendered prompt string.
    """
    return FILE_SUMMARY_TEMPLATE.render(path=path, content=content)


def get_architecture_prompt(
    file_listing: str,
    dependency_manifest: str | None,
    summaries: Iterable[FileSummary],
) -> str:
    """Build the prompt asking for a short purpose-and-architecture overview.

    Args:
        file_listing: Every enumerated path, one per line.
        dependency_manifest: Raw manifest content; None is rendered as empty.
        summaries: File summaries in the order they were produced.

    Returns:
        Rendered prompt string.
    """
    return ARCHITECTURE_TEMPLATE.render(
        file_listing=file_listing,
        dependency_manifest=dependency_manifest or "",
        summaries=format_summaries(summaries),
    )


def get_section_prompt(section_title: str, overview: str, context: str) -> str:
    """Build the prompt asking for exactly one named README section."""
    return SECTION_TEMPLATE.render(
        section_title=section_title,
        overview=overview,
        context=context,
    )
