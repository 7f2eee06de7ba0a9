"""README generation pipeline module."""

from reposcripter.generation.architecture import ArchitectureSynthesizer, render_file_listing
from reposcripter.generation.orchestrator import (
    CancellationToken,
    GenerationCancelled,
    GenerationOrchestrator,
    GenerationPhase,
    RunState,
    Stage,
    derive_title,
    generate_document,
)
from reposcripter.generation.prompts import (
    ARCHITECTURE_TEMPLATE,
    FILE_SUMMARY_TEMPLATE,
    SECTION_TEMPLATE,
    SYSTEM_PROMPT,
    PromptTemplate,
    get_architecture_prompt,
    get_file_summary_prompt,
    get_section_prompt,
)
from reposcripter.generation.sections import (
    DEFAULT_SECTION_SPECS,
    Section,
    SectionSpec,
    SectionWriter,
    resolve_section_specs,
)
from reposcripter.generation.summaries import (
    FileSummarizer,
    FileSummary,
    MissingSummaryError,
    find_summary,
)

__all__ = [
    # Architecture Synthesizer
    "ArchitectureSynthesizer",
    "render_file_listing",
    # Orchestrator
    "CancellationToken",
    "GenerationCancelled",
    "GenerationOrchestrator",
    "GenerationPhase",
    "RunState",
    "Stage",
    "derive_title",
    "generate_document",
    # Prompts
    "ARCHITECTURE_TEMPLATE",
    "FILE_SUMMARY_TEMPLATE",
    "SECTION_TEMPLATE",
    "SYSTEM_PROMPT",
    "PromptTemplate",
    "get_architecture_prompt",
    "get_file_summary_prompt",
    "get_section_prompt",
    # Section Writer
    "DEFAULT_SECTION_SPECS",
    "Section",
    "SectionSpec",
    "SectionWriter",
    "resolve_section_specs",
    # File Summarizer
    "FileSummarizer",
    "FileSummary",
    "MissingSummaryError",
    "find_summary",
]
