# src/reposcripter/generation/orchestrator.py
"""Generation orchestrator for the README pipeline.

This module provides the GenerationOrchestrator class that turns a repository
identifier into a README through a fixed, linear plan of stages:

1. Start - Emit the document title
2. Enumerate - List snapshot files and select the eligible ones
3. Summarize - Summarize each eligible file
4. Synthesize - Infer the architecture overview from all summaries
5. Sections - Write each configured section from the overview
6. Finalize - Close the run

Each stage reports a status message before it runs and emits at most one
text fragment. Fragments are yielded as soon as they exist, so a consumer
can display the document while it grows.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from itertools import islice
from typing import TYPE_CHECKING, Iterator, TypeVar

from reposcripter.constants.generation import (
    DEFAULT_PROJECT_TITLE,
    STATUS_ANALYZE_STRUCTURE,
    STATUS_FINALIZE,
    STATUS_START,
    STATUS_SUMMARIZE_FILE,
    STATUS_SYNTHESIZE_ARCHITECTURE,
    STATUS_WRITE_INTRODUCTION,
)
from reposcripter.generation.architecture import ArchitectureSynthesizer, render_file_listing
from reposcripter.generation.sections import (
    DEFAULT_SECTION_SPECS,
    Section,
    SectionSpec,
    SectionWriter,
    resolve_section_specs,
)
from reposcripter.generation.summaries import FileSummarizer, FileSummary
from reposcripter.repo.file_filter import ExtensionFilter
from reposcripter.repo.snapshot import FilePredicate, SnapshotProvider, SourceFile
from reposcripter.repo.url_parser import TargetValidationError

if TYPE_CHECKING:
    from reposcripter.config import Config

logger = logging.getLogger(__name__)

T = TypeVar("T")

StatusCallback = Callable[[str], None]


class GenerationPhase(Enum):
    """Phases of README generation."""

    START = "start"
    ENUMERATE = "enumerate"
    SUMMARIZE = "summarize"
    SYNTHESIZE = "synthesize"
    SECTIONS = "sections"
    FINALIZE = "finalize"


class GenerationCancelled(Exception):
    """Raised when a run is cancelled through its CancellationToken."""

    pass


class CancellationToken:
    """Cooperative cancellation flag shared between a consumer and one run.

    The orchestrator checks the token before every remote call and again
    when the call returns, discarding results that arrive after cancellation.
    """

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        """Request cancellation of the run."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        """Raise GenerationCancelled if cancellation was requested."""
        if self._cancelled:
            raise GenerationCancelled("Generation was cancelled")


@dataclass
class RunState:
    """State of a single generation run.

    Created fresh for every call to GenerationOrchestrator.run() and owned
    exclusively by that run.

    Attributes:
        target: The repository identifier being documented.
        title: Document title derived from the target.
        manifest_path: Snapshot path of the dependency manifest.
        files: Every file of the snapshot, in enumeration order.
        eligible_files: Files selected for summarization, in enumeration order.
        manifest_content: Raw manifest text; empty when the manifest is missing.
        manifest_present: Whether the snapshot contained the manifest at all.
        summaries: File summaries in enumeration order.
        overview: Architecture overview, set by the synthesize stage.
        sections: Sections written so far, in configured order.
        fragments: Every fragment emitted so far, in emission order.
    """

    target: str
    title: str
    manifest_path: str = "package.json"
    files: list[SourceFile] = field(default_factory=list)
    eligible_files: list[SourceFile] = field(default_factory=list)
    manifest_content: str = ""
    manifest_present: bool = False
    summaries: list[FileSummary] = field(default_factory=list)
    overview: str | None = None
    sections: list[Section] = field(default_factory=list)
    fragments: list[str] = field(default_factory=list)

    @property
    def document(self) -> str:
        """The document emitted so far."""
        return "".join(self.fragments)

    def emit(self, fragment: str) -> str:
        """Append a fragment to the output buffer and return it."""
        self.fragments.append(fragment)
        return fragment


@dataclass
class StageContext:
    """What a stage sees while it executes."""

    state: RunState
    report: StatusCallback
    cancel_token: CancellationToken

    async def call(self, factory: Callable[[], Awaitable[T]]) -> T:
        """Run one remote call under the cancellation token.

        The factory is only invoked when the run is still live, and its
        result is discarded if the run was cancelled while it was in flight.
        """
        self.cancel_token.raise_if_cancelled()
        result = await factory()
        if self.cancel_token.cancelled:
            logger.info(f"Discarding result that arrived after cancellation of {self.state.target}")
            raise GenerationCancelled("Generation was cancelled")
        return result


@dataclass(frozen=True)
class Stage:
    """One step of the generation plan.

    Attributes:
        phase: Phase this stage belongs to.
        name: Short name used in logs.
        status_message: Reported before the stage executes, if set.
        execute: Performs the stage and returns the fragment to emit, if any.
    """

    phase: GenerationPhase
    name: str
    status_message: str | None
    execute: Callable[[StageContext], Awaitable[str | None]]


def batched(iterable, n: int) -> Iterator[list]:
    """Batch an iterable into chunks of size n.

    Args:
        iterable: Items to batch.
        n: Batch size.

    Yields:
        Lists of up to n items.
    """
    it = iter(iterable)
    while batch := list(islice(it, n)):
        yield batch


def validate_target(target: object) -> str:
    """Check that a target identifier is a non-blank string.

    Returns:
        The stripped identifier.

    Raises:
        TargetValidationError: If the identifier is missing or blank.
    """
    if not isinstance(target, str) or not target.strip():
        raise TargetValidationError("A repository identifier is required")
    return target.strip()


def derive_title(target: str) -> str:
    """Derive the document title from the last path segment of the target.

    Trailing slashes and a `.git` suffix are ignored. Falls back to
    DEFAULT_PROJECT_TITLE when no segment remains.
    """
    trimmed = target.strip().rstrip("/")
    name = trimmed.rsplit("/", 1)[-1].removesuffix(".git").strip()
    return name or DEFAULT_PROJECT_TITLE


def _ignore_status(message: str) -> None:
    pass


class GenerationOrchestrator:
    """Orchestrates the README generation pipeline.

    Coordinates the stages in the fixed sequence:
    Start → Enumerate → Summarize → Synthesize → Sections → Finalize

    Architecture synthesis only starts once every eligible file has a
    summary, and no section is written before the overview exists.

    Attributes:
        llm_client: LLM client for generation.
        snapshot_provider: Source of the repository files.
        file_filter: Predicate selecting the files to summarize.
        section_specs: Sections to write, in document order.
        manifest_path: Snapshot path of the dependency manifest.
        parallel_limit: Max concurrent file summary calls.
    """

    def __init__(
        self,
        llm_client,
        snapshot_provider: SnapshotProvider,
        file_filter: FilePredicate | None = None,
        section_specs: Sequence[SectionSpec] | None = None,
        manifest_path: str = "package.json",
        parallel_limit: int = 1,
    ):
        """Initialize the orchestrator.

        Args:
            llm_client: LLM client for generation.
            snapshot_provider: Source of the repository files.
            file_filter: Eligibility predicate. Defaults to JavaScript sources.
            section_specs: Sections to write. Defaults to Installation, Usage
                and API Reference.
            manifest_path: Snapshot path of the dependency manifest.
            parallel_limit: Max concurrent file summary calls. 1 summarizes
                files strictly one after another.
        """
        if parallel_limit < 1:
            raise ValueError(f"parallel_limit must be at least 1, got {parallel_limit}")

        self.llm_client = llm_client
        self.snapshot_provider = snapshot_provider
        self.file_filter = file_filter or ExtensionFilter()
        self.section_specs = list(
            section_specs if section_specs is not None else DEFAULT_SECTION_SPECS
        )
        self.manifest_path = manifest_path
        self.parallel_limit = parallel_limit

        self.file_summarizer = FileSummarizer(llm_client)
        self.architecture_synthesizer = ArchitectureSynthesizer(llm_client)
        self.section_writer = SectionWriter(llm_client)

    @classmethod
    def from_settings(
        cls,
        settings: Config,
        llm_client,
        snapshot_provider: SnapshotProvider,
    ) -> GenerationOrchestrator:
        """Build an orchestrator configured from application settings."""
        return cls(
            llm_client=llm_client,
            snapshot_provider=snapshot_provider,
            file_filter=ExtensionFilter(
                extensions=settings.files.extension_list,
                max_file_size_kb=settings.files.max_file_size_kb,
            ),
            section_specs=resolve_section_specs(settings.generation.section_titles),
            manifest_path=settings.generation.manifest_path,
            parallel_limit=settings.generation.parallel_limit,
        )

    def build_plan(self) -> list[Stage]:
        """Return the ordered stages of a run."""
        plan = [
            Stage(GenerationPhase.START, "start", STATUS_START, self._run_start),
            Stage(
                GenerationPhase.ENUMERATE, "enumerate", STATUS_ANALYZE_STRUCTURE, self._run_enumerate
            ),
            Stage(GenerationPhase.SUMMARIZE, "summarize", None, self._run_summaries),
            Stage(
                GenerationPhase.SYNTHESIZE,
                "synthesize",
                STATUS_SYNTHESIZE_ARCHITECTURE,
                self._run_synthesis,
            ),
        ]
        for spec in self.section_specs:
            plan.append(
                Stage(
                    GenerationPhase.SECTIONS,
                    f"section:{spec.title}",
                    spec.status_message,
                    self._section_executor(spec),
                )
            )
        plan.append(Stage(GenerationPhase.FINALIZE, "finalize", STATUS_FINALIZE, self._run_finalize))
        return plan

    def run(
        self,
        target: str,
        on_status: StatusCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[str]:
        """Start a generation run.

        The target is validated immediately; the returned iterator is lazy,
        finite and can be consumed only once.

        Args:
            target: Repository identifier, e.g. a repository URL.
            on_status: Called synchronously with a status message before
                each stage.
            cancel_token: Optional token for cooperative cancellation.

        Returns:
            Async iterator of document fragments. Concatenated in order they
            form the finished README. The first failure ends the iteration by
            raising it.

        Raises:
            TargetValidationError: If the target is missing or blank.
        """
        target = validate_target(target)
        state = RunState(
            target=target,
            title=derive_title(target),
            manifest_path=self.manifest_path,
        )
        context = StageContext(
            state=state,
            report=on_status or _ignore_status,
            cancel_token=cancel_token or CancellationToken(),
        )
        return self._step(context)

    async def _step(self, context: StageContext) -> AsyncIterator[str]:
        """Drive the plan one stage at a time, yielding emitted fragments."""
        state = context.state
        logger.info(f"Starting README generation for {state.target}")

        for stage in self.build_plan():
            context.cancel_token.raise_if_cancelled()
            if stage.status_message:
                context.report(stage.status_message)
            logger.debug(f"Running stage {stage.name}")

            try:
                fragment = await stage.execute(context)
            except GenerationCancelled:
                logger.info(f"Generation for {state.target} cancelled during {stage.name}")
                raise
            except Exception as e:
                logger.error(f"Stage {stage.name} failed for {state.target}: {e}")
                raise

            if fragment is not None:
                yield state.emit(fragment)

        logger.info(
            f"README generation for {state.target} complete: "
            f"{len(state.summaries)} files summarized, {len(state.sections)} sections"
        )

    async def _run_start(self, context: StageContext) -> str:
        return f"# {context.state.title}\n\n"

    async def _run_enumerate(self, context: StageContext) -> None:
        state = context.state
        state.files = self.snapshot_provider.enumerate()
        state.eligible_files = [f for f in state.files if self.file_filter(f)]

        manifest = self.snapshot_provider.read(self.manifest_path)
        state.manifest_present = manifest is not None
        state.manifest_content = manifest or ""
        if not state.manifest_present:
            logger.warning(f"Dependency manifest {self.manifest_path} not found; using empty manifest")

        logger.info(
            f"Found {len(state.files)} files, {len(state.eligible_files)} eligible for summaries"
        )
        return None

    async def _run_summaries(self, context: StageContext) -> None:
        """Summarize eligible files, keeping enumeration order in the results."""
        state = context.state

        for batch in batched(state.eligible_files, self.parallel_limit):
            for source in batch:
                context.report(STATUS_SUMMARIZE_FILE.format(path=source.path))

            if len(batch) == 1:
                source = batch[0]
                summary = await context.call(
                    lambda: self.file_summarizer.summarize(source.path, source.content)
                )
                state.summaries.append(summary)
                continue

            tasks = [
                asyncio.create_task(
                    context.call(
                        lambda s=source: self.file_summarizer.summarize(s.path, s.content)
                    )
                )
                for source in batch
            ]
            try:
                results = await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
            state.summaries.extend(results)

        return None

    async def _run_synthesis(self, context: StageContext) -> str:
        state = context.state
        overview = await context.call(
            lambda: self.architecture_synthesizer.synthesize(
                file_listing=render_file_listing(f.path for f in state.files),
                dependency_manifest=state.manifest_content,
                summaries=state.summaries,
            )
        )
        state.overview = overview
        context.report(STATUS_WRITE_INTRODUCTION)
        return f"{overview}\n\n"

    def _section_executor(self, spec: SectionSpec) -> Callable[[StageContext], Awaitable[str]]:
        async def execute(context: StageContext) -> str:
            state = context.state
            if state.overview is None:
                raise RuntimeError(f"Section {spec.title} requested before the overview exists")
            section_context = spec.build_context(state)
            section = await context.call(
                lambda: self.section_writer.write_section(spec.title, state.overview, section_context)
            )
            state.sections.append(section)
            return section.body

        return execute

    async def _run_finalize(self, context: StageContext) -> None:
        return None


async def generate_document(
    orchestrator: GenerationOrchestrator,
    target: str,
    on_status: StatusCallback | None = None,
    cancel_token: CancellationToken | None = None,
) -> str:
    """Run the pipeline to completion and return the whole document."""
    parts = []
    async for fragment in orchestrator.run(target, on_status, cancel_token):
        parts.append(fragment)
    return "".join(parts)
