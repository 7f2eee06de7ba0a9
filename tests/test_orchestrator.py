"""Generation orchestrator tests."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from hypothesis import given, settings, strategies as st

from reposcripter.constants.generation import (
    DEFAULT_PROJECT_TITLE,
    MISSING_SUMMARY_PLACEHOLDER,
    STATUS_ANALYZE_STRUCTURE,
    STATUS_FINALIZE,
    STATUS_START,
    STATUS_SYNTHESIZE_ARCHITECTURE,
    STATUS_WRITE_API_REFERENCE,
    STATUS_WRITE_INSTALLATION,
    STATUS_WRITE_USAGE,
)
from reposcripter.generation.orchestrator import (
    CancellationToken,
    GenerationCancelled,
    GenerationOrchestrator,
    GenerationPhase,
    batched,
    derive_title,
    generate_document,
)
from reposcripter.generation.sections import SectionSpec, generic_context
from reposcripter.llm import LLMConnectionError, LLMError
from reposcripter.repo.file_filter import ExtensionFilter
from reposcripter.repo.snapshot import StaticSnapshotProvider
from reposcripter.repo.url_parser import TargetValidationError

from stubs import StubLLMClient

TARGET = "https://example.com/acme/widget-api"


@pytest.fixture
def orchestrator(stub_client, sample_provider):
    """Create orchestrator over the sample project."""
    return GenerationOrchestrator(llm_client=stub_client, snapshot_provider=sample_provider)


async def collect(iterator) -> list[str]:
    return [fragment async for fragment in iterator]


# =============================================================================
# Plan
# =============================================================================


def test_plan_follows_fixed_stage_order(orchestrator):
    """Plan is Start, Enumerate, Summarize, Synthesize, one stage per section, Finalize."""
    phases = [stage.phase for stage in orchestrator.build_plan()]

    assert phases == [
        GenerationPhase.START,
        GenerationPhase.ENUMERATE,
        GenerationPhase.SUMMARIZE,
        GenerationPhase.SYNTHESIZE,
        GenerationPhase.SECTIONS,
        GenerationPhase.SECTIONS,
        GenerationPhase.SECTIONS,
        GenerationPhase.FINALIZE,
    ]


def test_plan_uses_configured_sections(stub_client, sample_provider):
    """Section stages follow the configured section list."""
    specs = [
        SectionSpec("Usage", "usage...", generic_context),
        SectionSpec("License", "license...", generic_context),
    ]
    orchestrator = GenerationOrchestrator(stub_client, sample_provider, section_specs=specs)

    names = [s.name for s in orchestrator.build_plan() if s.phase == GenerationPhase.SECTIONS]

    assert names == ["section:Usage", "section:License"]


def test_parallel_limit_must_be_positive(stub_client, sample_provider):
    with pytest.raises(ValueError):
        GenerationOrchestrator(stub_client, sample_provider, parallel_limit=0)


# =============================================================================
# Reference scenario
# =============================================================================


async def test_reference_scenario_produces_expected_document(orchestrator):
    """Sample project with stubbed client yields the expected README."""
    document = await generate_document(orchestrator, TARGET)

    assert document.startswith("# widget-api\n\n")
    headings = [line for line in document.splitlines() if line.startswith("## ")]
    assert headings == ["## Installation", "## Usage", "## API Reference"]
    assert "## Installation\n\n<SECTION:Installation>\n\n" in document
    assert "## Usage\n\n<SECTION:Usage>\n\n" in document
    assert "## API Reference\n\n<SECTION:API Reference>\n\n" in document
    assert document == (
        "# widget-api\n\n"
        "<OVERVIEW>\n\n"
        "## Installation\n\n<SECTION:Installation>\n\n"
        "## Usage\n\n<SECTION:Usage>\n\n"
        "## API Reference\n\n<SECTION:API Reference>\n\n"
    )


async def test_fragments_are_emitted_per_stage(orchestrator):
    """One fragment for the title, one for the overview, one per section."""
    fragments = await collect(orchestrator.run(TARGET))

    assert len(fragments) == 5
    assert fragments[0] == "# widget-api\n\n"
    assert fragments[1] == "<OVERVIEW>\n\n"
    assert [f.split("\n", 1)[0] for f in fragments[2:]] == [
        "## Installation",
        "## Usage",
        "## API Reference",
    ]


async def test_only_eligible_files_are_summarized(orchestrator, stub_client):
    await generate_document(orchestrator, TARGET)

    summarized = [key for kind, key in stub_client.calls if kind == "summary"]
    assert summarized == ["server.js", "routes/users.js"]


async def test_status_messages_in_order(orchestrator):
    """Status reports follow the stage order, one per summarized file."""
    messages: list[str] = []

    await generate_document(orchestrator, TARGET, on_status=messages.append)

    assert messages[0] == STATUS_START
    assert messages[1] == STATUS_ANALYZE_STRUCTURE
    assert messages[2:4] == ["Summarizing server.js...", "Summarizing routes/users.js..."]
    assert messages[4] == STATUS_SYNTHESIZE_ARCHITECTURE
    assert messages[-4:] == [
        STATUS_WRITE_INSTALLATION,
        STATUS_WRITE_USAGE,
        STATUS_WRITE_API_REFERENCE,
        STATUS_FINALIZE,
    ]


async def test_status_precedes_the_call_it_describes(sample_provider):
    """Each per-file status is reported before that file's summary call."""
    events: list[str] = []
    client = StubLLMClient()
    original = client.generate

    async def recording_generate(prompt, system_prompt=None):
        kind, key = client.classify(prompt)
        events.append(f"call:{kind}:{key}")
        return await original(prompt, system_prompt)

    client.generate = recording_generate
    orchestrator = GenerationOrchestrator(client, sample_provider)

    await generate_document(orchestrator, TARGET, on_status=lambda m: events.append(f"status:{m}"))

    for path in ("server.js", "routes/users.js"):
        assert events.index(f"status:Summarizing {path}...") < events.index(
            f"call:summary:{path}"
        )
    assert events.index(f"status:{STATUS_SYNTHESIZE_ARCHITECTURE}") < events.index(
        "call:overview:"
    )


async def test_title_is_emitted_before_any_remote_call(orchestrator, stub_client):
    iterator = orchestrator.run(TARGET)

    first = await iterator.__anext__()

    assert first == "# widget-api\n\n"
    assert stub_client.calls == []
    await iterator.aclose()


async def test_synthesis_runs_after_every_summary(orchestrator, stub_client):
    await generate_document(orchestrator, TARGET)

    kinds = [kind for kind, _ in stub_client.calls]
    overview_index = kinds.index("overview")
    assert kinds[:overview_index] == ["summary", "summary"]
    assert all(kind == "section" for kind in kinds[overview_index + 1 :])


async def test_synthesis_prompt_includes_listing_manifest_and_summaries(
    orchestrator, stub_client
):
    await generate_document(orchestrator, TARGET)

    kinds = [kind for kind, _ in stub_client.calls]
    prompt = stub_client.prompts[kinds.index("overview")]
    assert "- package.json\n- server.js\n- routes/users.js\n- .gitignore" in prompt
    assert '"express": "^4.17.1"' in prompt
    assert prompt.index("**server.js**: <SUMMARY:server.js>") < prompt.index(
        "**routes/users.js**: <SUMMARY:routes/users.js>"
    )


async def test_section_prompts_carry_section_context(orchestrator, stub_client):
    await generate_document(orchestrator, TARGET)

    section_prompts = {
        key: prompt
        for (kind, key), prompt in zip(stub_client.calls, stub_client.prompts)
        if kind == "section"
    }
    assert "<OVERVIEW>" in section_prompts["Installation"]
    assert "Dependencies file (package.json)" in section_prompts["Installation"]
    assert "<SUMMARY:server.js>" in section_prompts["Usage"]
    assert '"npm start"' in section_prompts["Usage"]
    assert "<SUMMARY:routes/users.js>" in section_prompts["API Reference"]
    assert "List the available endpoints" in section_prompts["API Reference"]


async def test_identical_runs_produce_identical_output(sample_provider):
    """Deterministic client and snapshot give byte-identical documents."""
    first = await generate_document(
        GenerationOrchestrator(StubLLMClient(), sample_provider), TARGET
    )
    second = await generate_document(
        GenerationOrchestrator(StubLLMClient(), sample_provider), TARGET
    )

    assert first == second


async def test_concurrent_runs_do_not_interfere(orchestrator):
    """Two runs on one orchestrator keep separate state."""
    first, second = await asyncio.gather(
        generate_document(orchestrator, "https://example.com/acme/alpha"),
        generate_document(orchestrator, "https://example.com/acme/beta"),
    )

    assert first.startswith("# alpha\n\n")
    assert second.startswith("# beta\n\n")
    assert first.count("## ") == 3
    assert second.count("## ") == 3


# =============================================================================
# Validation
# =============================================================================


@pytest.mark.parametrize("target", ["", "   ", None])
def test_blank_target_fails_before_run(orchestrator, stub_client, target):
    """Validation failures are raised eagerly, before any generator exists."""
    with pytest.raises(TargetValidationError):
        orchestrator.run(target)

    assert stub_client.calls == []


async def test_non_url_target_is_accepted(orchestrator):
    document = await generate_document(orchestrator, "widget-api")

    assert document.startswith("# widget-api\n\n")


# =============================================================================
# Title derivation
# =============================================================================


@pytest.mark.parametrize(
    ("target", "expected"),
    [
        ("https://github.com/acme/widget-api", "widget-api"),
        ("https://github.com/acme/widget-api/", "widget-api"),
        ("https://github.com/acme/widget-api.git", "widget-api"),
        ("plain-name", "plain-name"),
        ("/", DEFAULT_PROJECT_TITLE),
    ],
)
def test_derive_title(target, expected):
    assert derive_title(target) == expected


@given(st.text(min_size=1).filter(lambda s: s.strip()))
@settings(max_examples=100)
def test_derived_title_is_a_single_nonempty_segment(target):
    title = derive_title(target)

    assert title
    assert "/" not in title


# =============================================================================
# Failures
# =============================================================================


@pytest.mark.parametrize("failing_call", [1, 2, 3, 4, 5, 6])
async def test_failure_on_kth_call_aborts_run(sample_provider, failing_call):
    """Failure on call K: K-1 calls before it, nothing emitted from its stage on."""
    client = StubLLMClient(fail_on_call=failing_call)
    orchestrator = GenerationOrchestrator(client, sample_provider)
    fragments: list[str] = []

    with pytest.raises(LLMConnectionError, match=f"call {failing_call} refused"):
        async for fragment in orchestrator.run(TARGET):
            fragments.append(fragment)

    assert len(client.calls) == failing_call
    # Calls 1-2 summarize, 3 synthesizes, 4-6 write sections
    expected_fragments = 1 if failing_call <= 3 else failing_call - 2
    assert len(fragments) == expected_fragments
    assert fragments[0] == "# widget-api\n\n"


async def test_failure_propagates_unchanged(sample_provider):
    error = LLMError("LLM API error: quota exhausted")
    client = AsyncMock()
    client.generate.side_effect = error
    orchestrator = GenerationOrchestrator(client, sample_provider)

    with pytest.raises(LLMError) as exc_info:
        await generate_document(orchestrator, TARGET)

    assert exc_info.value is error


async def test_failure_keeps_already_emitted_fragments(sample_provider):
    client = StubLLMClient(fail_on_call=5)
    orchestrator = GenerationOrchestrator(client, sample_provider)
    fragments: list[str] = []

    with pytest.raises(LLMConnectionError):
        async for fragment in orchestrator.run(TARGET):
            fragments.append(fragment)

    assert "".join(fragments) == (
        "# widget-api\n\n<OVERVIEW>\n\n## Installation\n\n<SECTION:Installation>\n\n"
    )


# =============================================================================
# Degraded context
# =============================================================================


async def test_zero_eligible_files_still_synthesizes(stub_client, empty_provider):
    """No eligible files: synthesis runs with no summaries and sections degrade."""
    orchestrator = GenerationOrchestrator(stub_client, empty_provider)

    document = await generate_document(orchestrator, TARGET)

    kinds = [kind for kind, _ in stub_client.calls]
    assert kinds == ["overview", "section", "section", "section"]
    assert document.count("## ") == 3
    usage_prompt = stub_client.prompts[kinds.index("section") + 1]
    assert MISSING_SUMMARY_PLACEHOLDER in usage_prompt


async def test_missing_manifest_is_treated_as_empty(stub_client):
    provider = StaticSnapshotProvider({"index.js": "console.log('hi');\n"})
    orchestrator = GenerationOrchestrator(stub_client, provider)

    document = await generate_document(orchestrator, TARGET)

    overview_prompt = stub_client.prompts[1]
    assert "Dependencies:\n```\n\n```" in overview_prompt
    assert "<SUMMARY:index.js>" in stub_client.prompts[3]
    assert document.count("## ") == 3


async def test_custom_file_filter_changes_eligible_files(stub_client):
    provider = StaticSnapshotProvider(
        {"app/main.py": "print('hi')\n", "server.js": "require('http');\n"}
    )
    orchestrator = GenerationOrchestrator(
        stub_client, provider, file_filter=ExtensionFilter(extensions=[".py"])
    )

    await generate_document(orchestrator, TARGET)

    assert [key for kind, key in stub_client.calls if kind == "summary"] == ["app/main.py"]


# =============================================================================
# Parallel summaries
# =============================================================================


async def test_parallel_summaries_keep_enumeration_order():
    """Summaries finishing out of order are still synthesized in listing order."""
    files = {f"src/file{i}.js": f"// {i}\n" for i in range(5)}
    provider = StaticSnapshotProvider(files)
    client = StubLLMClient()
    original = client.generate

    async def slow_first(prompt, system_prompt=None):
        kind, key = client.classify(prompt)
        if kind == "summary":
            # Earlier files finish later
            await asyncio.sleep(0.01 * (5 - int(key[len("src/file")])))
        return await original(prompt, system_prompt)

    client.generate = slow_first
    orchestrator = GenerationOrchestrator(client, provider, parallel_limit=5)

    await generate_document(orchestrator, TARGET)

    overview_prompt = next(p for p in client.prompts if "Architectural Synthesizer" in p)
    positions = [overview_prompt.index(f"**src/file{i}.js**") for i in range(5)]
    assert positions == sorted(positions)


async def test_failed_summary_cancels_rest_of_batch():
    """One failing summary cancels its siblings and stops the run before synthesis."""
    files = {f"src/file{i}.js": f"// {i}\n" for i in range(4)}
    provider = StaticSnapshotProvider(files)
    client = StubLLMClient()
    original = client.generate
    finished: list[str] = []
    cancelled: list[str] = []

    async def first_fails(prompt, system_prompt=None):
        kind, key = client.classify(prompt)
        if kind != "summary":
            return await original(prompt, system_prompt)
        if key == "src/file0.js":
            client.calls.append((kind, key))
            raise LLMConnectionError("Connection failed: refused")
        try:
            await asyncio.sleep(1)
        except asyncio.CancelledError:
            cancelled.append(key)
            raise
        finished.append(key)
        return await original(prompt, system_prompt)

    client.generate = first_fails
    orchestrator = GenerationOrchestrator(client, provider, parallel_limit=4)
    fragments: list[str] = []

    with pytest.raises(LLMConnectionError):
        async for fragment in orchestrator.run(TARGET):
            fragments.append(fragment)

    assert finished == []
    assert sorted(cancelled) == ["src/file1.js", "src/file2.js", "src/file3.js"]
    assert "overview" not in [kind for kind, _ in client.calls]
    assert fragments == ["# widget-api\n\n"]


def test_batched_splits_into_chunks():
    assert list(batched(range(5), 2)) == [[0, 1], [2, 3], [4]]


# =============================================================================
# Cancellation
# =============================================================================


async def test_cancelled_token_stops_before_next_call(orchestrator, stub_client):
    token = CancellationToken()
    iterator = orchestrator.run(TARGET, cancel_token=token)

    await iterator.__anext__()
    token.cancel()

    with pytest.raises(GenerationCancelled):
        await iterator.__anext__()
    assert stub_client.calls == []


async def test_result_arriving_after_cancellation_is_discarded(sample_provider):
    token = CancellationToken()
    client = StubLLMClient()
    original = client.generate

    async def cancel_during_call(prompt, system_prompt=None):
        result = await original(prompt, system_prompt)
        token.cancel()
        return result

    client.generate = cancel_during_call
    orchestrator = GenerationOrchestrator(client, sample_provider)
    fragments: list[str] = []

    with pytest.raises(GenerationCancelled):
        async for fragment in orchestrator.run(TARGET, cancel_token=token):
            fragments.append(fragment)

    assert len(client.calls) == 1
    assert fragments == ["# widget-api\n\n"]


async def test_abandoned_run_makes_no_further_calls(orchestrator, stub_client):
    """A consumer that stops iterating leaves no pending work behind."""
    iterator = orchestrator.run(TARGET)
    await iterator.__anext__()
    await iterator.__anext__()
    calls_so_far = len(stub_client.calls)

    await iterator.aclose()

    assert calls_so_far == 3
    assert len(stub_client.calls) == calls_so_far
    with pytest.raises(StopAsyncIteration):
        await iterator.__anext__()
