"""README generation endpoints."""

import asyncio
import json
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from reposcripter.api.deps import get_orchestrator
from reposcripter.api.schemas import ReadmeRequest, ReadmeResponse
from reposcripter.generation.orchestrator import (
    CancellationToken,
    GenerationCancelled,
    GenerationOrchestrator,
)
from reposcripter.llm.client import LLMError
from reposcripter.repo.url_parser import TargetValidationError, validate_github_url

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/readme", tags=["readme"])

FAILURE_PREFIX = "Failed to generate documentation."
UNKNOWN_ERROR = "An unknown error occurred."


def _validated_url(request: ReadmeRequest) -> str:
    try:
        return validate_github_url(request.repo_url)
    except TargetValidationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


def _sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data)}\n\n"


@router.post("", response_model=ReadmeResponse)
async def generate_readme(
    request: ReadmeRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> ReadmeResponse:
    """Generate a README and return it once complete."""
    repo_url = _validated_url(request)
    messages: list[str] = []
    parts: list[str] = []

    try:
        async for fragment in orchestrator.run(repo_url, messages.append):
            parts.append(fragment)
    except LLMError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"{FAILURE_PREFIX} {e}",
        ) from e

    return ReadmeResponse(repo_url=repo_url, content="".join(parts), status_messages=messages)


@router.post("/stream")
async def stream_readme(
    request: ReadmeRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
):
    """Stream README generation via SSE.

    Emits `status` events before each stage, a `fragment` event for every
    piece of the document, and ends with either `complete` or `error`.
    Fragments already sent stay valid when the run fails.
    """
    repo_url = _validated_url(request)

    async def event_generator():
        """Generate SSE events while the pipeline runs."""
        queue: asyncio.Queue[tuple[str, dict]] = asyncio.Queue()
        cancel_token = CancellationToken()

        def on_status(message: str) -> None:
            queue.put_nowait(("status", {"message": message}))

        async def produce() -> None:
            parts: list[str] = []
            try:
                async for fragment in orchestrator.run(repo_url, on_status, cancel_token):
                    parts.append(fragment)
                    queue.put_nowait(("fragment", {"text": fragment}))
            except GenerationCancelled:
                return
            except LLMError as e:
                queue.put_nowait(("error", {"error": f"{FAILURE_PREFIX} {e}"}))
            except Exception:
                logger.exception(f"Unexpected failure generating README for {repo_url}")
                queue.put_nowait(("error", {"error": f"{FAILURE_PREFIX} {UNKNOWN_ERROR}"}))
            else:
                queue.put_nowait(("complete", {"document": "".join(parts)}))

        task = asyncio.create_task(produce())
        try:
            while True:
                event, data = await queue.get()
                yield _sse(event, data)
                if event in ("complete", "error"):
                    break
        finally:
            # Client went away or the run ended; stop any remaining work
            cancel_token.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )
