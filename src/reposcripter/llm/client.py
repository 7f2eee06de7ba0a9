"""LiteLLM-based generation client.

`LLMClient.generate` is the only place the application talks to a model.
Provider exceptions never escape it: each is translated into an LLMError
whose message can be shown to an end user as-is.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

from litellm import acompletion
from litellm.exceptions import (
    APIConnectionError,
    APIError,
    AuthenticationError,
    BadRequestError,
    InternalServerError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    ServiceUnavailableError,
    Timeout,
)

from reposcripter.constants.llm import DEFAULT_TEMPERATURE, MAX_TOKENS

if TYPE_CHECKING:
    from reposcripter.config import Config

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """A generation call failed. The message is safe to display."""

    pass


class LLMConnectionError(LLMError):
    """The provider could not be reached or did not answer in time."""

    pass


class LLMAuthenticationError(LLMError):
    """The provider rejected the credentials."""

    pass


class LLMRateLimitError(LLMError):
    """The provider is throttling requests."""

    pass


class LLMResponseError(LLMError):
    """The provider answered without usable text."""

    pass


class GenerationClient(Protocol):
    """The single seam between the pipeline and a text-generation backend."""

    async def generate(self, prompt: str, system_prompt: str | None = None) -> str: ...


# Checked in order, so subclasses come before their bases.
_ERROR_TRANSLATIONS: tuple[tuple[type[Exception], type[LLMError], str], ...] = (
    (AuthenticationError, LLMAuthenticationError, "Authentication failed"),
    (PermissionDeniedError, LLMAuthenticationError, "Permission denied"),
    (RateLimitError, LLMRateLimitError, "Rate limit exceeded"),
    (Timeout, LLMConnectionError, "Request timed out"),
    (APIConnectionError, LLMConnectionError, "Connection failed"),
    (ServiceUnavailableError, LLMConnectionError, "Service unavailable"),
    (InternalServerError, LLMConnectionError, "Provider error"),
    (NotFoundError, LLMError, "Model not found"),
    (BadRequestError, LLMError, "Request rejected"),
    (APIError, LLMError, "LLM API error"),
)

_PROVIDER_ERRORS = tuple(source for source, _, _ in _ERROR_TRANSLATIONS)

_LOGGED_HEADERS = frozenset(
    {
        "retry-after",
        "x-request-id",
        "x-ratelimit-limit-requests",
        "x-ratelimit-limit-tokens",
        "x-ratelimit-remaining-requests",
        "x-ratelimit-remaining-tokens",
        "x-ratelimit-reset-requests",
        "x-ratelimit-reset-tokens",
    }
)


def translate_error(e: Exception) -> LLMError:
    """Map a LiteLLM exception onto the LLMError hierarchy."""
    for source, target, prefix in _ERROR_TRANSLATIONS:
        if isinstance(e, source):
            return target(f"{prefix}: {e}")
    return LLMError(f"LLM API error: {e}")


def error_details(e: Exception) -> dict[str, Any] | None:
    """Collect status code, rate-limit headers and provider from a LiteLLM exception."""
    details: dict[str, Any] = {}

    status_code = getattr(e, "status_code", None)
    response = getattr(e, "response", None)
    if response is not None:
        status_code = getattr(response, "status_code", status_code)
        headers = {
            name: value
            for name, value in dict(getattr(response, "headers", None) or {}).items()
            if name.lower() in _LOGGED_HEADERS
        }
        if headers:
            details["response_headers"] = headers
    if status_code is not None:
        details["status_code"] = status_code

    if getattr(e, "llm_provider", None):
        details["llm_provider"] = e.llm_provider  # type: ignore[attr-defined]
    if hasattr(e, "message"):
        details["message"] = str(e.message)  # type: ignore[attr-defined]

    return details or None


class LLMClient:
    """Generation client for Gemini, OpenAI, Anthropic or Ollama via LiteLLM."""

    def __init__(
        self,
        provider: str,
        model: str,
        api_key: str | None = None,
        endpoint: str | None = None,
        log_path: Path | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ):
        """Initialize the client.

        Args:
            provider: gemini, openai, anthropic or ollama.
            model: Model name understood by the provider.
            api_key: API key; LiteLLM reads the provider's env var when omitted.
            endpoint: Base URL of an Ollama server.
            log_path: JSONL file receiving one record per call, if set.
            temperature: Sampling temperature for calls that pass none.
            max_tokens: Response token cap for calls that pass none.
        """
        self.provider = provider
        self.model = model
        self.api_key = api_key
        self.endpoint = endpoint
        self.log_path = log_path
        self.temperature = DEFAULT_TEMPERATURE if temperature is None else temperature
        self.max_tokens = MAX_TOKENS if max_tokens is None else max_tokens

    @classmethod
    def from_settings(cls, settings: Config) -> LLMClient:
        """Build a client for the active provider in the given settings."""
        return cls(
            provider=settings.active_provider,
            model=settings.active_model,
            api_key=settings.llm_api_key,
            endpoint=settings.llm_endpoint,
            log_path=settings.llm_log_path,
            temperature=settings.generation.temperature,
            max_tokens=settings.llm.max_tokens,
        )

    @property
    def model_string(self) -> str:
        """Model identifier in LiteLLM's provider/model form."""
        # LiteLLM treats bare model names as OpenAI
        if self.provider == "openai":
            return self.model
        return f"{self.provider}/{self.model}"

    def _build_request(
        self, prompt: str, system_prompt: str | None, temperature: float, max_tokens: int
    ) -> dict[str, Any]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        request: dict[str, Any] = {
            "model": self.model_string,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if self.api_key:
            request["api_key"] = self.api_key
        if self.endpoint and self.provider == "ollama":
            request["api_base"] = self.endpoint
        return request

    def _record(
        self,
        request: dict[str, Any],
        started: float,
        response: str | None = None,
        error: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Append one call to the query log, if one is configured."""
        if not self.log_path:
            return

        messages = request["messages"]
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "provider": self.provider,
            "model": self.model,
            "request": {
                "system_prompt": messages[0]["content"] if len(messages) > 1 else None,
                "prompt": messages[-1]["content"],
                "temperature": request["temperature"],
                "max_tokens": request["max_tokens"],
            },
            "response": response,
            "duration_ms": int((time.perf_counter() - started) * 1000),
            "error": error,
        }
        if details:
            entry["error_details"] = details

        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry) + "\n")
        except OSError as e:
            logger.warning(f"Could not write LLM query log {self.log_path}: {e}")

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Send one prompt and return the model's text.

        Args:
            prompt: User prompt.
            system_prompt: Optional system prompt.
            temperature: Overrides the client's default temperature.
            max_tokens: Overrides the client's default response cap.

        Returns:
            Generated text; empty when the model returned no content.

        Raises:
            LLMError: On any provider failure or an unusable response.
        """
        request = self._build_request(
            prompt,
            system_prompt,
            self.temperature if temperature is None else temperature,
            self.max_tokens if max_tokens is None else max_tokens,
        )

        started = time.perf_counter()
        try:
            response = await acompletion(**request)
        except _PROVIDER_ERRORS as e:
            self._record(request, started, error=str(e), details=error_details(e))
            raise translate_error(e) from e

        try:
            text = str(response.choices[0].message.content or "")
        except (AttributeError, IndexError, TypeError) as e:
            self._record(request, started, error=f"Malformed response: {e}")
            raise LLMResponseError(f"Malformed response from {self.provider}: {e}") from e

        self._record(request, started, response=text)
        return text
