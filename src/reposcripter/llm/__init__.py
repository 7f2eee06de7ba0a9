# src/reposcripter/llm/__init__.py
"""LLM client abstraction."""

from reposcripter.llm.client import (
    GenerationClient,
    LLMAuthenticationError,
    LLMClient,
    LLMConnectionError,
    LLMError,
    LLMRateLimitError,
    LLMResponseError,
)

__all__ = [
    "GenerationClient",
    "LLMAuthenticationError",
    "LLMClient",
    "LLMConnectionError",
    "LLMError",
    "LLMRateLimitError",
    "LLMResponseError",
]
