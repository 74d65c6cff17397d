"""Type definitions for the LLM client module.

This module defines the core types used by the LLMClient:
- LLMResponse: Normalized response from a chat completions call
- Error classes: Hierarchy of LLM client errors
"""

from typing import Any

from typing_extensions import TypedDict


class LLMResponse(TypedDict):
    """Normalized response from a chat completions call.

    Attributes:
        role: Response role (typically "assistant").
        content: Natural language content from the model.
        finish_reason: Why generation stopped ("stop", "length", ...), if reported.
        usage: Token usage information (prompt_tokens, completion_tokens, etc.).
        raw: Raw response from the backend for debugging.
    """

    role: str
    content: str
    finish_reason: str | None
    usage: dict[str, Any]
    raw: dict[str, Any]


# Error hierarchy


class LLMClientError(Exception):
    """Base exception for all LLM client errors."""

    pass


class LLMTimeout(LLMClientError):
    """Raised when an LLM request times out."""

    pass


class LLMConnectionError(LLMClientError):
    """Raised when connection to the LLM server fails."""

    pass


class LLMRateLimit(LLMClientError):
    """Raised when the LLM server returns a rate limit error."""

    pass


class LLMServerError(LLMClientError):
    """Raised when the LLM server returns an error (5xx)."""

    pass


class LLMInvalidResponse(LLMClientError):
    """Raised when the LLM server returns an invalid or unexpected response format."""

    pass
