"""LLM client module.

This module provides the LLMClient used by the classifier gate and the
summary step, with error classification and telemetry.
"""

from wildcard_bridge.llm_client.client import LLMClient
from wildcard_bridge.llm_client.types import (
    LLMClientError,
    LLMConnectionError,
    LLMInvalidResponse,
    LLMRateLimit,
    LLMResponse,
    LLMServerError,
    LLMTimeout,
)

__all__ = [
    "LLMClient",
    "LLMClientError",
    "LLMConnectionError",
    "LLMInvalidResponse",
    "LLMRateLimit",
    "LLMResponse",
    "LLMServerError",
    "LLMTimeout",
]
