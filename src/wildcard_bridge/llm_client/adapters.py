"""Adapters between the chat completions wire format and LLMResponse."""

from typing import Any

from wildcard_bridge.llm_client.types import LLMInvalidResponse, LLMResponse


def adapt_chat_completions_response(response_data: dict[str, Any]) -> LLMResponse:
    """Adapt an OpenAI-style chat completions response to LLMResponse.

    Args:
        response_data: Raw response from the chat completions API.

    Returns:
        Normalized LLMResponse structure.

    Raises:
        LLMInvalidResponse: If response format is invalid or unexpected.
    """
    try:
        choices = response_data.get("choices", [])
        if not choices:
            raise LLMInvalidResponse("Response has no choices")

        choice = choices[0]
        message = choice.get("message", {})
        content = message.get("content", "") or ""

        usage = response_data.get("usage") or {
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0,
        }

        return LLMResponse(
            role=message.get("role", "assistant"),
            content=content,
            finish_reason=choice.get("finish_reason"),
            usage=usage,
            raw=response_data,
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise LLMInvalidResponse(f"Invalid response format: {e}") from e


def build_chat_completions_request(
    messages: list[dict[str, Any]],
    model: str,
    max_tokens: int | None = None,
    temperature: float | None = None,
    response_format: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a chat completions request payload.

    Args:
        messages: List of message dicts with role and content.
        model: Model identifier.
        max_tokens: Maximum tokens to generate.
        temperature: Sampling temperature.
        response_format: Optional structured output constraints (OpenAI-compatible).

    Returns:
        Request payload dictionary.
    """
    payload: dict[str, Any] = {
        "model": model,
        "messages": [msg.copy() for msg in messages],
    }

    if max_tokens is not None:
        payload["max_tokens"] = max_tokens

    if temperature is not None:
        payload["temperature"] = temperature

    if response_format is not None:
        payload["response_format"] = response_format

    return payload
