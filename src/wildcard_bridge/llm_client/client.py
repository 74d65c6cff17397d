"""Chat completions client for the classifier model.

This module provides the LLMClient class for OpenAI-compatible chat completion
endpoints with error classification, optional retries, and telemetry.
"""

import asyncio
import time
from typing import Any

import httpx

from wildcard_bridge.config import settings
from wildcard_bridge.llm_client.adapters import (
    adapt_chat_completions_response,
    build_chat_completions_request,
)
from wildcard_bridge.llm_client.types import (
    LLMClientError,
    LLMConnectionError,
    LLMInvalidResponse,
    LLMRateLimit,
    LLMResponse,
    LLMServerError,
    LLMTimeout,
)
from wildcard_bridge.security import redact_secrets
from wildcard_bridge.telemetry import get_logger
from wildcard_bridge.telemetry.events import (
    MODEL_CALL_COMPLETED,
    MODEL_CALL_ERROR,
    MODEL_CALL_STARTED,
)
from wildcard_bridge.telemetry.trace import TraceContext

log = get_logger(__name__)


class LLMClient:
    """Client for an OpenAI-compatible chat completions API.

    Attributes:
        base_url: Base URL for the API (e.g., "https://api.openai.com/v1").
        model: Model identifier sent with every request.
        timeout_seconds: Deadline for a single request.
        max_retries: Retry attempts for timeouts, 429 and 5xx responses.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout_seconds: float | None = None,
        max_retries: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the LLMClient.

        Args:
            base_url: Base URL for the API. If None, uses settings.llm_base_url.
            api_key: Bearer token. If None, uses settings.llm_api_key.
            model: Model ID. If None, uses settings.llm_model.
            timeout_seconds: Request deadline. If None, uses settings.llm_timeout_seconds.
            max_retries: Retry attempts. If None, uses settings.llm_max_retries.
            transport: Optional httpx transport (used by tests).
        """
        self.base_url = (base_url or settings.llm_base_url).rstrip("/")
        if api_key is None and settings.llm_api_key is not None:
            api_key = settings.llm_api_key.get_secret_value()
        self._api_key = api_key
        self.model = model or settings.llm_model
        self.timeout_seconds = timeout_seconds or settings.llm_timeout_seconds
        self.max_retries = settings.llm_max_retries if max_retries is None else max_retries
        self._transport = transport

    @property
    def endpoint(self) -> str:
        """Chat completions endpoint derived from the base URL."""
        if self.base_url.endswith("/v1"):
            return f"{self.base_url}/chat/completions"
        return f"{self.base_url}/v1/chat/completions"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def respond(
        self,
        messages: list[dict[str, Any]],
        system_prompt: str | None = None,
        response_format: dict[str, Any] | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        trace_ctx: TraceContext | None = None,
    ) -> LLMResponse:
        """Make a single chat completions call.

        Args:
            messages: List of message dicts with role and content.
            system_prompt: Optional system prompt (prepended to messages).
            response_format: Optional structured output constraints.
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature. If None, uses settings.llm_temperature.
            trace_ctx: Trace context for telemetry correlation.

        Returns:
            LLMResponse with normalized structure.

        Raises:
            LLMTimeout: If request times out.
            LLMConnectionError: If connection fails.
            LLMRateLimit: If the server keeps answering 429.
            LLMServerError: If server returns a 5xx error.
            LLMInvalidResponse: If response format is invalid.
            LLMClientError: For any other HTTP error.
        """
        request_messages = list(messages)
        if system_prompt:
            request_messages.insert(0, {"role": "system", "content": system_prompt})

        if temperature is None:
            temperature = settings.llm_temperature

        payload = build_chat_completions_request(
            messages=request_messages,
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            response_format=response_format,
        )

        if trace_ctx is None:
            trace_ctx = TraceContext.new_trace()

        start_time = time.time()
        _, span_id = trace_ctx.new_span()
        log.info(
            MODEL_CALL_STARTED,
            model_id=self.model,
            endpoint=self.endpoint,
            structured=response_format is not None,
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )

        timeout_config = httpx.Timeout(
            connect=10.0,
            read=self.timeout_seconds,
            write=10.0,
            pool=10.0,
        )

        last_error: LLMClientError | None = None
        attempt = 0
        while attempt <= self.max_retries:
            try:
                async with httpx.AsyncClient(
                    timeout=timeout_config, transport=self._transport
                ) as client:
                    response = await client.post(
                        self.endpoint, json=payload, headers=self._headers()
                    )
                    response.raise_for_status()
                    response_data = response.json()

                if isinstance(response_data, dict) and response_data.get("error"):
                    error_obj = response_data["error"]
                    error_msg = (
                        error_obj.get("message", str(error_obj))
                        if isinstance(error_obj, dict)
                        else str(error_obj)
                    )
                    raise LLMClientError(f"API returned error: {error_msg}")

                if not isinstance(response_data, dict):
                    raise LLMInvalidResponse("Response body is not a JSON object")

                llm_response = adapt_chat_completions_response(response_data)

                log.info(
                    MODEL_CALL_COMPLETED,
                    model_id=self.model,
                    latency_ms=int((time.time() - start_time) * 1000),
                    attempts=attempt + 1,
                    prompt_tokens=llm_response["usage"].get("prompt_tokens", 0),
                    completion_tokens=llm_response["usage"].get("completion_tokens", 0),
                    trace_id=trace_ctx.trace_id,
                    span_id=span_id,
                )
                return llm_response

            except httpx.TimeoutException:
                last_error = LLMTimeout(
                    f"Request to {self.endpoint} timed out after {self.timeout_seconds}s"
                )
                if attempt < self.max_retries:
                    await self._backoff(attempt, trace_ctx)
                    attempt += 1
                    continue
                break

            except httpx.ConnectError as e:
                # Don't retry connection errors (server is likely down)
                last_error = LLMConnectionError(f"Failed to connect to {self.endpoint}: {e}")
                break

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status == 429:
                    last_error = LLMRateLimit(f"Rate limit exceeded: {e}")
                elif status >= 500:
                    last_error = LLMServerError(f"Server error {status}: {e}")
                else:
                    last_error = LLMClientError(f"HTTP error {status}: {e}")
                    break
                if attempt < self.max_retries:
                    await self._backoff(attempt, trace_ctx)
                    attempt += 1
                    continue
                break

            except httpx.RequestError as e:
                last_error = LLMConnectionError(f"Request error: {e}")
                break

            except LLMClientError as e:
                last_error = e
                break

            except ValueError as e:
                # response.json() on a non-JSON body
                last_error = LLMInvalidResponse(f"Invalid response body: {e}")
                break

        if last_error is None:
            raise RuntimeError("Model call loop ended without a result or an error")
        log.error(
            MODEL_CALL_ERROR,
            model_id=self.model,
            endpoint=self.endpoint,
            error_type=type(last_error).__name__,
            error=redact_secrets(str(last_error)),
            latency_ms=int((time.time() - start_time) * 1000),
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )
        raise last_error

    @staticmethod
    async def _backoff(attempt: int, trace_ctx: TraceContext) -> None:
        wait_time = 2**attempt
        log.warning(
            "model_call_retry",
            attempt=attempt + 1,
            wait_time=wait_time,
            trace_id=trace_ctx.trace_id,
        )
        await asyncio.sleep(wait_time)
