"""HTTP client for the remote tool-calling agent."""

import time
from typing import Any

import httpx
from pydantic import ValidationError

from wildcard_bridge.agent_client.types import (
    AgentClientError,
    AgentConnectionError,
    AgentEvent,
    AgentInvalidResponse,
    AgentServerError,
    AgentTimeout,
    SessionResponse,
)
from wildcard_bridge.config import settings
from wildcard_bridge.telemetry import (
    AGENT_CALL_ERROR,
    AGENT_EVENT_RECEIVED,
    AGENT_SESSION_CREATED,
    TraceContext,
    get_logger,
)

log = get_logger(__name__)


class AgentClient:
    """Client for the remote agent's session and process endpoints.

    ``POST /session/{user_id}`` opens a session; ``POST /process/{user_id}/{session_id}``
    with ``{"message": ...}`` exchanges one message for one AgentEvent. Every
    failure is fatal to the current request and is not retried.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the agent client.

        Args:
            base_url: Agent service base URL. If None, uses settings.agent_base_url.
            timeout_seconds: Deadline per request. If None, uses settings.agent_timeout_seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.base_url = (base_url or settings.agent_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.agent_timeout_seconds
        self._transport = transport

    async def _post(self, url: str, payload: dict[str, Any] | None) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(url, json=payload)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            raise AgentTimeout(f"Request to {url} timed out after {self.timeout_seconds}s") from e
        except httpx.ConnectError as e:
            raise AgentConnectionError(f"Failed to connect to {url}: {e}") from e
        except httpx.HTTPStatusError as e:
            raise AgentServerError(
                f"Agent returned {e.response.status_code}: {e.response.text[:300]}"
            ) from e
        except httpx.RequestError as e:
            raise AgentConnectionError(f"Request error: {e}") from e
        except ValueError as e:
            raise AgentInvalidResponse(f"Failed to decode agent response: {e}") from e

    async def create_session(self, user_id: str, trace_ctx: TraceContext | None = None) -> str:
        """Open a conversational session for a user.

        Args:
            user_id: Non-empty user identifier.
            trace_ctx: Trace context for telemetry correlation.

        Returns:
            Opaque session identifier.

        Raises:
            AgentClientError: On transport or decode failure.
        """
        if not user_id:
            raise ValueError("user_id cannot be empty")

        trace_id = trace_ctx.trace_id if trace_ctx else None
        url = f"{self.base_url}/session/{user_id}"
        try:
            body = await self._post(url, None)
            session_id = SessionResponse.model_validate(body).session_id
        except ValidationError as e:
            log.error(AGENT_CALL_ERROR, call="create_session", error=str(e), trace_id=trace_id)
            raise AgentInvalidResponse(f"Failed to decode session response: {e}") from e
        except AgentClientError as e:
            log.error(AGENT_CALL_ERROR, call="create_session", error=str(e), trace_id=trace_id)
            raise

        log.info(AGENT_SESSION_CREATED, user_id=user_id, session_id=session_id, trace_id=trace_id)
        return session_id

    async def process_message(
        self,
        user_id: str,
        session_id: str,
        message: str,
        trace_ctx: TraceContext | None = None,
    ) -> AgentEvent:
        """Send one message to the agent and receive one event.

        Args:
            user_id: User identifier.
            session_id: Session identifier from create_session().
            message: Natural-language input for this turn.
            trace_ctx: Trace context for telemetry correlation.

        Returns:
            The decoded AgentEvent (its kind is not validated here).

        Raises:
            AgentClientError: On transport or decode failure.
        """
        trace_id = trace_ctx.trace_id if trace_ctx else None
        url = f"{self.base_url}/process/{user_id}/{session_id}"
        start_time = time.time()
        try:
            body = await self._post(url, {"message": message})
            event = AgentEvent.model_validate(body)
        except ValidationError as e:
            log.error(AGENT_CALL_ERROR, call="process_message", error=str(e), trace_id=trace_id)
            raise AgentInvalidResponse(f"Failed to decode agent event: {e}") from e
        except AgentClientError as e:
            log.error(AGENT_CALL_ERROR, call="process_message", error=str(e), trace_id=trace_id)
            raise

        log.info(
            AGENT_EVENT_RECEIVED,
            event_kind=event.event,
            namespace=event.namespace,
            latency_ms=int((time.time() - start_time) * 1000),
            trace_id=trace_id,
        )
        return event
