"""Remote agent client: session creation and per-turn message exchange."""

from wildcard_bridge.agent_client.client import AgentClient
from wildcard_bridge.agent_client.types import (
    DEFAULT_NAMESPACE,
    ActionRequest,
    AgentClientError,
    AgentConnectionError,
    AgentEvent,
    AgentEventKind,
    AgentInvalidResponse,
    AgentServerError,
    AgentTimeout,
    SessionResponse,
)

__all__ = [
    "AgentClient",
    "AgentEvent",
    "AgentEventKind",
    "ActionRequest",
    "SessionResponse",
    "DEFAULT_NAMESPACE",
    "AgentClientError",
    "AgentConnectionError",
    "AgentInvalidResponse",
    "AgentServerError",
    "AgentTimeout",
]
