"""Wire types for the remote agent service.

The agent answers every exchange with one event:
``{"event": "EXEC"|"STOP"|"ERROR", "namespace": "...", "data": {...}}``.
"""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class AgentEventKind(str, Enum):
    """Event kinds the remote agent may emit."""

    EXEC = "EXEC"
    STOP = "STOP"
    ERROR = "ERROR"


DEFAULT_NAMESPACE = "stripe"


class AgentEvent(BaseModel):
    """One event received from the remote agent.

    ``event`` is kept as the raw string so that an unrecognized kind reaches
    the orchestration loop as a protocol violation instead of failing decode.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    event: str = Field(..., description="Event kind (EXEC, STOP, ERROR)")
    namespace: str | None = Field(
        None,
        validation_alias=AliasChoices("namespace", "api"),
        description="Provider the requested action belongs to (EXEC only)",
    )
    data: dict[str, Any] = Field(default_factory=dict, description="Untyped event payload")

    @field_validator("data", mode="before")
    @classmethod
    def _null_data(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def kind(self) -> AgentEventKind | None:
        """Recognized event kind, or None for a protocol violation."""
        try:
            return AgentEventKind(self.event)
        except ValueError:
            return None


class ActionRequest(BaseModel):
    """Action derived from an EXEC event payload."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, description="Operation ID to execute")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Generic arguments")

    @field_validator("arguments", mode="before")
    @classmethod
    def _null_arguments(cls, value: Any) -> Any:
        return {} if value is None else value


class SessionResponse(BaseModel):
    """Response body of session creation."""

    model_config = ConfigDict(extra="ignore")

    session_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("session_id", "sessionID", "sessionId"),
    )


# Error hierarchy


class AgentClientError(Exception):
    """Base exception for remote agent transport and decode errors."""

    pass


class AgentTimeout(AgentClientError):
    """Raised when an agent request exceeds its deadline."""

    pass


class AgentConnectionError(AgentClientError):
    """Raised when the agent service cannot be reached."""

    pass


class AgentServerError(AgentClientError):
    """Raised when the agent service answers with a non-2xx status."""

    pass


class AgentInvalidResponse(AgentClientError):
    """Raised when an agent response body cannot be decoded."""

    pass
