"""Core types for the orchestrator.

This module defines the data structures used throughout the orchestrator:
- TaskState: State machine states
- ExecutionContext: Mutable state container passed through execution steps
- ProgressKind / ProgressEvent: Outward streaming protocol
- ProcessResult: Final synchronous result returned to callers
- Classification: Classifier gate decision
- Terminal loop errors (protocol violation, agent error, turn ceiling, cancellation)
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, TypedDict

from wildcard_bridge.agent_client import AgentEvent


class TaskState(str, Enum):
    """State machine states for one user request."""

    INIT = "init"
    CLASSIFYING = "classifying"
    AWAITING_AGENT = "awaiting_agent"
    EXECUTING_ACTION = "executing_action"
    SUMMARIZING = "summarizing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATES = frozenset({TaskState.COMPLETED, TaskState.FAILED})


class ProgressKind(str, Enum):
    """Event kinds of the outward streaming protocol."""

    START = "start"
    PROGRESS = "progress"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ProgressKind.COMPLETE, ProgressKind.ERROR)


@dataclass(frozen=True)
class ProgressEvent:
    """One event delivered to a streaming client."""

    kind: ProgressKind
    data: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind.value, "data": self.data}


ProgressListener = Callable[[dict[str, Any]], None]
"""Receives the payload of each PROGRESS event emitted by the loop."""


@dataclass(frozen=True)
class Classification:
    """Classifier gate decision.

    Attributes:
        needs_action: Whether the message needs the remote agent.
        text: Final answer when no action is needed, diagnostics otherwise.
    """

    needs_action: bool
    text: str


@dataclass
class ExecutionContext:
    """Mutable state container for one conversation turn.

    Created at the start of a request, mutated by step functions as the loop
    advances, and discarded when the loop terminates.

    Attributes:
        user_id: Caller; selects the credential and the agent session owner.
        trace_id: Trace ID for telemetry correlation.
        user_message: The user's original message.
        current_message: Text sent to the remote agent on the next exchange.
        session_id: Remote agent session, set once created.
        action_log: Ordered textual outcome of every executed action.
        turn_count: Number of agent exchanges so far.
        pending_event: EXEC event awaiting execution.
        terminal_data: Payload of the agent's STOP event.
        final_message: User-facing text on success.
        error: Exception that ended the loop, None on success.
        failure_message: Short description of the step that failed.
        state: Current state in the state machine.
        cancel_event: Set externally to stop the loop between steps.
        on_progress: Optional listener receiving PROGRESS payloads.
    """

    user_id: str
    trace_id: str
    user_message: str
    current_message: str = ""
    session_id: str | None = None
    action_log: list[str] = field(default_factory=list)
    turn_count: int = 0
    pending_event: AgentEvent | None = None
    terminal_data: dict[str, Any] | None = None
    final_message: str | None = None
    error: Exception | None = None
    failure_message: str | None = None
    state: TaskState = TaskState.INIT
    cancel_event: asyncio.Event | None = None
    on_progress: ProgressListener | None = None

    def __post_init__(self) -> None:
        if not self.current_message:
            self.current_message = self.user_message

    def progress(self, message: str, **data: Any) -> None:
        """Report a PROGRESS payload to the listener, if any."""
        if self.on_progress is not None:
            self.on_progress({"message": message, **data})

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


class ProcessResult(TypedDict, total=False):
    """Synchronous result of processing one user message.

    Fields:
        success: Whether the loop completed.
        data: Final user-facing text (present on success).
        error: Human-readable failure (present on failure).
        trace_id: Trace ID for telemetry correlation.
    """

    success: bool
    data: Any
    error: str
    trace_id: str


# Terminal loop errors


class OrchestratorError(Exception):
    """Base class for errors that end the loop without a transport failure."""

    pass


class ProtocolViolation(OrchestratorError):
    """The remote agent emitted an unrecognized event kind."""

    def __init__(self, event: str) -> None:
        self.event = event
        super().__init__(f"unknown event type: {event}")


class AgentReportedError(OrchestratorError):
    """The remote agent ended the conversation with an ERROR event."""

    def __init__(self, data: dict[str, Any]) -> None:
        self.data = data
        detail = data.get("message") if isinstance(data.get("message"), str) else data
        super().__init__(f"Agent error: {detail}")


class MaxTurnsExceeded(OrchestratorError):
    """The remote agent did not finish within the configured turn ceiling."""

    def __init__(self, max_turns: int) -> None:
        self.max_turns = max_turns
        super().__init__(f"max turns exceeded ({max_turns})")


class InvalidRequest(OrchestratorError):
    """The inbound request cannot be processed."""

    pass


class TaskCancelled(OrchestratorError):
    """The caller cancelled the request."""

    def __init__(self) -> None:
        super().__init__("Request cancelled")
