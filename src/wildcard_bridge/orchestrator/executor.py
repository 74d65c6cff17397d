"""Orchestration loop: a state machine over one user request.

Each state has a step function that performs one unit of work and returns the
next state. The loop runs sequentially until COMPLETED or FAILED. Action
failures are fed back to the remote agent as the next message; transport,
decode and protocol failures end the loop.
"""

import json
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from pydantic import ValidationError

from wildcard_bridge.agent_client import (
    DEFAULT_NAMESPACE,
    ActionRequest,
    AgentClient,
    AgentEventKind,
)
from wildcard_bridge.operations import ActionResult, ArgumentShapeInvalid, OperationExecutor
from wildcard_bridge.orchestrator.classifier import ClassifierGate
from wildcard_bridge.orchestrator.prompts import build_summary_context
from wildcard_bridge.orchestrator.types import (
    TERMINAL_STATES,
    AgentReportedError,
    ExecutionContext,
    InvalidRequest,
    MaxTurnsExceeded,
    ProtocolViolation,
    TaskCancelled,
    TaskState,
)
from wildcard_bridge.telemetry import (
    AGENT_EVENT_RECEIVED,
    AGENT_PROTOCOL_VIOLATION,
    MAX_TURNS_EXCEEDED,
    ORCHESTRATOR_FATAL_ERROR,
    STATE_TRANSITION,
    TASK_CANCELLED,
    TASK_COMPLETED,
    TASK_FAILED,
    TASK_STARTED,
    UNKNOWN_STATE,
    TraceContext,
    get_logger,
)

log = get_logger(__name__)


@dataclass
class LoopServices:
    """Collaborators shared by every request.

    Attributes:
        classifier: Classifier gate and summary generator.
        agent: Remote agent client.
        operations: Executor for action requests.
        max_turns: Ceiling on agent exchanges per request.
    """

    classifier: ClassifierGate
    agent: AgentClient
    operations: OperationExecutor
    max_turns: int = 25


StepFunction = Callable[[ExecutionContext, LoopServices, TraceContext], Awaitable[TaskState]]


def _to_json(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


def describe_action(name: str, result: ActionResult) -> str:
    """Render an action outcome as the next message for the remote agent."""
    if result.success:
        return (
            f"Successfully executed function '{name}'. "
            f"Received Response: {_to_json(result.output)}"
        )
    return f"Failed to execute function '{name}'. Received Response: {result.error}"


async def execute_task(ctx: ExecutionContext, services: LoopServices) -> ExecutionContext:
    """Main execution loop: iterate states until terminal.

    Args:
        ctx: Execution context for the request.
        services: Shared collaborators.

    Returns:
        Updated execution context after state machine completion.
    """
    state = ctx.state
    trace_ctx = TraceContext(trace_id=ctx.trace_id)

    log.info(
        TASK_STARTED,
        trace_id=ctx.trace_id,
        user_id=ctx.user_id,
        message_length=len(ctx.user_message),
    )

    step_functions: dict[TaskState, StepFunction] = {
        TaskState.INIT: step_init,
        TaskState.CLASSIFYING: step_classifying,
        TaskState.AWAITING_AGENT: step_awaiting_agent,
        TaskState.EXECUTING_ACTION: step_executing_action,
        TaskState.SUMMARIZING: step_summarizing,
    }

    try:
        while state not in TERMINAL_STATES:
            if ctx.cancelled:
                log.info(TASK_CANCELLED, trace_id=ctx.trace_id, state=state.value)
                ctx.error = TaskCancelled()
                ctx.failure_message = "Request cancelled"
                state = TaskState.FAILED
                break

            log.info(STATE_TRANSITION, trace_id=ctx.trace_id, from_state=state.value)
            ctx.state = state

            step_func = step_functions.get(state)
            if not step_func:
                log.error(UNKNOWN_STATE, trace_id=ctx.trace_id, state=state.value)
                ctx.error = ValueError(f"Unknown state: {state}")
                state = TaskState.FAILED
                break

            state = await step_func(ctx, services, trace_ctx)

    except Exception as e:
        log.error(
            ORCHESTRATOR_FATAL_ERROR,
            trace_id=ctx.trace_id,
            state=ctx.state.value,
            error_type=type(e).__name__,
            exc_info=True,
        )
        ctx.error = e
        state = TaskState.FAILED

    ctx.state = state
    if state == TaskState.COMPLETED:
        log.info(
            TASK_COMPLETED,
            trace_id=ctx.trace_id,
            turns=ctx.turn_count,
            actions=len(ctx.action_log),
        )
    else:
        log.warning(
            TASK_FAILED,
            trace_id=ctx.trace_id,
            turns=ctx.turn_count,
            error_type=type(ctx.error).__name__ if ctx.error else None,
            error=str(ctx.error) if ctx.error else "Unknown error",
        )
    return ctx


async def step_init(
    ctx: ExecutionContext, services: LoopServices, trace_ctx: TraceContext
) -> TaskState:
    """Initialize: validate the request and start classification."""
    if not ctx.user_message.strip():
        ctx.failure_message = "Invalid request"
        ctx.error = InvalidRequest("message cannot be empty")
        return TaskState.FAILED
    return TaskState.CLASSIFYING


async def step_classifying(
    ctx: ExecutionContext, services: LoopServices, trace_ctx: TraceContext
) -> TaskState:
    """Ask the classifier whether the message needs the remote agent.

    A message that needs no action completes immediately with the
    classifier's text; no session is created.
    """
    ctx.failure_message = "Failed to classify message"
    ctx.progress("Analyzing message")

    classification = await services.classifier.classify(ctx.user_message, trace_ctx)
    ctx.progress("Message analyzed", needs_action=classification.needs_action)

    if not classification.needs_action:
        ctx.final_message = classification.text
        return TaskState.COMPLETED
    return TaskState.AWAITING_AGENT


async def step_awaiting_agent(
    ctx: ExecutionContext, services: LoopServices, trace_ctx: TraceContext
) -> TaskState:
    """Send the current message to the remote agent and route its event."""
    if ctx.session_id is None:
        ctx.failure_message = "Failed to create session"
        ctx.progress("Creating agent session")
        ctx.session_id = await services.agent.create_session(ctx.user_id, trace_ctx)

    if ctx.turn_count >= services.max_turns:
        log.warning(
            MAX_TURNS_EXCEEDED,
            trace_id=ctx.trace_id,
            max_turns=services.max_turns,
            actions=len(ctx.action_log),
        )
        ctx.failure_message = "Agent did not finish"
        ctx.error = MaxTurnsExceeded(services.max_turns)
        return TaskState.FAILED

    ctx.failure_message = "Failed to process with agent"
    ctx.progress("Processing with agent")
    event = await services.agent.process_message(
        ctx.user_id, ctx.session_id, ctx.current_message, trace_ctx
    )
    ctx.turn_count += 1

    log.info(
        AGENT_EVENT_RECEIVED,
        trace_id=ctx.trace_id,
        event_kind=event.event,
        namespace=event.namespace,
        turn=ctx.turn_count,
    )

    kind = event.kind
    if kind == AgentEventKind.EXEC:
        ctx.pending_event = event
        return TaskState.EXECUTING_ACTION

    if kind == AgentEventKind.STOP:
        ctx.terminal_data = event.data
        return TaskState.SUMMARIZING

    if kind == AgentEventKind.ERROR:
        ctx.error = AgentReportedError(event.data)
        ctx.failure_message = str(ctx.error)
        return TaskState.FAILED

    log.error(AGENT_PROTOCOL_VIOLATION, trace_id=ctx.trace_id, event_kind=event.event)
    ctx.error = ProtocolViolation(event.event)
    ctx.failure_message = "Unknown event"
    return TaskState.FAILED


async def step_executing_action(
    ctx: ExecutionContext, services: LoopServices, trace_ctx: TraceContext
) -> TaskState:
    """Execute the pending EXEC action and relay its outcome to the agent.

    A failed action never ends the loop: the failure text becomes the next
    message so the agent can adapt.
    """
    event = ctx.pending_event
    ctx.pending_event = None
    if event is None:
        raise RuntimeError("No pending EXEC event to execute")

    ctx.failure_message = "Failed to execute function"
    raw_name = event.data.get("name")
    name = raw_name if isinstance(raw_name, str) else ""

    try:
        action = ActionRequest.model_validate(event.data)
    except ValidationError:
        error = ArgumentShapeInvalid(name or "<missing>", ["name"] if not name else ["arguments"])
        result = ActionResult(
            operation_id=name,
            success=False,
            error=str(error),
            error_type=type(error).__name__,
        )
    else:
        ctx.progress("Executing function", function=action.name)
        result = await services.operations.execute(
            ctx.user_id,
            action.name,
            action.arguments,
            trace_ctx,
            namespace=event.namespace or DEFAULT_NAMESPACE,
        )

    description = describe_action(name, result)
    ctx.action_log.append(description)
    ctx.current_message = description

    if result.success:
        ctx.progress("Function executed successfully", function=name, result=result.output)
    else:
        ctx.progress(
            "Function execution failed",
            function=name,
            error=result.error,
            error_type=result.error_type,
        )
    return TaskState.AWAITING_AGENT


async def step_summarizing(
    ctx: ExecutionContext, services: LoopServices, trace_ctx: TraceContext
) -> TaskState:
    """Summarize the action log and the agent's final results for the user."""
    ctx.failure_message = "Failed to generate summary"
    ctx.progress("Generating summary of actions taken...")

    context = build_summary_context(
        ctx.user_message, ctx.action_log, _to_json(ctx.terminal_data or {})
    )
    ctx.final_message = await services.classifier.generate_summary(context, trace_ctx)
    return TaskState.COMPLETED
