"""High-level orchestrator API.

This module provides the public entry points for processing a user message,
either synchronously or as a stream of progress events. Neither raises: every
failure becomes a failed result or one terminal error event.
"""

import asyncio
from typing import AsyncGenerator

from wildcard_bridge.agent_client import AgentClient, AgentClientError
from wildcard_bridge.config import settings
from wildcard_bridge.credentials import CredentialStore
from wildcard_bridge.llm_client import LLMClient, LLMClientError
from wildcard_bridge.operations import (
    ClientFactory,
    OperationExecutor,
    build_stripe_registry,
    stripe_client_factory,
)
from wildcard_bridge.orchestrator.classifier import ClassifierGate
from wildcard_bridge.orchestrator.executor import LoopServices, execute_task
from wildcard_bridge.orchestrator.stream import ProgressChannel
from wildcard_bridge.orchestrator.types import (
    ExecutionContext,
    OrchestratorError,
    ProcessResult,
    ProgressEvent,
    ProgressKind,
    TaskState,
)
from wildcard_bridge.security import redact_secrets, sanitize_error_message
from wildcard_bridge.telemetry import (
    ORCHESTRATOR_FATAL_ERROR,
    REPLY_READY,
    REQUEST_RECEIVED,
    TraceContext,
    get_logger,
)
from wildcard_bridge.telemetry.events import STREAM_CANCELLED

log = get_logger(__name__)


def build_services(
    credentials: CredentialStore,
    client_factory: ClientFactory = stripe_client_factory,
) -> LoopServices:
    """Build the default collaborators from settings."""
    return LoopServices(
        classifier=ClassifierGate(LLMClient()),
        agent=AgentClient(),
        operations=OperationExecutor(
            registry=build_stripe_registry(),
            credentials=credentials,
            client_factory=client_factory,
            timeout_seconds=settings.stripe_timeout_seconds,
        ),
        max_turns=settings.orchestrator_max_turns,
    )


def failure_text(ctx: ExecutionContext) -> str:
    """Human-readable error text for a failed context."""
    error = ctx.error
    if error is None:
        return ctx.failure_message or "Unknown error"
    if isinstance(error, OrchestratorError):
        return str(error)
    if isinstance(error, (LLMClientError, AgentClientError)):
        return f"{ctx.failure_message}: {redact_secrets(str(error))}"
    return sanitize_error_message(error)


class Orchestrator:
    """High-level orchestrator interface."""

    def __init__(
        self,
        services: LoopServices | None = None,
        credentials: CredentialStore | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            services: Collaborators. If None, built from settings.
            credentials: Credential store. If None, a new empty store is used.
        """
        self.credentials = credentials if credentials is not None else CredentialStore()
        self.services = services if services is not None else build_services(self.credentials)

    def _new_context(
        self,
        user_id: str,
        message: str,
        trace_ctx: TraceContext,
        cancel_event: asyncio.Event | None = None,
        channel: ProgressChannel | None = None,
    ) -> ExecutionContext:
        log.info(
            REQUEST_RECEIVED,
            trace_id=trace_ctx.trace_id,
            user_id=user_id,
            streaming=channel is not None,
        )
        return ExecutionContext(
            user_id=user_id,
            trace_id=trace_ctx.trace_id,
            user_message=message,
            cancel_event=cancel_event,
            on_progress=(lambda data: channel.publish(ProgressKind.PROGRESS, data))
            if channel is not None
            else None,
        )

    async def process_message(
        self, user_id: str, message: str, trace_id: str | None = None
    ) -> ProcessResult:
        """Process a user message and return the final result.

        Args:
            user_id: Caller whose credential and agent session are used.
            message: The user's message.
            trace_id: Optional trace ID from the entry point.

        Returns:
            ProcessResult with ``data`` on success or ``error`` on failure.
        """
        trace_ctx = TraceContext(trace_id=trace_id) if trace_id else TraceContext.new_trace()
        try:
            ctx = self._new_context(user_id, message, trace_ctx)
            ctx = await execute_task(ctx, self.services)
        except Exception as e:
            log.critical(ORCHESTRATOR_FATAL_ERROR, trace_id=trace_ctx.trace_id, exc_info=True)
            return {
                "success": False,
                "error": sanitize_error_message(e),
                "trace_id": trace_ctx.trace_id,
            }

        result: ProcessResult
        if ctx.state == TaskState.COMPLETED:
            result = {"success": True, "data": ctx.final_message, "trace_id": ctx.trace_id}
        else:
            result = {"success": False, "error": failure_text(ctx), "trace_id": ctx.trace_id}

        log.info(REPLY_READY, trace_id=ctx.trace_id, success=result["success"])
        return result

    async def _produce(
        self,
        channel: ProgressChannel,
        user_id: str,
        message: str,
        trace_ctx: TraceContext,
        cancel_event: asyncio.Event,
    ) -> None:
        async with channel:
            channel.publish(ProgressKind.START, {"message": "Starting message processing"})
            try:
                ctx = self._new_context(user_id, message, trace_ctx, cancel_event, channel)
                ctx = await execute_task(ctx, self.services)
            except asyncio.CancelledError:
                channel.publish(
                    ProgressKind.ERROR,
                    {"message": "Request cancelled", "error": "Request cancelled"},
                )
                raise
            except Exception as e:
                log.critical(ORCHESTRATOR_FATAL_ERROR, trace_id=trace_ctx.trace_id, exc_info=True)
                channel.publish(
                    ProgressKind.ERROR,
                    {"message": "Request failed", "error": sanitize_error_message(e)},
                )
                return

            if ctx.state == TaskState.COMPLETED:
                data = {"message": ctx.final_message}
                if ctx.terminal_data is not None:
                    data["data"] = ctx.terminal_data
                channel.publish(ProgressKind.COMPLETE, data)
            else:
                channel.publish(
                    ProgressKind.ERROR,
                    {"message": ctx.failure_message or "Request failed", "error": failure_text(ctx)},
                )
            log.info(REPLY_READY, trace_id=ctx.trace_id, success=ctx.state == TaskState.COMPLETED)

    async def stream(
        self,
        user_id: str,
        message: str,
        cancel_event: asyncio.Event | None = None,
        trace_id: str | None = None,
    ) -> AsyncGenerator[ProgressEvent, None]:
        """Process a user message, yielding progress events as they happen.

        Exactly one START is yielded first and exactly one COMPLETE or ERROR
        last. Setting ``cancel_event`` stops the loop at its next step; closing
        the iterator early cancels the work in flight.

        Args:
            user_id: Caller whose credential and agent session are used.
            message: The user's message.
            cancel_event: Optional external cancellation signal.
            trace_id: Optional trace ID from the entry point.
        """
        trace_ctx = TraceContext(trace_id=trace_id) if trace_id else TraceContext.new_trace()
        if cancel_event is None:
            cancel_event = asyncio.Event()
        channel = ProgressChannel(trace_id=trace_ctx.trace_id)
        producer = asyncio.create_task(
            self._produce(channel, user_id, message, trace_ctx, cancel_event)
        )
        try:
            async for event in channel:
                yield event
        finally:
            if not producer.done():
                log.info(STREAM_CANCELLED, trace_id=trace_ctx.trace_id)
                cancel_event.set()
                producer.cancel()
                try:
                    await producer
                except asyncio.CancelledError:
                    pass
