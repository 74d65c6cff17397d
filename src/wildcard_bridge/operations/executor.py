"""Operation execution layer with argument conversion and telemetry.

This module provides the OperationExecutor class that resolves an action
request against the dispatch table, binds the caller's credential, converts
arguments, invokes the provider, and normalizes the result. Every failure is
folded into an ActionResult; ``execute`` never raises.
"""

import asyncio
import threading
import time
from typing import Any, Callable

from wildcard_bridge.credentials import CredentialNotFound, CredentialStore
from wildcard_bridge.operations.errors import (
    ActionError,
    CredentialResolutionFailed,
    UnknownOperation,
    UpstreamCallFailed,
)
from wildcard_bridge.operations.marshaling import marshal_arguments
from wildcard_bridge.operations.pagination import drain_pages, to_plain
from wildcard_bridge.operations.registry import OperationRegistry
from wildcard_bridge.operations.types import (
    ActionResult,
    Invoker,
    OperationDefinition,
    OperationRequest,
)
from wildcard_bridge.security import redact_secrets
from wildcard_bridge.telemetry import (
    OPERATION_CALL_COMPLETED,
    OPERATION_CALL_FAILED,
    OPERATION_CALL_STARTED,
    TraceContext,
    get_logger,
)
from wildcard_bridge.telemetry.events import ARGUMENT_FIELD_SKIPPED, ARGUMENT_UNKNOWN_FIELDS

log = get_logger(__name__)

ClientFactory = Callable[[str], Any]


class OperationExecutor:
    """Executes action requests against the transactional API."""

    def __init__(
        self,
        registry: OperationRegistry,
        credentials: CredentialStore,
        client_factory: ClientFactory,
        timeout_seconds: float = 30.0,
        credential_scope: str = "stripe_secret_key",
    ) -> None:
        """Initialize the executor.

        Args:
            registry: Frozen dispatch table.
            credentials: Store resolving a user's API key.
            client_factory: Builds a provider client bound to one API key.
            timeout_seconds: Deadline for one call, pagination included.
            credential_scope: Kind of credential the store holds; operations
                declaring another scope cannot be bound.
        """
        self.registry = registry
        self.credentials = credentials
        self.client_factory = client_factory
        self.timeout_seconds = timeout_seconds
        self.credential_scope = credential_scope

    def _resolve(self, operation_id: str, namespace: str) -> tuple[OperationDefinition, Invoker]:
        entry = self.registry.get_operation(operation_id, namespace)
        if entry is None:
            if not self.registry.has_namespace(namespace):
                raise UnknownOperation(operation_id, namespace)
            raise UnknownOperation(operation_id)
        return entry

    def _bind_client(self, definition: OperationDefinition, user_id: str) -> Any:
        if definition.credential_scope != self.credential_scope:
            raise CredentialResolutionFailed(
                f"{definition.operation_id} needs a {definition.credential_scope} credential, "
                f"only {self.credential_scope} is available"
            )
        try:
            api_key = self.credentials.get_key(user_id)
        except (CredentialNotFound, ValueError) as e:
            raise CredentialResolutionFailed(str(e)) from e
        try:
            return self.client_factory(api_key)
        except Exception as e:
            raise CredentialResolutionFailed(
                f"could not create API client for user {user_id}: {redact_secrets(str(e))}"
            ) from e

    async def _invoke(
        self, definition: OperationDefinition, invoker: Invoker, client: Any, request: OperationRequest
    ) -> Any:
        # The deadline cannot interrupt the worker thread mid-request. Each HTTP
        # request is bounded by the client's own timeout, and draining stops at
        # the next item once ``expired`` is set.
        expired = threading.Event()

        def call() -> Any:
            return to_plain(drain_pages(invoker(client, request), definition.paginated, expired))

        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, call), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            expired.set()
            raise UpstreamCallFailed(
                f"{definition.operation_id} timed out after {self.timeout_seconds}s"
            ) from e
        except Exception as e:
            raise UpstreamCallFailed(redact_secrets(str(e)) or type(e).__name__) from e

    async def execute(
        self,
        user_id: str,
        operation_id: str,
        arguments: dict[str, Any],
        trace_ctx: TraceContext,
        namespace: str = "stripe",
    ) -> ActionResult:
        """Execute one action request for a user.

        Args:
            user_id: Caller whose credential is used.
            operation_id: Symbolic operation ID from the agent.
            arguments: Generic key-value arguments.
            trace_ctx: Trace context for telemetry.
            namespace: Provider namespace of the operation.

        Returns:
            ActionResult with one object or an ordered list of objects on
            success, or the error message and ActionError type on failure.
        """
        span_ctx, span_id = trace_ctx.new_span()
        log.info(
            OPERATION_CALL_STARTED,
            operation_id=operation_id,
            namespace=namespace,
            user_id=user_id,
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )
        start_time = time.time()

        try:
            definition, invoker = self._resolve(operation_id, namespace)
            client = self._bind_client(definition, user_id)
            request = marshal_arguments(definition, arguments)

            if request.skipped:
                log.warning(
                    ARGUMENT_FIELD_SKIPPED,
                    operation_id=operation_id,
                    fields=request.skipped,
                    trace_id=trace_ctx.trace_id,
                    span_id=span_id,
                )
            if request.unknown:
                log.warning(
                    ARGUMENT_UNKNOWN_FIELDS,
                    operation_id=operation_id,
                    fields=request.unknown,
                    trace_id=trace_ctx.trace_id,
                    span_id=span_id,
                )

            output = await self._invoke(definition, invoker, client, request)

        except ActionError as e:
            latency_ms = (time.time() - start_time) * 1000
            log.warning(
                OPERATION_CALL_FAILED,
                operation_id=operation_id,
                error=str(e),
                error_type=type(e).__name__,
                latency_ms=latency_ms,
                trace_id=trace_ctx.trace_id,
                span_id=span_id,
            )
            return ActionResult(
                operation_id=operation_id,
                success=False,
                error=str(e),
                error_type=type(e).__name__,
                latency_ms=latency_ms,
            )

        latency_ms = (time.time() - start_time) * 1000
        log.info(
            OPERATION_CALL_COMPLETED,
            operation_id=operation_id,
            success=True,
            items=len(output) if isinstance(output, list) else None,
            latency_ms=latency_ms,
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )
        return ActionResult(
            operation_id=operation_id,
            success=True,
            output=output,
            latency_ms=latency_ms,
        )
