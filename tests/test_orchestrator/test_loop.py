"""Tests for the orchestration loop and the synchronous entry point."""

import asyncio
from typing import Any
from unittest.mock import MagicMock

import pytest

from wildcard_bridge.agent_client import AgentConnectionError, AgentEvent, AgentTimeout
from wildcard_bridge.llm_client import LLMInvalidResponse
from wildcard_bridge.operations import ActionResult
from wildcard_bridge.orchestrator import (
    ExecutionContext,
    Orchestrator,
    TaskState,
    describe_action,
    execute_task,
)
from wildcard_bridge.orchestrator.executor import step_executing_action
from wildcard_bridge.orchestrator.types import (
    AgentReportedError,
    InvalidRequest,
    MaxTurnsExceeded,
    ProtocolViolation,
    TaskCancelled,
)
from wildcard_bridge.telemetry import TraceContext


def _context(message: str = "Create a customer named Acme", **kwargs: Any) -> ExecutionContext:
    return ExecutionContext(
        user_id="u1",
        trace_id=TraceContext.new_trace().trace_id,
        user_message=message,
        **kwargs,
    )


class TestDescribeAction:
    """Test the relay text sent back to the agent."""

    def test_success(self) -> None:
        result = ActionResult(operation_id="op", success=True, output={"id": "cus_1"})
        assert describe_action("op", result) == (
            "Successfully executed function 'op'. Received Response: {\"id\": \"cus_1\"}"
        )

    def test_failure(self) -> None:
        result = ActionResult(operation_id="op", success=False, error="unknown function: op")
        assert describe_action("op", result) == (
            "Failed to execute function 'op'. Received Response: unknown function: op"
        )


class TestExecuteTask:
    """Test the state machine with scripted collaborators."""

    @pytest.mark.asyncio
    async def test_no_action_needed(self, make_services) -> None:
        services = make_services(needs_action=False, text="Hello! How can I help?")
        ctx = await execute_task(_context("hi"), services)

        assert ctx.state == TaskState.COMPLETED
        assert ctx.final_message == "Hello! How can I help?"
        services.agent.create_session.assert_not_awaited()
        services.classifier.generate_summary.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_single_action_then_stop(
        self, make_services, agent_events, stripe_client: MagicMock
    ) -> None:
        services = make_services(
            events=[
                agent_events["exec"]("stripe_post_customers", {"name": "Acme"}),
                agent_events["stop"](customer="cus_1"),
            ],
            summary="Created customer Acme (cus_1).",
        )
        ctx = await execute_task(_context(), services)

        assert ctx.state == TaskState.COMPLETED
        assert ctx.final_message == "Created customer Acme (cus_1)."
        assert ctx.turn_count == 2
        assert len(ctx.action_log) == 1
        assert ctx.action_log[0].startswith(
            "Successfully executed function 'stripe_post_customers'."
        )
        stripe_client.customers.create.assert_called_once_with(params={"name": "Acme"})

        services.agent.create_session.assert_awaited_once()
        first, second = services.agent.process_message.await_args_list
        assert first.args[:3] == ("u1", "sess-1", "Create a customer named Acme")
        assert second.args[2] == ctx.action_log[0]

        summary_context = services.classifier.generate_summary.await_args.args[0]
        assert summary_context.startswith("User request: Create a customer named Acme\n")
        assert "Action 1: Successfully executed function 'stripe_post_customers'." in summary_context
        assert summary_context.endswith('Final results: {"customer": "cus_1"}')

    @pytest.mark.asyncio
    async def test_failed_action_is_relayed(self, make_services, agent_events) -> None:
        services = make_services(
            events=[
                agent_events["exec"]("stripe_delete_everything", {}),
                agent_events["stop"](),
            ]
        )
        ctx = await execute_task(_context(), services)

        assert ctx.state == TaskState.COMPLETED
        assert ctx.action_log == [
            "Failed to execute function 'stripe_delete_everything'. "
            "Received Response: unknown function: stripe_delete_everything"
        ]
        assert services.agent.process_message.await_args_list[1].args[2] == ctx.action_log[0]

    @pytest.mark.asyncio
    async def test_action_log_matches_exec_count(self, make_services, agent_events) -> None:
        services = make_services(
            events=[
                agent_events["exec"]("stripe_post_customers", {"name": "A"}),
                agent_events["exec"]("stripe_get_customers_customer", {}),
                agent_events["exec"]("stripe_get_balance"),
                agent_events["stop"](),
            ]
        )
        ctx = await execute_task(_context(), services)

        assert ctx.state == TaskState.COMPLETED
        assert len(ctx.action_log) == 3
        assert ctx.action_log[1].startswith(
            "Failed to execute function 'stripe_get_customers_customer'."
        )
        assert "customer" in ctx.action_log[1]
        assert ctx.action_log[2].startswith("Successfully executed function 'stripe_get_balance'.")

    @pytest.mark.asyncio
    async def test_exec_without_name(self, make_services, agent_events) -> None:
        services = make_services(events=[agent_events["exec"](None), agent_events["stop"]()])
        ctx = await execute_task(_context(), services)

        assert ctx.state == TaskState.COMPLETED
        assert len(ctx.action_log) == 1
        assert ctx.action_log[0].startswith("Failed to execute function ''.")
        assert "missing or invalid required parameters" in ctx.action_log[0]

    @pytest.mark.asyncio
    async def test_exec_with_unknown_namespace(self, make_services, agent_events) -> None:
        services = make_services(
            events=[
                agent_events["exec"]("charge", {}, namespace="paypal"),
                agent_events["stop"](),
            ]
        )
        ctx = await execute_task(_context(), services)

        assert ctx.state == TaskState.COMPLETED
        assert "no integration named 'paypal'" in ctx.action_log[0]

    @pytest.mark.asyncio
    async def test_agent_error_event(self, make_services, agent_events) -> None:
        services = make_services(events=[agent_events["error"](message="boom")])
        ctx = await execute_task(_context(), services)

        assert ctx.state == TaskState.FAILED
        assert isinstance(ctx.error, AgentReportedError)
        assert str(ctx.error) == "Agent error: boom"
        services.classifier.generate_summary.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_event_kind(self, make_services) -> None:
        services = make_services(events=[AgentEvent(event="PAUSE", data={})])
        ctx = await execute_task(_context(), services)

        assert ctx.state == TaskState.FAILED
        assert isinstance(ctx.error, ProtocolViolation)
        assert str(ctx.error) == "unknown event type: PAUSE"

    @pytest.mark.asyncio
    async def test_max_turns(self, make_services, agent_events) -> None:
        services = make_services(
            events=[agent_events["exec"]("stripe_get_balance") for _ in range(5)],
            max_turns=3,
        )
        ctx = await execute_task(_context(), services)

        assert ctx.state == TaskState.FAILED
        assert isinstance(ctx.error, MaxTurnsExceeded)
        assert ctx.turn_count == 3
        assert len(ctx.action_log) == 3
        assert services.agent.process_message.await_count == 3

    @pytest.mark.asyncio
    async def test_empty_message(self, make_services) -> None:
        services = make_services()
        ctx = await execute_task(_context("   "), services)

        assert ctx.state == TaskState.FAILED
        assert isinstance(ctx.error, InvalidRequest)
        services.classifier.classify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, make_services) -> None:
        services = make_services()
        cancel_event = asyncio.Event()
        cancel_event.set()

        ctx = await execute_task(_context(cancel_event=cancel_event), services)

        assert ctx.state == TaskState.FAILED
        assert isinstance(ctx.error, TaskCancelled)
        services.classifier.classify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_progress_reports(self, make_services, agent_events) -> None:
        services = make_services(
            events=[
                agent_events["exec"]("stripe_get_balance"),
                agent_events["stop"](),
            ]
        )
        reports: list[dict[str, Any]] = []
        ctx = await execute_task(_context(on_progress=reports.append), services)

        assert ctx.state == TaskState.COMPLETED
        messages = [report["message"] for report in reports]
        assert messages == [
            "Analyzing message",
            "Message analyzed",
            "Creating agent session",
            "Processing with agent",
            "Executing function",
            "Function executed successfully",
            "Processing with agent",
            "Generating summary of actions taken...",
        ]
        assert reports[5]["result"] == {"object": "balance", "available": []}

    @pytest.mark.asyncio
    async def test_executing_without_pending_event(self, make_services) -> None:
        ctx = _context(state=TaskState.EXECUTING_ACTION)

        with pytest.raises(RuntimeError, match="No pending EXEC event"):
            await step_executing_action(ctx, make_services(), TraceContext.new_trace())


class TestProcessMessage:
    """Test Orchestrator.process_message results."""

    @pytest.mark.asyncio
    async def test_success(self, make_services, agent_events, credentials) -> None:
        services = make_services(
            events=[agent_events["exec"]("createCustomer", {"name": "Acme"}), agent_events["stop"]()],
            summary="Done.",
        )
        orchestrator = Orchestrator(services=services, credentials=credentials)

        result = await orchestrator.process_message("u1", "Create a customer", trace_id="t-1")

        assert result == {"success": True, "data": "Done.", "trace_id": "t-1"}

    @pytest.mark.asyncio
    async def test_agent_error(self, make_services, agent_events) -> None:
        orchestrator = Orchestrator(
            services=make_services(events=[agent_events["error"](message="quota")])
        )

        result = await orchestrator.process_message("u1", "Create a customer")

        assert result["success"] is False
        assert result["error"] == "Agent error: quota"
        assert "data" not in result

    @pytest.mark.asyncio
    async def test_agent_transport_error(self, make_services) -> None:
        orchestrator = Orchestrator(
            services=make_services(events=[AgentTimeout("Request timed out after 30s")])
        )

        result = await orchestrator.process_message("u1", "Create a customer")

        assert result["success"] is False
        assert result["error"] == "Failed to process with agent: Request timed out after 30s"

    @pytest.mark.asyncio
    async def test_session_failure(self, make_services) -> None:
        services = make_services()
        services.agent.create_session.side_effect = AgentConnectionError("refused")
        orchestrator = Orchestrator(services=services)

        result = await orchestrator.process_message("u1", "Create a customer")

        assert result["success"] is False
        assert result["error"] == "Failed to create session: refused"

    @pytest.mark.asyncio
    async def test_classifier_failure(self, make_services) -> None:
        services = make_services()
        services.classifier.classify.side_effect = LLMInvalidResponse("no decision")
        orchestrator = Orchestrator(services=services)

        result = await orchestrator.process_message("u1", "Create a customer")

        assert result["success"] is False
        assert result["error"] == "Failed to classify message: no decision"

    @pytest.mark.asyncio
    async def test_missing_credential_is_relayed(self, make_services, agent_events) -> None:
        services = make_services(
            events=[agent_events["exec"]("stripe_get_balance"), agent_events["stop"]()]
        )
        orchestrator = Orchestrator(services=services)

        result = await orchestrator.process_message("stranger", "What is my balance?")

        assert result["success"] is True
        relayed = services.agent.process_message.await_args_list[1].args[2]
        assert relayed.startswith("Failed to execute function 'stripe_get_balance'.")
        assert "no Stripe API key found for user stranger" in relayed
