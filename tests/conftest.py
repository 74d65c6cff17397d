"""Shared fixtures: scripted collaborators for the orchestration loop."""

from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
import stripe

from wildcard_bridge.agent_client import AgentEvent
from wildcard_bridge.credentials import CredentialStore
from wildcard_bridge.operations import OperationExecutor, build_stripe_registry
from wildcard_bridge.orchestrator import Classification, LoopServices


def exec_event(name: str | None, arguments: Any = None, namespace: str = "stripe") -> AgentEvent:
    data: dict[str, Any] = {}
    if name is not None:
        data["name"] = name
    if arguments is not None:
        data["arguments"] = arguments
    return AgentEvent(event="EXEC", namespace=namespace, data=data)


def stop_event(**data: Any) -> AgentEvent:
    return AgentEvent(event="STOP", data=data)


def error_event(**data: Any) -> AgentEvent:
    return AgentEvent(event="ERROR", data=data)


@pytest.fixture
def agent_events() -> dict[str, Callable[..., AgentEvent]]:
    """Builders for remote agent events."""
    return {"exec": exec_event, "stop": stop_event, "error": error_event}


@pytest.fixture
def credentials() -> CredentialStore:
    store = CredentialStore()
    store.register_key("u1", "sk_test_u1")
    return store


@pytest.fixture
def stripe_client() -> MagicMock:
    """Stand-in for stripe.StripeClient."""
    client = MagicMock(name="StripeClient")
    client.customers.create.return_value = stripe.Customer.construct_from(
        {"id": "cus_1", "name": "Acme"}, "sk_test_u1"
    )
    client.balance.retrieve.return_value = stripe.Balance.construct_from(
        {"object": "balance", "available": []}, "sk_test_u1"
    )
    return client


@pytest.fixture
def make_services(
    credentials: CredentialStore, stripe_client: MagicMock
) -> Callable[..., LoopServices]:
    """Factory for loop services with a scripted classifier and agent.

    ``events`` is the ordered list of AgentEvents (or exceptions) returned by
    successive process_message calls.
    """

    def factory(
        needs_action: bool = True,
        text: str = "",
        events: list[Any] | None = None,
        summary: str = "Summary for the user",
        max_turns: int = 25,
    ) -> LoopServices:
        classifier = MagicMock(name="ClassifierGate")
        classifier.classify = AsyncMock(
            return_value=Classification(needs_action=needs_action, text=text)
        )
        classifier.generate_summary = AsyncMock(return_value=summary)

        agent = MagicMock(name="AgentClient")
        agent.create_session = AsyncMock(return_value="sess-1")
        agent.process_message = AsyncMock(side_effect=list(events or []))

        operations = OperationExecutor(
            registry=build_stripe_registry(),
            credentials=credentials,
            client_factory=lambda api_key: stripe_client,
            timeout_seconds=5,
        )
        return LoopServices(
            classifier=classifier, agent=agent, operations=operations, max_turns=max_turns
        )

    return factory
