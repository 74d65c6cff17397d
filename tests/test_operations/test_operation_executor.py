"""Tests for OperationExecutor."""

import asyncio
import threading
import time
from typing import Any
from unittest.mock import MagicMock

import pytest
import stripe

from wildcard_bridge.credentials import CredentialStore
from wildcard_bridge.operations import (
    ActionResult,
    FieldSpec,
    OperationDefinition,
    OperationExecutor,
    OperationRegistry,
    build_stripe_registry,
)
from wildcard_bridge.telemetry import TraceContext


class FakeListObject:
    """Mimics a provider page iterator."""

    def __init__(self, items: list[dict[str, Any]], error: Exception | None = None) -> None:
        self.items = items
        self.error = error

    def auto_paging_iter(self):
        yield from self.items
        if self.error is not None:
            raise self.error


@pytest.fixture
def trace_ctx() -> TraceContext:
    """Fixture for trace context."""
    return TraceContext.new_trace()


@pytest.fixture
def credentials() -> CredentialStore:
    """Store with one registered user."""
    store = CredentialStore()
    store.register_key("u1", "sk_test_u1")
    store.register_key("u2", "sk_test_u2")
    return store


@pytest.fixture
def stripe_client() -> MagicMock:
    """Stand-in for stripe.StripeClient."""
    return MagicMock(name="StripeClient")


@pytest.fixture
def client_factory(stripe_client: MagicMock) -> MagicMock:
    """Factory returning the stand-in client."""
    return MagicMock(return_value=stripe_client)


@pytest.fixture
def executor(credentials: CredentialStore, client_factory: MagicMock) -> OperationExecutor:
    """Executor over the Stripe dispatch table."""
    return OperationExecutor(
        registry=build_stripe_registry(),
        credentials=credentials,
        client_factory=client_factory,
        timeout_seconds=5,
    )


@pytest.mark.asyncio
async def test_execute_create_customer(
    executor: OperationExecutor,
    stripe_client: MagicMock,
    client_factory: MagicMock,
    trace_ctx: TraceContext,
) -> None:
    """Test successful single-object operation."""
    stripe_client.customers.create.return_value = {"id": "cus_1", "name": "Acme"}

    result = await executor.execute(
        "u1", "createCustomer", {"name": "Acme", "metadata": {"src": "chat"}}, trace_ctx
    )

    assert isinstance(result, ActionResult)
    assert result.success is True
    assert result.output == {"id": "cus_1", "name": "Acme"}
    assert result.error is None
    assert result.latency_ms >= 0
    client_factory.assert_called_once_with("sk_test_u1")
    stripe_client.customers.create.assert_called_once_with(
        params={"name": "Acme", "metadata": {"src": "chat"}}
    )


@pytest.mark.asyncio
async def test_credential_bound_per_user(
    executor: OperationExecutor,
    stripe_client: MagicMock,
    client_factory: MagicMock,
    trace_ctx: TraceContext,
) -> None:
    """Test each call uses the caller's own key."""
    stripe_client.balance.retrieve.return_value = {"object": "balance"}

    await executor.execute("u1", "stripe_get_balance", {}, trace_ctx)
    await executor.execute("u2", "stripe_get_balance", {}, trace_ctx)

    assert [call.args[0] for call in client_factory.call_args_list] == [
        "sk_test_u1",
        "sk_test_u2",
    ]


@pytest.mark.asyncio
async def test_path_operation_passes_id(
    executor: OperationExecutor, stripe_client: MagicMock, trace_ctx: TraceContext
) -> None:
    stripe_client.products.update.return_value = {"id": "prod_1", "name": "New"}

    result = await executor.execute(
        "u1", "stripe_post_products_id", {"id": "prod_1", "name": "New"}, trace_ctx
    )

    assert result.success is True
    stripe_client.products.update.assert_called_once_with("prod_1", params={"name": "New"})


@pytest.mark.asyncio
async def test_paginated_operation_drains_pages(
    executor: OperationExecutor, stripe_client: MagicMock, trace_ctx: TraceContext
) -> None:
    stripe_client.customers.list.return_value = FakeListObject(
        [{"id": "cus_1"}, {"id": "cus_2"}]
    )

    result = await executor.execute("u1", "stripe_get_customers", {"limit": 1}, trace_ctx)

    assert result.success is True
    assert result.output == [{"id": "cus_1"}, {"id": "cus_2"}]
    stripe_client.customers.list.assert_called_once_with(params={"limit": 1})


@pytest.mark.asyncio
async def test_pagination_error_fails_call(
    executor: OperationExecutor, stripe_client: MagicMock, trace_ctx: TraceContext
) -> None:
    stripe_client.prices.list.return_value = FakeListObject(
        [{"id": "price_1"}], error=RuntimeError("rate limited on page 2")
    )

    result = await executor.execute("u1", "stripe_get_prices", {}, trace_ctx)

    assert result.success is False
    assert result.error_type == "UpstreamCallFailed"
    assert "rate limited on page 2" in result.error


@pytest.mark.asyncio
async def test_unknown_operation(
    executor: OperationExecutor, client_factory: MagicMock, trace_ctx: TraceContext
) -> None:
    result = await executor.execute("u1", "stripe_delete_everything", {}, trace_ctx)

    assert result.success is False
    assert result.error_type == "UnknownOperation"
    assert result.error == "unknown function: stripe_delete_everything"
    client_factory.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_namespace(executor: OperationExecutor, trace_ctx: TraceContext) -> None:
    result = await executor.execute(
        "u1", "stripe_get_balance", {}, trace_ctx, namespace="paypal"
    )

    assert result.success is False
    assert result.error_type == "UnknownOperation"
    assert "paypal" in result.error


@pytest.mark.asyncio
async def test_missing_credential(
    executor: OperationExecutor, client_factory: MagicMock, trace_ctx: TraceContext
) -> None:
    result = await executor.execute("stranger", "stripe_get_balance", {}, trace_ctx)

    assert result.success is False
    assert result.error_type == "CredentialResolutionFailed"
    assert "no Stripe API key found for user stranger" in result.error
    client_factory.assert_not_called()


@pytest.mark.asyncio
async def test_missing_required_argument(
    executor: OperationExecutor, stripe_client: MagicMock, trace_ctx: TraceContext
) -> None:
    result = await executor.execute("u1", "stripe_get_customers_customer", {}, trace_ctx)

    assert result.success is False
    assert result.error_type == "ArgumentShapeInvalid"
    assert "customer" in result.error
    stripe_client.customers.retrieve.assert_not_called()


@pytest.mark.asyncio
async def test_upstream_error_is_redacted(
    executor: OperationExecutor, stripe_client: MagicMock, trace_ctx: TraceContext
) -> None:
    stripe_client.customers.create.side_effect = RuntimeError(
        "Invalid API Key provided: sk_test_u1"
    )

    result = await executor.execute("u1", "stripe_post_customers", {}, trace_ctx)

    assert result.success is False
    assert result.error_type == "UpstreamCallFailed"
    assert "sk_test_u1" not in result.error
    assert "Invalid API Key provided" in result.error


@pytest.mark.asyncio
async def test_call_deadline(credentials: CredentialStore, trace_ctx: TraceContext) -> None:
    """Test a slow call fails with UpstreamCallFailed instead of hanging."""
    registry = OperationRegistry()
    registry.register(
        OperationDefinition(
            operation_id="slow_op",
            description="Sleeps",
            fields=[FieldSpec(name="seconds", type="number")],
        ),
        lambda client, request: time.sleep(request.params["seconds"]),
    )
    executor = OperationExecutor(
        registry=registry.freeze(),
        credentials=credentials,
        client_factory=lambda key: object(),
        timeout_seconds=0.05,
    )

    result = await executor.execute("u1", "slow_op", {"seconds": 0.5}, trace_ctx)

    assert result.success is False
    assert result.error_type == "UpstreamCallFailed"
    assert "timed out" in result.error


@pytest.mark.asyncio
async def test_client_factory_failure(
    credentials: CredentialStore, trace_ctx: TraceContext
) -> None:
    def broken_factory(api_key: str) -> Any:
        raise ValueError(f"bad key {api_key}")

    executor = OperationExecutor(
        registry=build_stripe_registry(),
        credentials=credentials,
        client_factory=broken_factory,
    )

    result = await executor.execute("u1", "stripe_get_balance", {}, trace_ctx)

    assert result.success is False
    assert result.error_type == "CredentialResolutionFailed"
    assert "sk_test_u1" not in result.error


@pytest.mark.asyncio
async def test_single_stripe_resource_returned_as_object(
    executor: OperationExecutor, stripe_client: MagicMock, trace_ctx: TraceContext
) -> None:
    """Test a created resource is returned as itself, never listed."""
    stripe_client.customers.create.return_value = stripe.Customer.construct_from(
        {"id": "cus_1", "name": "Acme"}, "sk_test_u1"
    )
    stripe_client.products.retrieve.return_value = stripe.Product.construct_from(
        {"id": "prod_1", "name": "Widget"}, "sk_test_u1"
    )

    created = await executor.execute("u1", "createCustomer", {"name": "Acme"}, trace_ctx)
    retrieved = await executor.execute(
        "u1", "stripe_get_products_id", {"id": "prod_1"}, trace_ctx
    )

    assert created.success is True, created.error
    assert created.output == {"id": "cus_1", "name": "Acme"}
    assert retrieved.success is True, retrieved.error
    assert retrieved.output == {"id": "prod_1", "name": "Widget"}


@pytest.mark.asyncio
async def test_stripe_list_object_drained(
    executor: OperationExecutor, stripe_client: MagicMock, trace_ctx: TraceContext
) -> None:
    stripe_client.customers.list.return_value = stripe.ListObject.construct_from(
        {
            "object": "list",
            "url": "/v1/customers",
            "has_more": False,
            "data": [{"id": "cus_1"}, {"id": "cus_2"}],
        },
        "sk_test_u1",
    )

    result = await executor.execute("u1", "stripe_get_customers", {}, trace_ctx)

    assert result.success is True, result.error
    assert result.output == [{"id": "cus_1"}, {"id": "cus_2"}]


@pytest.mark.asyncio
async def test_credential_scope_mismatch(
    credentials: CredentialStore, trace_ctx: TraceContext
) -> None:
    registry = OperationRegistry()
    registry.register(
        OperationDefinition(
            operation_id="oauth_op", description="Needs OAuth", credential_scope="oauth_token"
        ),
        lambda client, request: {"ok": True},
    )
    client_factory = MagicMock()
    executor = OperationExecutor(
        registry=registry.freeze(), credentials=credentials, client_factory=client_factory
    )

    result = await executor.execute("u1", "oauth_op", {}, trace_ctx)

    assert result.success is False
    assert result.error_type == "CredentialResolutionFailed"
    assert "oauth_token" in result.error
    client_factory.assert_not_called()


@pytest.mark.asyncio
async def test_deadline_stops_draining(
    credentials: CredentialStore, trace_ctx: TraceContext
) -> None:
    """Test the worker thread stops fetching pages once the deadline passes."""
    worker_done = threading.Event()

    class EndlessPages:
        def auto_paging_iter(self):
            try:
                while True:
                    time.sleep(0.01)
                    yield {"id": "cus_x"}
            finally:
                worker_done.set()

    registry = OperationRegistry()
    registry.register(
        OperationDefinition(operation_id="endless", description="Never ends", paginated=True),
        lambda client, request: EndlessPages(),
    )
    executor = OperationExecutor(
        registry=registry.freeze(),
        credentials=credentials,
        client_factory=lambda key: object(),
        timeout_seconds=0.05,
    )

    result = await executor.execute("u1", "endless", {}, trace_ctx)

    assert result.success is False
    assert "timed out" in result.error
    assert await asyncio.to_thread(worker_done.wait, 2.0)
