"""FastAPI service application."""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import StreamingResponse

from wildcard_bridge.config.settings import get_settings
from wildcard_bridge.credentials import CredentialStore
from wildcard_bridge.orchestrator import Orchestrator
from wildcard_bridge.service.models import (
    MessageRequest,
    ProcessResponse,
    StreamUpdate,
    StripeRegistrationRequest,
)
from wildcard_bridge.telemetry import get_logger

log = get_logger(__name__)
settings = get_settings()

DISCONNECT_POLL_SECONDS = 0.5

# Global instances (initialized in lifespan unless set beforehand)
credential_store: CredentialStore | None = None
orchestrator: Orchestrator | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management."""
    global credential_store, orchestrator

    log.info("service_starting")

    if orchestrator is None:
        credential_store = credential_store or CredentialStore()
        orchestrator = Orchestrator(credentials=credential_store)
    else:
        credential_store = orchestrator.credentials

    log.info(
        "service_ready",
        port=settings.service_port,
        operations=len(orchestrator.services.operations.registry),
    )

    yield

    log.info("service_stopped")


app = FastAPI(
    title="Wildcard Bridge",
    description="Bridges natural-language requests to Stripe through a remote tool-calling agent",
    version=settings.version,
    lifespan=lifespan,
)


def _get_orchestrator() -> Orchestrator:
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return orchestrator


def _get_credential_store() -> CredentialStore:
    if credential_store is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return credential_store


# ============================================================================
# Health Check
# ============================================================================

HealthResponse = dict[str, Any]


@app.get("/health")
async def health_check() -> HealthResponse:
    """Service health check endpoint."""
    return {
        "status": "healthy" if orchestrator is not None else "starting",
        "operations": len(orchestrator.services.operations.registry) if orchestrator else 0,
        "components": {
            "agent": settings.agent_base_url,
            "classifier_model": settings.llm_model,
        },
    }


# ============================================================================
# Message Processing
# ============================================================================


@app.post("/process", response_model=ProcessResponse)
async def process_message(body: MessageRequest) -> ProcessResponse:
    """Process a user message and return the final result."""
    result = await _get_orchestrator().process_message(body.user_id, body.message)
    return ProcessResponse(**result)


async def _watch_disconnect(request: Request, cancel_event: asyncio.Event) -> None:
    """Set the cancellation signal once the client goes away."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            log.info("client_disconnected")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


@app.post("/process-stream")
async def process_message_stream(body: MessageRequest, request: Request) -> StreamingResponse:
    """Process a user message, streaming progress as server-sent events."""
    orch = _get_orchestrator()

    async def event_stream() -> AsyncIterator[str]:
        cancel_event = asyncio.Event()
        watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
        events = orch.stream(body.user_id, body.message, cancel_event=cancel_event)
        try:
            async for event in events:
                yield StreamUpdate(type=event.kind.value, data=event.data).to_sse()
        finally:
            watcher.cancel()
            await events.aclose()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


# ============================================================================
# Credentials
# ============================================================================


@app.post("/register-stripe-key")
async def register_stripe_key(body: StripeRegistrationRequest) -> dict[str, Any]:
    """Register a user's Stripe secret key."""
    store = _get_credential_store()
    try:
        store.register_key(body.user_id, body.api_key)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {"success": True, "message": "Stripe API key registered successfully"}
