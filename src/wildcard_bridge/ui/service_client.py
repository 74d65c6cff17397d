"""Thin HTTP client for the bridge service."""

import json
from typing import Any, AsyncIterator

import httpx

from wildcard_bridge.config import settings

SSE_DATA_PREFIX = "data:"


class ServiceClient:
    """HTTP client for the Wildcard Bridge service.

    Usage:
        client = ServiceClient()
        result = await client.process("u1", "Create a customer named Acme")
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout_seconds: float = 300.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize service client with base URL."""
        self.base_url = (base_url or settings.service_url).rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport)

    async def health_check(self) -> dict[str, Any]:
        """Check service health.

        Raises:
            httpx.ConnectError: If service is not running
        """
        async with self._client() as client:
            response = await client.get(f"{self.base_url}/health")
            response.raise_for_status()
            return response.json()

    async def process(self, user_id: str, message: str) -> dict[str, Any]:
        """Process a message synchronously and return the result body."""
        async with self._client() as client:
            response = await client.post(
                f"{self.base_url}/process", json={"userId": user_id, "message": message}
            )
            response.raise_for_status()
            return response.json()

    async def stream(self, user_id: str, message: str) -> AsyncIterator[dict[str, Any]]:
        """Process a message, yielding each server-sent event as a dict."""
        async with self._client() as client:
            async with client.stream(
                "POST",
                f"{self.base_url}/process-stream",
                json={"userId": user_id, "message": message},
            ) as response:
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if line.startswith(SSE_DATA_PREFIX):
                        yield json.loads(line[len(SSE_DATA_PREFIX):].strip())

    async def register_key(self, user_id: str, api_key: str) -> dict[str, Any]:
        """Register a Stripe secret key for a user."""
        async with self._client() as client:
            response = await client.post(
                f"{self.base_url}/register-stripe-key",
                json={"userId": user_id, "apiKey": api_key},
            )
            response.raise_for_status()
            return response.json()
