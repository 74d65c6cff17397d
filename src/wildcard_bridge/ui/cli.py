"""Command-line interface for Wildcard Bridge."""

import asyncio
import json
from typing import Any

import httpx
import typer
from rich.console import Console
from rich.markdown import Markdown

from wildcard_bridge.config import settings
from wildcard_bridge.ui.service_client import ServiceClient

console = Console()
app = typer.Typer(help="Wildcard Bridge: natural-language Stripe operations via a remote agent")


def _request_error_message(error: Exception) -> str:
    """Convert client errors to user-friendly CLI output."""
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        details = error.response.text[:300]
        return f"Service request failed ({status}): {details}"
    if isinstance(error, httpx.RequestError):
        return (
            f"Cannot reach Wildcard Bridge service at {settings.service_url}. "
            "Start it with `wildcard-bridge serve` or set BRIDGE_SERVICE_URL."
        )
    return str(error)


def render_event(event: dict[str, Any]) -> None:
    """Print one progress event."""
    kind = event.get("type")
    data = event.get("data") or {}
    message = str(data.get("message", ""))

    if kind == "start":
        console.print(f"[dim]{message}[/dim]")
    elif kind == "progress":
        line = f"[cyan]•[/cyan] {message}"
        if data.get("function"):
            line += f" [dim]({data['function']})[/dim]"
        console.print(line)
        if data.get("error"):
            console.print(f"  [yellow]{data['error']}[/yellow]")
    elif kind == "complete":
        console.print(Markdown(message))
    elif kind == "error":
        console.print(f"[red]{message}[/red]")
        if data.get("error") and data["error"] != message:
            console.print(f"[red dim]{data['error']}[/red dim]")
    else:
        console.print(json.dumps(event))


async def _send_streaming(client: ServiceClient, user_id: str, message: str) -> int:
    exit_code = 1
    async for event in client.stream(user_id, message):
        render_event(event)
        if event.get("type") == "complete":
            exit_code = 0
    return exit_code


async def _send_sync(client: ServiceClient, user_id: str, message: str) -> int:
    result = await client.process(user_id, message)
    if result.get("success"):
        data = result.get("data")
        console.print(Markdown(data) if isinstance(data, str) else json.dumps(data, indent=2))
        return 0
    console.print(f"[red]{result.get('error', 'Unknown error')}[/red]")
    return 1


@app.command()
def serve(
    host: str | None = typer.Option(None, help="Bind address (defaults to BRIDGE_SERVICE_HOST)"),
    port: int | None = typer.Option(None, help="Port (defaults to PORT)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
) -> None:
    """Run the HTTP service."""
    import uvicorn

    uvicorn.run(
        "wildcard_bridge.service.app:app",
        host=host or settings.service_host,
        port=port or settings.service_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command()
def send(
    user_id: str = typer.Argument(..., help="User whose Stripe key is used"),
    message: str = typer.Argument(..., help="Message to process"),
    sync: bool = typer.Option(False, "--sync", help="Wait for the final result only"),
) -> None:
    """Send a message to the service and print progress or the final result."""
    client = ServiceClient()
    try:
        if sync:
            exit_code = asyncio.run(_send_sync(client, user_id, message))
        else:
            exit_code = asyncio.run(_send_streaming(client, user_id, message))
    except (httpx.HTTPError, ValueError) as error:
        console.print(f"[red]{_request_error_message(error)}[/red]")
        raise typer.Exit(1) from None
    raise typer.Exit(exit_code)


@app.command("register-key")
def register_key(
    user_id: str = typer.Argument(..., help="User to register the key for"),
    api_key: str = typer.Option(..., prompt=True, hide_input=True, help="Stripe secret key"),
) -> None:
    """Register a user's Stripe secret key with the service."""
    client = ServiceClient()
    try:
        result = asyncio.run(client.register_key(user_id, api_key))
    except httpx.HTTPError as error:
        console.print(f"[red]{_request_error_message(error)}[/red]")
        raise typer.Exit(1) from None
    console.print(f"[green]{result.get('message', 'Registered')}[/green]")


@app.command()
def health() -> None:
    """Check service health."""
    client = ServiceClient()
    try:
        status = asyncio.run(client.health_check())
    except httpx.HTTPError as error:
        console.print(f"[red]{_request_error_message(error)}[/red]")
        raise typer.Exit(1) from None

    color = "green" if status.get("status") == "healthy" else "yellow"
    console.print(f"[{color}]Status: {status.get('status')}[/{color}]")
    console.print(f"  operations: {status.get('operations', 0)}")
    for component, value in status.get("components", {}).items():
        console.print(f"  {component}: {value}")


if __name__ == "__main__":
    app()
