"""
Arrival Notifier CLI.

Command-line interface for running and poking at the gateway.
"""

import asyncio
import json
import sys
import time

import typer
from rich.console import Console
from rich.table import Table

from arrival_gateway import __version__
from arrival_shared.config.settings import get_settings

app = typer.Typer(
    name="arrival-notifier",
    help="Client Arrival Notifier CLI",
    add_completion=False,
)
console = Console()


def _default_base_url() -> str:
    settings = get_settings()
    host = "localhost" if settings.host in ("0.0.0.0", "::") else settings.host
    return f"http://{host}:{settings.port}"


# =============================================================================
# Server Commands
# =============================================================================

@app.command()
def serve(
    host: str = typer.Option(None, help="Bind address (default: HOST setting)"),
    port: int = typer.Option(None, help="Listen port (default: PORT setting)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the gateway with uvicorn."""
    import uvicorn

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    console.print(f"[blue]Client Arrival Notifier running on {host}:{port}[/blue]")
    uvicorn.run("arrival_gateway.main:app", host=host, port=port, reload=reload)


@app.command()
def config():
    """Show effective settings and configuration problems."""
    settings = get_settings()

    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for name, value in settings.model_dump().items():
        table.add_row(name, str(value))
    console.print(table)

    problems = settings.validate_production_settings()
    if not problems:
        console.print("[green]✓ Configuration OK[/green]")
        return
    for problem in problems:
        console.print(f"[red]✗ {problem}[/red]")
    raise typer.Exit(1)


# =============================================================================
# Health Commands
# =============================================================================

@app.command()
def health(
    url: str = typer.Option(None, help="Base URL (default: derived from settings)"),
):
    """Check gateway health."""
    import httpx

    base_url = (url or _default_base_url()).rstrip("/")

    table = Table(title="Service Health")
    table.add_column("Check", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Detail", style="yellow")

    start = time.time()
    try:
        response = httpx.get(f"{base_url}/ws/health", timeout=5.0)
    except httpx.HTTPError as e:
        table.add_row("Gateway", f"✗ {type(e).__name__}", str(e))
        console.print(table)
        raise typer.Exit(1)
    elapsed = (time.time() - start) * 1000

    if response.status_code != 200:
        table.add_row("Gateway", f"✗ Status {response.status_code}", f"{elapsed:.0f}ms")
        console.print(table)
        raise typer.Exit(1)

    data = response.json()
    table.add_row("Gateway", "✓ Healthy", f"{elapsed:.0f}ms")
    table.add_row("Connections", str(data.get("total_connections", "-")), "")
    table.add_row("Recipients online", str(data.get("recipients_online", "-")), "")
    table.add_row("Observers", str(data.get("observer_connections", "-")), "")
    console.print(table)


# =============================================================================
# WebSocket Commands
# =============================================================================

@app.command()
def notify(
    recipient: str = typer.Argument(..., help="Recipient identity to notify"),
    client_name: str = typer.Argument(..., help="Name of the arriving client"),
    voice: bool = typer.Option(True, "--voice/--no-voice", help="Ask the recipient screen to read it aloud"),
    url: str = typer.Option(None, help="WebSocket URL (default: derived from settings)"),
    timeout: float = typer.Option(5.0, help="Seconds to wait for confirmation"),
):
    """Send an arrival notification as a front-desk observer."""
    import websockets

    ws_url = url or _default_base_url().replace("http://", "ws://", 1) + "/ws"

    async def _notify() -> bool:
        async with websockets.connect(ws_url, close_timeout=5) as ws:
            await ws.send(json.dumps({"type": "register-observer"}))
            snapshot = json.loads(await asyncio.wait_for(ws.recv(), timeout=timeout))
            online = snapshot.get("online", [])
            if recipient not in online:
                console.print(f"[yellow]! {recipient} is not online; the arrival will not be delivered[/yellow]")

            await ws.send(json.dumps({
                "type": "notify",
                "therapist": recipient,
                "clientName": client_name,
                "voiceEnabled": voice,
            }))

            deadline = time.monotonic() + timeout
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise asyncio.TimeoutError
                message = json.loads(await asyncio.wait_for(ws.recv(), timeout=remaining))
                if message.get("type") == "notify-confirmed" and message.get("therapist") == recipient:
                    console.print(f"[green]✓ Confirmed at {message['time']}[/green]")
                    return True

    try:
        asyncio.run(_notify())
    except asyncio.TimeoutError:
        console.print("[red]✗ Timed out waiting for confirmation[/red]")
        raise typer.Exit(1)
    except (OSError, websockets.exceptions.WebSocketException) as e:
        console.print(f"[red]✗ Connection failed: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def version():
    """Show version information."""
    table = Table(title="Arrival Notifier Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("Gateway", __version__)
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    app()
