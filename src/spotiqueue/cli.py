"""Typer CLI for SpotiQueue."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="spotiqueue", help="SpotiQueue: shared Spotify queue server")
console = Console()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind host (default from settings)"),
    port: Optional[int] = typer.Option(None, help="Bind port (default from settings)"),
):
    """Start the SpotiQueue API server."""
    import uvicorn
    from spotiqueue.app import create_app
    from spotiqueue.common.config import get_settings

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port
    console.print(f"[bold green]Starting SpotiQueue on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8000", help="Server URL"),
):
    """Check SpotiQueue server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


async def _reset_cooldowns() -> int:
    from spotiqueue.app import init_database
    from spotiqueue.deps import get_db, get_registry

    await init_database()
    db = get_db()
    async with db.get_session() as session:
        count = await get_registry().reset_all_cooldowns(session)
    await db.close()
    return count


@app.command("reset-cooldowns")
def reset_cooldowns():
    """Clear the cooldown of every device."""
    count = asyncio.run(_reset_cooldowns())
    console.print(f"[bold green]Reset {count} cooldown(s)[/bold green]")


async def _config(key: Optional[str], value: Optional[str]) -> dict[str, str]:
    from spotiqueue.app import init_database
    from spotiqueue.configstore.schemas import SECRET_KEYS
    from spotiqueue.deps import get_config_service, get_db

    await init_database()
    db = get_db()
    svc = get_config_service()
    async with db.get_session() as session:
        if key is not None and value is not None:
            await svc.set_value(session, key, value)
        entries = await svc.get_all(session)
    await db.close()
    if key is not None:
        entries = {k: v for k, v in entries.items() if k == key}
    return {k: ("********" if k in SECRET_KEYS and v else v) for k, v in entries.items()}


@app.command()
def config(
    key: Optional[str] = typer.Argument(None, help="Config key to show or set"),
    value: Optional[str] = typer.Argument(None, help="New value"),
):
    """Show runtime configuration, or set a single key."""
    entries = asyncio.run(_config(key, value))
    if key is not None and not entries:
        console.print(f"[bold red]Unknown key:[/bold red] {key}")
        raise typer.Exit(1)

    table = Table("Key", "Value")
    for k, v in entries.items():
        table.add_row(k, v)
    console.print(table)


if __name__ == "__main__":
    app()
