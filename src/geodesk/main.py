"""Main CLI entry point for Geodesk.

Usage:
    geodesk serve --port 8000
    geodesk --config geodesk.toml show-config
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from geodesk import __version__
from geodesk.config import GeodeskConfig, load_config
from geodesk.logging import setup_logging

app = typer.Typer(
    name="geodesk",
    help="Geodesk: project lifecycle and quotation service",
    no_args_is_help=True,
)

console = Console()

SECRET_FIELDS = {
    ("auth", "api_key"),
    ("email", "api_key"),
    ("webhook", "secret"),
    ("storage", "service_key"),
}


def mask(value: str) -> str:
    """Hide all but the last four characters of a secret."""
    if not value:
        return "(unset)"
    if len(value) <= 4:
        return "****"
    return f"****{value[-4:]}"


def mask_url(url: str) -> str:
    """Hide the password component of a database URL."""
    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest:
        return url
    credentials, _, host = rest.rpartition("@")
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:****@{host}"


def config_rows(config: GeodeskConfig) -> list[tuple[str, str, str]]:
    """Flatten the configuration into (section, key, display value) rows."""
    rows: list[tuple[str, str, str]] = []
    for section_name in GeodeskConfig.model_fields:
        section = getattr(config, section_name)
        values: dict[str, Any] = section.model_dump()
        for key, value in values.items():
            if (section_name, key) in SECRET_FIELDS:
                display = mask(str(value or ""))
            elif section_name == "database" and key == "url":
                display = mask_url(str(value))
            else:
                display = str(value)
            rows.append((section_name, key, display))
    return rows


def _config(ctx: typer.Context) -> GeodeskConfig:
    config = ctx.obj
    if not isinstance(config, GeodeskConfig):
        raise RuntimeError("Configuration not loaded")
    return config


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[
        Optional[str],
        typer.Option("--host", "-h", help="Host to bind to (default from config)"),
    ] = None,
    port: Annotated[
        Optional[int],
        typer.Option("--port", "-p", help="Port to bind to (default from config)"),
    ] = None,
    reload: Annotated[
        bool,
        typer.Option("--reload", "-r", help="Enable auto-reload (development)"),
    ] = False,
) -> None:
    """Start the Geodesk API server."""
    import uvicorn

    from geodesk.web.app import create_app

    config = _config(ctx)
    host = host or config.web.host
    port = port or config.web.port

    console.print(f"[bold cyan]Starting Geodesk {__version__}[/bold cyan]")
    console.print(f"[dim]Host:[/dim] {host}")
    console.print(f"[dim]Port:[/dim] {port}")
    if not config.email.api_key:
        console.print("[yellow]Email provider not configured; sends will be skipped[/yellow]")
    if not config.webhook.secret:
        console.print("[yellow]Webhook secret not set; inbound email is not verified[/yellow]")
    console.print()

    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        reload=reload,
        log_level=config.logging.level.lower(),
    )


@app.command("show-config")
def show_config(ctx: typer.Context) -> None:
    """Print the resolved configuration with secrets masked."""
    config = _config(ctx)

    table = Table(title="Geodesk configuration")
    table.add_column("Section", style="cyan")
    table.add_column("Key")
    table.add_column("Value", style="green")
    for section, key, value in config_rows(config):
        table.add_row(section, key, value)

    console.print(table)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Annotated[
        Optional[Path],
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (TOML format)",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Load configuration and configure logging for every command."""
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=1) from e

    if verbose:
        config.logging.level = "DEBUG"
        config.logging.format = "console"
    setup_logging(config.logging)

    ctx.obj = config


if __name__ == "__main__":
    app()
