"""
Command Line Interface for Onionlink.

Provides commands for checking bridge lines, previewing the transport
selection, replaying proxy core events and serving the REST API.

Built with Typer for automatic tab completion.
"""

from pathlib import Path
from typing import Optional, Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .bridges import parse_batch
from .core.config import Settings, get_settings
from .core.logging import setup_logging
from .errors import ConfigurationError
from .services.connectivity import ConnectivityService

console = Console()

# Create the main app
app = typer.Typer(
    name="onionlink",
    help="Onionlink - Bridge configuration and circuit tracking for Tor-over-VPN",
    add_completion=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    if value:
        console.print(f"onionlink version {__version__}")
        raise typer.Exit()


def _read_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Error: Could not read {path}: {e}[/red]")
        raise typer.Exit(1)


def _load_settings(config: Optional[str]) -> Settings:
    try:
        if config:
            return Settings.load_from_yaml(Path(config))
        return get_settings()
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


@app.callback()
def main(
    version: Annotated[bool, typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit.")] = False,
    log_level: Annotated[str, typer.Option("--log-level", "-l", help="Log level")] = "WARNING",
):
    """
    Onionlink - Bridge configuration and circuit tracking for Tor-over-VPN

    Parses obfs4, snowflake and webtunnel bridge lines, selects the
    transport to run and tracks which Tor circuits each app uses.
    """
    setup_logging(level=log_level, format="console")


@app.command()
def parse(
    bridges_file: Annotated[Path, typer.Argument(help="File with one bridge line per line")],
):
    """Parse bridge lines and show what was recognized."""
    text = _read_file(bridges_file)
    batch = parse_batch(text)

    candidates = [
        line.strip() for line in text.split("\n")
        if line.strip() and not line.strip().startswith("#")
    ]
    parsed = sum(len(config.bridges) for config in batch.values())

    if not batch:
        console.print("[red]No bridge line could be parsed[/red]")
        raise typer.Exit(1)

    table = Table(title="Parsed Bridges")
    table.add_column("Transport", style="cyan")
    table.add_column("Host")
    table.add_column("Fingerprint / Identity", style="dim")
    table.add_column("Options")

    for config in batch.values():
        for bridge in config.bridges:
            options = ", ".join(sorted(bridge.options)) or "-"
            table.add_row(
                config.transport_type.value,
                bridge.host,
                bridge.fingerprint_or_identity or "-",
                options,
            )

    console.print(table)
    console.print(f"[green]{parsed} bridge line(s) parsed[/green]")
    skipped = len(candidates) - parsed
    if skipped:
        console.print(f"[yellow]{skipped} line(s) skipped[/yellow]")


@app.command()
def select(
    bridges_file: Annotated[Path, typer.Argument(help="File with one bridge line per line")],
    torrc: Annotated[bool, typer.Option("--torrc", help="Print torrc 'Bridge' lines")] = False,
):
    """Select the transport configuration to run and print its bridge lines."""
    service = ConnectivityService()
    config = service.configure_bridges(_read_file(bridges_file))

    if config is None:
        console.print("[red]No usable bridge configuration[/red]")
        raise typer.Exit(1)

    console.print(f"[bold]Transport:[/bold] [cyan]{config.transport_type.value}[/cyan]")
    if torrc:
        for bridge in config.active_bridges():
            typer.echo(bridge.to_torrc_line())
    else:
        typer.echo(service.active_bridge_lines())


@app.command()
def replay(
    events_file: Annotated[Path, typer.Argument(help="File with one JSON event per line")],
    app_id: Annotated[Optional[int], typer.Option("--app", "-a", help="Only show this app UID")] = None,
):
    """Replay proxy core events and show the resulting circuits per app."""
    service = ConnectivityService()

    applied = 0
    for line in _read_file(events_file).split("\n"):
        if not line.strip():
            continue
        if service.handle_event(line) is not None:
            applied += 1

    console.print(f"[dim]{applied} event(s) applied[/dim]")

    apps = [app_id] if app_id is not None else service.registry.tracked_apps()
    if not apps:
        console.print("[yellow]No app connections recorded[/yellow]")

    for uid in apps:
        table = Table(title=f"App {uid}")
        table.add_column("Destination", style="cyan")
        table.add_column("Hops")
        table.add_column("Countries")

        for circuit in sorted(service.circuits_for_app(uid), key=lambda c: c.destination_domain or ""):
            table.add_row(
                circuit.destination_domain or "-",
                str(len(circuit.hops)),
                " > ".join(code or "??" for code in circuit.country_codes),
            )
        console.print(table)

        snapshot = service.country_codes_for_app(uid)
        if snapshot is not None:
            console.print(f"Latest circuit: {' > '.join(code or '??' for code in snapshot)}")

    if len(service.diagnostics):
        console.print(Panel(
            service.diagnostics.to_text(show_timestamp=False).rstrip(),
            title="Diagnostics",
            border_style="yellow",
        ))


@app.command()
def api(
    config: Annotated[Optional[str], typer.Option("--config", "-c", help="Path to configuration file")] = None,
    host: Annotated[Optional[str], typer.Option("--host", "-h", help="Host to bind to")] = None,
    port: Annotated[Optional[int], typer.Option("--port", "-p", help="Port to listen on")] = None,
):
    """Start the REST API server."""
    from .api.app import run_server

    settings = _load_settings(config)
    setup_logging(level=settings.log.level, format=settings.log.format, log_file=settings.log.file)

    try:
        service = ConnectivityService.from_settings(settings)
    except ConfigurationError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    run_server(
        service=service,
        host=host or settings.api.host,
        port=port or settings.api.port,
    )


@app.command()
def init(
    output: Annotated[str, typer.Option("--output", "-o", help="Where to write the configuration")] = "config/config.yaml",
    force: Annotated[bool, typer.Option("--force", "-f", help="Overwrite an existing file")] = False,
):
    """Write a default configuration file."""
    path = Path(output)
    if path.exists() and not force:
        console.print(f"[yellow]{path} already exists. Use --force to overwrite.[/yellow]")
        raise typer.Exit(1)

    Settings().save_to_yaml(path)
    console.print(f"[green]Configuration written to {path}[/green]")


# Entry point for the CLI
def cli():
    """Main entry point."""
    app()


if __name__ == "__main__":
    cli()
