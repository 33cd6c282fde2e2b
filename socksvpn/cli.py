"""CLI commands for the SOCKS tunnel controller."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from .app import ConsoleFrontend, ConsoleSink, Controller, wait_for_state
from .app.console import profiles_table
from .config import ConfigStore, Configuration, Timings
from .errors import ConfigurationError, ProxyConfigError, SocksVPNError
from .tunnel import ConnectionProbe, TunnelSupervisor, get_connection_status
from .utils import configure_logging, get_config_path, open_in_editor

app = typer.Typer(
    name="socksvpn",
    help="Run an autossh SOCKS tunnel and keep the system proxy in sync",
    no_args_is_help=True,
)
console = Console()

_state: dict[str, Path] = {}


@app.callback()
def main_callback(
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Configuration file (default: $SOCKSVPN_CONFIG or ~/.vpn.json)")
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log every probe decision")
    ] = False,
):
    """Control an autossh dynamic SOCKS forward."""
    configure_logging(verbose)
    _state["config_path"] = get_config_path(config)


def _store() -> ConfigStore:
    return ConfigStore(_state.get("config_path") or get_config_path())


def _load_config() -> Configuration:
    """Load the configuration or exit with its error."""
    try:
        return _store().load()
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        console.print("Run [bold]socksvpn init[/bold] to create a configuration.")
        raise typer.Exit(1)


def _wait(probe: ConnectionProbe, config: Configuration, expected: bool, message: str) -> bool:
    timings = Timings()
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(message, total=None)
        return wait_for_state(
            probe,
            lambda: config,
            expected,
            timeout=timings.settle_timeout,
            interval=timings.settle_interval,
        )


@app.command()
def run():
    """Run the interactive controller with periodic status updates."""
    controller = Controller(_store(), ConsoleSink(console))
    ConsoleFrontend(controller, console).run()


@app.command()
def status(
    ip: Annotated[
        bool,
        typer.Option("--ip", help="Look up the public IP through the tunnel")
    ] = False,
):
    """Show current tunnel status."""
    config = _load_config()
    probe = ConnectionProbe()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task("Checking connection status...", total=None)
        conn_status = asyncio.run(get_connection_status(config, probe, check_ip=ip))

    if conn_status.connected:
        console.print(f"[green]Connected[/green] via [bold]localhost:{conn_status.local_port}[/bold]")
        if conn_status.method:
            console.print(f"  Detected by: {conn_status.method.value} ({conn_status.detail})")
        console.print(f"  Proxy interface: {conn_status.interface}")
        if conn_status.public_ip:
            console.print(f"  Public IP: {conn_status.public_ip}")
        elif ip:
            console.print("  Public IP: [yellow]unavailable through the tunnel[/yellow]")
    else:
        console.print("[yellow]Disconnected[/yellow]")


@app.command()
def connect(
    name: Annotated[str, typer.Argument(help="Profile name from the configuration")],
    wait: Annotated[
        bool,
        typer.Option("--wait/--no-wait", help="Wait until the tunnel is detected")
    ] = True,
):
    """Connect to a configured server."""
    config = _load_config()
    supervisor = TunnelSupervisor(lambda: config)

    try:
        profile = supervisor.connect(name)
    except SocksVPNError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"Connecting to [bold]{profile.label}[/bold] ({profile.server})...")
    if wait and not _wait(ConnectionProbe(), config, True, "Waiting for tunnel..."):
        console.print("[yellow]Tunnel not detected yet; check again with 'socksvpn status'[/yellow]")
        return
    console.print(f"[green]Connected to {profile.name}[/green]")


@app.command()
def disconnect():
    """Disconnect the tunnel and turn the proxy off."""
    config = _load_config()
    supervisor = TunnelSupervisor(lambda: config)

    proxy_error = None
    try:
        supervisor.disconnect()
    except ProxyConfigError as e:
        proxy_error = e

    settled = _wait(ConnectionProbe(), config, False, "Waiting for autossh to exit...")
    if proxy_error is not None:
        console.print(f"[red]{proxy_error}[/red]")
        raise typer.Exit(1)
    if settled:
        console.print("[green]Disconnected[/green]")
    else:
        console.print("[yellow]Disconnected (timed out waiting for process to exit)[/yellow]")


@app.command()
def profiles():
    """List configured servers."""
    config = _load_config()

    if not config.commands:
        console.print("[yellow]No servers configured[/yellow]")
        return

    console.print(profiles_table(config))


@app.command()
def edit():
    """Open the configuration file in an editor."""
    store = _store()
    if not store.exists():
        console.print(f"[yellow]Creating {store.path}...[/yellow]")
        store.create_default()

    try:
        session = open_in_editor(store.path)
    except SocksVPNError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if not session.terminal:
        console.print(f"Opened [bold]{store.path}[/bold] with {session.editor}")
        return

    session.process.wait()
    try:
        config = store.load()
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Configuration valid ({len(config.commands)} servers)")


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing configuration")
    ] = False,
):
    """Write a template configuration with one example server."""
    store = _store()
    if store.exists() and not force:
        console.print(f"[yellow]{store.path} already exists[/yellow] (use --force to overwrite)")
        raise typer.Exit(1)

    try:
        store.create_default()
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Created [bold]{store.path}[/bold]")
    console.print("Edit it with [bold]socksvpn edit[/bold], then try [bold]socksvpn connect example[/bold]")
