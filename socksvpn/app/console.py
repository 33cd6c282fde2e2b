"""Interactive console front end: a status sink plus an intent prompt."""

from concurrent.futures import Future

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from ..config import Configuration
from .controller import Controller
from .intents import ConnectRequested, DisconnectRequested, EditRequested, QuitRequested

HELP = (
    "[bold]connect[/bold] <name|number>  start a tunnel\n"
    "[bold]disconnect[/bold]             stop the tunnel\n"
    "[bold]status[/bold]                 last observed state\n"
    "[bold]profiles[/bold]               list configured servers\n"
    "[bold]edit[/bold]                   edit the configuration\n"
    "[bold]reload[/bold]                 reload the configuration\n"
    "[bold]quit[/bold]                   disconnect and exit"
)


class ConsoleSink:
    """Print connection state changes and notifications."""

    def __init__(self, console: Console):
        self.console = console
        self._last: bool | None = None

    def set_connected(self, connected: bool) -> None:
        if connected == self._last:
            return
        self._last = connected
        if connected:
            self.console.print("🌎 [green]Connected[/green]")
        else:
            self.console.print("🌐 [yellow]Disconnected[/yellow]")

    def notify(self, message: str) -> None:
        self.console.print(f"[red]{message}[/red]")


def profiles_table(config: Configuration) -> Table:
    table = Table(title="Configured Servers")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Description", style="green")
    table.add_column("Server")
    for index, profile in enumerate(config.commands, start=1):
        table.add_row(str(index), profile.name, profile.description, profile.server)
    return table


class ConsoleFrontend:
    """Forward user intents from a prompt to the controller."""

    def __init__(self, controller: Controller, console: Console):
        self.controller = controller
        self.console = console

    def on_connect_requested(self, profile_name: str) -> Future:
        return self.controller.submit(ConnectRequested(profile_name))

    def on_disconnect_requested(self) -> Future:
        return self.controller.submit(DisconnectRequested())

    def on_edit_requested(self) -> Future:
        return self.controller.submit(EditRequested())

    def on_quit_requested(self) -> Future:
        return self.controller.submit(QuitRequested())

    def _resolve(self, token: str) -> str:
        """Accept a profile name or its 1-based position in the list."""
        commands = self.controller.config.commands
        if token.isdigit() and 1 <= int(token) <= len(commands):
            return commands[int(token) - 1].name
        return token

    def _await(self, future: Future, message: str | None = None) -> bool:
        """Block the prompt until the intent is handled; errors were already notified."""
        try:
            if message is None:
                future.result()
            else:
                with self.console.status(message):
                    future.result()
        except Exception:
            # Already logged and shown through the sink
            return False
        return True

    def execute(self, line: str) -> bool:
        """Run one prompt line. Returns False when the session should end."""
        words = line.split()
        if not words:
            return True
        command, args = words[0].lower(), words[1:]

        if command == "connect":
            if not args:
                self.console.print("[red]Usage: connect <name|number>[/red]")
                return True
            name = self._resolve(args[0])
            if self._await(self.on_connect_requested(name), f"Connecting to {name}..."):
                self.console.print(f"[green]Connected to {name}[/green]")
        elif command == "disconnect":
            self._await(self.on_disconnect_requested(), "Disconnecting...")
        elif command == "status":
            connected = self.controller.connected
            if connected is None:
                self.console.print("[dim]Unknown[/dim]")
            else:
                self.console.print("[green]Connected[/green]" if connected else "[yellow]Disconnected[/yellow]")
        elif command == "profiles":
            self.console.print(profiles_table(self.controller.config))
        elif command == "edit":
            # No spinner: a terminal editor takes over the screen
            self._await(self.on_edit_requested())
        elif command == "reload":
            config = self.controller.reload_config()
            if config is not None:
                self.console.print(f"[green]Loaded {len(config.commands)} servers[/green]")
        elif command in ("quit", "exit"):
            self._await(self.on_quit_requested(), "Disconnecting...")
            return False
        else:
            self.console.print(HELP)
        return True

    def run(self) -> None:
        """Prompt until quit, EOF or Ctrl-C."""
        self.controller.start()
        self.console.print("[bold]SOCKS VPN[/bold] - type [bold]help[/bold] for commands")
        try:
            while True:
                try:
                    line = Prompt.ask("[bold cyan]socksvpn[/bold cyan]", console=self.console)
                except (EOFError, KeyboardInterrupt):
                    self.console.print()
                    self._await(self.on_quit_requested(), "Disconnecting...")
                    break
                if not self.execute(line):
                    break
        finally:
            self.controller.stop()
