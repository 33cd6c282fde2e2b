import json
import os
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

import pytest

# Keep Rich from wrapping CLI output at long tmp paths.
os.environ.setdefault("COLUMNS", "200")

from socksvpn.config import ConfigStore, Configuration, ServerProfile, Timings


@dataclass
class FakeProcess:
    pid: int
    name: str
    cmdline: str
    port: int | None = None


@dataclass
class FakeSystem:
    """Stand-in for the OS tools the controller shells out to.

    Tracks a process table, TCP listeners by port and the proxy state, and
    records every command it is asked to run.
    """

    processes: list[FakeProcess] = field(default_factory=list)
    listeners: dict[int, str] = field(default_factory=dict)
    proxy: dict[str, tuple[str, int] | None] = field(default_factory=dict)
    calls: list[list[str]] = field(default_factory=list)
    spawn_returncode: int = 0
    proxy_returncode: int = 0
    missing: set[str] = field(default_factory=set)
    hang: set[str] = field(default_factory=set)
    ignores_sigterm: bool = False
    listener_user: str = "user"
    _next_pid: int = 100

    def add_process(self, name: str, cmdline: str | None = None, port: int | None = None) -> FakeProcess:
        self._next_pid += 1
        process = FakeProcess(self._next_pid, name, cmdline or name, port)
        self.processes.append(process)
        return process

    def commands(self, program: str) -> list[list[str]]:
        return [call for call in self.calls if Path(call[0]).name == program]

    def __call__(self, args, *, timeout=None, capture=True):
        args = list(args)
        self.calls.append(args)
        program = Path(args[0]).name
        if program in self.missing:
            raise FileNotFoundError(args[0])
        if program in self.hang:
            raise subprocess.TimeoutExpired(args, timeout)
        handler = getattr(self, f"_{program.replace('-', '_')}", None)
        if handler is None:
            raise FileNotFoundError(args[0])
        returncode, stdout = handler(args[1:])
        return subprocess.CompletedProcess(args, returncode, stdout, "")

    def _matching(self, pattern: str, full: bool) -> list[FakeProcess]:
        regex = re.compile(pattern)
        return [p for p in self.processes if regex.search(p.cmdline if full else p.name)]

    def _pgrep(self, args):
        full = args[0] == "-f"
        found = self._matching(args[-1], full)
        return (0 if found else 1), "".join(f"{p.pid}\n" for p in found)

    def _pkill(self, args):
        force = args[0] == "-9"
        found = self._matching(args[-1], full=False)
        if not found:
            return 1, ""
        if force or not self.ignores_sigterm:
            for process in found:
                self.processes.remove(process)
                if process.port is not None:
                    self.listeners.pop(process.port, None)
        return 0, ""

    def _lsof(self, args):
        port = int(args[1].split(":")[1])
        owner = self.listeners.get(port)
        if owner is None:
            return 1, ""
        header = "COMMAND   PID USER   FD   TYPE DEVICE SIZE/OFF NODE NAME\n"
        row = f"{owner} 4242 {self.listener_user} 3u IPv4 0x1 0t0 TCP 127.0.0.1:{port} (LISTEN)\n"
        return 0, header + row

    def _autossh(self, args):
        if self.spawn_returncode != 0:
            return self.spawn_returncode, ""
        cmdline = " ".join(["autossh", *args])
        port = int(args[args.index("-D") + 1].split(":")[1])
        self.add_process("autossh", cmdline, port)
        self.listeners[port] = "ssh"
        return 0, ""

    def _networksetup(self, args):
        if self.proxy_returncode != 0:
            return self.proxy_returncode, ""
        if args[0] == "-setsocksfirewallproxy":
            self.proxy[args[1]] = (args[2], int(args[3]))
        elif args[0] == "-setsocksfirewallproxystate":
            self.proxy[args[1]] = None
        return 0, ""

    def _gsettings(self, args):
        if self.proxy_returncode != 0:
            return self.proxy_returncode, ""
        return 0, ""


@pytest.fixture
def system() -> FakeSystem:
    return FakeSystem()


@pytest.fixture
def office_config() -> Configuration:
    return Configuration(
        autossh_path="/usr/local/bin/autossh",
        local_port=1234,
        interface="Wi-Fi",
        commands=(
            ServerProfile(name="office", description="Office", server="office.example.com"),
            ServerProfile(name="home", description="Home", server="home.example.com"),
        ),
    )


@pytest.fixture
def fast_timings() -> Timings:
    return Timings(
        status_interval=30.0,
        settle_interval=0.01,
        settle_timeout=0.2,
        watch_interval=0.02,
        watch_timeout=1.0,
        probe_timeout=1.0,
        command_timeout=1.0,
    )


@pytest.fixture
def write_config(tmp_path):
    """Write a JSON document and return a store pointing at it."""

    def _write(data, name: str = "vpn.json") -> ConfigStore:
        path = tmp_path / name
        path.write_text(data if isinstance(data, str) else json.dumps(data))
        return ConfigStore(path)

    return _write


class RecordingSink:
    def __init__(self):
        self.states: list[bool] = []
        self.messages: list[str] = []

    def set_connected(self, connected: bool) -> None:
        self.states.append(connected)

    def notify(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
