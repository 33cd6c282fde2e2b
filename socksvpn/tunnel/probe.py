"""Connection state detection from the OS process and socket tables."""

import logging
import subprocess
from dataclasses import dataclass
from enum import Enum

from ..config import Configuration
from .commands import CommandRunner, run_command

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Observed tunnel state; always re-derived, never cached."""

    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"


class ProbeMethod(Enum):
    """Which detection layer produced a positive result."""

    FORWARD_PROCESS = "forward_process"
    PROCESS_NAME = "process_name"
    SOCKET_LISTENER = "socket_listener"


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one probe, with the reasoning kept for diagnostics."""

    connected: bool
    method: ProbeMethod | None = None
    detail: str = ""

    @property
    def state(self) -> ConnectionState:
        return ConnectionState.CONNECTED if self.connected else ConnectionState.DISCONNECTED


class ConnectionProbe:
    """Side-effect-free check of whether the tunnel is up.

    There is no authoritative signal from autossh, so detection is layered:
    a supervisor process with a loopback dynamic forward, then any supervisor
    process, then an ssh-owned listener on the configured port.
    """

    def __init__(self, runner: CommandRunner = run_command, timeout: float = 5.0):
        self._runner = runner
        self.timeout = timeout

    def is_connected(self, config: Configuration) -> bool:
        return self.detect(config).connected

    def detect(self, config: Configuration) -> ProbeResult:
        """Probe process and socket state.

        Args:
            config: Snapshot supplying the binary name and local port

        Returns:
            ProbeResult naming the layer that matched, if any
        """
        name = config.binary_name

        # Method 1: supervisor carrying -D with a loopback bind
        result = self._query(["pgrep", "-f", f"{name}.*-D.*localhost"])
        if result is not None and result.stdout.strip():
            logger.debug("VPN connected: %s process detected (with -D)", name)
            return ProbeResult(True, ProbeMethod.FORWARD_PROCESS, f"pid {result.stdout.split()[0]}")

        # Method 2: any instance of the supervisor binary
        result = self._query(["pgrep", name])
        if result is not None:
            logger.debug("VPN connected: %s process detected (fallback)", name)
            return ProbeResult(True, ProbeMethod.PROCESS_NAME, f"any {name} process")

        # Method 3: TCP listener on the local port owned by ssh/autossh
        port = config.local_port
        result = self._query(["lsof", "-nP", f"-iTCP:{port}", "-sTCP:LISTEN"])
        if result is not None and result.stdout.strip():
            lines = result.stdout.strip().splitlines()
            for line in lines[1:]:
                # COMMAND is the first column; USER and NAME may contain "ssh" too
                fields = line.split(None, 1)
                if fields and "ssh" in fields[0].lower():
                    logger.debug("VPN connected: lsof shows SSH listener: %s", line.strip())
                    return ProbeResult(True, ProbeMethod.SOCKET_LISTENER, line.strip())
            logger.info("lsof reports listener on port %d but not SSH: %r", port, result.stdout.strip())
            return ProbeResult(False, detail=f"port {port} held by a non-ssh process")

        logger.debug("VPN disconnected: no %s process or SSH listener on port %d", name, port)
        return ProbeResult(False, detail="no matching process or listener")

    def _query(self, args: list[str]) -> subprocess.CompletedProcess | None:
        """Run one probe command; any failure counts as no match."""
        try:
            result = self._runner(args, timeout=self.timeout)
        except FileNotFoundError:
            logger.warning("Probe command %s not found", args[0])
            return None
        except subprocess.TimeoutExpired:
            logger.warning("Probe command %s timed out after %.1fs", args[0], self.timeout)
            return None
        if result.returncode != 0:
            logger.debug("%s exited with status %d", args[0], result.returncode)
            return None
        return result
