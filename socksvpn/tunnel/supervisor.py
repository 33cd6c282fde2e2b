"""Connect/disconnect transitions for the autossh tunnel."""

import logging
import subprocess
from typing import Callable

from ..config import Configuration, ServerProfile
from ..errors import ProxyConfigError, SpawnError
from .commands import CommandRunner, describe_failure, run_command
from .proxy import ProxySettings, proxy_for_platform

logger = logging.getLogger(__name__)

LOOPBACK = "127.0.0.1"

# pkill/pgrep exit status when no process matched
NO_MATCH = 1


def build_tunnel_command(config: Configuration, profile: ServerProfile) -> list[str]:
    """Argument list that starts a backgrounded dynamic SOCKS forward.

    ``-f`` backgrounds autossh, ``-M 0`` disables its monitor port and ``-N``
    runs no remote command.
    """
    options = config.server_options
    return [
        config.autossh_path,
        "-f",
        "-M", "0",
        "-o", f"ServerAliveInterval {options.server_alive_interval}",
        "-o", f"ServerAliveCountMax {options.server_alive_count_max}",
        "-D", f"localhost:{config.local_port}",
        "-N", profile.server,
    ]


class TunnelSupervisor:
    """Spawn and kill the supervised tunnel and keep the proxy in step."""

    def __init__(
        self,
        config_provider: Callable[[], Configuration],
        proxy: ProxySettings | None = None,
        runner: CommandRunner = run_command,
        timeout: float = 30.0,
    ):
        """Initialize the supervisor.

        Args:
            config_provider: Returns the current configuration snapshot
            proxy: Proxy backend; defaults to the one for this OS
            runner: Command runner used for spawn and kill
            timeout: Seconds allowed for each OS command
        """
        self._config_provider = config_provider
        self._runner = runner
        self._proxy = proxy or proxy_for_platform(runner, timeout)
        self.timeout = timeout

    def connect(self, profile_name: str) -> ServerProfile:
        """Tear down any tunnel, then start one to the named profile.

        Returns once the process is spawned and the proxy is set; the probe
        discovers actual readiness later.

        Raises:
            ConfigurationError: Unknown profile (nothing is touched)
            SpawnError: autossh failed to start (proxy untouched)
            ProxyConfigError: Proxy could not be set (tunnel stays up)
        """
        config = self._config_provider()
        profile = config.profile(profile_name)

        # Reset-then-set so a previous tunnel never lingers alongside the new one
        try:
            self._disconnect(config)
        except ProxyConfigError as e:
            logger.warning("Continuing connect after proxy reset failure: %s", e)

        self._spawn(config, profile)
        self._proxy.enable(config.interface, LOOPBACK, config.local_port)
        logger.info("Connected to %s (%s)", profile.name, profile.server)
        return profile

    def disconnect(self) -> None:
        """Disable the proxy and kill every supervisor process.

        Idempotent: nothing running is success.

        Raises:
            ProxyConfigError: Proxy could not be disabled (kill still ran)
        """
        self._disconnect(self._config_provider())

    def _disconnect(self, config: Configuration) -> None:
        proxy_error = None
        try:
            self._proxy.disable(config.interface)
        except ProxyConfigError as e:
            logger.warning("Warning: failed to disable SOCKS proxy: %s", e)
            proxy_error = e

        self._terminate(config.binary_name)

        if proxy_error is not None:
            raise proxy_error

    def _spawn(self, config: Configuration, profile: ServerProfile) -> None:
        args = build_tunnel_command(config, profile)
        logger.info("Starting tunnel to %s on localhost:%d", profile.server, config.local_port)
        try:
            result = self._runner(args, timeout=self.timeout, capture=False)
        except FileNotFoundError as exc:
            raise SpawnError(f"failed to start autossh: {config.autossh_path} not found") from exc
        except subprocess.TimeoutExpired as exc:
            raise SpawnError(f"failed to start autossh: timed out after {self.timeout:.0f}s") from exc
        if result.returncode != 0:
            raise SpawnError(f"failed to start autossh: {describe_failure(result)}")

    def _terminate(self, name: str) -> None:
        """SIGTERM every matching process, escalating to SIGKILL if any survive.

        Failures are logged only; the next probe is the source of truth.
        """
        result = self._signal(["pkill", name])
        if result is not None and result.returncode == NO_MATCH:
            logger.debug("No %s processes to stop", name)
            return
        if result is not None and result.returncode != 0:
            logger.warning("pkill returned status %d: %s", result.returncode, describe_failure(result))

        check = self._signal(["pgrep", name])
        if check is not None and check.returncode == 0:
            logger.warning("%s processes still present after pkill, issuing SIGKILL", name)
            kill = self._signal(["pkill", "-9", name])
            if kill is not None and kill.returncode not in (0, NO_MATCH):
                logger.warning("SIGKILL attempt failed: %s", describe_failure(kill))

    def _signal(self, args: list[str]) -> subprocess.CompletedProcess | None:
        try:
            return self._runner(args, timeout=self.timeout)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.warning("%s failed: %s", args[0], e)
            return None
