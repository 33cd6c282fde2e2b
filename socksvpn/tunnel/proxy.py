"""OS-level SOCKS proxy toggling."""

import logging
import subprocess
import sys
from typing import Protocol

from ..errors import ProxyConfigError
from .commands import CommandRunner, describe_failure, run_command

logger = logging.getLogger(__name__)


class ProxySettings(Protocol):
    """Enable or disable the system SOCKS proxy; failures raise ProxyConfigError."""

    def enable(self, interface: str, host: str, port: int) -> None: ...

    def disable(self, interface: str) -> None: ...


class _CommandProxy:
    """Shared plumbing for proxy backends driven by a command-line tool."""

    def __init__(self, runner: CommandRunner = run_command, timeout: float = 30.0):
        self._runner = runner
        self.timeout = timeout

    def _run(self, args: list[str], action: str) -> None:
        try:
            result = self._runner(args, timeout=self.timeout)
        except FileNotFoundError as exc:
            raise ProxyConfigError(f"failed to {action}: {args[0]} not found") from exc
        except subprocess.TimeoutExpired as exc:
            raise ProxyConfigError(f"failed to {action}: {args[0]} timed out") from exc
        if result.returncode != 0:
            raise ProxyConfigError(f"failed to {action}: {describe_failure(result)}")


class NetworkSetupProxy(_CommandProxy):
    """macOS per-service SOCKS firewall proxy via ``networksetup``."""

    def enable(self, interface: str, host: str, port: int) -> None:
        self._run(
            ["networksetup", "-setsocksfirewallproxy", interface, host, str(port)],
            f"set SOCKS proxy on {interface}",
        )
        logger.info("SOCKS proxy on %s set to %s:%d", interface, host, port)

    def disable(self, interface: str) -> None:
        self._run(
            ["networksetup", "-setsocksfirewallproxystate", interface, "off"],
            f"disable SOCKS proxy on {interface}",
        )
        logger.info("SOCKS proxy on %s disabled", interface)


class GSettingsProxy(_CommandProxy):
    """GNOME desktop proxy via ``gsettings``.

    GNOME proxy settings are global, so the interface name is ignored.
    """

    def enable(self, interface: str, host: str, port: int) -> None:
        action = "set GNOME SOCKS proxy"
        self._run(["gsettings", "set", "org.gnome.system.proxy.socks", "host", host], action)
        self._run(["gsettings", "set", "org.gnome.system.proxy.socks", "port", str(port)], action)
        self._run(["gsettings", "set", "org.gnome.system.proxy", "mode", "manual"], action)
        logger.info("GNOME SOCKS proxy set to %s:%d", host, port)

    def disable(self, interface: str) -> None:
        self._run(["gsettings", "set", "org.gnome.system.proxy", "mode", "none"], "disable GNOME proxy")
        logger.info("GNOME proxy disabled")


def proxy_for_platform(
    runner: CommandRunner = run_command,
    timeout: float = 30.0,
    platform: str | None = None,
) -> ProxySettings:
    """Pick the proxy backend for the running OS."""
    platform = platform or sys.platform
    if platform.startswith("linux"):
        return GSettingsProxy(runner, timeout)
    return NetworkSetupProxy(runner, timeout)
