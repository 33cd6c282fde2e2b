"""Tunnel process control, state detection and proxy toggling."""

from .probe import ConnectionProbe, ConnectionState, ProbeMethod, ProbeResult
from .proxy import GSettingsProxy, NetworkSetupProxy, ProxySettings, proxy_for_platform
from .status import ConnectionStatus, get_connection_status
from .supervisor import TunnelSupervisor, build_tunnel_command

__all__ = [
    "ConnectionProbe",
    "ConnectionState",
    "ProbeMethod",
    "ProbeResult",
    "GSettingsProxy",
    "NetworkSetupProxy",
    "ProxySettings",
    "proxy_for_platform",
    "ConnectionStatus",
    "get_connection_status",
    "TunnelSupervisor",
    "build_tunnel_command",
]
