"""Connection status reporting."""

import logging
from dataclasses import dataclass

import httpx

from ..config import Configuration
from .probe import ConnectionProbe, ProbeMethod
from .supervisor import LOOPBACK

logger = logging.getLogger(__name__)

IP_ECHO_URL = "https://api.ipify.org"


@dataclass
class ConnectionStatus:
    """Tunnel status information."""

    connected: bool
    method: ProbeMethod | None = None
    local_port: int | None = None
    interface: str | None = None
    public_ip: str | None = None
    detail: str = ""

    def __str__(self) -> str:
        if not self.connected:
            return "Disconnected"

        parts = [f"Connected via localhost:{self.local_port}"]
        if self.interface:
            parts.append(f"({self.interface})")
        if self.public_ip:
            parts.append(f"| IP: {self.public_ip}")
        return " ".join(parts)


def socks_proxy_url(port: int) -> str:
    return f"socks5://{LOOPBACK}:{port}"


async def get_public_ip(port: int, timeout: float = 10.0) -> str | None:
    """Get the public IP address as seen through the SOCKS tunnel."""
    try:
        async with httpx.AsyncClient(proxy=socks_proxy_url(port), timeout=timeout) as client:
            response = await client.get(IP_ECHO_URL)
            if response.status_code == 200:
                return response.text.strip()
            logger.debug("IP echo service returned HTTP %d", response.status_code)
    except httpx.HTTPError as e:
        logger.debug("Public IP lookup through port %d failed: %s", port, e)
    return None


async def get_connection_status(
    config: Configuration,
    probe: ConnectionProbe,
    check_ip: bool = False,
) -> ConnectionStatus:
    """Get tunnel status, optionally verifying it end to end."""
    result = probe.detect(config)

    if not result.connected:
        return ConnectionStatus(connected=False, detail=result.detail)

    public_ip = await get_public_ip(config.local_port) if check_ip else None

    return ConnectionStatus(
        connected=True,
        method=result.method,
        local_port=config.local_port,
        interface=config.interface,
        public_ip=public_ip,
        detail=result.detail,
    )
