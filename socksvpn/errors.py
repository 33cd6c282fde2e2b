"""Exceptions raised by the tunnel controller."""


class SocksVPNError(Exception):
    """Base error for socksvpn failures."""

    pass


class ConfigurationError(SocksVPNError):
    """Configuration is missing, unparseable, invalid, or names an unknown profile."""

    pass


class SpawnError(SocksVPNError):
    """The supervised tunnel process could not be started."""

    pass


class ProxyConfigError(SocksVPNError):
    """Enabling or disabling the OS-level SOCKS proxy failed."""

    pass


class EditorError(SocksVPNError):
    """No editor could be launched for the configuration file."""

    pass
