"""Menu-style controller for an autossh SOCKS tunnel and the OS proxy setting."""

__version__ = "0.1.0"
