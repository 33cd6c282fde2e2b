"""Configuration models, loading and change watching."""

from .models import Configuration, ServerProfile, Timings, TunnelOptions
from .store import ConfigStore
from .watcher import ConfigWatcher

__all__ = [
    "Configuration",
    "ServerProfile",
    "Timings",
    "TunnelOptions",
    "ConfigStore",
    "ConfigWatcher",
]
