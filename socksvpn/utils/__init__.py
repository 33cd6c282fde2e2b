"""Utility helpers."""

from .editor import EditorSession, open_in_editor
from .log import configure_logging
from .settings import get_config_path

__all__ = ["EditorSession", "open_in_editor", "configure_logging", "get_config_path"]
