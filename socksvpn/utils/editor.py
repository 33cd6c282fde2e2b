"""Open the configuration file in a text editor."""

import logging
import os
import shlex
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

from ..errors import EditorError

logger = logging.getLogger(__name__)

GUI_EDITORS = ["code", "subl", "atom"]
TERMINAL_EDITORS = ["nano", "vim"]


@dataclass
class EditorSession:
    """A launched editor.

    Terminal editors share our terminal and are waited on; GUI editors
    return immediately, so callers watch the file instead.
    """

    process: subprocess.Popen
    editor: str
    terminal: bool


def _editor_command(path: Path) -> tuple[list[str], bool]:
    for editor in GUI_EDITORS:
        if shutil.which(editor):
            return [editor, str(path)], False

    env_editor = os.getenv("EDITOR")
    if env_editor:
        return [*shlex.split(env_editor), str(path)], True

    for editor in TERMINAL_EDITORS:
        if shutil.which(editor):
            return [editor, str(path)], True

    # Fall back to the desktop's default handler
    if sys.platform == "darwin":
        return ["open", "-e", str(path)], False
    return ["xdg-open", str(path)], False


def open_in_editor(path: Path) -> EditorSession:
    """Launch an editor on ``path``.

    Raises:
        EditorError: If the editor could not be started
    """
    args, terminal = _editor_command(path)
    logger.info("Opening configuration file with %s...", args[0])
    try:
        process = subprocess.Popen(args)
    except OSError as exc:
        raise EditorError(f"failed to open editor {args[0]}: {exc}") from exc
    return EditorSession(process=process, editor=args[0], terminal=terminal)
