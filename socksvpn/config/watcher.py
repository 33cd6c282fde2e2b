"""Best-effort modification-time watcher for the configuration file."""

import logging
import threading
import time
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)


class ConfigWatcher:
    """Poll a file's mtime and fire a callback on the first change.

    The watcher gives up silently after ``timeout`` seconds. It is a
    convenience for GUI editors that return immediately, not a guaranteed
    live-reload channel.
    """

    def __init__(
        self,
        path: Path,
        on_change: Callable[[], object],
        interval: float = 2.0,
        timeout: float = 300.0,
    ):
        self.path = Path(path)
        self.interval = interval
        self.timeout = timeout
        self._on_change = on_change
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_mtime: int | None = None

    def _mtime(self) -> int | None:
        try:
            return self.path.stat().st_mtime_ns
        except OSError:
            return None

    def start(self) -> "ConfigWatcher":
        """Record the current mtime and start polling in the background."""
        self._last_mtime = self._mtime()
        self._thread = threading.Thread(target=self._run, name="config-watcher", daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop_event.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        deadline = time.monotonic() + self.timeout
        while not self._stop_event.wait(self.interval):
            mtime = self._mtime()
            if mtime is not None and (self._last_mtime is None or mtime > self._last_mtime):
                logger.info("Configuration file %s changed, reloading...", self.path)
                try:
                    self._on_change()
                except Exception:
                    logger.exception("Reload after configuration change failed")
                return
            if time.monotonic() >= deadline:
                logger.info("Stopped monitoring configuration file (timeout)")
                return
