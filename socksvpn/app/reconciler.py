"""Periodic re-derivation of connection state."""

import logging
import threading
import time
from typing import Callable

from ..config import Configuration
from ..tunnel import ConnectionProbe

logger = logging.getLogger(__name__)


def wait_for_state(
    probe: ConnectionProbe,
    config_provider: Callable[[], Configuration],
    expected: bool,
    timeout: float,
    interval: float,
    stop_event: threading.Event | None = None,
) -> bool:
    """Poll the probe until it reports ``expected`` or the bound runs out.

    Running out is not an error: the caller proceeds with whatever state
    the probe reports next.

    Returns:
        True if the expected state was observed
    """
    stop_event = stop_event or threading.Event()
    deadline = time.monotonic() + timeout
    while True:
        try:
            if probe.is_connected(config_provider()) == expected:
                return True
        except Exception:
            logger.exception("Probe failed while waiting for state change")
        if time.monotonic() >= deadline:
            logger.info(
                "Timed out after %.1fs waiting for tunnel to become %s",
                timeout,
                "connected" if expected else "disconnected",
            )
            return False
        if stop_event.wait(interval):
            return False


class StatusReconciler:
    """Re-probe on a fixed interval and publish the result."""

    def __init__(
        self,
        probe: ConnectionProbe,
        config_provider: Callable[[], Configuration],
        publish: Callable[[bool], None],
        interval: float = 5.0,
    ):
        self.probe = probe
        self.interval = interval
        self._config_provider = config_provider
        self._publish = publish
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._issued = 0
        self._applied = 0

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._loop, name="status-reconciler", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 1.0) -> None:
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def refresh(self) -> bool:
        """Probe once and publish the result immediately.

        Probes from different threads can finish out of order. A result is
        published only if no later-started probe has been published already.
        """
        with self._lock:
            self._issued += 1
            ticket = self._issued
        connected = self.probe.is_connected(self._config_provider())
        with self._lock:
            if ticket < self._applied:
                logger.debug("Dropping stale probe result %s (probe %d, published %d)", connected, ticket, self._applied)
                return connected
            self._applied = ticket
            self._publish(connected)
        return connected

    def wait_for(self, expected: bool, timeout: float, interval: float) -> bool:
        """Bounded settle poll; ends early if the reconciler is stopped."""
        return wait_for_state(
            self.probe,
            self._config_provider,
            expected,
            timeout,
            interval,
            stop_event=self._stop_event,
        )

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.refresh()
            except Exception:
                logger.exception("Status refresh failed")
