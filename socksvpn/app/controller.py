"""Controller owning the configuration snapshot and the intent dispatch loop."""

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable

from ..config import ConfigStore, ConfigWatcher, Configuration, Timings
from ..errors import ConfigurationError, SocksVPNError
from ..tunnel import ConnectionProbe, ProxySettings, TunnelSupervisor, proxy_for_platform
from ..tunnel.commands import CommandRunner, run_command
from ..utils.editor import EditorSession, open_in_editor
from .intents import ConnectRequested, DisconnectRequested, EditRequested, Intent, QuitRequested
from .reconciler import StatusReconciler
from .sink import StatusSink

logger = logging.getLogger(__name__)


class Controller:
    """Serialize user intents against the supervisor and track observed state.

    The configuration snapshot and the last observed connection flag are
    the only shared state; both are replaced under ``_lock``, never mutated.
    """

    def __init__(
        self,
        store: ConfigStore,
        sink: StatusSink,
        *,
        runner: CommandRunner = run_command,
        proxy: ProxySettings | None = None,
        probe: ConnectionProbe | None = None,
        timings: Timings | None = None,
        editor: Callable[..., EditorSession] = open_in_editor,
    ):
        self.store = store
        self.sink = sink
        self.timings = timings or Timings()
        self._editor = editor
        self._lock = threading.Lock()
        self._config = self._initial_config()
        self._connected: bool | None = None

        self.probe = probe or ConnectionProbe(runner, timeout=self.timings.probe_timeout)
        self.supervisor = TunnelSupervisor(
            lambda: self.config,
            proxy=proxy or proxy_for_platform(runner, self.timings.command_timeout),
            runner=runner,
            timeout=self.timings.command_timeout,
        )
        self.reconciler = StatusReconciler(
            self.probe,
            lambda: self.config,
            self._publish,
            interval=self.timings.status_interval,
        )

        self._intents: "queue.Queue[tuple[Intent, Future] | None]" = queue.Queue()
        self._dispatcher: threading.Thread | None = None
        self._closed = threading.Event()
        self._queue_lock = threading.Lock()
        self._watcher: ConfigWatcher | None = None
        self._handlers: dict[type, Callable[[Any], Any]] = {
            ConnectRequested: self._on_connect,
            DisconnectRequested: self._on_disconnect,
            EditRequested: self._on_edit,
            QuitRequested: self._on_quit,
        }

    def _initial_config(self) -> Configuration:
        try:
            return self.store.load()
        except ConfigurationError as e:
            logger.warning("Warning: Could not load config: %s", e)
            return Configuration()

    # State -------------------------------------------------------------
    @property
    def config(self) -> Configuration:
        """Current configuration snapshot."""
        with self._lock:
            return self._config

    @property
    def connected(self) -> bool | None:
        """Last observed connection state; None before the first probe."""
        with self._lock:
            return self._connected

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _publish(self, connected: bool) -> None:
        with self._lock:
            self._connected = connected
        self.sink.set_connected(connected)

    def reload_config(self) -> Configuration | None:
        """Swap in a freshly loaded snapshot; keep the old one on failure."""
        try:
            config = self.store.reload()
        except ConfigurationError as e:
            logger.error("Error reloading configuration: %s", e)
            self.sink.notify(f"Configuration reload failed: {e}")
            return None
        with self._lock:
            self._config = config
        logger.info("Configuration reloaded successfully with %d commands", len(config.commands))
        return config

    # Lifecycle ---------------------------------------------------------
    def start(self) -> None:
        """Publish the initial state and start the background loops."""
        if self._dispatcher is not None:
            return
        self._dispatcher = threading.Thread(target=self._dispatch_loop, name="intent-dispatch", daemon=True)
        self._dispatcher.start()
        self._safe_refresh()
        self.reconciler.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        """Stop background loops without touching the tunnel."""
        self._shutdown()
        self._intents.put(None)
        if self._dispatcher is not None and self._dispatcher is not threading.current_thread():
            self._dispatcher.join(timeout)
        if self._dispatcher is None or not self._dispatcher.is_alive():
            self._drain()

    def _shutdown(self) -> None:
        self._closed.set()
        self.reconciler.stop()
        if self._watcher is not None:
            self._watcher.stop()

    def submit(self, intent: Intent) -> Future:
        """Queue an intent; the future resolves when it has been handled."""
        future: Future = Future()
        # Checked and queued under the lock _drain takes, so nothing lands after the drain
        with self._queue_lock:
            if self._closed.is_set():
                future.set_exception(SocksVPNError("controller is stopped"))
                return future
            self._intents.put((intent, future))
        return future

    def _dispatch_loop(self) -> None:
        while True:
            item = self._intents.get()
            if item is None:
                break
            intent, future = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = self.handle(intent)
            except SocksVPNError as e:
                logger.error("%s failed: %s", type(intent).__name__, e)
                self.sink.notify(str(e))
                future.set_exception(e)
            except Exception as e:
                logger.exception("Unexpected error handling %s", type(intent).__name__)
                self.sink.notify(f"Unexpected error: {e}")
                future.set_exception(e)
            else:
                future.set_result(result)
            if isinstance(intent, QuitRequested):
                break
        self._drain()

    def _drain(self) -> None:
        """Fail whatever is still queued once the loop has ended."""
        with self._queue_lock:
            while True:
                try:
                    item = self._intents.get_nowait()
                except queue.Empty:
                    return
                if item is not None and item[1].set_running_or_notify_cancel():
                    item[1].set_exception(SocksVPNError("controller is stopped"))

    def handle(self, intent: Intent) -> Any:
        """Run one intent synchronously on the calling thread."""
        handler = self._handlers.get(type(intent))
        if handler is None:
            raise TypeError(f"unsupported intent: {intent!r}")
        return handler(intent)

    def _safe_refresh(self) -> None:
        try:
            self.reconciler.refresh()
        except Exception:
            logger.exception("Status refresh failed")

    # Handlers ----------------------------------------------------------
    def _on_connect(self, intent: ConnectRequested):
        try:
            profile = self.supervisor.connect(intent.profile)
        except ConfigurationError:
            raise
        except SocksVPNError:
            self._safe_refresh()
            raise
        logger.info("Connected to %s", profile.name)
        self._safe_refresh()
        return profile

    def _on_disconnect(self, intent: DisconnectRequested) -> bool:
        try:
            self.supervisor.disconnect()
        except SocksVPNError:
            self._safe_refresh()
            raise

        # Wait for autossh to exit and the SOCKS port to close
        settled = self.reconciler.wait_for(
            False,
            timeout=self.timings.settle_timeout,
            interval=self.timings.settle_interval,
        )
        logger.info("Disconnected" if settled else "Disconnected (or timed out waiting for process to exit)")
        self._safe_refresh()
        return settled

    def _on_edit(self, intent: EditRequested) -> EditorSession:
        if not self.store.exists():
            logger.info("Configuration file doesn't exist, creating default configuration...")
            self.store.create_default()

        session = self._editor(self.store.path)
        if session.terminal:
            session.process.wait()
            self.reload_config()
        else:
            if self._watcher is not None:
                self._watcher.stop()
            self._watcher = ConfigWatcher(
                self.store.path,
                self.reload_config,
                interval=self.timings.watch_interval,
                timeout=self.timings.watch_timeout,
            ).start()
        return session

    def _on_quit(self, intent: QuitRequested) -> None:
        try:
            self.supervisor.disconnect()
        except SocksVPNError as e:
            logger.warning("Disconnect on quit failed: %s", e)
        self._shutdown()
