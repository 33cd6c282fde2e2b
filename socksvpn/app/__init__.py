"""Controller, background reconciliation and presentation glue."""

from .console import ConsoleFrontend, ConsoleSink
from .controller import Controller
from .intents import ConnectRequested, DisconnectRequested, EditRequested, Intent, QuitRequested
from .reconciler import StatusReconciler, wait_for_state
from .sink import StatusSink

__all__ = [
    "ConsoleFrontend",
    "ConsoleSink",
    "Controller",
    "ConnectRequested",
    "DisconnectRequested",
    "EditRequested",
    "Intent",
    "QuitRequested",
    "StatusReconciler",
    "wait_for_state",
    "StatusSink",
]
