"""Typed user intents handled by the controller's dispatch loop."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ConnectRequested:
    profile: str


@dataclass(frozen=True)
class DisconnectRequested:
    pass


@dataclass(frozen=True)
class EditRequested:
    pass


@dataclass(frozen=True)
class QuitRequested:
    pass


Intent = ConnectRequested | DisconnectRequested | EditRequested | QuitRequested
