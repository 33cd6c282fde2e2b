"""Pydantic models for the ~/.vpn.json configuration file."""

import os
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from ..errors import ConfigurationError

DEFAULT_AUTOSSH_PATH = "/opt/homebrew/bin/autossh"
DEFAULT_LOCAL_PORT = 1234
DEFAULT_INTERFACE = "Wi-Fi"
DEFAULT_SERVER_ALIVE_INTERVAL = 10
DEFAULT_SERVER_ALIVE_COUNT_MAX = 3


def _is_unset(value: Any) -> bool:
    return value is None or value == 0 or value == ""


class _Snapshot(BaseModel):
    """Immutable model; a reload replaces the whole snapshot."""

    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)

    @field_validator("*", mode="before")
    @classmethod
    def _default_when_unset(cls, value: Any, info: ValidationInfo) -> Any:
        # Missing, null, zero and empty values all fall back to the field default
        if _is_unset(value):
            field = cls.model_fields[info.field_name]
            if not field.is_required():
                return field.get_default(call_default_factory=True)
        return value


class TunnelOptions(_Snapshot):
    """SSH keepalive options passed to every tunnel."""

    server_alive_interval: int = DEFAULT_SERVER_ALIVE_INTERVAL
    server_alive_count_max: int = DEFAULT_SERVER_ALIVE_COUNT_MAX

    @field_validator("server_alive_interval", "server_alive_count_max")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value


class ServerProfile(_Snapshot):
    """A named server entry from the ``commands`` list."""

    name: str = Field(min_length=1)
    description: str = ""
    server: str = Field(min_length=1)

    @property
    def label(self) -> str:
        """Human readable label for menus and tables."""
        return self.description or self.name


class Configuration(_Snapshot):
    """Complete controller configuration."""

    autossh_path: str = DEFAULT_AUTOSSH_PATH
    local_port: int = Field(default=DEFAULT_LOCAL_PORT, ge=1, le=65535)
    interface: str = DEFAULT_INTERFACE
    server_options: TunnelOptions = Field(default_factory=TunnelOptions)
    commands: tuple[ServerProfile, ...] = ()

    @model_validator(mode="after")
    def _unique_names(self) -> "Configuration":
        seen: set[str] = set()
        for profile in self.commands:
            if profile.name in seen:
                raise ValueError(f"duplicate profile name: {profile.name!r}")
            seen.add(profile.name)
        return self

    @property
    def binary_name(self) -> str:
        """Process name of the supervisor binary, used as its signature."""
        return os.path.basename(self.autossh_path) or "autossh"

    @property
    def profile_names(self) -> list[str]:
        return [profile.name for profile in self.commands]

    def profile(self, name: str) -> ServerProfile:
        """Resolve a profile by name.

        Raises:
            ConfigurationError: If no profile carries that name.
        """
        for profile in self.commands:
            if profile.name == name:
                return profile
        raise ConfigurationError(f"command '{name}' not found in configuration")


def example_configuration() -> Configuration:
    """Template written on first run so the user has something to edit."""
    return Configuration(
        commands=(
            ServerProfile(
                name="example",
                description="Example VPN Server",
                server="your-server-name-or-ip",
            ),
        ),
    )


@dataclass(frozen=True)
class Timings:
    """Intervals and bounds for the background and settle loops (seconds)."""

    status_interval: float = 5.0
    settle_interval: float = 0.25
    settle_timeout: float = 5.0
    watch_interval: float = 2.0
    watch_timeout: float = 300.0
    probe_timeout: float = 5.0
    command_timeout: float = 30.0
