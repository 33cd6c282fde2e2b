"""Load, default and persist the JSON configuration file."""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from ..errors import ConfigurationError
from .models import Configuration, example_configuration

logger = logging.getLogger(__name__)


def _describe(exc: ValidationError) -> str:
    """Flatten pydantic errors into a one-line message."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "config"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def _atomic_write(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    tmp.replace(path)


class ConfigStore:
    """Configuration provider backed by a single JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Configuration:
        """Read, default and validate the configuration file.

        Returns:
            A frozen Configuration snapshot

        Raises:
            ConfigurationError: If the file is missing, unparseable or invalid
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise ConfigurationError(f"config file {self.path} does not exist") from exc
        except OSError as exc:
            raise ConfigurationError(f"failed to read config file {self.path}: {exc}") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"failed to parse config file {self.path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError(f"config file {self.path} must contain a JSON object")

        try:
            config = Configuration.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid configuration in {self.path}: {_describe(exc)}") from exc

        logger.debug("Loaded %s with %d profiles", self.path, len(config.commands))
        return config

    def reload(self) -> Configuration:
        """Load again; callable at any time from a background trigger."""
        logger.info("Reloading configuration from %s", self.path)
        return self.load()

    def save(self, config: Configuration) -> None:
        """Write a configuration to disk, replacing the file atomically."""
        try:
            _atomic_write(self.path, config.model_dump(mode="json"))
        except OSError as exc:
            raise ConfigurationError(f"failed to write config file {self.path}: {exc}") from exc

    def create_default(self) -> Configuration:
        """Write a template configuration with one example profile."""
        config = example_configuration()
        self.save(config)
        logger.info("Created default configuration at %s", self.path)
        return config
