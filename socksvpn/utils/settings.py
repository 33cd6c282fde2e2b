"""Resolve where the configuration file lives."""

import os
from pathlib import Path

from dotenv import load_dotenv

CONFIG_ENV_VAR = "SOCKSVPN_CONFIG"
DEFAULT_CONFIG_NAME = ".vpn.json"


def get_config_path(override: Path | None = None) -> Path:
    """Locate the configuration file.

    Precedence: an explicit path, then SOCKSVPN_CONFIG (which may come from
    a .env file in the working directory), then ~/.vpn.json.

    Args:
        override: Path given on the command line, if any

    Returns:
        Absolute path to the configuration file
    """
    if override is not None:
        return Path(override).expanduser().resolve()

    # Load .env file if it exists
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    configured = os.getenv(CONFIG_ENV_VAR)
    if configured:
        return Path(configured).expanduser().resolve()

    return Path.home() / DEFAULT_CONFIG_NAME
