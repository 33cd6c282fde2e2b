"""Logging setup routed through rich."""

import logging
from logging.config import dictConfig
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


def _stderr_handler(**kwargs: Any) -> RichHandler:
    return RichHandler(console=Console(stderr=True), show_path=False, **kwargs)


def _build_config(level: str) -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "rich": {"format": "%(name)s - %(message)s", "datefmt": "[%X]"},
        },
        "handlers": {
            "rich": {
                "()": _stderr_handler,
                "formatter": "rich",
                "level": level,
            }
        },
        "loggers": {
            "socksvpn": {
                "handlers": ["rich"],
                "level": level,
                "propagate": False,
            },
        },
        "root": {
            "handlers": ["rich"],
            "level": "WARNING",
        },
    }


def configure_logging(verbose: bool = False) -> None:
    """Install the rich stderr handler; DEBUG for socksvpn when verbose."""
    dictConfig(_build_config("DEBUG" if verbose else "INFO"))
    logging.getLogger("socksvpn").debug("Logging configured")
