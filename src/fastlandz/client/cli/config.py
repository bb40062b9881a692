"""Configuration utilities for the fastlandz CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from fastlandz.core.config import StoreConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_config_dir() -> Path:
    """Get the configuration directory for fastlandz.

    Returns:
        Path to ~/.fastlandz or equivalent.
    """
    return Path.home() / ".fastlandz"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def get_storage_path() -> Path:
    """Get the path to the local storage database."""
    return get_config_dir() / "local.db"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def get_store_config(config: dict[str, str]) -> StoreConfig | None:
    """Build a StoreConfig from the CLI config, None if not configured."""
    if not config.get("store_url") or not config.get("api_key"):
        return None
    return StoreConfig(
        url=config["store_url"],
        api_key=config["api_key"],
        access_token=config.get("access_token") or None,
    )


def setup_logging(verbose: bool) -> None:
    """Configure root logging for CLI commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
