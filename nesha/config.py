"""Application configuration management."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from nesha.models import AppConfig

log = logging.getLogger(__name__)

_CONFIG_DIR = Path.home() / ".config" / "nesha"
_DB_DIR = Path.home() / ".local" / "share" / "nesha"

_CONFIG_FILE = _CONFIG_DIR / "config.json"

# Checked in order; the first non-empty one wins over the config file
_API_KEY_ENV_VARS: tuple[str, ...] = ("GEMINI_API_KEY", "API_KEY")


def load_config() -> AppConfig:
    """Load config from disk, returning defaults if none exists."""
    if _CONFIG_FILE.exists():
        try:
            data = json.loads(_CONFIG_FILE.read_text())
            return AppConfig(**data)
        except (json.JSONDecodeError, ValidationError, TypeError) as exc:
            log.warning("Ignoring unreadable config %s: %s", _CONFIG_FILE, exc)
    return AppConfig()


def save_config(config: AppConfig) -> Path:
    """Write config to disk. Returns the config file path."""
    _CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    _CONFIG_FILE.write_text(config.model_dump_json(indent=2))
    return _CONFIG_FILE


def get_db_path() -> Path:
    """Resolve the store path from config (or default)."""
    config = load_config()
    if config.db_path is not None:
        p = Path(config.db_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    # Default
    _DB_DIR.mkdir(parents=True, exist_ok=True)
    return _DB_DIR / "nesha.db"


def set_db_path(path: str) -> AppConfig:
    """Set a custom store path and save config."""
    resolved = Path(path).expanduser().resolve()
    # Ensure it ends with a filename
    if resolved.is_dir():
        resolved = resolved / "nesha.db"
    resolved.parent.mkdir(parents=True, exist_ok=True)
    config = load_config()
    config.db_path = str(resolved)
    save_config(config)
    return config


def reset_db_path() -> AppConfig:
    """Reset to the default local store path."""
    config = load_config()
    config.db_path = None
    save_config(config)
    return config


def get_api_key(config: Optional[AppConfig] = None) -> Optional[str]:
    """Return the Gemini API key from the environment or config, if any."""
    for var in _API_KEY_ENV_VARS:
        value = os.environ.get(var, "").strip()
        if value:
            return value
    config = config or load_config()
    if config.api_key and config.api_key.strip():
        return config.api_key.strip()
    return None


def set_model(model: str) -> AppConfig:
    """Set the Gemini model name and save config."""
    config = load_config()
    config.model = model
    save_config(config)
    return config
