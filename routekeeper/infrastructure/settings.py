"""Application settings.

Settings are read in three layers, later ones winning:

1. Built-in defaults
2. A YAML file (``config/settings.yaml``, or the path in ``ROUTEKEEPER_CONFIG``)
3. Environment variables, after loading ``.env`` with python-dotenv

Recognized environment variables: ``DB_URL``, ``DB_PATH``,
``DEFAULT_PAGE_SIZE``, ``MAX_PAGE_SIZE``, ``WEB_HOST``, ``PORT``.
"""

import logging
import os
import threading
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config") / "settings.yaml"


class SettingsError(ValueError):
    """Invalid configuration value."""


@dataclass(frozen=True)
class Settings:
    """
    Resolved application settings.

    Attributes:
        database_url: SQLAlchemy database URL
        default_page_size: Page size used when callers give none
        max_page_size: Largest page size callers may request
        web_host: Web server bind address
        web_port: Web server port
    """

    database_url: str = "sqlite:///routekeeper.db"
    default_page_size: int = 10
    max_page_size: int = 100
    web_host: str = "0.0.0.0"
    web_port: int = 8080

    def __post_init__(self):
        if self.default_page_size < 1 or self.max_page_size < 1:
            raise SettingsError("Page sizes must be positive")
        if self.default_page_size > self.max_page_size:
            raise SettingsError(
                f"default_page_size ({self.default_page_size}) exceeds "
                f"max_page_size ({self.max_page_size})"
            )


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file {path} must contain a mapping")
    logger.debug(f"Loaded settings from {path}")
    return data


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if os.getenv("DB_URL"):
        overrides["database_url"] = os.environ["DB_URL"]
    elif os.getenv("DB_PATH"):
        overrides["database_url"] = f"sqlite:///{os.environ['DB_PATH']}"
    for env_name, key in (
        ("DEFAULT_PAGE_SIZE", "default_page_size"),
        ("MAX_PAGE_SIZE", "max_page_size"),
        ("WEB_HOST", "web_host"),
        ("PORT", "web_port"),
    ):
        value = os.getenv(env_name)
        if value:
            overrides[key] = value
    return overrides


def _coerce(raw: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name: f.type for f in fields(Settings)}
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        if key not in known:
            logger.warning(f"Ignoring unknown setting '{key}'")
            continue
        if key in ("default_page_size", "max_page_size", "web_port"):
            try:
                value = int(value)
            except (TypeError, ValueError):
                raise SettingsError(f"Setting '{key}' must be an integer, got {value!r}") from None
        else:
            value = str(value)
        values[key] = value
    return values


def load_settings(config_path: Optional[str] = None, env_file: Optional[str] = None) -> Settings:
    """
    Build settings from the YAML file and the environment.

    Args:
        config_path: YAML file to read, defaults to ``ROUTEKEEPER_CONFIG`` or
            ``config/settings.yaml``
        env_file: ``.env`` file to load, defaults to python-dotenv's lookup

    Returns:
        Settings: Resolved settings

    Raises:
        SettingsError: If a value has the wrong type or is out of range
    """
    load_dotenv(env_file)
    path = Path(config_path or os.getenv("ROUTEKEEPER_CONFIG") or DEFAULT_CONFIG_PATH)
    raw = _read_yaml(path)
    raw.update(_env_overrides())
    return Settings(**_coerce(raw))


_settings: Optional[Settings] = None
_lock = threading.Lock()


def get_settings() -> Settings:
    """Process-wide settings, loaded on first use."""
    global _settings
    if _settings is None:
        with _lock:
            if _settings is None:
                _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call reloads them."""
    global _settings
    with _lock:
        _settings = None
