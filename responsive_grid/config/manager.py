from __future__ import annotations

"""Configuration loading and access helpers.

This module centralises the declarative settings of the grid engine (cell
placeholder text, breakpoint defaults, allowed column values, logging). It
loads YAML files packaged with *responsive_grid* and merges them with user
overrides located in a per-user config directory.

Override directory, in order of precedence:

- ``$RESPONSIVE_GRID_CONFIG_DIR``
- On Windows: ``%LOCALAPPDATA%\\ResponsiveGrid\\config``
- On Unix: ``~/.responsive_grid``
"""

import importlib.resources as pkg_resources
import logging
import os
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)

__all__ = ["ConfigManager"]


def _get_user_config_dir() -> Path:
    """Get the user configuration directory."""
    override = os.environ.get("RESPONSIVE_GRID_CONFIG_DIR")
    if override:
        return Path(override)
    if os.name == 'nt':  # Windows
        local_appdata = os.environ.get('LOCALAPPDATA')
        if local_appdata:
            return Path(local_appdata) / "ResponsiveGrid" / "config"
        return Path.home() / "AppData" / "Local" / "ResponsiveGrid" / "config"
    return Path.home() / ".responsive_grid"


class _Singleton(type):
    _instance: "ConfigManager" | None = None

    def __call__(cls, *args, **kwargs):  # type: ignore[no-self-use]
        if cls._instance is None:
            cls._instance = super().__call__(*args, **kwargs)
        return cls._instance


class ConfigManager(metaclass=_Singleton):
    """Lazy-loads and exposes configuration sections as dictionaries."""

    _DEFAULT_FILENAMES = {
        "grid": "default_grid.yml",
        "logging": "logging.yml",
    }

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}
        self._ensure_loaded()

    # ------------------------------------------------------------------
    # Public helpers
    # ------------------------------------------------------------------
    def get_grid_config(self) -> Dict[str, Any]:
        return self._data.get("grid", {})

    def get_logging_config(self) -> Dict[str, Any]:
        return self._data.get("logging", {})

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded instance so the next call re-reads the files."""
        cls._instance = None

    # ------------------------------------------------------------------
    # Internal loading logic
    # ------------------------------------------------------------------
    def _ensure_loaded(self) -> None:
        if self._data:
            return  # already loaded

        startup_summary = []
        defaults = self._builtin_defaults()
        user_config_dir = _get_user_config_dir()

        for key, filename in self._DEFAULT_FILENAMES.items():
            merged_cfg: Dict[str, Any] = {}
            status = "missing"

            # 1. load packaged default
            try:
                packaged = pkg_resources.files(__package__).joinpath(filename)
                with packaged.open("r", encoding="utf-8") as fh:
                    packaged_data = yaml.safe_load(fh) or {}
                    merged_cfg.update(packaged_data)
                    status = "loaded"
            except (FileNotFoundError, OSError):
                logger.error("Missing packaged config for %s (%s)", key, filename)
                merged_cfg.update(defaults[key])
                status = "builtin"
            except yaml.YAMLError as exc:
                logger.error("Invalid packaged config for %s (%s): %s", key, filename, exc)
                merged_cfg.update(defaults[key])
                status = "invalid"

            # 2. load user overrides
            user_path = user_config_dir / filename
            if user_path.exists():
                try:
                    user_data = yaml.safe_load(user_path.read_text(encoding="utf-8")) or {}
                    merged_cfg.update(user_data)
                    if status == "loaded":
                        status = "loaded+overrides"
                except (OSError, yaml.YAMLError) as exc:
                    logger.error("Could not parse user config %s: %s", user_path, exc)

            self._data[key] = merged_cfg
            startup_summary.append(f"{key}: {status}")

        logger.info("Config startup: %s", " | ".join(startup_summary))

    @staticmethod
    def _builtin_defaults() -> Dict[str, Dict[str, Any]]:
        """Return the settings used when a packaged file cannot be read."""
        return {
            "grid": {
                "empty_cell_text": "Content goes here.",
                "column_values": list(range(13)),
                "default_properties": {},
            },
            "logging": {},
        }
