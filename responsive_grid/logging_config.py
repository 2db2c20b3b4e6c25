from __future__ import annotations

"""Central logging configuration for the grid engine.

Import and call :func:`setup_logging` once at application start-up; library
code only creates module loggers.
"""

import copy
import logging
import os
import logging.config
from typing import Any, Dict

from responsive_grid.config import ConfigManager

__all__ = ["setup_logging"]

_DEBUG_MODULES_ENV = "RESPONSIVE_GRID_DEBUG_MODULES"
_LOG_DIR_ENV = "RESPONSIVE_GRID_LOG_DIR"


def setup_logging() -> None:
    """Configure logging from the ``logging`` configuration section."""
    log_dir = os.environ.get(_LOG_DIR_ENV, "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "app.log")

    try:
        logging_config: Dict[str, Any] = copy.deepcopy(ConfigManager().get_logging_config())

        if logging_config and isinstance(logging_config, dict) and logging_config.get("version"):
            # Point the file handler at the configured log directory
            if "handlers" in logging_config and "file" in logging_config["handlers"]:
                logging_config["handlers"]["file"]["filename"] = log_file

            logging.config.dictConfig(logging_config)
            logging.getLogger(__name__).info("===== Logging initialised from config files =====")
        else:
            _setup_minimal_logging()
    except (ValueError, TypeError, AttributeError, ImportError, OSError) as exc:
        _setup_minimal_logging()
        logging.getLogger(__name__).error("Error loading logging config: %s", exc)

    _apply_debug_overrides()


def _setup_minimal_logging() -> None:
    """Set up console-only logging when the configuration is unusable."""
    minimal_config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'simple': {
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'formatter': 'simple',
                'level': 'INFO',
            },
        },
        'root': {
            'level': 'INFO',
            'handlers': ['console'],
        },
    }

    logging.config.dictConfig(minimal_config)
    logging.getLogger(__name__).warning("===== Logging initialised with minimal fallback =====")


def _apply_debug_overrides() -> None:
    """Switch the loggers listed in ``RESPONSIVE_GRID_DEBUG_MODULES`` to DEBUG.

    The variable holds comma separated logger names, for instance
    ``responsive_grid.core.walker,responsive_grid.core.structure``.
    """
    extra_modules = os.environ.get(_DEBUG_MODULES_ENV, '').strip()
    targets = [m.strip() for m in extra_modules.split(',') if m.strip()]
    for name in targets:
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        # Ensure at least one handler emits DEBUG for this logger
        has_debug_handler = any(h.level <= logging.DEBUG for h in logger.handlers)
        if not has_debug_handler:
            handler = logging.StreamHandler()
            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            logger.addHandler(handler)
        logger.info("Debug override active for logger '%s'", name)
