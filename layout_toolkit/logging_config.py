from __future__ import annotations

"""Central logging configuration for Layout Toolkit.

Host applications call :func:`setup_logging` once at start-up. The library
itself only creates module loggers and never configures handlers on import.

Environment:
- ``LAYOUT_LOG_DIR``: directory for file handlers (default ``logs``).
- ``LAYOUT_DEBUG_EDITS=true``: DEBUG for the editing service and the store.
- ``LAYOUT_DEBUG_MODULES=a,b``: DEBUG for the listed logger names.
"""

import copy
import logging
import logging.config
import os
from typing import Any, Dict, Iterable, List, Optional

from layout_toolkit.config import ConfigManager

__all__ = ["setup_logging"]

_EDIT_LOGGERS = (
    "layout_toolkit.core.services.tree_editing_service",
    "layout_toolkit.core.tree_store",
)
_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_TRUTHY = {"1", "true", "yes", "on"}


def setup_logging(log_dir: Optional[str] = None, debug_modules: Optional[Iterable[str]] = None) -> Optional[str]:
    """Configure logging from ``logging.yml`` and return the main log file path.

    Parameters
    ----------
    log_dir
        Directory receiving the file handlers' output. Falls back to
        ``$LAYOUT_LOG_DIR`` and then ``logs``.
    debug_modules
        Extra logger names switched to DEBUG, on top of the environment.

    Returns None when the configuration could not be applied and the
    console-only fallback is active.
    """
    log_dir = log_dir or os.environ.get("LAYOUT_LOG_DIR", "logs")
    log_file: Optional[str] = None

    try:
        # Work on a copy: the ConfigManager cache must keep the packaged paths
        logging_config = copy.deepcopy(ConfigManager().get_logging_config())
        if not logging_config.get("version"):
            _setup_minimal_logging()
        else:
            log_file = _redirect_file_handlers(logging_config, log_dir)
            logging.config.dictConfig(logging_config)
            logging.info("===== Logging initialised from config files (log file: %s) =====", log_file)
    except (ValueError, TypeError, AttributeError, ImportError, OSError) as exc:
        # dictConfig reports every configuration problem through these types
        print(f"Error loading logging config: {exc}")
        _setup_minimal_logging()
        log_file = None

    _apply_debug_overrides(debug_modules)
    return log_file


def _redirect_file_handlers(logging_config: Dict[str, Any], log_dir: str) -> Optional[str]:
    """Move every handler with a ``filename`` into ``log_dir``; return the first path."""
    first: Optional[str] = None
    for handler in (logging_config.get("handlers") or {}).values():
        if not isinstance(handler, dict) or "filename" not in handler:
            continue
        os.makedirs(log_dir, exist_ok=True)
        handler["filename"] = os.path.join(log_dir, os.path.basename(str(handler["filename"])))
        first = first or handler["filename"]
    return first


def _setup_minimal_logging() -> None:
    """Console-only logging used when the configured one cannot be applied."""
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"simple": {"format": _FORMAT}},
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "simple", "level": "INFO"},
        },
        "root": {"level": "INFO", "handlers": ["console"]},
    })
    logging.error("===== Logging initialised with minimal fallback (config error) =====")


def _debug_targets(debug_modules: Optional[Iterable[str]]) -> List[str]:
    targets: List[str] = []
    if os.environ.get("LAYOUT_DEBUG_EDITS", "").strip().lower() in _TRUTHY:
        targets.extend(_EDIT_LOGGERS)
    targets.extend(m.strip() for m in os.environ.get("LAYOUT_DEBUG_MODULES", "").split(","))
    targets.extend(m.strip() for m in debug_modules or ())
    # keep order, drop blanks and repeats
    return list(dict.fromkeys(t for t in targets if t))


def _apply_debug_overrides(debug_modules: Optional[Iterable[str]] = None) -> None:
    """Switch the requested loggers to DEBUG and make sure their records are emitted."""
    for name in _debug_targets(debug_modules):
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)
        if not any(h.level <= logging.DEBUG for h in logger.handlers):
            handler = logging.StreamHandler()
            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter(_FORMAT))
            logger.addHandler(handler)
        logger.info("Debug override active for logger '%s'", name)
