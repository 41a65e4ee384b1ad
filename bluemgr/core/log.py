"""
Core logging functionality for bluemgr.

All modules log through children of the ``bluemgr`` logger.  Once
:func:`setup_logging` has run, records go to two files under the per-user data
directory: ``general.log`` receives the configured level and above,
``debug.log`` receives everything.  Importing the package never touches the
filesystem; the command-line front end calls :func:`setup_logging` at start-up.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, Optional

from . import config

# Re-export log type constants for external modules
LOG__GENERAL = config.LOG__GENERAL
LOG__DEBUG = config.LOG__DEBUG

_FILE_NAMES: Dict[str, str] = {
    LOG__GENERAL: "general.log",
    LOG__DEBUG: "debug.log",
}

_formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

# Root logger for bluemgr
_logger = logging.getLogger("bluemgr")
_logger.setLevel(logging.DEBUG)
_handlers: Dict[str, logging.Handler] = {}


def _close_handlers() -> None:
    for handler in _handlers.values():
        _logger.removeHandler(handler)
        handler.close()
    _handlers.clear()


def setup_logging(level: int = logging.INFO, log_dir: Optional[Path] = None) -> Dict[str, logging.Handler]:
    """Attach the file handlers, replacing any attached earlier.

    Falls back to a stderr handler (WARNING and above) when the log directory
    cannot be created or opened.

    Parameters
    ----------
    level : int
        Threshold for ``general.log``.
    log_dir : Path, optional
        Directory for the log files; defaults to ``config.LOG_DIR``.

    Returns
    -------
    dict
        The attached handlers keyed by log type.
    """
    _close_handlers()
    log_dir = Path(log_dir) if log_dir is not None else config.LOG_DIR
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        for log_type, file_name in _FILE_NAMES.items():
            handler = logging.FileHandler(log_dir / file_name, mode="a", encoding="utf-8")
            handler.setFormatter(_formatter)
            handler.setLevel(logging.DEBUG if log_type == LOG__DEBUG else level)
            _handlers[log_type] = handler
    except OSError as e:
        _close_handlers()
        fallback = logging.StreamHandler(sys.stderr)
        fallback.setFormatter(_formatter)
        fallback.setLevel(logging.WARNING)
        _handlers[LOG__GENERAL] = fallback
        _logger.addHandler(fallback)
        _logger.warning(f"Log directory {log_dir} unusable ({e}); logging to stderr")
        return dict(_handlers)

    for handler in _handlers.values():
        _logger.addHandler(handler)
    return dict(_handlers)


def print_and_log(output_string: str, log_type: str = LOG__GENERAL) -> None:
    """Print to stdout and log to the specified log type."""
    if log_type == LOG__DEBUG:
        _logger.debug(output_string)
        return
    print(output_string)
    _logger.info(output_string)


# Modern interface
def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger with the specified name.

    This is the preferred way to get a logger in new code.
    Module names inside the package (``bluemgr.dbuslayer.adapter``) map onto
    the same child logger as their short form (``dbuslayer.adapter``).
    """
    if name:
        if name.startswith("bluemgr."):
            name = name[len("bluemgr."):]
        return _logger.getChild(name)
    return _logger
