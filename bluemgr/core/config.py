"""
Core configuration settings for bluemgr.
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

# Base paths
DATA_DIR = Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local/share")) / "bluemgr"
CONFIG_DIR = Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config")) / "bluemgr"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

# Logging configuration
LOG_DIR = DATA_DIR / "logs"

# Log types
LOG__GENERAL = "GENERAL"
LOG__DEBUG = "DEBUG"

# Environment overrides
ENV__ADAPTER = "BLUEMGR_ADAPTER"
ENV__LOG_LEVEL = "BLUEMGR_LOG_LEVEL"

# Default timeout values
SCAN_DURATION_IN_SECONDS = 10.0
REFRESH_INTERVAL_IN_SECONDS = 3.0

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    """User-tunable settings, read from ``config.yaml`` and the environment."""

    preferred_adapter: Optional[str] = None
    log_level: str = "INFO"
    scan_duration: float = SCAN_DURATION_IN_SECONDS
    refresh_interval: float = REFRESH_INTERVAL_IN_SECONDS
    warnings: List[str] = field(default_factory=list, compare=False)

    @property
    def numeric_log_level(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)


def _coerce(raw: Dict[str, Any], problems: List[str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}

    adapter = raw.get("preferred_adapter")
    if adapter is not None:
        if isinstance(adapter, str) and adapter.strip():
            values["preferred_adapter"] = adapter.strip()
        else:
            problems.append(f"preferred_adapter: expected adapter name, got {adapter!r}")

    level = raw.get("log_level")
    if level is not None:
        if str(level).upper() in _LOG_LEVELS:
            values["log_level"] = str(level).upper()
        else:
            problems.append(f"log_level: unknown level {level!r}")

    for key in ("scan_duration", "refresh_interval"):
        if key not in raw:
            continue
        try:
            # float(True) is 1.0; a YAML boolean is not a duration
            if isinstance(raw[key], bool):
                raise TypeError(key)
            number = float(raw[key])
        except (TypeError, ValueError):
            problems.append(f"{key}: expected a number, got {raw[key]!r}")
            continue
        if not math.isfinite(number) or number <= 0:
            problems.append(f"{key}: must be a positive number of seconds, got {number}")
            continue
        values[key] = number

    unknown = sorted(set(raw) - {"preferred_adapter", "log_level", "scan_duration", "refresh_interval"})
    for key in unknown:
        problems.append(f"{key}: unknown setting ignored")

    return values


def load_settings(path: Optional[Union[str, Path]] = None, environ: Optional[Dict[str, str]] = None) -> Settings:
    """Load :class:`Settings` from a YAML file plus environment overrides.

    A missing file yields the defaults. Values that cannot be used are
    dropped and described in ``Settings.warnings``; a file that is not valid
    YAML is reported the same way rather than aborting start-up.

    Parameters
    ----------
    path : str or Path, optional
        Settings file; defaults to ``$XDG_CONFIG_HOME/bluemgr/config.yaml``.
    environ : dict, optional
        Environment mapping; defaults to ``os.environ``.
    """
    environ = os.environ if environ is None else environ
    config_path = Path(path) if path is not None else CONFIG_FILE
    problems: List[str] = []
    raw: Dict[str, Any] = {}

    if config_path.is_file():
        try:
            with config_path.open("r", encoding="utf-8") as fh:
                loaded = yaml.safe_load(fh)
        except (OSError, yaml.YAMLError) as e:
            problems.append(f"{config_path}: unreadable ({e})")
            loaded = None
        if isinstance(loaded, dict):
            raw.update(loaded)
        elif loaded is not None:
            problems.append(f"{config_path}: expected a mapping at top level")
    elif path is not None:
        problems.append(f"{config_path}: no such file")

    if environ.get(ENV__ADAPTER):
        raw["preferred_adapter"] = environ[ENV__ADAPTER]
    if environ.get(ENV__LOG_LEVEL):
        raw["log_level"] = environ[ENV__LOG_LEVEL]

    values = _coerce(raw, problems)
    return replace(Settings(), warnings=problems, **values)
