"""Configuration management for the savings dashboard.

This module centralizes all configuration values including paths,
storage switches, and environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in savings_dashboard/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("SAVINGS_DATA_DIR", _PROJECT_ROOT / "data"))
CACHE_DIR = DATA_DIR / "cache"

# Database
DB_PATH = Path(
    os.getenv("SAVINGS_DB_PATH", DATA_DIR / "savings.db")
).resolve()

# Authentication lives outside this app; all records are keyed by this id.
USER_ID = os.getenv("SAVINGS_USER_ID", "local")

LOG_LEVEL = os.getenv("SAVINGS_LOG_LEVEL", "INFO")


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off", ""}


USE_DATABASE = _env_flag("SAVINGS_USE_DATABASE", True)


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, CACHE_DIR]:
        directory.mkdir(parents=True, exist_ok=True)
