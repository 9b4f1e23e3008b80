"""Centralized defaults for job polling, autosave, and entry listing.

Defines immutable tuning constants shared by the desktop shell, the CLI, and
the tests. None of these values are protocol-defined; they only shape cadence
and presentation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Config:
    """Immutable configuration defaults for the project."""

    # Job polling
    POLL_INTERVAL_MS: int = 400
    DEFAULT_STYLE: str = "nano-banana"

    # Autosave
    AUTOSAVE_DELAY_MS: int = 3000

    # Entry listing
    LIST_LIMIT: int = 100
    LIST_OFFSET: int = 0
    PREVIEW_CHARS: int = 50

    # Transport
    REQUEST_TIMEOUT_S: float = 30.0
    DISPATCH_WORKERS: int = 4

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_ENV_VAR: str = "PANELPRESS_LOG_LEVEL"


# Convenience re-exports
POLL_INTERVAL_MS: int = Config.POLL_INTERVAL_MS
AUTOSAVE_DELAY_MS: int = Config.AUTOSAVE_DELAY_MS
NEW_ENTRY: str = "new"


def log_level() -> str:
    """Return the configured log level name (env override, else default)."""

    value = os.environ.get(Config.LOG_ENV_VAR, "").strip().upper()
    return value or Config.LOG_LEVEL


_CONFIG_SINGLETON: Optional[Config] = None


def get_config() -> Config:
    """Return a singleton `Config` instance."""

    global _CONFIG_SINGLETON
    if _CONFIG_SINGLETON is None:
        _CONFIG_SINGLETON = Config()
    return _CONFIG_SINGLETON
