from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict, fields
from typing import Optional

from app.core.paths import app_base_dir
from panelpress.config import Config


_LOGGER = logging.getLogger(__name__)

SETTINGS_FILE = app_base_dir() / "settings.json"


@dataclass
class Settings:
    backend_url: str = "http://127.0.0.1:8765"
    style: str = Config.DEFAULT_STYLE
    autosave_delay_ms: int = Config.AUTOSAVE_DELAY_MS
    poll_interval_ms: int = Config.POLL_INTERVAL_MS
    encryption_key: Optional[str] = None  # None -> bodies stored as UTF-8
    db_path: Optional[str] = None  # None -> <app dir>/journal.sqlite


def _default_settings() -> Settings:
    return Settings()


def load_settings() -> Settings:
    try:
        if SETTINGS_FILE.exists():
            data = json.loads(SETTINGS_FILE.read_text(encoding="utf-8"))
            known = {f.name for f in fields(Settings)}
            return Settings(**{**asdict(_default_settings()), **{k: v for k, v in data.items() if k in known}})
    except Exception as e:
        _LOGGER.warning("Ignoring unreadable settings file %s: %s", SETTINGS_FILE, e)
    return _default_settings()


def save_settings(s: Settings) -> None:
    try:
        SETTINGS_FILE.parent.mkdir(parents=True, exist_ok=True)
        SETTINGS_FILE.write_text(json.dumps(asdict(s), ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as e:
        # Best-effort; the app keeps running with in-memory settings
        _LOGGER.warning("Could not write settings file %s: %s", SETTINGS_FILE, e)
