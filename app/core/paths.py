from __future__ import annotations

import os
from pathlib import Path


def app_base_dir() -> Path:
    root = os.environ.get("PANELPRESS_HOME") or os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA") or os.getcwd()
    base = Path(root) / "PanelPress"
    base.mkdir(parents=True, exist_ok=True)
    return base


def db_path() -> Path:
    try:
        from app.core.settings import load_settings

        s = load_settings()
        if s.db_path:
            p = Path(s.db_path)
            p.parent.mkdir(parents=True, exist_ok=True)
            return p
    except Exception:
        pass
    return app_base_dir() / "journal.sqlite"


def logs_dir() -> Path:
    d = app_base_dir() / "logs"
    d.mkdir(parents=True, exist_ok=True)
    return d
