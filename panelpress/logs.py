"""Logging setup shared by the desktop shell and the CLI."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path
from typing import Iterable, Optional

from panelpress.config import log_level


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(
    logs_dir: Optional[Path] = None,
    level: Optional[str] = None,
    names: Iterable[str] = ("panelpress",),
) -> list[logging.Logger]:
    """Attach a stderr handler and, when ``logs_dir`` is given, a daily rotating file.

    Safe to call more than once; handlers are only added on the first call
    per logger.
    """

    loggers = [logging.getLogger(name) for name in names]
    for logger in loggers:
        logger.setLevel((level or log_level()).upper())
    pending = [lg for lg in loggers if not getattr(lg, "_panelpress_configured", False)]
    if not pending:
        return loggers

    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if logs_dir is not None:
        logs_dir.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.TimedRotatingFileHandler(
                logs_dir / "panelpress.log", when="midnight", backupCount=7, encoding="utf-8"
            )
        )
    for h in handlers:
        h.setFormatter(formatter)
    for logger in pending:
        for h in handlers:
            logger.addHandler(h)
        logger._panelpress_configured = True  # type: ignore[attr-defined]
    return loggers
