"""Error taxonomy for job observation and entry persistence.

Every error carries a human-readable ``reason`` that the desktop shell and the
CLI show as-is.
"""

from __future__ import annotations


class PanelPressError(Exception):
    """Base class for all panelpress errors."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class CreationError(PanelPressError):
    """A generation job could not be started."""


class QueryError(PanelPressError):
    """A job status query failed; the job may still run server-side."""


class StageFailure(PanelPressError):
    """The backend reported the ``failed`` stage for a job."""


class PersistError(PanelPressError):
    """Saving an entry failed; local edits are still dirty."""


class DecodeError(PanelPressError):
    """An entry body could not be decoded."""


class NotFoundError(PanelPressError):
    """The requested entry does not exist."""


class MutationError(PanelPressError):
    """An optimistic list mutation was rejected by the store."""
