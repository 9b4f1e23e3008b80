"""Debounced autosave for the active entry.

Every edit restarts one single-shot timer; when it fires, the latest editor
snapshot is saved. At most one save is in flight. A save requested while one
is running is coalesced into a single follow-up save of the newest content,
so writes for an entry never overlap or land out of order.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from panelpress.config import Config
from panelpress.dispatch import CallDispatcher, PendingCall
from panelpress.entries.editor import EditorSession
from panelpress.entries.list_cache import EntryListCache
from panelpress.entries.models import Entry, EntryDraft
from panelpress.entries.repository import EntryRepository
from panelpress.errors import PanelPressError, PersistError


_LOGGER = logging.getLogger(__name__)

FlushCallback = Callable[[bool, Optional[PanelPressError]], None]


class EntryAutosaveScheduler(QObject):
    saving_changed = Signal(bool)
    saved = Signal(object)
    save_failed = Signal(str)

    def __init__(
        self,
        editor: EditorSession,
        repository: EntryRepository,
        dispatcher: CallDispatcher,
        *,
        list_cache: EntryListCache | None = None,
        delay_ms: int | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._editor = editor
        self._repository = repository
        self._dispatcher = dispatcher
        self._list_cache = list_cache
        self._delay_ms = int(delay_ms if delay_ms is not None else Config.AUTOSAVE_DELAY_MS)

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_timer)

        self._inflight: Optional[PendingCall] = None
        self._follow_up = False
        self._waiters: list[FlushCallback] = []
        self._last_error: Optional[PersistError] = None
        self.saves_started = 0

        editor.edited.connect(self.mark_dirty)

    @property
    def armed(self) -> bool:
        return self._timer.isActive()

    @property
    def saving(self) -> bool:
        return self._inflight is not None

    @property
    def last_error(self) -> Optional[PersistError]:
        return self._last_error

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    def mark_dirty(self) -> None:
        # QTimer.start restarts an active timer, which is the debounce.
        self._timer.start(self._delay_ms)

    def cancel(self) -> None:
        self._timer.stop()

    def flush_now(self, callback: FlushCallback | None = None) -> None:
        """Save immediately, superseding any armed timer.

        ``callback(ok, error)`` runs once the content present now has been
        persisted (or the attempt failed); immediately when nothing is dirty.
        """

        self._timer.stop()
        if callback is not None:
            self._waiters.append(callback)
        self._save()

    def _on_timer(self) -> None:
        self._save()

    def _save(self) -> None:
        if self._inflight is not None:
            self._follow_up = True
            return
        if not self._editor.dirty:
            self._resolve(True, None)
            return
        draft = self._editor.snapshot()
        self.saves_started += 1
        self.saving_changed.emit(True)
        self._inflight = self._dispatcher.submit(
            self._repository.save,
            draft,
            on_success=lambda entry, d=draft: self._on_saved(d, entry),
            on_error=lambda exc, d=draft: self._on_failed(d, exc),
        )

    def _on_saved(self, draft: EntryDraft, entry: Entry) -> None:
        self._inflight = None
        self._last_error = None
        self._editor.mark_saved(entry, draft)
        _LOGGER.info("Saved entry %s (revision %d)", entry.id, draft.revision)
        self.saved.emit(entry)
        if self._list_cache is not None:
            self._list_cache.refresh()
        if self._follow_up:
            self._follow_up = False
            if self._editor.dirty:
                self._save()
                return
        self.saving_changed.emit(False)
        self._resolve(True, None)

    def _on_failed(self, draft: EntryDraft, exc: BaseException) -> None:
        self._inflight = None
        err = exc if isinstance(exc, PersistError) else PersistError(str(exc) or exc.__class__.__name__)
        self._last_error = err
        _LOGGER.warning("Saving entry %s failed: %s", draft.id or "<new>", err.reason)
        self.save_failed.emit(err.reason)
        if self._follow_up:
            # A later explicit request still wants the newest content saved.
            self._follow_up = False
            if self._editor.dirty:
                self._save()
                return
        self.saving_changed.emit(False)
        self._resolve(False, err)

    def _resolve(self, ok: bool, error: Optional[PanelPressError]) -> None:
        waiters, self._waiters = self._waiters, []
        for cb in waiters:
            cb(ok, error)
