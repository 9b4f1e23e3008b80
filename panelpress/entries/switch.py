"""Flush-before-switch for the active entry.

Opening another entry, starting a new one, or deleting one first persists any
pending edit of the current entry. Only after that save settles (either way)
is the editor state replaced, so a late save of entry A can never land after
entry B was loaded.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal

from panelpress.config import NEW_ENTRY
from panelpress.dispatch import CallDispatcher
from panelpress.entries.autosave import EntryAutosaveScheduler
from panelpress.entries.editor import EditorSession
from panelpress.entries.models import LoadedEntry
from panelpress.entries.optimistic import OptimisticListMutator
from panelpress.entries.repository import EntryRepository
from panelpress.errors import NotFoundError, PanelPressError


_LOGGER = logging.getLogger(__name__)

SwitchCallback = Callable[[bool, Optional[PanelPressError]], None]


class EntrySwitchCoordinator(QObject):
    switched = Signal(object)
    switch_warning = Signal(str)
    load_failed = Signal(str)

    def __init__(
        self,
        editor: EditorSession,
        scheduler: EntryAutosaveScheduler,
        repository: EntryRepository,
        dispatcher: CallDispatcher,
        mutator: OptimisticListMutator,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._editor = editor
        self._scheduler = scheduler
        self._repository = repository
        self._dispatcher = dispatcher
        self._mutator = mutator
        self._generation = 0
        self._target: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._scheduler.saving

    def _flush_then(self, cont: Callable[[bool, Optional[PanelPressError]], None]) -> None:
        if self._editor.dirty or self._scheduler.saving:
            self._scheduler.flush_now(lambda ok, err: self._settled(cont, ok, err))
        else:
            self._scheduler.cancel()
            cont(True, None)

    def _settled(
        self,
        cont: Callable[[bool, Optional[PanelPressError]], None],
        ok: bool,
        error: Optional[PanelPressError],
    ) -> None:
        if ok and self._editor.dirty:
            # Typed while the flush ran; that edit must be persisted too.
            self._flush_then(cont)
            return
        cont(ok, error)

    def _warn_unsaved(self, error: Optional[PanelPressError]) -> None:
        reason = error.reason if error is not None else "unknown error"
        message = f"Could not save your last changes: {reason}"
        _LOGGER.warning(message)
        self.switch_warning.emit(message)

    # Switching ----------------------------------------------------------------
    def switch_to(self, target: str, callback: SwitchCallback | None = None) -> None:
        """Make ``target`` (an entry id, or ``NEW_ENTRY``) the active entry.

        ``callback`` runs when this switch completes; a switch superseded by a
        newer one never completes.
        """

        self._generation += 1
        gen = self._generation
        self._target = target
        self._flush_then(lambda ok, err: self._after_flush(gen, target, callback, ok, err))

    def _after_flush(
        self,
        gen: int,
        target: str,
        callback: SwitchCallback | None,
        ok: bool,
        error: Optional[PanelPressError],
    ) -> None:
        if not ok:
            self._warn_unsaved(error)
        if gen != self._generation:
            return
        if target == NEW_ENTRY:
            self._target = None
            self._scheduler.cancel()
            self._editor.start_new()
            self.switched.emit(None)
            if callback is not None:
                callback(True, None)
            return
        mark = (self._editor.session, self._editor.revision)
        self._dispatcher.submit(
            self._repository.load,
            target,
            on_success=lambda loaded, g=gen: self._on_loaded(g, loaded, mark, callback),
            on_error=lambda exc, g=gen: self._on_load_failed(g, target, exc, callback),
        )

    def _on_loaded(
        self,
        gen: int,
        loaded: LoadedEntry,
        mark: tuple[int, int],
        callback: SwitchCallback | None,
    ) -> None:
        if gen != self._generation:
            return
        if self._editor.dirty and (self._editor.session, self._editor.revision) != mark:
            # Edited while the target was loading: persist that first too.
            self._flush_then(lambda ok, err: self._apply(gen, loaded, callback, ok, err))
            return
        self._apply(gen, loaded, callback, True, None)

    def _apply(
        self,
        gen: int,
        loaded: LoadedEntry,
        callback: SwitchCallback | None,
        ok: bool,
        error: Optional[PanelPressError],
    ) -> None:
        if not ok:
            self._warn_unsaved(error)
        if gen != self._generation:
            return
        self._target = None
        self._scheduler.cancel()
        self._editor.load(loaded.entry)
        if loaded.decode_error is not None:
            self.switch_warning.emit("This entry could not be decoded; showing an empty body.")
        _LOGGER.info("Switched to entry %s", loaded.entry.id)
        self.switched.emit(loaded.entry)
        if callback is not None:
            callback(True, None)

    def _on_load_failed(self, gen: int, target: str, exc: BaseException, callback: SwitchCallback | None) -> None:
        if gen != self._generation:
            return
        self._target = None
        if isinstance(exc, PanelPressError):
            err = exc
        else:
            err = PanelPressError(str(exc) or exc.__class__.__name__)
        if isinstance(exc, NotFoundError):
            # A vanished entry should not linger in the sidebar.
            self._mutator.cache.refresh()
        _LOGGER.warning("Loading entry %s failed: %s", target, err.reason)
        self.load_failed.emit(err.reason)
        if callback is not None:
            callback(False, err)

    # Deleting -----------------------------------------------------------------
    def delete(self, entry_id: str, callback: SwitchCallback | None = None) -> None:
        """Delete ``entry_id`` after flushing pending edits of the active entry."""

        self._flush_then(lambda ok, err: self._after_flush_delete(entry_id, callback, ok, err))

    def _after_flush_delete(
        self,
        entry_id: str,
        callback: SwitchCallback | None,
        ok: bool,
        error: Optional[PanelPressError],
    ) -> None:
        if not ok:
            self._warn_unsaved(error)
        if entry_id in (self._editor.entry_id, self._target):
            # Also supersede a switch to this entry that is still loading.
            self._generation += 1
            self._target = None
            self._scheduler.cancel()
            self._editor.start_new()
            self.switched.emit(None)
        self._mutator.remove_optimistically(entry_id, callback)
