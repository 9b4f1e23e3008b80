"""Optimistic removal of entries from the shared list cache.

Each mutation captures its own snapshot before it writes, then either leaves
the list alone (success, followed by a background refresh) or rolls back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from PySide6.QtCore import QObject, Signal

from panelpress.dispatch import CallDispatcher
from panelpress.entries.list_cache import EntryListCache
from panelpress.entries.models import EntrySummary
from panelpress.entries.repository import EntryRepository
from panelpress.errors import MutationError, PanelPressError


_LOGGER = logging.getLogger(__name__)

MutationCallback = Callable[[bool, Optional[PanelPressError]], None]


@dataclass(frozen=True)
class _Removal:
    entry_id: str
    before: tuple[EntrySummary, ...]
    after: tuple[EntrySummary, ...]
    index: Optional[int]

    @property
    def removed(self) -> Optional[EntrySummary]:
        return self.before[self.index] if self.index is not None else None


def _reinsert(current: list[EntrySummary], removal: _Removal) -> list[EntrySummary]:
    """Put the removed summary back after its nearest surviving predecessor."""

    item = removal.removed
    if item is None or any(s.id == item.id for s in current):
        return current
    present = {s.id: i for i, s in enumerate(current)}
    position = 0
    for prev in reversed(removal.before[: removal.index]):
        if prev.id in present:
            position = present[prev.id] + 1
            break
    return current[:position] + [item] + current[position:]


class OptimisticListMutator(QObject):
    removed = Signal(str)
    mutation_failed = Signal(str, str)

    def __init__(
        self,
        cache: EntryListCache,
        repository: EntryRepository,
        dispatcher: CallDispatcher,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._cache = cache
        self._repository = repository
        self._dispatcher = dispatcher

    @property
    def cache(self) -> EntryListCache:
        return self._cache

    def remove_optimistically(self, entry_id: str, callback: MutationCallback | None = None) -> None:
        before = tuple(self._cache.items())
        index = next((i for i, s in enumerate(before) if s.id == entry_id), None)
        after = tuple(s for s in before if s.id != entry_id)
        removal = _Removal(entry_id=entry_id, before=before, after=after, index=index)
        # Snapshot and write with no suspension in between.
        self._cache.begin_removal(entry_id)
        self._cache.replace(after)
        self._dispatcher.submit(
            self._repository.delete,
            entry_id,
            on_success=lambda _res, r=removal: self._on_deleted(r, callback),
            on_error=lambda exc, r=removal: self._on_failed(r, exc, callback),
        )

    def _on_deleted(self, removal: _Removal, callback: MutationCallback | None) -> None:
        self._cache.end_removal(removal.entry_id)
        _LOGGER.info("Deleted entry %s", removal.entry_id)
        self.removed.emit(removal.entry_id)
        self._cache.refresh()
        if callback is not None:
            callback(True, None)

    def _on_failed(self, removal: _Removal, exc: BaseException, callback: MutationCallback | None) -> None:
        self._cache.end_removal(removal.entry_id)
        self._rollback(removal)
        reason = exc.reason if isinstance(exc, PanelPressError) else (str(exc) or exc.__class__.__name__)
        err = MutationError(f"could not delete entry: {reason}")
        _LOGGER.warning("Deleting entry %s failed, restored it: %s", removal.entry_id, reason)
        self.mutation_failed.emit(removal.entry_id, err.reason)
        if callback is not None:
            callback(False, err)

    def _rollback(self, removal: _Removal) -> None:
        current = self._cache.items()
        if tuple(current) == removal.after:
            self._cache.replace(removal.before)
            return
        # Another mutation or a refresh changed the list since; keep its work.
        restored = _reinsert(current, removal)
        if restored is not current:
            self._cache.replace(restored)
