"""Shared in-memory view of the entry list.

The autosave scheduler, the switch coordinator, and the optimistic mutator all
go through this cache. Reads and writes happen on the Qt thread only, and no
caller suspends between reading a snapshot and writing its result.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable

from PySide6.QtCore import QObject, Signal

from panelpress.config import Config
from panelpress.dispatch import CallDispatcher
from panelpress.entries.models import EntrySummary
from panelpress.entries.repository import EntryRepository


_LOGGER = logging.getLogger(__name__)


class EntryListCache(QObject):
    changed = Signal(list)
    refresh_failed = Signal(str)

    def __init__(
        self,
        repository: EntryRepository,
        dispatcher: CallDispatcher,
        *,
        limit: int = Config.LIST_LIMIT,
        offset: int = Config.LIST_OFFSET,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._repository = repository
        self._dispatcher = dispatcher
        self.limit = limit
        self.offset = offset
        self._items: tuple[EntrySummary, ...] = ()
        self._generation = 0
        self._removals: Counter[str] = Counter()
        self.loaded = False

    def items(self) -> list[EntrySummary]:
        return list(self._items)

    def ids(self) -> list[str]:
        return [s.id for s in self._items]

    def get(self, entry_id: str) -> EntrySummary | None:
        return next((s for s in self._items if s.id == entry_id), None)

    def replace(self, items: Iterable[EntrySummary]) -> None:
        self._items = tuple(items)
        self.changed.emit(list(self._items))

    def search(self, query: str) -> list[EntrySummary]:
        return [s for s in self._items if s.matches(query)]

    # Deletions in flight are hidden from refresh results until they settle.
    def begin_removal(self, entry_id: str) -> None:
        self._removals[entry_id] += 1

    def end_removal(self, entry_id: str) -> None:
        self._removals[entry_id] -= 1
        if self._removals[entry_id] <= 0:
            del self._removals[entry_id]

    def refresh(self) -> None:
        """Reload the list in the background; only the newest refresh applies."""

        self._generation += 1
        gen = self._generation
        self._dispatcher.submit(
            self._repository.list_entries,
            self.limit,
            self.offset,
            on_success=lambda items, g=gen: self._on_refreshed(g, items),
            on_error=lambda exc, g=gen: self._on_refresh_failed(g, exc),
        )

    def _on_refreshed(self, gen: int, items: list[EntrySummary]) -> None:
        if gen != self._generation:
            return
        self.loaded = True
        self.replace(s for s in items if s.id not in self._removals)

    def _on_refresh_failed(self, gen: int, exc: BaseException) -> None:
        if gen != self._generation:
            return
        _LOGGER.warning("Refreshing entry list failed: %s", exc)
        self.refresh_failed.emit(str(exc) or exc.__class__.__name__)
