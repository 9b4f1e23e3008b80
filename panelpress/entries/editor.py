"""Mutable state of the entry open in the editor.

Exactly one entry is active at a time. ``session`` changes whenever a
different entry is loaded (or a new one started) and ``revision`` whenever the
content changes, which lets a finishing save tell whether it still describes
what the editor holds.
"""

from __future__ import annotations

from typing import Iterable, Optional

from PySide6.QtCore import QObject, Signal

from panelpress.entries.models import Entry, EntryDraft


class EditorSession(QObject):
    edited = Signal()
    dirty_changed = Signal(bool)
    loaded = Signal(object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self.entry_id: Optional[str] = None
        self.body: str = ""
        self.mood: Optional[str] = None
        self.tags: tuple[str, ...] = ()
        self.created_at: Optional[str] = None
        self.updated_at: Optional[str] = None
        self._dirty = False
        self._session = 0
        self._revision = 0

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def session(self) -> int:
        return self._session

    @property
    def revision(self) -> int:
        return self._revision

    def _set_dirty(self, value: bool) -> None:
        if value != self._dirty:
            self._dirty = value
            self.dirty_changed.emit(value)

    def _touch(self) -> None:
        self._revision += 1
        self._set_dirty(True)
        self.edited.emit()

    # Edits --------------------------------------------------------------------
    def set_body(self, body: str) -> None:
        if body == self.body:
            return
        self.body = body
        self._touch()

    def set_mood(self, mood: Optional[str]) -> None:
        mood = mood or None
        if mood == self.mood:
            return
        self.mood = mood
        self._touch()

    def set_tags(self, tags: Iterable[str]) -> None:
        cleaned = tuple(t.strip() for t in tags if t and t.strip())
        if cleaned == self.tags:
            return
        self.tags = cleaned
        self._touch()

    # Lifecycle ----------------------------------------------------------------
    def snapshot(self) -> EntryDraft:
        return EntryDraft(
            id=self.entry_id,
            body=self.body,
            mood=self.mood,
            tags=self.tags,
            session=self._session,
            revision=self._revision,
        )

    def load(self, entry: Entry) -> None:
        self._session += 1
        self._revision = 0
        self.entry_id = entry.id
        self.body = entry.body
        self.mood = entry.mood
        self.tags = tuple(entry.tags)
        self.created_at = entry.created_at
        self.updated_at = entry.updated_at
        self._set_dirty(False)
        self.loaded.emit(entry)

    def start_new(self) -> None:
        self.load(Entry(id=None))

    def mark_saved(self, entry: Entry, draft: EntryDraft) -> bool:
        """Record a successful save of ``draft``.

        Returns False when the editor moved on to another entry meanwhile.
        The dirty flag is cleared only if nothing was edited since the draft.
        """

        if draft.session != self._session:
            return False
        self.entry_id = entry.id
        self.created_at = entry.created_at
        self.updated_at = entry.updated_at
        if draft.revision == self._revision:
            self._set_dirty(False)
        return True
