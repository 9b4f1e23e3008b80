from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from panelpress.config import Config


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def make_preview(text: str, limit: int = Config.PREVIEW_CHARS) -> str:
    """First ``limit`` characters of ``text``, trimmed, with ``...`` when cut."""

    if len(text) > limit:
        return f"{text[:limit].strip()}..."
    return text.strip()


@dataclass(frozen=True)
class EntryUpsert:
    """Write form handed to the store; ``id`` is None for a new entry."""

    body_cipher: bytes
    id: Optional[str] = None
    mood: Optional[str] = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class EntryRecord:
    """Persisted entry as the store returns it (body still encoded)."""

    id: str
    created_at: str
    updated_at: str
    body_cipher: bytes
    mood: Optional[str] = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class EntrySummary:
    """List form of an entry."""

    id: str
    created_at: str
    updated_at: str
    preview: Optional[str] = None
    mood: Optional[str] = None
    tags: tuple[str, ...] = ()

    def matches(self, query: str) -> bool:
        q = query.strip().lower()
        if not q:
            return True
        haystack = [self.preview or "", self.mood or "", *self.tags]
        return any(q in part.lower() for part in haystack)


@dataclass(frozen=True)
class Entry:
    """Decoded entry as loaded into (or saved from) the editor."""

    id: Optional[str]
    body: str = ""
    mood: Optional[str] = None
    tags: tuple[str, ...] = ()
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass(frozen=True)
class EntryDraft:
    """Immutable snapshot of the editor taken when a save starts.

    ``session`` identifies which loaded entry the draft belongs to and
    ``revision`` which edit it reflects.
    """

    id: Optional[str]
    body: str
    mood: Optional[str] = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    session: int = 0
    revision: int = 0


@dataclass(frozen=True)
class LoadedEntry:
    entry: Entry
    decode_error: Optional[Exception] = None
