from __future__ import annotations

import logging

from panelpress.config import Config
from panelpress.entries.codec import BodyCodec
from panelpress.entries.models import Entry, EntryDraft, EntryRecord, EntrySummary, EntryUpsert, LoadedEntry
from panelpress.entries.store import EntryStore
from panelpress.errors import DecodeError, PanelPressError, PersistError


_LOGGER = logging.getLogger(__name__)


class EntryRepository:
    """Blocking entry operations combining the store with the body codec."""

    def __init__(self, store: EntryStore, codec: BodyCodec) -> None:
        self.store = store
        self.codec = codec

    def save(self, draft: EntryDraft) -> Entry:
        """Encode and upsert ``draft``; any failure becomes :class:`PersistError`."""

        try:
            cipher = self.codec.encode(draft.body)
            record = self.store.upsert_entry(
                EntryUpsert(body_cipher=cipher, id=draft.id, mood=draft.mood, tags=tuple(draft.tags))
            )
        except PersistError:
            raise
        except Exception as e:
            reason = e.reason if isinstance(e, PanelPressError) else (str(e) or e.__class__.__name__)
            raise PersistError(reason) from e
        return Entry(
            id=record.id,
            body=draft.body,
            mood=record.mood,
            tags=record.tags,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )

    def load(self, entry_id: str) -> LoadedEntry:
        """Fetch and decode an entry; an undecodable body comes back empty."""

        record: EntryRecord = self.store.get_entry(entry_id)
        decode_error = None
        try:
            body = self.codec.decode(record.body_cipher)
        except DecodeError as e:
            _LOGGER.warning("Entry %s body could not be decoded: %s", entry_id, e.reason)
            body = ""
            decode_error = e
        entry = Entry(
            id=record.id,
            body=body,
            mood=record.mood,
            tags=record.tags,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
        return LoadedEntry(entry=entry, decode_error=decode_error)

    def delete(self, entry_id: str) -> None:
        self.store.delete_entry(entry_id)

    def list_entries(self, limit: int = Config.LIST_LIMIT, offset: int = Config.LIST_OFFSET) -> list[EntrySummary]:
        return self.store.list_entries(limit, offset)
