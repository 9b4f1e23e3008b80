"""Durable entry storage.

:class:`EntryStore` is the abstract contract; :class:`SqlEntryStore` keeps
entries in SQLite through SQLAlchemy. Calls block and are meant to run on the
dispatcher's worker threads.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from sqlalchemy import LargeBinary, String, Text, create_engine, select
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.pool import StaticPool

from panelpress.config import Config
from panelpress.entries.codec import BodyCodec
from panelpress.entries.models import EntryRecord, EntrySummary, EntryUpsert, make_preview, now_iso
from panelpress.errors import DecodeError, NotFoundError


_LOGGER = logging.getLogger(__name__)


class EntryStore(ABC):
    @abstractmethod
    def get_entry(self, entry_id: str) -> EntryRecord:
        """Return the entry or raise :class:`NotFoundError`."""

    @abstractmethod
    def upsert_entry(self, entry: EntryUpsert) -> EntryRecord:
        """Create when ``entry.id`` is None, else update; return the canonical row."""

    @abstractmethod
    def delete_entry(self, entry_id: str) -> None:
        """Remove the entry; deleting a missing id is a no-op."""

    @abstractmethod
    def list_entries(self, limit: int = Config.LIST_LIMIT, offset: int = Config.LIST_OFFSET) -> list[EntrySummary]:
        """Return summaries, newest first."""


class Base(DeclarativeBase):
    pass


class EntryRow(Base):
    __tablename__ = "entries"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    created_at: Mapped[str] = mapped_column(String, nullable=False, index=True)
    updated_at: Mapped[str] = mapped_column(String, nullable=False)
    body_cipher: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    mood: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    tags: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


def _dump_tags(tags: tuple[str, ...]) -> Optional[str]:
    return json.dumps(list(tags)) if tags else None


def _load_tags(raw: Optional[str]) -> tuple[str, ...]:
    if not raw:
        return ()
    try:
        value = json.loads(raw)
    except ValueError:
        return ()
    if isinstance(value, list):
        return tuple(str(v) for v in value)
    return ()


def _to_record(row: EntryRow) -> EntryRecord:
    return EntryRecord(
        id=row.id,
        created_at=row.created_at,
        updated_at=row.updated_at,
        body_cipher=bytes(row.body_cipher),
        mood=row.mood,
        tags=_load_tags(row.tags),
    )


class SqlEntryStore(EntryStore):
    """SQLite-backed store.

    Parameters
    ----------
    url:
        SQLAlchemy URL; ``sqlite://`` keeps everything in memory.
    codec:
        Used only to build list previews. Without it previews are omitted.
    """

    def __init__(self, url: str = "sqlite://", *, codec: BodyCodec | None = None) -> None:
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        self._engine = create_engine(url, **kwargs)
        self._codec = codec
        # One connection may be shared across worker threads (in-memory case).
        self._lock = threading.Lock()
        Base.metadata.create_all(self._engine)

    @classmethod
    def at_path(cls, path: Path, *, codec: BodyCodec | None = None) -> "SqlEntryStore":
        path.parent.mkdir(parents=True, exist_ok=True)
        return cls(f"sqlite:///{path}", codec=codec)

    def get_entry(self, entry_id: str) -> EntryRecord:
        with self._lock, Session(self._engine) as session:
            row = session.get(EntryRow, entry_id)
            if row is None:
                raise NotFoundError(f"entry not found: {entry_id}")
            return _to_record(row)

    def upsert_entry(self, entry: EntryUpsert) -> EntryRecord:
        entry_id = entry.id or str(uuid.uuid4())
        now = now_iso()
        with self._lock, Session(self._engine) as session, session.begin():
            row = session.get(EntryRow, entry_id)
            if row is None:
                row = EntryRow(id=entry_id, created_at=now, updated_at=now, body_cipher=entry.body_cipher)
                session.add(row)
            row.updated_at = now
            row.body_cipher = entry.body_cipher
            row.mood = entry.mood
            row.tags = _dump_tags(entry.tags)
            session.flush()
            record = _to_record(row)
        _LOGGER.debug("Upserted entry %s", entry_id)
        return record

    def delete_entry(self, entry_id: str) -> None:
        with self._lock, Session(self._engine) as session, session.begin():
            row = session.get(EntryRow, entry_id)
            if row is not None:
                session.delete(row)
        _LOGGER.debug("Deleted entry %s", entry_id)

    def _preview(self, cipher: bytes) -> Optional[str]:
        if self._codec is None:
            return None
        try:
            return make_preview(self._codec.decode(cipher))
        except DecodeError:
            return None

    def list_entries(self, limit: int = Config.LIST_LIMIT, offset: int = Config.LIST_OFFSET) -> list[EntrySummary]:
        stmt = (
            select(EntryRow)
            .order_by(EntryRow.created_at.desc(), EntryRow.id)
            .limit(max(0, int(limit)))
            .offset(max(0, int(offset)))
        )
        with self._lock, Session(self._engine) as session:
            rows = session.scalars(stmt).all()
            return [
                EntrySummary(
                    id=row.id,
                    created_at=row.created_at,
                    updated_at=row.updated_at,
                    preview=self._preview(bytes(row.body_cipher)),
                    mood=row.mood,
                    tags=_load_tags(row.tags),
                )
                for row in rows
            ]
