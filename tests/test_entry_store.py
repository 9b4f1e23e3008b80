from __future__ import annotations

import itertools
from pathlib import Path

import pytest

from panelpress.entries.codec import FernetCodec, Utf8Codec
from panelpress.entries.models import EntryDraft, EntryUpsert
from panelpress.entries.repository import EntryRepository
from panelpress.entries.store import SqlEntryStore
from panelpress.errors import NotFoundError, PersistError


@pytest.fixture()
def clock(monkeypatch):
    """Deterministic, strictly increasing timestamps for store writes."""

    ticks = (f"2026-03-01T10:00:{n:02d}+00:00" for n in itertools.count())
    monkeypatch.setattr("panelpress.entries.store.now_iso", lambda: next(ticks))


def test_upsert_creates_then_updates(clock):
    store = SqlEntryStore()
    created = store.upsert_entry(EntryUpsert(body_cipher=b"first", mood="ok", tags=("a", "b")))
    assert created.id
    assert created.created_at == created.updated_at

    updated = store.upsert_entry(EntryUpsert(body_cipher=b"second", id=created.id))
    assert updated.created_at == created.created_at
    assert updated.updated_at > created.updated_at

    fetched = store.get_entry(created.id)
    assert fetched.body_cipher == b"second"
    assert fetched.mood is None
    assert fetched.tags == ()


def test_get_missing_raises_not_found():
    with pytest.raises(NotFoundError):
        SqlEntryStore().get_entry("nope")


def test_delete_missing_is_a_no_op(clock):
    store = SqlEntryStore()
    rec = store.upsert_entry(EntryUpsert(body_cipher=b"x"))
    store.delete_entry("nope")
    store.delete_entry(rec.id)
    store.delete_entry(rec.id)
    assert store.list_entries() == []


def test_list_is_newest_first_and_paged(clock, tmp_path: Path):
    store = SqlEntryStore.at_path(tmp_path / "db" / "journal.sqlite", codec=Utf8Codec())
    ids = [store.upsert_entry(EntryUpsert(body_cipher=f"entry {i}".encode())).id for i in range(4)]

    listed = store.list_entries()
    assert [s.id for s in listed] == list(reversed(ids))
    assert listed[0].preview == "entry 3"
    assert [s.id for s in store.list_entries(limit=2, offset=1)] == [ids[2], ids[1]]

    reopened = SqlEntryStore.at_path(tmp_path / "db" / "journal.sqlite")
    assert len(reopened.list_entries()) == 4
    assert reopened.list_entries()[0].preview is None


def test_repository_encrypts_and_decodes(clock):
    codec = FernetCodec(FernetCodec.generate_key())
    store = SqlEntryStore(codec=codec)
    repo = EntryRepository(store, codec)

    saved = repo.save(EntryDraft(id=None, body="a very private day", mood="calm", tags=("x",)))
    assert b"private" not in store.get_entry(saved.id).body_cipher

    loaded = repo.load(saved.id)
    assert loaded.decode_error is None
    assert loaded.entry.body == "a very private day"
    assert loaded.entry.tags == ("x",)
    assert repo.list_entries()[0].preview == "a very private day"


def test_repository_load_survives_undecodable_body(clock):
    store = SqlEntryStore()
    rec = store.upsert_entry(EntryUpsert(body_cipher=b"\xff\xfe"))
    loaded = EntryRepository(store, Utf8Codec()).load(rec.id)
    assert loaded.entry.id == rec.id
    assert loaded.entry.body == ""
    assert loaded.decode_error is not None


def test_repository_save_failure_is_persist_error():
    class BrokenStore(SqlEntryStore):
        def upsert_entry(self, entry):
            raise OSError("disk full")

    with pytest.raises(PersistError) as exc:
        EntryRepository(BrokenStore(), Utf8Codec()).save(EntryDraft(id=None, body="x"))
    assert exc.value.reason == "disk full"
