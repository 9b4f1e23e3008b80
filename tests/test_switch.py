from __future__ import annotations

import threading
from types import SimpleNamespace

import pytest

from panelpress.config import NEW_ENTRY
from panelpress.entries.autosave import EntryAutosaveScheduler
from panelpress.entries.codec import Utf8Codec
from panelpress.entries.editor import EditorSession
from panelpress.entries.list_cache import EntryListCache
from panelpress.entries.optimistic import OptimisticListMutator
from panelpress.entries.repository import EntryRepository
from panelpress.entries.switch import EntrySwitchCoordinator
from panelpress.errors import NotFoundError

from fakes import MemoryEntryStore


@pytest.fixture()
def env(qapp, dispatcher):
    store = MemoryEntryStore()
    repo = EntryRepository(store, Utf8Codec())
    editor = EditorSession()
    cache = EntryListCache(repo, dispatcher)
    mutator = OptimisticListMutator(cache, repo, dispatcher)
    # A long delay keeps the timer out of the way; switches flush explicitly.
    scheduler = EntryAutosaveScheduler(editor, repo, dispatcher, list_cache=cache, delay_ms=60_000)
    switcher = EntrySwitchCoordinator(editor, scheduler, repo, dispatcher, mutator)
    ns = SimpleNamespace(
        store=store,
        editor=editor,
        cache=cache,
        scheduler=scheduler,
        switcher=switcher,
        warnings=[],
        switched=[],
        load_errors=[],
    )
    switcher.switch_warning.connect(ns.warnings.append)
    switcher.switched.connect(ns.switched.append)
    switcher.load_failed.connect(ns.load_errors.append)
    return ns


def _switch(env, wait_until, target):
    results = []
    env.switcher.switch_to(target, lambda ok, err: results.append((ok, err)))
    wait_until(lambda: results)
    return results[0]


def test_dirty_entry_is_saved_before_the_next_one_loads(env, wait_until):
    a = env.store.seed("entry A")
    b = env.store.seed("entry B")
    _switch(env, wait_until, a)
    env.editor.set_body("entry A, edited")

    assert _switch(env, wait_until, b) == (True, None)

    ops = env.store.events
    assert ops.index(("upsert", a)) < ops.index(("get", b))
    assert env.store.body_of(a) == "entry A, edited"
    assert env.editor.entry_id == b
    assert env.editor.body == "entry B"
    assert not env.editor.dirty
    assert env.warnings == []


def test_flush_failure_warns_but_still_switches(env, wait_until):
    a = env.store.seed("entry A")
    b = env.store.seed("entry B")
    _switch(env, wait_until, a)
    env.editor.set_body("lost edit")
    env.store.fail_upsert = RuntimeError("disk full")

    assert _switch(env, wait_until, b) == (True, None)

    assert env.warnings == ["Could not save your last changes: disk full"]
    assert env.editor.entry_id == b
    assert env.store.body_of(a) == "entry A"


def test_undecodable_entry_loads_with_empty_body(env, wait_until):
    broken = env.store.seed(b"\xff\xfe not utf-8")
    assert _switch(env, wait_until, broken) == (True, None)
    assert env.editor.entry_id == broken
    assert env.editor.body == ""
    assert env.warnings == ["This entry could not be decoded; showing an empty body."]


def test_switch_to_new_entry(env, wait_until):
    a = env.store.seed("entry A")
    _switch(env, wait_until, a)
    assert _switch(env, wait_until, NEW_ENTRY) == (True, None)
    assert env.editor.entry_id is None
    assert env.editor.body == ""
    assert env.switched[-1] is None


def test_missing_entry_reports_load_failure(env, wait_until):
    a = env.store.seed("entry A")
    _switch(env, wait_until, a)

    ok, err = _switch(env, wait_until, "gone")

    assert ok is False
    assert isinstance(err, NotFoundError)
    assert env.load_errors == ["entry not found: gone"]
    assert env.editor.entry_id == a


def test_newer_switch_supersedes_older(env, wait_until, dispatcher):
    """Only the most recent target ends up in the editor."""

    a = env.store.seed("entry A")
    b = env.store.seed("entry B")
    results = []
    env.switcher.switch_to(a, lambda ok, err: results.append(a))
    env.switcher.switch_to(b, lambda ok, err: results.append(b))
    wait_until(lambda: results and dispatcher.pending == 0)

    assert results == [b]
    assert env.editor.entry_id == b
    assert [e.id for e in env.switched] == [b]


def test_deleting_the_active_entry_flushes_then_starts_new(env, wait_until):
    a = env.store.seed("entry A")
    b = env.store.seed("entry B")
    env.cache.refresh()
    wait_until(lambda: env.cache.loaded)
    _switch(env, wait_until, a)
    env.editor.set_body("edited before delete")

    results = []
    env.switcher.delete(a, lambda ok, err: results.append(ok))
    wait_until(lambda: results)

    ops = env.store.events
    assert ops.index(("upsert", a)) < ops.index(("delete", a))
    assert results == [True]
    assert env.editor.entry_id is None
    assert a not in env.store.rows
    wait_until(lambda: env.cache.ids() == [b])


def test_typing_during_the_pre_switch_save_is_saved_too(env, wait_until):
    """Text typed while the outgoing entry is being saved reaches the store before the switch."""

    a = env.store.seed("entry A")
    b = env.store.seed("entry B")
    _switch(env, wait_until, a)
    env.editor.set_body("A edited")
    env.store.upsert_gate = threading.Event()

    results = []
    env.switcher.switch_to(b, lambda ok, err: results.append((ok, err)))
    wait_until(lambda: len(env.store.upserts) == 1)
    env.editor.set_body("A edited, then more typed while saving")
    env.store.upsert_gate.set()
    wait_until(lambda: results)

    assert results == [(True, None)]
    assert env.store.body_of(a) == "A edited, then more typed while saving"
    assert [u.body_cipher for u in env.store.upserts] == [b"A edited", b"A edited, then more typed while saving"]
    ops = env.store.events
    last_save = max(i for i, op in enumerate(ops) if op == ("upsert", a))
    assert last_save < ops.index(("get", b))
    assert env.warnings == []
    assert env.editor.entry_id == b


def test_typing_while_the_target_loads_is_saved_before_it_is_shown(env, wait_until):
    a = env.store.seed("entry A")
    b = env.store.seed("entry B")
    _switch(env, wait_until, a)
    env.editor.set_body("A1")
    env.store.get_gate = threading.Event()
    loads = []
    env.editor.loaded.connect(lambda entry: loads.append((entry.id, len(env.store.events))))

    results = []
    env.switcher.switch_to(b, lambda ok, err: results.append(ok))
    wait_until(lambda: ("get", b) in env.store.events)
    env.editor.set_body("A2 typed while B loads")
    env.store.get_gate.set()
    wait_until(lambda: results)

    assert results == [True]
    assert env.store.body_of(a) == "A2 typed while B loads"
    ops = env.store.events
    last_save = max(i for i, op in enumerate(ops) if op == ("upsert", a))
    assert loads[-1][0] == b
    assert last_save < loads[-1][1]
    assert env.editor.body == "entry B"
    assert not env.editor.dirty


def test_deleting_an_entry_that_is_still_loading_never_reopens_it(env, wait_until, dispatcher, pump):
    a = env.store.seed("entry A")
    b = env.store.seed("entry B")
    env.cache.refresh()
    wait_until(lambda: env.cache.loaded)
    env.store.get_gate = threading.Event()

    switched = []
    env.switcher.switch_to(b, lambda ok, err: switched.append(ok))
    wait_until(lambda: ("get", b) in env.store.events)
    deleted = []
    env.switcher.delete(b, lambda ok, err: deleted.append(ok))
    wait_until(lambda: deleted)
    env.store.get_gate.set()
    wait_until(lambda: dispatcher.pending == 0)
    pump(0.05)

    assert deleted == [True]
    assert switched == []
    assert env.editor.entry_id is None
    assert env.editor.body == ""
    assert b not in env.store.rows
    assert all(u.id != b for u in env.store.upserts)
    wait_until(lambda: env.cache.ids() == [a])
