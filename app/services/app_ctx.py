from __future__ import annotations

from functools import lru_cache

from app.core.paths import db_path
from app.core.settings import Settings, load_settings, save_settings
from panelpress.dispatch import CallDispatcher
from panelpress.entries.codec import FernetCodec, build_codec
from panelpress.entries.repository import EntryRepository
from panelpress.entries.store import SqlEntryStore
from panelpress.jobs.backend import HttpJobBackend
from panelpress.jobs.client import JobStatusClient


@lru_cache(maxsize=1)
def settings() -> Settings:
    s = load_settings()
    if not s.encryption_key:
        # First run: create the local vault key so bodies are never stored in clear.
        s.encryption_key = FernetCodec.generate_key()
        save_settings(s)
    return s


@lru_cache(maxsize=1)
def dispatcher() -> CallDispatcher:
    return CallDispatcher()


@lru_cache(maxsize=1)
def repository() -> EntryRepository:
    codec = build_codec(settings().encryption_key)
    return EntryRepository(SqlEntryStore.at_path(db_path(), codec=codec), codec)


@lru_cache(maxsize=1)
def job_client() -> JobStatusClient:
    return JobStatusClient(HttpJobBackend(settings().backend_url))
