from __future__ import annotations

import json
import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from panelpress import __version__
from panelpress.cli import cli
from panelpress.entries.codec import FernetCodec
from panelpress.entries.models import EntryUpsert
from panelpress.entries.store import SqlEntryStore

from fakes import FakeJobBackend


@pytest.fixture()
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _detach_cli_logging():
    yield
    logger = logging.getLogger("panelpress")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.__dict__.pop("_panelpress_configured", None)


@pytest.fixture()
def journal(tmp_path: Path):
    key = FernetCodec.generate_key()
    codec = FernetCodec(key)
    db = tmp_path / "journal.sqlite"
    store = SqlEntryStore.at_path(db, codec=codec)
    store.upsert_entry(EntryUpsert(body_cipher=codec.encode("Beach day with friends"), mood="happy"))
    store.upsert_entry(EntryUpsert(body_cipher=codec.encode("Long meeting"), tags=("work",)))
    return {"db": db, "key": key}


def test_version(cli_runner):
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_entries_list_table(cli_runner, journal):
    result = cli_runner.invoke(cli, ["entries", "list", "--db", str(journal["db"]), "--key", journal["key"]])
    assert result.exit_code == 0, result.output
    lines = result.output.strip().splitlines()
    assert len(lines) == 2
    assert "[happy]  Beach day with friends" in result.output
    assert "Long meeting" in result.output


def test_entries_list_json_with_search(cli_runner, journal):
    result = cli_runner.invoke(
        cli,
        ["entries", "list", "--db", str(journal["db"]), "--key", journal["key"], "--search", "work", "--format", "json"],
    )
    assert result.exit_code == 0, result.output
    rows = json.loads(result.output)
    assert [r["preview"] for r in rows] == ["Long meeting"]
    assert rows[0]["tags"] == ["work"]


def test_entries_list_empty_search(cli_runner, journal):
    result = cli_runner.invoke(
        cli, ["entries", "list", "--db", str(journal["db"]), "--key", journal["key"], "--search", "volcano"]
    )
    assert result.exit_code == 0
    assert "No entries." in result.output


def test_entries_list_missing_db(cli_runner, tmp_path: Path):
    result = cli_runner.invoke(cli, ["entries", "list", "--db", str(tmp_path / "absent.sqlite")])
    assert result.exit_code != 0
    assert "Missing database file" in result.output


def test_entries_list_bad_key(cli_runner, journal):
    result = cli_runner.invoke(cli, ["entries", "list", "--db", str(journal["db"]), "--key", "garbage"])
    assert result.exit_code != 0
    assert "Invalid --key" in result.output


def test_generate_runs_until_done(cli_runner):
    backend = FakeJobBackend(
        ["queued", {"stage": "rendering", "completed": 1, "total": 2}, "done"], result_ref="comics/job-1.png"
    )
    with patch("panelpress.commands.jobs.HttpJobBackend", return_value=backend) as factory:
        result = cli_runner.invoke(
            cli, ["generate", "entry-1", "--backend", "http://backend.local", "--style", "noir", "--interval", "50"]
        )

    assert result.exit_code == 0, result.output
    factory.assert_called_once_with("http://backend.local")
    assert backend.create_calls == [("entry-1", "noir")]
    assert "Job job-1: done" in result.output
    assert "Result: comics/job-1.png" in result.output


def test_generate_reports_failed_job(cli_runner):
    backend = FakeJobBackend(["queued", {"stage": "failed", "error": "quota exceeded"}])
    with patch("panelpress.commands.jobs.HttpJobBackend", return_value=backend):
        result = cli_runner.invoke(cli, ["generate", "entry-1", "--backend", "http://backend.local", "--interval", "50"])

    assert result.exit_code == 1
    assert "Job failed: quota exceeded" in result.output


def test_watch_reports_unreachable_backend(cli_runner):
    import requests

    backend = FakeJobBackend(["queued"])
    backend.status_error = requests.ConnectionError("refused")
    with patch("panelpress.commands.jobs.HttpJobBackend", return_value=backend):
        result = cli_runner.invoke(cli, ["watch", "job-5", "--backend", "http://backend.local", "--interval", "50"])

    assert result.exit_code == 1
    assert "backend unreachable" in result.output
    assert backend.status_calls == 1


def test_generate_requires_backend(cli_runner, monkeypatch):
    monkeypatch.delenv("PANELPRESS_BACKEND", raising=False)
    result = cli_runner.invoke(cli, ["generate", "entry-1"])
    assert result.exit_code == 2
    assert "--backend" in result.output
