from __future__ import annotations

from unittest.mock import Mock

import pytest
import requests

from panelpress.errors import CreationError, QueryError
from panelpress.jobs.backend import HttpJobBackend
from panelpress.jobs.client import JobStatusClient
from panelpress.jobs.stage import Rendering

from fakes import FakeJobBackend


def _http_error(status: int) -> requests.HTTPError:
    resp = requests.Response()
    resp.status_code = status
    return requests.HTTPError(f"HTTP {status}", response=resp)


def _response(payload=None, status: int = 200) -> Mock:
    resp = Mock()
    resp.json.return_value = payload
    if status >= 400:
        resp.raise_for_status.side_effect = _http_error(status)
    return resp


def test_create_refuses_unsaved_subject():
    backend = FakeJobBackend(["queued"])
    with pytest.raises(CreationError) as exc:
        JobStatusClient(backend).create("", "nano-banana")
    assert exc.value.reason == "cannot generate for an unsaved entry"
    assert backend.create_calls == []


@pytest.mark.parametrize(
    "error, reason",
    [
        (_http_error(404), "subject not found: entry-9"),
        (_http_error(500), "HTTP 500"),
        (requests.ConnectionError("refused"), "backend unreachable"),
        (requests.Timeout("slow"), "backend timed out"),
    ],
)
def test_create_failures_become_creation_errors(error, reason):
    backend = FakeJobBackend(["queued"])
    backend.create_error = error
    with pytest.raises(CreationError) as exc:
        JobStatusClient(backend).create("entry-9", "nano-banana")
    assert exc.value.reason == reason


def test_query_status_parses_snapshot():
    client = JobStatusClient(FakeJobBackend([{"stage": "rendering", "completed": 1, "total": 4}]))
    snap = client.query_status("job-1")
    assert snap.job_id == "job-1"
    assert snap.stage == Rendering(1, 4)


def test_query_status_failures_become_query_errors():
    backend = FakeJobBackend(["queued"])
    backend.status_error = _http_error(503)
    with pytest.raises(QueryError) as exc:
        JobStatusClient(backend).query_status("job-1")
    assert exc.value.reason == "HTTP 503"


def test_query_status_rejects_malformed_payload():
    backend = Mock()
    backend.get_job_status.return_value = {"job_id": "job-1", "stage": "teleporting"}
    with pytest.raises(QueryError) as exc:
        JobStatusClient(backend).query_status("job-1")
    assert exc.value.reason.startswith("malformed status:")


def test_cancel_is_best_effort():
    backend = Mock()
    backend.cancel_job.side_effect = requests.ConnectionError("down")
    assert JobStatusClient(backend).cancel("job-1") is False
    backend.cancel_job.side_effect = None
    assert JobStatusClient(backend).cancel("job-1") is True


def test_http_backend_endpoints():
    """The HTTP backend posts jobs, reads status, and posts cancels under /jobs."""

    session = Mock()
    session.post.return_value = _response({"job_id": "job-42"})
    session.get.return_value = _response({"job_id": "job-42", "stage": {"stage": "queued"}})
    backend = HttpJobBackend("http://api.local/", timeout=5.0, session=session)

    assert backend.create_job("entry-1", "noir") == "job-42"
    session.post.assert_called_with(
        "http://api.local/jobs", json={"subject_id": "entry-1", "style": "noir"}, timeout=5.0
    )
    assert backend.get_job_status("job-42")["job_id"] == "job-42"
    session.get.assert_called_with("http://api.local/jobs/job-42", timeout=5.0)
    backend.cancel_job("job-42")
    session.post.assert_called_with("http://api.local/jobs/job-42/cancel", timeout=5.0)


def test_http_backend_rejects_bad_responses():
    session = Mock()
    session.post.return_value = _response({})
    session.get.return_value = _response(["not", "an", "object"])
    backend = HttpJobBackend("http://api.local", session=session)

    with pytest.raises(ValueError):
        backend.create_job("entry-1", "noir")
    with pytest.raises(ValueError):
        backend.get_job_status("job-1")

    session.get.return_value = _response(status=502)
    with pytest.raises(requests.HTTPError):
        backend.get_job_status("job-1")
