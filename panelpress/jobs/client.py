from __future__ import annotations

import logging

import requests

from panelpress.errors import CreationError, QueryError
from panelpress.jobs.backend import JobBackend
from panelpress.jobs.models import JobSnapshot


_LOGGER = logging.getLogger(__name__)


def _describe(exc: Exception) -> str:
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return f"HTTP {exc.response.status_code}"
    if isinstance(exc, requests.ConnectionError):
        return "backend unreachable"
    if isinstance(exc, requests.Timeout):
        return "backend timed out"
    return str(exc) or exc.__class__.__name__


class JobStatusClient:
    """Stateless request/response wrapper around a :class:`JobBackend`.

    All methods block; callers on the UI thread run them through
    :class:`~panelpress.dispatch.CallDispatcher`.
    """

    def __init__(self, backend: JobBackend) -> None:
        self.backend = backend

    def create(self, subject_id: str, style: str) -> str:
        if not subject_id:
            raise CreationError("cannot generate for an unsaved entry")
        try:
            job_id = self.backend.create_job(subject_id, style)
        except Exception as e:
            if isinstance(e, requests.HTTPError) and e.response is not None and e.response.status_code == 404:
                reason = f"subject not found: {subject_id}"
            else:
                reason = _describe(e)
            _LOGGER.warning("Job creation for %s failed: %s", subject_id, reason)
            raise CreationError(reason) from e
        _LOGGER.info("Created job %s for %s (style=%s)", job_id, subject_id, style)
        return job_id

    def query_status(self, job_id: str) -> JobSnapshot:
        try:
            payload = self.backend.get_job_status(job_id)
        except Exception as e:
            reason = _describe(e)
            _LOGGER.warning("Status query for job %s failed: %s", job_id, reason)
            raise QueryError(reason) from e
        try:
            return JobSnapshot.from_payload(payload)
        except ValueError as e:
            _LOGGER.warning("Malformed status for job %s: %s", job_id, e)
            raise QueryError(f"malformed status: {e}") from e

    def cancel(self, job_id: str) -> bool:
        """Best-effort cancel. Returns False (and logs) when the backend refuses."""

        try:
            self.backend.cancel_job(job_id)
        except Exception as e:
            _LOGGER.warning("Backend cancel for job %s failed: %s", job_id, _describe(e))
            return False
        return True
