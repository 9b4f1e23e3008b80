"""Transport-level access to the generation job backend.

The backend only exposes pull-based status. :class:`JobBackend` is the abstract
contract; :class:`HttpJobBackend` talks to it over HTTP with ``requests``.

Endpoints
---------
``POST {base}/jobs``                 body ``{"subject_id", "style"}`` -> ``{"job_id"}``
``GET  {base}/jobs/{job_id}``        -> status payload
``POST {base}/jobs/{job_id}/cancel`` -> empty
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

import requests

from panelpress.config import Config


class JobBackend(ABC):
    """Abstract job backend. Implementations may raise any exception; the
    :class:`~panelpress.jobs.client.JobStatusClient` converts them."""

    @abstractmethod
    def create_job(self, subject_id: str, style: str) -> str:
        """Start a job for ``subject_id`` and return its id."""

    @abstractmethod
    def get_job_status(self, job_id: str) -> dict[str, Any]:
        """Return the raw status payload for ``job_id``."""

    @abstractmethod
    def cancel_job(self, job_id: str) -> None:
        """Ask the backend to stop ``job_id`` (best-effort)."""


class HttpJobBackend(JobBackend):
    """JSON-over-HTTP job backend.

    Parameters
    ----------
    base_url:
        Root URL of the job service, e.g. ``http://127.0.0.1:8765``.
    timeout:
        Per-request timeout in seconds handed to ``requests``.
    session:
        Optional ``requests.Session`` (tests pass a mock).
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = Config.REQUEST_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url, "jobs", *parts])

    def create_job(self, subject_id: str, style: str) -> str:
        r = self._session.post(self._url(), json={"subject_id": subject_id, "style": style}, timeout=self.timeout)
        r.raise_for_status()
        data = r.json()
        job_id = data.get("job_id") if isinstance(data, dict) else data
        if not job_id:
            raise ValueError("Backend response did not include a job id.")
        return str(job_id)

    def get_job_status(self, job_id: str) -> dict[str, Any]:
        r = self._session.get(self._url(job_id), timeout=self.timeout)
        r.raise_for_status()
        data = r.json()
        if not isinstance(data, dict):
            raise ValueError("Backend status response is not an object.")
        return data

    def cancel_job(self, job_id: str) -> None:
        r = self._session.post(self._url(job_id, "cancel"), timeout=self.timeout)
        r.raise_for_status()
