"""Polling state machine for the one active job of a generation surface.

``IDLE -> POLLING -> TERMINAL | CANCELLED | ERROR``

Only one status query is ever in flight, and the next one is scheduled on a
single-shot ``QTimer`` after the previous response was applied. Every
background result carries the generation number it was issued under; a result
from an older generation (cancelled, reset, or superseded by a newer job) is
dropped without touching visible state.
"""

from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal

from panelpress.config import Config
from panelpress.dispatch import CallDispatcher, PendingCall
from panelpress.errors import CreationError, PanelPressError, QueryError, StageFailure
from panelpress.jobs.client import JobStatusClient
from panelpress.jobs.models import JobSnapshot, JobSpec, ObservedJob, PollState
from panelpress.jobs.reducer import DEFAULT_FRACTIONS, DisplayState, StageFractions, reduce_stage
from panelpress.jobs.stage import Failed


_LOGGER = logging.getLogger(__name__)


class PollingController(QObject):
    state_changed = Signal(str)
    snapshot_changed = Signal(object)
    display_changed = Signal(object)
    error = Signal(str)
    finished = Signal(object)

    def __init__(
        self,
        client: JobStatusClient,
        dispatcher: CallDispatcher,
        *,
        interval_ms: int | None = None,
        fractions: StageFractions = DEFAULT_FRACTIONS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._client = client
        self._dispatcher = dispatcher
        self._interval_ms = int(interval_ms if interval_ms is not None else Config.POLL_INTERVAL_MS)
        self._fractions = fractions

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._query)

        self._state = PollState.IDLE
        self._generation = 0
        self._starting = False
        self._job: Optional[ObservedJob] = None
        self._inflight: Optional[PendingCall] = None
        self._display: Optional[DisplayState] = None
        self._last_error: Optional[PanelPressError] = None
        self.queries_issued = 0

    # Introspection ------------------------------------------------------------
    @property
    def state(self) -> PollState:
        return self._state

    @property
    def job(self) -> Optional[ObservedJob]:
        return self._job

    @property
    def job_id(self) -> Optional[str]:
        return self._job.job_id if self._job else None

    @property
    def display(self) -> Optional[DisplayState]:
        return self._display

    @property
    def last_error(self) -> Optional[PanelPressError]:
        return self._last_error

    @property
    def starting(self) -> bool:
        return self._starting

    @property
    def active(self) -> bool:
        return self._starting or self._state == PollState.POLLING

    @property
    def timer_armed(self) -> bool:
        return self._timer.isActive()

    # Commands -----------------------------------------------------------------
    def start(self, subject_id: str, style: str | None = None) -> None:
        """Create a job for ``subject_id`` and poll it once creation succeeds.

        An already active job on this surface is cancelled first.
        """

        if self.active:
            self.cancel()
        self._generation += 1
        gen = self._generation
        spec = JobSpec(subject_id=subject_id, style=style or Config.DEFAULT_STYLE)
        self._job = None
        self._display = None
        self._last_error = None
        self._starting = True
        self._set_state(PollState.IDLE)
        self._dispatcher.submit(
            self._client.create,
            spec.subject_id,
            spec.style,
            on_success=lambda job_id, g=gen: self._on_created(g, spec, job_id),
            on_error=lambda exc, g=gen: self._on_create_failed(g, exc),
        )

    def watch(self, job_id: str, spec: JobSpec | None = None) -> None:
        """Poll an already created job."""

        if self.active:
            self.cancel()
        self._generation += 1
        self._begin(job_id, spec or JobSpec(subject_id="", style=""))

    def cancel(self) -> bool:
        """Stop observing the active job. Returns False when nothing was active.

        Polling stops locally regardless of whether the backend honours the
        cancel request.
        """

        if not self.active:
            return False
        job_id = self.job_id
        self._invalidate()
        self._stop(PollState.CANCELLED)
        if job_id:
            _LOGGER.info("Cancelled job %s", job_id)
            self._dispatcher.submit(self._client.cancel, job_id)
        return True

    def reset(self) -> None:
        """Forget the current job; used when the owning surface is dismissed."""

        self._invalidate()
        self._job = None
        self._display = None
        self._last_error = None
        self._set_state(PollState.IDLE)

    # Internals ----------------------------------------------------------------
    def _invalidate(self) -> None:
        self._generation += 1
        self._starting = False
        self._timer.stop()
        if self._inflight is not None:
            self._inflight.discard()
            self._inflight = None

    def _set_state(self, state: PollState) -> None:
        if state != self._state:
            self._state = state
            self.state_changed.emit(state.value)

    def _stop(self, state: PollState) -> None:
        self._timer.stop()
        self._inflight = None
        self._set_state(state)
        self.finished.emit(state)

    def _begin(self, job_id: str, spec: JobSpec) -> None:
        self._job = ObservedJob(job_id=job_id, spec=spec)
        self._display = None
        self._last_error = None
        self._starting = False
        self._set_state(PollState.POLLING)
        self._query()

    def _on_created(self, gen: int, spec: JobSpec, job_id: str) -> None:
        if gen != self._generation:
            # Nobody observes this job any more; do not leave it running.
            _LOGGER.info("Job %s was created after its surface moved on; cancelling", job_id)
            self._dispatcher.submit(self._client.cancel, job_id)
            return
        self._begin(job_id, spec)

    def _on_create_failed(self, gen: int, exc: BaseException) -> None:
        if gen != self._generation:
            return
        self._starting = False
        err = exc if isinstance(exc, CreationError) else CreationError(str(exc))
        self._last_error = err
        self._stop(PollState.ERROR)
        self.error.emit(err.reason)

    def _query(self) -> None:
        if self._state != PollState.POLLING or self._job is None or self._inflight is not None:
            return
        gen = self._generation
        self.queries_issued += 1
        self._inflight = self._dispatcher.submit(
            self._client.query_status,
            self._job.job_id,
            on_success=lambda snap, g=gen: self._on_status(g, snap),
            on_error=lambda exc, g=gen: self._on_query_failed(g, exc),
        )

    def _on_status(self, gen: int, snapshot: JobSnapshot) -> None:
        if gen != self._generation or self._state != PollState.POLLING or self._job is None:
            _LOGGER.debug("Discarded stale status for job %s", snapshot.job_id)
            return
        self._inflight = None
        if self._job.accept(snapshot):
            self._display = reduce_stage(snapshot.stage, self._fractions)
            self.snapshot_changed.emit(snapshot)
            self.display_changed.emit(self._display)
        else:
            _LOGGER.debug("Rejected out-of-order status for job %s", snapshot.job_id)

        if self._job.terminal:
            stage = self._job.snapshot.stage if self._job.snapshot else None
            if isinstance(stage, Failed):
                self._last_error = StageFailure(stage.error)
                _LOGGER.warning("Job %s failed: %s", self._job.job_id, stage.error)
                self._stop(PollState.TERMINAL)
                self.error.emit(stage.error)
            else:
                _LOGGER.info("Job %s finished", self._job.job_id)
                self._stop(PollState.TERMINAL)
            return
        self._timer.start(self._interval_ms)

    def _on_query_failed(self, gen: int, exc: BaseException) -> None:
        if gen != self._generation or self._state != PollState.POLLING:
            return
        self._inflight = None
        err = exc if isinstance(exc, QueryError) else QueryError(str(exc))
        self._last_error = err
        self._stop(PollState.ERROR)
        self.error.emit(err.reason)
