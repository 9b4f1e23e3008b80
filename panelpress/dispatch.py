"""Run blocking collaborator calls off the UI thread.

The job backend, the entry store, and the body codec are all blocking. The
dispatcher runs them on a thread pool and hands the outcome back to the Qt
thread through a queued signal, so callbacks never run on a worker thread and
never run synchronously inside :meth:`CallDispatcher.submit`.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from PySide6.QtCore import QCoreApplication, QObject, Qt, Signal

from panelpress.config import Config


_LOGGER = logging.getLogger(__name__)

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException], None]


class PendingCall:
    """Handle for one submitted call; ``discard`` drops its delivery."""

    def __init__(self, label: str, on_success: Optional[SuccessCallback], on_error: Optional[ErrorCallback]) -> None:
        self.label = label
        self.on_success = on_success
        self.on_error = on_error
        self.discarded = False
        self.delivered = False

    def discard(self) -> None:
        self.discarded = True

    def __repr__(self) -> str:
        return f"PendingCall({self.label!r}, discarded={self.discarded}, delivered={self.delivered})"


class CallDispatcher(QObject):
    _completed = Signal(object)

    def __init__(self, max_workers: int | None = None, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or Config.DISPATCH_WORKERS,
            thread_name_prefix="panelpress-io",
        )
        self._inflight: list[PendingCall] = []
        self._completed.connect(self._deliver, Qt.ConnectionType.QueuedConnection)

    def submit(
        self,
        fn: Callable[..., Any],
        *args: Any,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> PendingCall:
        call = PendingCall(getattr(fn, "__qualname__", repr(fn)), on_success, on_error)
        self._inflight.append(call)
        fut = self._executor.submit(fn, *args)
        fut.add_done_callback(lambda f, c=call: self._completed.emit((c, f)))
        return call

    @property
    def pending(self) -> int:
        return len(self._inflight)

    def _deliver(self, item: tuple[PendingCall, Future]) -> None:
        call, fut = item
        if call in self._inflight:
            self._inflight.remove(call)
        call.delivered = True
        if call.discarded:
            _LOGGER.debug("Dropped result of discarded call %s", call.label)
            return
        exc = fut.exception()
        if exc is not None:
            if call.on_error is not None:
                call.on_error(exc)
            else:
                _LOGGER.error("Background call %s failed: %s", call.label, exc)
            return
        if call.on_success is not None:
            call.on_success(fut.result())

    def drain(self, timeout: float = 10.0) -> bool:
        """Pump the Qt event loop until every submitted call was delivered.

        Used at shutdown and by the CLI; returns False on timeout.
        """

        deadline = time.monotonic() + timeout
        while self._inflight:
            if time.monotonic() >= deadline:
                return False
            QCoreApplication.processEvents()
            time.sleep(0.005)
        return True

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
