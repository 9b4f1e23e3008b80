from __future__ import annotations

import os
import time
from typing import Callable

import pytest
from PySide6.QtCore import QCoreApplication
from PySide6.QtWidgets import QApplication

from panelpress.dispatch import CallDispatcher


@pytest.fixture(scope="session", autouse=True)
def qapp():
    # Widgets need a QApplication; render off screen so no display is required.
    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture()
def dispatcher(qapp):
    d = CallDispatcher(max_workers=4)
    yield d
    d.drain(timeout=2.0)
    d.shutdown(wait=True)


def _pump_until(predicate: Callable[[], bool], timeout: float) -> bool:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() >= deadline:
            return False
        QCoreApplication.processEvents()
        time.sleep(0.005)
    return True


@pytest.fixture()
def wait_until():
    """Pump the Qt event loop until ``predicate()`` holds or fail after ``timeout``."""

    def _wait(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
        assert _pump_until(predicate, timeout), "condition not reached before timeout"

    return _wait


@pytest.fixture()
def pump():
    """Pump the Qt event loop for ``seconds`` (lets timers that should not fire prove it)."""

    def _pump(seconds: float = 0.1) -> None:
        _pump_until(lambda: False, seconds)

    return _pump
