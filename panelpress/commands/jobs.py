"""Start and watch comic generation jobs from the terminal.

Both commands run the same polling controller the desktop app uses, on a
headless Qt event loop, and render the display state as a progress bar.

Examples
--------
  panelpress generate 3f0c... --backend http://127.0.0.1:8765
  panelpress generate 3f0c... --backend http://127.0.0.1:8765 --style noir --interval 500
  panelpress watch 9a41... --backend http://127.0.0.1:8765
"""

from __future__ import annotations

from typing import Callable

import click
from PySide6.QtCore import QCoreApplication, QEventLoop
from tqdm import tqdm

from panelpress.config import Config
from panelpress.dispatch import CallDispatcher
from panelpress.jobs.backend import HttpJobBackend
from panelpress.jobs.client import JobStatusClient
from panelpress.jobs.models import JobSnapshot, PollState
from panelpress.jobs.polling import PollingController
from panelpress.jobs.reducer import DisplayState


def _run(backend_url: str, interval: int, kick: Callable[[PollingController], None]) -> JobSnapshot | None:
    QCoreApplication.instance() or QCoreApplication([])
    dispatcher = CallDispatcher(max_workers=2)
    controller = PollingController(JobStatusClient(HttpJobBackend(backend_url)), dispatcher, interval_ms=interval)
    loop = QEventLoop()
    bar = tqdm(total=100, unit="%", desc="Queued", leave=True)

    def on_display(display: DisplayState) -> None:
        bar.set_description(display.label)
        bar.n = display.percent
        bar.refresh()

    controller.display_changed.connect(on_display)
    controller.finished.connect(lambda _state: loop.quit())
    try:
        kick(controller)
        loop.exec()
    finally:
        bar.close()
        dispatcher.shutdown(wait=True)

    if controller.state == PollState.ERROR:
        err = controller.last_error
        raise click.ClickException(err.reason if err else "polling stopped")
    snapshot = controller.job.snapshot if controller.job else None
    display = controller.display
    if display is not None and display.error_message:
        raise click.ClickException(f"Job failed: {display.error_message}")
    return snapshot


def _report(snapshot: JobSnapshot | None) -> None:
    if snapshot is None:
        return
    click.echo(f"Job {snapshot.job_id}: {snapshot.stage.name}")
    if snapshot.result_ref:
        click.echo(f"Result: {snapshot.result_ref}")


@click.command(name="generate")
@click.argument("entry_id", type=str)
@click.option("backend", "--backend", type=str, envvar="PANELPRESS_BACKEND", required=True, help="Job backend base URL")
@click.option("style", "--style", type=str, default=Config.DEFAULT_STYLE, show_default=True, help="Style tag")
@click.option(
    "interval",
    "--interval",
    type=click.IntRange(min=50),
    default=Config.POLL_INTERVAL_MS,
    show_default=True,
    help="Milliseconds between status queries",
)
def generate(entry_id: str, backend: str, style: str, interval: int) -> None:
    """Create a generation job for ENTRY_ID and watch it until it finishes."""

    _report(_run(backend, interval, lambda c: c.start(entry_id, style)))


@click.command(name="watch")
@click.argument("job_id", type=str)
@click.option("backend", "--backend", type=str, envvar="PANELPRESS_BACKEND", required=True, help="Job backend base URL")
@click.option(
    "interval",
    "--interval",
    type=click.IntRange(min=50),
    default=Config.POLL_INTERVAL_MS,
    show_default=True,
    help="Milliseconds between status queries",
)
def watch(job_id: str, backend: str, interval: int) -> None:
    """Watch an existing job until it reaches a terminal stage."""

    _report(_run(backend, interval, lambda c: c.watch(job_id)))
