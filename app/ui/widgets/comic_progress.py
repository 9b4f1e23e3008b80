from __future__ import annotations

from PySide6.QtWidgets import (
    QDialog,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
    QPlainTextEdit,
    QProgressBar,
    QPushButton,
    QWidget,
)

from panelpress.jobs.models import JobSnapshot, PollState
from panelpress.jobs.polling import PollingController
from panelpress.jobs.reducer import DisplayState


class ComicProgressDialog(QDialog):
    """Live progress of one comic generation job.

    Mirrors the polling controller it is given: stage label and bar, the
    storyboard text once drafted, and where the finished comic was saved.
    """

    def __init__(self, controller: PollingController, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Cartoonify in progress")
        self.setModal(False)
        self._controller = controller

        self.status_label = QLabel("Queued")
        self.progress = QProgressBar()
        self.progress.setRange(0, 100)
        self.storyboard = QPlainTextEdit()
        self.storyboard.setReadOnly(True)
        self.storyboard.setPlaceholderText("Waiting for the storyboard…")
        self.result_label = QLabel("")
        self.result_label.setWordWrap(True)

        self.cancel_btn = QPushButton("Cancel")
        self.cancel_btn.clicked.connect(controller.cancel)
        self.close_btn = QPushButton("Hide")
        self.close_btn.clicked.connect(self.hide)

        buttons = QHBoxLayout()
        buttons.addStretch(1)
        buttons.addWidget(self.cancel_btn)
        buttons.addWidget(self.close_btn)

        layout = QVBoxLayout(self)
        layout.addWidget(self.status_label)
        layout.addWidget(self.progress)
        layout.addWidget(QLabel("Storyboard (live)"))
        layout.addWidget(self.storyboard, 1)
        layout.addWidget(self.result_label)
        layout.addLayout(buttons)

        controller.display_changed.connect(self.on_display)
        controller.snapshot_changed.connect(self.on_snapshot)
        controller.error.connect(self.on_error)
        controller.finished.connect(self.on_finished)

    def reset(self) -> None:
        self.status_label.setText("Queued")
        self.progress.setValue(0)
        self.storyboard.clear()
        self.result_label.clear()
        self.cancel_btn.setEnabled(True)
        self.close_btn.setText("Hide")

    def on_display(self, display: DisplayState) -> None:
        self.status_label.setText(display.label)
        self.progress.setValue(display.percent)

    def on_snapshot(self, snapshot: JobSnapshot) -> None:
        if snapshot.storyboard_text and snapshot.storyboard_text != self.storyboard.toPlainText():
            self.storyboard.setPlainText(snapshot.storyboard_text)
        if snapshot.result_ref:
            self.result_label.setText(f"Saved to {snapshot.result_ref}")

    def on_error(self, message: str) -> None:
        self.status_label.setText(f"Bummer: {message}")

    def on_finished(self, state: PollState) -> None:
        self.cancel_btn.setEnabled(False)
        self.close_btn.setText("Close")
        if state == PollState.CANCELLED:
            self.status_label.setText("Cancelled")

    def closeEvent(self, event) -> None:  # noqa: N802 - Qt override
        if not self._controller.active:
            self._controller.reset()
        super().closeEvent(event)
