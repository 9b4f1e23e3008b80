from __future__ import annotations

import logging

from PySide6.QtCore import QSignalBlocker
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QMainWindow,
    QWidget,
    QSplitter,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
)

from app.services.app_ctx import dispatcher, job_client, repository, settings
from app.ui.widgets.comic_progress import ComicProgressDialog
from app.ui.widgets.entries_sidebar import EntriesSidebar
from panelpress.config import NEW_ENTRY
from panelpress.entries.autosave import EntryAutosaveScheduler
from panelpress.entries.editor import EditorSession
from panelpress.entries.list_cache import EntryListCache
from panelpress.entries.optimistic import OptimisticListMutator
from panelpress.entries.switch import EntrySwitchCoordinator
from panelpress.errors import PanelPressError
from panelpress.jobs.polling import PollingController


_LOGGER = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Journal window: entry sidebar on the left, editor and comic actions on the right.

    Owns the editor session, autosave, switching and polling objects and wires
    them to the widgets; all persistence goes through the shared dispatcher.
    """

    def __init__(self) -> None:
        super().__init__()
        self.setWindowTitle("PanelPress Journal")
        s = settings()
        disp = dispatcher()
        repo = repository()

        # Core
        self.editor = EditorSession(self)
        self.entries = EntryListCache(repo, disp, parent=self)
        self.mutator = OptimisticListMutator(self.entries, repo, disp, self)
        self.autosave = EntryAutosaveScheduler(
            self.editor, repo, disp, list_cache=self.entries, delay_ms=s.autosave_delay_ms, parent=self
        )
        self.switcher = EntrySwitchCoordinator(self.editor, self.autosave, repo, disp, self.mutator, self)
        self.poller = PollingController(job_client(), disp, interval_ms=s.poll_interval_ms, parent=self)

        # Widgets
        self.sidebar = EntriesSidebar()
        self.mood_edit = QLineEdit()
        self.mood_edit.setPlaceholderText("Mood")
        self.tags_edit = QLineEdit()
        self.tags_edit.setPlaceholderText("Tags, comma separated")
        self.body_edit = QPlainTextEdit()
        self.body_edit.setPlaceholderText("Start writing your journal entry…")
        self.status_label = QLabel("")
        self.save_btn = QPushButton("Save")
        self.comic_btn = QPushButton("Make Comic")
        self.progress_dialog = ComicProgressDialog(self.poller, self)

        meta = QHBoxLayout()
        meta.addWidget(self.mood_edit)
        meta.addWidget(self.tags_edit, 1)

        actions = QHBoxLayout()
        actions.addWidget(self.status_label, 1)
        actions.addWidget(self.save_btn)
        actions.addWidget(self.comic_btn)

        editor_pane = QWidget()
        col = QVBoxLayout(editor_pane)
        col.addLayout(meta)
        col.addLayout(actions)
        col.addWidget(self.body_edit, 1)

        splitter = QSplitter()
        splitter.addWidget(self.sidebar)
        splitter.addWidget(editor_pane)
        splitter.setStretchFactor(1, 1)
        self.setCentralWidget(splitter)

        # Wiring: widgets -> core
        self.body_edit.textChanged.connect(lambda: self.editor.set_body(self.body_edit.toPlainText()))
        self.mood_edit.textEdited.connect(self.editor.set_mood)
        self.tags_edit.textEdited.connect(lambda text: self.editor.set_tags(text.split(",")))
        self.save_btn.clicked.connect(self.save_now)
        self.comic_btn.clicked.connect(self.make_comic)
        self.sidebar.entry_selected.connect(self.switcher.switch_to)
        self.sidebar.new_requested.connect(lambda: self.switcher.switch_to(NEW_ENTRY))
        self.sidebar.delete_requested.connect(self.switcher.delete)

        # Wiring: core -> widgets
        self.entries.changed.connect(self.sidebar.set_entries)
        self.editor.loaded.connect(self._on_loaded)
        self.editor.dirty_changed.connect(lambda _d: self._render_status())
        self.autosave.saving_changed.connect(lambda _s: self._render_status())
        self.autosave.saved.connect(lambda e: self.sidebar.set_selected(e.id))
        self.autosave.save_failed.connect(lambda reason: self._show_status(f"Save failed: {reason}"))
        self.switcher.switch_warning.connect(self._show_status)
        self.switcher.load_failed.connect(lambda reason: self._show_status(f"Could not open entry: {reason}"))
        self.mutator.mutation_failed.connect(lambda _id, reason: self._show_status(reason))
        self.entries.refresh_failed.connect(lambda reason: self._show_status(f"Could not load entries: {reason}"))
        self.poller.error.connect(lambda message: _LOGGER.info("Comic job error shown to user: %s", message))

        QShortcut(QKeySequence.StandardKey.Save, self, activated=self.save_now)
        QShortcut(QKeySequence.StandardKey.New, self, activated=lambda: self.switcher.switch_to(NEW_ENTRY))
        QShortcut(QKeySequence("Ctrl+K"), self, activated=self.sidebar.focus_search)

        self.entries.refresh()
        self._render_status()

    # Actions ------------------------------------------------------------------
    def save_now(self) -> None:
        if self.editor.dirty:
            self.autosave.flush_now()

    def make_comic(self) -> None:
        def start(ok: bool, err: PanelPressError | None) -> None:
            if not self.editor.entry_id:
                self._show_status("Write something first; empty entries cannot be cartoonified.")
                return
            if not ok:
                self._show_status(f"Generating from the last saved version ({err.reason if err else 'save failed'})")
            self.progress_dialog.reset()
            self.progress_dialog.show()
            self.poller.start(self.editor.entry_id, settings().style)

        self.autosave.flush_now(start)

    # Rendering ----------------------------------------------------------------
    def _on_loaded(self, entry) -> None:
        # Programmatic text must not read back as an edit (Qt rewrites line endings).
        blocker = QSignalBlocker(self.body_edit)
        self.body_edit.setPlainText(entry.body)
        blocker.unblock()
        self.mood_edit.setText(entry.mood or "")
        self.tags_edit.setText(", ".join(entry.tags))
        self.sidebar.set_selected(entry.id)
        self._render_status()

    def _render_status(self) -> None:
        if self.autosave.saving:
            text = "Saving..."
        elif self.editor.dirty:
            text = "Unsaved changes"
        elif self.editor.entry_id:
            text = "All changes saved"
        else:
            text = ""
        self.status_label.setText(text)
        self.save_btn.setEnabled(self.editor.dirty and not self.autosave.saving)
        self.comic_btn.setEnabled(bool(self.editor.entry_id) or self.editor.dirty)

    def _show_status(self, message: str) -> None:
        self.status_label.setText(message)

    def closeEvent(self, event) -> None:  # noqa: N802 - Qt override
        self.poller.reset()
        if self.editor.dirty:
            self.autosave.flush_now()
        disp = dispatcher()
        if not disp.drain(timeout=10.0):
            _LOGGER.warning("Closing with background work still pending")
        disp.shutdown(wait=True)
        super().closeEvent(event)
