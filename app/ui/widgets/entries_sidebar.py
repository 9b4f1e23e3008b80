from __future__ import annotations

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QListWidgetItem,
    QPushButton,
)

from panelpress.entries.models import EntrySummary


class EntriesSidebar(QWidget):
    """Searchable list of entry summaries with New and Delete actions."""

    entry_selected = Signal(str)
    new_requested = Signal()
    delete_requested = Signal(str)

    def __init__(self, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._entries: list[EntrySummary] = []
        self._selected_id: str | None = None

        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("Search entries…")
        self.search_edit.textChanged.connect(self._render)

        self.list = QListWidget()
        self.list.itemClicked.connect(self._on_item_clicked)

        self.new_btn = QPushButton("New Entry")
        self.new_btn.clicked.connect(self.new_requested.emit)
        self.delete_btn = QPushButton("Delete")
        self.delete_btn.clicked.connect(self._on_delete)

        buttons = QHBoxLayout()
        buttons.addWidget(self.new_btn)
        buttons.addWidget(self.delete_btn)

        self.empty_label = QLabel("No entries yet")
        self.empty_label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        layout = QVBoxLayout(self)
        layout.addWidget(self.search_edit)
        layout.addLayout(buttons)
        layout.addWidget(self.list, 1)
        layout.addWidget(self.empty_label)

    def set_entries(self, entries: list[EntrySummary]) -> None:
        self._entries = list(entries)
        self._render()

    def set_selected(self, entry_id: str | None) -> None:
        self._selected_id = entry_id
        self._render()

    def focus_search(self) -> None:
        self.search_edit.setFocus()

    def _render(self) -> None:
        query = self.search_edit.text()
        visible = [e for e in self._entries if e.matches(query)]
        self.list.clear()
        for e in visible:
            title = e.preview or "(empty entry)"
            item = QListWidgetItem(f"{title}\n{e.created_at[:10]}" + (f" · {e.mood}" if e.mood else ""))
            item.setData(Qt.ItemDataRole.UserRole, e.id)
            self.list.addItem(item)
            if e.id == self._selected_id:
                item.setSelected(True)
        if visible:
            self.empty_label.hide()
        else:
            self.empty_label.setText(f'No entries found for "{query}"' if query else "No entries yet")
            self.empty_label.show()

    def _on_item_clicked(self, item: QListWidgetItem) -> None:
        entry_id = item.data(Qt.ItemDataRole.UserRole)
        if entry_id and entry_id != self._selected_id:
            self.entry_selected.emit(entry_id)

    def _on_delete(self) -> None:
        item = self.list.currentItem()
        if item is not None:
            self.delete_requested.emit(item.data(Qt.ItemDataRole.UserRole))
