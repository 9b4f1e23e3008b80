from __future__ import annotations

import sys

from PySide6.QtWidgets import QApplication

from app.core.paths import logs_dir
from app.ui.main_window import MainWindow
from panelpress.logs import configure_logging


def main() -> int:
    configure_logging(logs_dir(), names=("panelpress", "app"))
    app = QApplication(sys.argv)
    app.setApplicationName("PanelPress Journal")
    app.setOrganizationName("PanelPress")

    window = MainWindow()
    window.resize(1200, 800)
    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
