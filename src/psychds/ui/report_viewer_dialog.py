"""
Report viewer dialog.

This module provides a dialog for displaying generated HTML reports such as
the data dictionary, and a helper that honors the force_browser setting.
"""

import webbrowser
from pathlib import Path

from PySide6.QtWidgets import QDialog, QDialogButtonBox, QPushButton, QTextBrowser, QVBoxLayout
from PySide6.QtCore import QUrl

from psychds.config.settings import get_settings
from psychds.infrastructure.logging_config import get_logger


logger = get_logger(__name__)


class ReportViewerDialog(QDialog):
    """
    Dialog for viewing an HTML report file.
    """

    def __init__(self, file_path: Path, parent=None):
        """
        Initialize the report viewer dialog.

        Args:
            file_path: Path to the HTML file to display.
            parent: Parent widget.
        """
        super().__init__(parent)

        self._file_path = file_path

        self._setup_ui()
        self._load_report()

    def _setup_ui(self):
        """Setup the user interface."""
        layout = QVBoxLayout(self)

        self._viewer = QTextBrowser(self)
        self._viewer.setOpenExternalLinks(True)
        layout.addWidget(self._viewer)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        open_button = QPushButton("Open in Browser")
        buttons.addButton(open_button, QDialogButtonBox.ButtonRole.ActionRole)
        open_button.clicked.connect(lambda: open_in_browser(self._file_path))
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

        self.setWindowTitle(f"Report: {self._file_path.name}")
        self.resize(900, 700)

    def _load_report(self):
        """Load the report into the viewer."""
        try:
            html = self._file_path.read_text(encoding='utf-8')
        except OSError as e:
            logger.error(f"Failed to read report: {e}")
            self._viewer.setPlainText(f"Failed to load report:\n{e}")
            return

        self._viewer.setSearchPaths([str(self._file_path.parent)])
        self._viewer.setHtml(html)
        logger.debug(f"Loaded report: {self._file_path}")


def open_in_browser(file_path: Path) -> bool:
    """Open a local file in the system web browser."""
    url = QUrl.fromLocalFile(str(file_path.resolve())).toString()
    logger.info(f"Opening {url} in the web browser")
    return webbrowser.open(url)


def show_report(file_path: Path, parent=None) -> None:
    """
    Show a generated report.

    Opens the system browser when force_browser is set, otherwise shows the
    in-app viewer.

    Args:
        file_path: HTML report to show.
        parent: Parent widget for the in-app viewer.
    """
    if get_settings().force_browser:
        open_in_browser(file_path)
        return
    ReportViewerDialog(file_path, parent).exec()
