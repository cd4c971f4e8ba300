"""
Progress dialog for long-running operations.

This module provides a dialog for showing progress while a dataset is
created, analyzed or uploaded.
"""

from PySide6.QtWidgets import QDialog, QLabel, QProgressBar, QVBoxLayout
from PySide6.QtCore import Signal, Slot, Qt


class ProgressDialog(QDialog):
    """
    Dialog for showing progress during background operations.

    This dialog displays a progress bar and status message while a worker
    thread runs.
    """

    # Signal emitted when the dialog should be closed
    finished = Signal()

    def __init__(self, title: str = "Working...", parent=None):
        """
        Initialize the progress dialog.

        Args:
            title: Window title.
            parent: Parent widget.
        """
        super().__init__(parent)
        self._setup_ui(title)

    def _setup_ui(self, title: str):
        """Setup the user interface."""
        self.setWindowTitle(title)
        self.setMinimumWidth(420)

        layout = QVBoxLayout(self)
        self.messageLabel = QLabel("Starting...")
        self.messageLabel.setWordWrap(True)
        layout.addWidget(self.messageLabel)

        self.progressBar = QProgressBar()
        self.progressBar.setRange(0, 100)
        layout.addWidget(self.progressBar)

        # Set window flags to make it a proper dialog window
        self.setWindowFlags(
            Qt.WindowType.Dialog |
            Qt.WindowType.WindowTitleHint |
            Qt.WindowType.CustomizeWindowHint
        )
        self.setWindowModality(Qt.WindowModality.ApplicationModal)

    @Slot(int, int, str)
    def update_progress(self, current: int, total: int, message: str):
        """
        Update the progress bar and message.

        Args:
            current: Current progress value.
            total: Total progress value.
            message: Status message to display.
        """
        if total > 0:
            self.progressBar.setValue(int((current / total) * 100))
        self.messageLabel.setText(message)

    @Slot()
    def complete(self):
        """Mark the operation as complete and close the dialog."""
        self.progressBar.setValue(100)
        self.messageLabel.setText("Done!")
        self.accept()
