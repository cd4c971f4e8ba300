"""
Validation page.

Runs the external validator on a dataset folder and shows the step
checklist, followed by the errors and warnings it reported.
"""

from pathlib import Path

from PySide6.QtWidgets import (
    QFileDialog, QHBoxLayout, QLabel, QLineEdit, QListWidget, QListWidgetItem, QMessageBox,
    QPushButton, QSplitter, QTreeWidget, QTreeWidgetItem, QVBoxLayout, QWidget
)
from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtGui import QBrush, QColor

from psychds.core.validation import VALIDATION_STEPS, StepTracker, ValidationResult, iter_steps
from psychds.infrastructure.file_tree import build_file_tree, summarize_tree
from psychds.infrastructure.logging_config import get_logger
from psychds.ui.workers import ValidationThread


logger = get_logger(__name__)

PENDING_MARK = "⋯"
SUCCESS_MARK = "✓"
FAILURE_MARK = "✗"


class ValidatePage(QWidget):
    """
    Dataset validation with a step checklist.
    """

    # Signal emitted when validation finishes (valid)
    validation_finished = Signal(bool)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._thread = None
        self._items: dict[str, QTreeWidgetItem] = {}

        self._setup_ui()
        self._connect_signals()
        self.show_tracker(StepTracker())

    def _setup_ui(self):
        """Setup the user interface."""
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("<h2>Validate Dataset</h2>"))

        dir_row = QHBoxLayout()
        self.editDirectory = QLineEdit()
        self.editDirectory.setPlaceholderText("Dataset folder")
        self.btnBrowse = QPushButton("Browse...")
        self.btnValidate = QPushButton("Validate")
        dir_row.addWidget(self.editDirectory)
        dir_row.addWidget(self.btnBrowse)
        dir_row.addWidget(self.btnValidate)
        layout.addLayout(dir_row)

        self.labelStatus = QLabel("")
        layout.addWidget(self.labelStatus)

        splitter = QSplitter(Qt.Orientation.Vertical)
        self.treeSteps = QTreeWidget()
        self.treeSteps.setHeaderHidden(True)
        self._build_checklist()
        splitter.addWidget(self.treeSteps)

        self.listIssues = QListWidget()
        splitter.addWidget(self.listIssues)
        layout.addWidget(splitter, stretch=1)

    def _build_checklist(self):
        for step in VALIDATION_STEPS:
            item = QTreeWidgetItem([step.message.imperative])
            self.treeSteps.addTopLevelItem(item)
            self._items[step.key] = item
            for sub_step in step.sub_steps:
                sub_item = QTreeWidgetItem([sub_step.message.imperative])
                item.addChild(sub_item)
                self._items[sub_step.key] = sub_item
        self.treeSteps.expandAll()

    def _connect_signals(self):
        """Connect UI signals to slots."""
        self.btnBrowse.clicked.connect(self._on_browse)
        self.btnValidate.clicked.connect(self._on_validate)

    def set_dataset_dir(self, directory: Path):
        """Prefill the dataset folder, e.g. after the wizard created one."""
        self.editDirectory.setText(str(directory))

    def show_tracker(self, tracker: StepTracker):
        """Update the checklist from a step tracker."""
        for step in iter_steps():
            status = tracker.status[step.key]
            item = self._items[step.key]
            if not status.complete:
                mark, color = PENDING_MARK, QColor("gray")
            elif status.success:
                mark, color = SUCCESS_MARK, QColor("#2e7d32")
            else:
                mark, color = FAILURE_MARK, QColor("#c62828")
            text = f"{mark} {tracker.message_for(step)}"
            if status.issue:
                text += f"\n    {status.issue}"
            item.setText(0, text)
            item.setForeground(0, QBrush(color))

    def show_result(self, result: ValidationResult):
        """Show a finished validation."""
        self.show_tracker(result.tracker)
        self.listIssues.clear()
        for error in result.errors:
            item = QListWidgetItem(f"{FAILURE_MARK} {error}")
            item.setForeground(QBrush(QColor("#c62828")))
            self.listIssues.addItem(item)
        for warning in result.warnings:
            item = QListWidgetItem(f"! {warning}")
            item.setForeground(QBrush(QColor("#ef6c00")))
            self.listIssues.addItem(item)

        if result.valid:
            self.labelStatus.setText(f"<b style='color: #2e7d32;'>{SUCCESS_MARK} The dataset is valid.</b>")
        else:
            self.labelStatus.setText(f"<b style='color: #c62828;'>{FAILURE_MARK} The dataset is not valid.</b>")

    @Slot()
    def _on_browse(self):
        start = self.editDirectory.text() or str(Path.home())
        directory = QFileDialog.getExistingDirectory(self, "Select Dataset Folder", start)
        if directory:
            self.editDirectory.setText(directory)

    @Slot()
    def _on_validate(self):
        """Start validation in a worker thread."""
        directory = Path(self.editDirectory.text().strip())
        if not self.editDirectory.text().strip() or not directory.is_dir():
            QMessageBox.warning(self, "Validate", "Please select a dataset folder.")
            return

        try:
            summary = summarize_tree(build_file_tree(directory))
        except FileNotFoundError as e:
            QMessageBox.warning(self, "Validate", str(e))
            return

        self.show_tracker(StepTracker())
        self.listIssues.clear()
        self.labelStatus.setText(f"Validating {summary.files} files in {summary.dirs} folders...")
        self.btnValidate.setEnabled(False)

        self._thread = ValidationThread(directory, parent=self)
        self._thread.validation_complete.connect(self._on_validation_complete)
        self._thread.validation_error.connect(self._on_validation_error)
        self._thread.start()

    @Slot(object)
    def _on_validation_complete(self, result: ValidationResult):
        self.btnValidate.setEnabled(True)
        self._thread = None
        self.show_result(result)
        self.validation_finished.emit(result.valid)

    @Slot(str)
    def _on_validation_error(self, message: str):
        self.btnValidate.setEnabled(True)
        self._thread = None
        self.labelStatus.setText("")
        QMessageBox.critical(self, "Validation Failed", message)
