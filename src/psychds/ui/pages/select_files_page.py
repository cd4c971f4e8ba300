"""
Step 1 of the wizard: choose the project directory and its data files.
"""

from pathlib import Path

from PySide6.QtWidgets import (
    QCheckBox, QFileDialog, QFormLayout, QGroupBox, QHBoxLayout, QLabel, QLineEdit,
    QListWidget, QListWidgetItem, QMessageBox, QPushButton, QVBoxLayout, QWidget
)
from PySide6.QtCore import Qt, Signal, Slot

from psychds.config.settings import get_settings_manager
from psychds.core.models import STANDARD_DIRECTORIES, WizardState
from psychds.core.navigation import check_step1
from psychds.infrastructure.csv_loader import extract_csv_structure, list_csv_files
from psychds.infrastructure.file_tree import organize_directory_hierarchy
from psychds.infrastructure.logging_config import get_logger


logger = get_logger(__name__)


class SelectFilesPage(QWidget):
    """
    Project directory, CSV file selection and optional folders.
    """

    # Signal emitted when the user continues to the next step
    continue_requested = Signal()

    # Signal emitted when a project directory is opened (path)
    project_opened = Signal(str)

    def __init__(self, state: WizardState, parent=None):
        """
        Initialize the page.

        Args:
            state: Shared wizard state.
            parent: Parent widget.
        """
        super().__init__(parent)
        self._state = state
        self._dir_checks: dict[str, QCheckBox] = {}

        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self):
        """Setup the user interface."""
        layout = QVBoxLayout(self)

        title = QLabel("<h2>Step 1: Select Files</h2>")
        layout.addWidget(title)

        form = QFormLayout()
        self.editProjectName = QLineEdit()
        self.editProjectName.setPlaceholderText("e.g. stroop_study")
        form.addRow("Project name:", self.editProjectName)

        dir_row = QHBoxLayout()
        self.editDirectory = QLineEdit()
        self.editDirectory.setReadOnly(True)
        self.btnBrowse = QPushButton("Browse...")
        dir_row.addWidget(self.editDirectory)
        dir_row.addWidget(self.btnBrowse)
        form.addRow("Data directory:", dir_row)
        layout.addLayout(form)

        files_group = QGroupBox("Data files")
        files_layout = QVBoxLayout(files_group)
        self.listFiles = QListWidget()
        files_layout.addWidget(self.listFiles)
        select_row = QHBoxLayout()
        self.btnSelectAll = QPushButton("Select All")
        self.btnSelectNone = QPushButton("Select None")
        self.labelFileCount = QLabel("")
        select_row.addWidget(self.btnSelectAll)
        select_row.addWidget(self.btnSelectNone)
        select_row.addStretch()
        select_row.addWidget(self.labelFileCount)
        files_layout.addLayout(select_row)
        layout.addWidget(files_group, stretch=1)

        dirs_group = QGroupBox("Optional folders")
        dirs_layout = QHBoxLayout(dirs_group)
        for name in STANDARD_DIRECTORIES:
            check = QCheckBox(name)
            self._dir_checks[name] = check
            dirs_layout.addWidget(check)
        self.editCustomDirs = QLineEdit()
        self.editCustomDirs.setPlaceholderText("Other folders, comma separated")
        dirs_layout.addWidget(self.editCustomDirs)
        layout.addWidget(dirs_group)

        buttons = QHBoxLayout()
        buttons.addStretch()
        self.btnContinue = QPushButton("Continue")
        buttons.addWidget(self.btnContinue)
        layout.addLayout(buttons)

    def _connect_signals(self):
        """Connect UI signals to slots."""
        self.btnBrowse.clicked.connect(self._on_browse)
        self.btnSelectAll.clicked.connect(lambda: self._set_all_checked(True))
        self.btnSelectNone.clicked.connect(lambda: self._set_all_checked(False))
        self.listFiles.itemChanged.connect(self._update_file_count)
        self.btnContinue.clicked.connect(self._on_continue)

    def load_from_state(self):
        """Show the values stored in the wizard state."""
        self.editProjectName.setText(self._state.project_name)
        self.editDirectory.setText(self._state.project_dir)
        for name, check in self._dir_checks.items():
            check.setChecked(getattr(self._state.optional_dirs, name))
        self.editCustomDirs.setText(", ".join(self._state.optional_dirs.custom))
        if self._state.project_dir:
            self._populate_files(Path(self._state.project_dir), selected=set(self._state.data_files))

    def save_to_state(self):
        """Copy the form values into the wizard state."""
        self._state.project_name = self.editProjectName.text().strip()
        self._state.project_dir = self.editDirectory.text().strip()
        for name, check in self._dir_checks.items():
            setattr(self._state.optional_dirs, name, check.isChecked())
        self._state.optional_dirs.custom = [
            part.strip() for part in self.editCustomDirs.text().split(",") if part.strip()
        ]
        self._state.set_data_files(self.selected_files())

    def _file_items(self) -> list[QListWidgetItem]:
        """List items of data files; folder headings are skipped."""
        items = [self.listFiles.item(row) for row in range(self.listFiles.count())]
        return [item for item in items if item.data(Qt.ItemDataRole.UserRole) is not None]

    def selected_files(self) -> list[str]:
        """Relative paths of the checked files."""
        return [
            item.data(Qt.ItemDataRole.UserRole)
            for item in self._file_items()
            if item.checkState() == Qt.CheckState.Checked
        ]

    def open_directory(self, directory: str):
        """
        Use a directory as the project directory.

        Args:
            directory: Directory containing the CSV files.
        """
        path = Path(directory)
        if not path.is_dir():
            QMessageBox.warning(self, "Directory Not Found", f"The directory does not exist:\n{directory}")
            return

        self.editDirectory.setText(str(path))
        if not self.editProjectName.text().strip():
            self.editProjectName.setText(path.name)
        self._populate_files(path)
        self.project_opened.emit(str(path))

    def _populate_files(self, directory: Path, selected: set[str] | None = None):
        """Fill the file list, grouped under a heading per folder."""
        self.listFiles.blockSignals(True)
        self.listFiles.clear()
        files = list_csv_files(directory)
        for folder, names in organize_directory_hierarchy(files).items():
            if not names:
                continue
            if folder:
                heading = QListWidgetItem(f"{folder}/")
                heading.setFlags(Qt.ItemFlag.ItemIsEnabled)
                self.listFiles.addItem(heading)
            for name in names:
                rel_path = f"{folder}/{name}" if folder else name
                item = QListWidgetItem(f"    {name}" if folder else name)
                item.setData(Qt.ItemDataRole.UserRole, rel_path)
                item.setToolTip(rel_path)
                item.setFlags(item.flags() | Qt.ItemFlag.ItemIsUserCheckable)
                checked = selected is None or rel_path in selected
                item.setCheckState(Qt.CheckState.Checked if checked else Qt.CheckState.Unchecked)
                self.listFiles.addItem(item)
        self.listFiles.blockSignals(False)
        self._update_file_count()
        logger.info(f"Found {len(files)} CSV files in {directory}")

    def _set_all_checked(self, checked: bool):
        state = Qt.CheckState.Checked if checked else Qt.CheckState.Unchecked
        self.listFiles.blockSignals(True)
        for item in self._file_items():
            item.setCheckState(state)
        self.listFiles.blockSignals(False)
        self._update_file_count()

    @Slot()
    def _update_file_count(self):
        self.labelFileCount.setText(f"{len(self.selected_files())} of {len(self._file_items())} selected")

    @Slot()
    def _on_browse(self):
        """Handle Browse button click."""
        start = self.editDirectory.text() or str(Path.home())
        directory = QFileDialog.getExistingDirectory(self, "Select Data Directory", start)
        if directory:
            self.open_directory(directory)

    @Slot()
    def _on_continue(self):
        """Check the inputs and ask to move to step 2."""
        self.save_to_state()
        check = check_step1(self._state)

        if not check.ok:
            QMessageBox.warning(self, "Missing Information", "\n".join(check.errors))
            return

        for warning in check.warnings:
            reply = QMessageBox.question(
                self, "No Files Selected", warning,
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
                QMessageBox.StandardButton.No
            )
            if reply != QMessageBox.StandardButton.Yes:
                return

        self._load_columns()
        get_settings_manager().add_recent_project(self._state.project_dir)
        self.continue_requested.emit()

    def _load_columns(self):
        """Summarize the columns of newly selected files."""
        project_dir = Path(self._state.project_dir)
        for rel_path in self._state.data_files:
            if rel_path not in self._state.columns:
                self._state.columns[rel_path] = extract_csv_structure(project_dir / rel_path)
