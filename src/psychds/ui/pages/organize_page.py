"""
Step 3 of the wizard: rename files with keywords and create the dataset.
"""

from pathlib import Path

from PySide6.QtWidgets import (
    QCheckBox, QComboBox, QFileDialog, QFormLayout, QGroupBox, QHBoxLayout, QHeaderView, QLabel,
    QLineEdit, QMessageBox, QPushButton, QSplitter, QTableWidget, QTableWidgetItem, QVBoxLayout, QWidget
)
from PySide6.QtCore import Qt, Signal, Slot

from psychds.core.dataset_builder import (
    DUPLICATE_NAMES_MESSAGE, CreateDatasetRequest, calculate_dataset_stats, destination_path, duplicate_destinations
)
from psychds.core.errors import KeywordError
from psychds.core.filenames import (
    STANDARD_KEYWORDS, build_filename, parse_filename, suggest_dataset_name, suggest_keywords,
    validate_dataset_name
)
from psychds.core.models import FileMapping, WizardState
from psychds.infrastructure.csv_loader import find_constant_columns
from psychds.infrastructure.logging_config import get_logger
from psychds.ui.progress_dialog import ProgressDialog
from psychds.ui.widgets.details_panel import DetailsPanel
from psychds.ui.workers import DatasetCreationThread


logger = get_logger(__name__)


class OrganizePage(QWidget):
    """
    Keyword-based file renaming, dataset location and creation.
    """

    # Signal emitted when the user goes back to step 2
    back_requested = Signal()

    # Signal emitted after the dataset was written (dataset root)
    dataset_created = Signal(Path)

    def __init__(self, state: WizardState, parent=None):
        """
        Initialize the page.

        Args:
            state: Shared wizard state.
            parent: Parent widget.
        """
        super().__init__(parent)
        self._state = state
        self._creation_thread = None
        self._progress_dialog = None

        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self):
        """Setup the user interface."""
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("<h2>Step 3: Organize Files</h2>"))

        splitter = QSplitter(Qt.Orientation.Horizontal)

        # Files and their new names
        files_box = QGroupBox("Files")
        files_layout = QVBoxLayout(files_box)
        self.tableFiles = QTableWidget(0, 2)
        self.tableFiles.setHorizontalHeaderLabels(["Original file", "New name"])
        self.tableFiles.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.tableFiles.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.tableFiles.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self.tableFiles.setSelectionMode(QTableWidget.SelectionMode.SingleSelection)
        files_layout.addWidget(self.tableFiles)
        splitter.addWidget(files_box)

        # Keyword editor for the selected file
        keywords_box = QGroupBox("Keywords")
        keywords_layout = QVBoxLayout(keywords_box)
        self.tableKeywords = QTableWidget(0, 2)
        self.tableKeywords.setHorizontalHeaderLabels(["Keyword", "Value"])
        self.tableKeywords.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        keywords_layout.addWidget(self.tableKeywords)
        add_row = QHBoxLayout()
        self.comboKeyword = QComboBox()
        self.comboKeyword.setEditable(True)
        self.comboKeyword.addItems(list(STANDARD_KEYWORDS))
        self.btnAddKeyword = QPushButton("Add")
        self.btnRemoveKeyword = QPushButton("Remove")
        self.btnSuggest = QPushButton("Suggest from Data")
        add_row.addWidget(self.comboKeyword)
        add_row.addWidget(self.btnAddKeyword)
        add_row.addWidget(self.btnRemoveKeyword)
        add_row.addWidget(self.btnSuggest)
        keywords_layout.addLayout(add_row)
        self.labelPreview = QLabel("")
        self.labelPreview.setWordWrap(True)
        keywords_layout.addWidget(self.labelPreview)
        self.btnApply = QPushButton("Apply Name")
        keywords_layout.addWidget(self.btnApply)
        splitter.addWidget(keywords_box)

        self.summaryPanel = DetailsPanel("Rename files to see a summary of the new dataset")
        splitter.addWidget(self.summaryPanel)
        layout.addWidget(splitter, stretch=1)

        # Destination
        target_box = QGroupBox("New dataset")
        target_form = QFormLayout(target_box)
        self.editDatasetName = QLineEdit()
        target_form.addRow("Folder name:", self.editDatasetName)
        location_row = QHBoxLayout()
        self.editLocation = QLineEdit()
        self.btnBrowseLocation = QPushButton("Browse...")
        location_row.addWidget(self.editLocation)
        location_row.addWidget(self.btnBrowseLocation)
        target_form.addRow("Location:", location_row)
        self.checkManifest = QCheckBox("Also write datapackage.json")
        self.checkManifest.setChecked(True)
        target_form.addRow(self.checkManifest)
        layout.addWidget(target_box)

        buttons = QHBoxLayout()
        self.btnBack = QPushButton("Back")
        self.btnCreate = QPushButton("Create Dataset")
        buttons.addWidget(self.btnBack)
        buttons.addStretch()
        buttons.addWidget(self.btnCreate)
        layout.addLayout(buttons)

    def _connect_signals(self):
        """Connect UI signals to slots."""
        self.tableFiles.itemSelectionChanged.connect(self._on_file_selected)
        self.tableKeywords.itemChanged.connect(self._update_preview)
        self.btnAddKeyword.clicked.connect(self._on_add_keyword)
        self.btnRemoveKeyword.clicked.connect(self._on_remove_keyword)
        self.btnSuggest.clicked.connect(self._on_suggest)
        self.btnApply.clicked.connect(self._on_apply)
        self.btnBrowseLocation.clicked.connect(self._on_browse_location)
        self.btnBack.clicked.connect(self.back_requested)
        self.btnCreate.clicked.connect(self._on_create)

    def load_from_state(self):
        """Show the selected files and their current names."""
        self.tableFiles.setRowCount(len(self._state.data_files))
        for row, rel_path in enumerate(self._state.data_files):
            mapping = self._state.mapping_for(rel_path)
            self.tableFiles.setItem(row, 0, QTableWidgetItem(rel_path))
            self.tableFiles.setItem(row, 1, QTableWidgetItem(mapping.new_name if mapping else ""))

        if not self.editDatasetName.text():
            self.editDatasetName.setText(
                suggest_dataset_name(self._state.project_name, self._state.dataset_info.name)
            )
        if not self.editLocation.text() and self._state.project_dir:
            self.editLocation.setText(str(Path(self._state.project_dir).parent))

        if self._state.data_files:
            self.tableFiles.selectRow(0)
        self._update_summary()

    def _selected_file(self) -> str | None:
        row = self.tableFiles.currentRow()
        if row < 0 or row >= len(self._state.data_files):
            return None
        return self._state.data_files[row]

    def _current_keywords(self) -> dict[str, str]:
        keywords = {}
        for row in range(self.tableKeywords.rowCount()):
            key_item = self.tableKeywords.item(row, 0)
            value_item = self.tableKeywords.item(row, 1)
            key = key_item.text().strip() if key_item else ""
            if key:
                keywords[key] = value_item.text() if value_item else ""
        return keywords

    def _show_keywords(self, keywords: dict[str, str]):
        self.tableKeywords.blockSignals(True)
        self.tableKeywords.setRowCount(len(keywords))
        for row, (key, value) in enumerate(keywords.items()):
            self.tableKeywords.setItem(row, 0, QTableWidgetItem(key))
            self.tableKeywords.setItem(row, 1, QTableWidgetItem(value))
        self.tableKeywords.blockSignals(False)
        self._update_preview()

    @Slot()
    def _on_file_selected(self):
        rel_path = self._selected_file()
        if rel_path is None:
            self._show_keywords({})
            return
        mapping = self._state.mapping_for(rel_path)
        if mapping and mapping.keywords:
            self._show_keywords(mapping.keywords)
        else:
            self._show_keywords(parse_filename(Path(rel_path).name) or {})

    @Slot()
    def _update_preview(self):
        rel_path = self._selected_file()
        if rel_path is None:
            self.labelPreview.setText("")
            return
        try:
            name = build_filename(self._current_keywords(), rel_path)
            self.labelPreview.setText(f"New name: <b>{name}</b>")
        except KeywordError as e:
            self.labelPreview.setText(f"<span style='color: #c62828;'>{e}</span>")

    @Slot()
    def _on_add_keyword(self):
        keyword = self.comboKeyword.currentText().strip()
        keywords = self._current_keywords()
        if keyword and keyword not in keywords:
            keywords[keyword] = ""
            self._show_keywords(keywords)
            self.tableKeywords.editItem(self.tableKeywords.item(len(keywords) - 1, 1))

    @Slot()
    def _on_remove_keyword(self):
        row = self.tableKeywords.currentRow()
        if row >= 0:
            self.tableKeywords.removeRow(row)
            self._update_preview()

    @Slot()
    def _on_suggest(self):
        """Fill keywords from columns that are constant within the file."""
        rel_path = self._selected_file()
        if rel_path is None:
            return
        constants = find_constant_columns(Path(self._state.project_dir) / rel_path)
        suggested = suggest_keywords(constants)
        if not suggested:
            QMessageBox.information(self, "Suggest Keywords", "No keyword suggestions found in this file.")
            return
        keywords = self._current_keywords()
        for key, value in suggested.items():
            keywords.setdefault(key, value)
        self._show_keywords(keywords)

    @Slot()
    def _on_apply(self):
        """Store the new name of the selected file."""
        rel_path = self._selected_file()
        if rel_path is None:
            return
        keywords = {key: value.strip() for key, value in self._current_keywords().items()}
        try:
            new_name = build_filename(keywords, rel_path)
        except KeywordError as e:
            QMessageBox.warning(self, "Invalid Keywords", str(e))
            return

        target = str(destination_path(FileMapping(rel_path, new_name))).casefold()
        clashes = [
            m.original for m in self._state.file_mappings
            if m.original != rel_path and m.new_name and str(destination_path(m)).casefold() == target
        ]
        if clashes:
            QMessageBox.warning(
                self, "Name Already Used",
                f"{new_name} is already used for {', '.join(clashes)}. "
                "Add or change a keyword so each file gets a unique name."
            )
            return

        self._state.set_mapping(rel_path, new_name, keywords)
        self.tableFiles.item(self.tableFiles.currentRow(), 1).setText(new_name)
        logger.info(f"Renamed {rel_path} -> {new_name}")

        next_row = self.tableFiles.currentRow() + 1
        if next_row < self.tableFiles.rowCount():
            self.tableFiles.selectRow(next_row)
        self._update_summary()

    @Slot()
    def _on_browse_location(self):
        start = self.editLocation.text() or str(Path.home())
        directory = QFileDialog.getExistingDirectory(self, "Select Location", start)
        if directory:
            self.editLocation.setText(directory)
            self._update_summary()

    def _build_request(self) -> CreateDatasetRequest:
        return CreateDatasetRequest(
            project_dir=Path(self._state.project_dir),
            location=Path(self.editLocation.text().strip()),
            name=self.editDatasetName.text().strip(),
            info=self._state.dataset_info,
            file_mappings=list(self._state.file_mappings),
            optional_dirs=self._state.optional_dirs,
            columns=self._state.columns,
            dictionary=self._state.dictionary,
            write_manifest=self.checkManifest.isChecked(),
        )

    def _update_summary(self):
        request = self._build_request()
        stats = calculate_dataset_stats(request)
        renamed = [m for m in self._state.file_mappings if m.new_name]
        sections = [
            {
                'title': 'Dataset',
                'items': [
                    {'key': 'Name', 'value': self._state.dataset_info.name or "(none)"},
                    {'key': 'Folder', 'value': str(request.target)},
                    {'key': 'Renamed files', 'value': f"{len(renamed)} of {len(self._state.data_files)}"},
                    {'key': 'Size', 'value': stats.get_size_string()},
                ],
            },
            {
                'title': 'Folders',
                'items': [{'key': name, 'value': 'created'} for name in ['data'] + self._state.optional_dirs.enabled()],
            },
        ]
        if stats.missing:
            sections.append({
                'title': 'Missing source files',
                'items': [{'key': 'File', 'value': path} for path in stats.missing],
            })
        self.summaryPanel.set_content(sections)

    @Slot()
    def _on_create(self):
        """Create the dataset in a worker thread."""
        try:
            validate_dataset_name(self.editDatasetName.text())
        except KeywordError as e:
            QMessageBox.warning(self, "Invalid Name", str(e))
            return

        if not any(m.new_name for m in self._state.file_mappings):
            reply = QMessageBox.question(
                self, "No Files Renamed",
                "No files have been renamed, so the data folder will be empty. Create the dataset anyway?",
                QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
                QMessageBox.StandardButton.No
            )
            if reply != QMessageBox.StandardButton.Yes:
                return

        request = self._build_request()
        duplicates = duplicate_destinations(request)
        if duplicates:
            QMessageBox.warning(self, "Duplicate File Names", f"{DUPLICATE_NAMES_MESSAGE}\n" + "\n".join(duplicates))
            return

        self._progress_dialog = ProgressDialog("Creating Dataset", self)
        self._creation_thread = DatasetCreationThread(request, self)
        self._creation_thread.progress_updated.connect(self._progress_dialog.update_progress)
        self._creation_thread.creation_complete.connect(self._on_creation_complete)
        self._creation_thread.creation_error.connect(self._on_creation_error)
        self._creation_thread.start()
        self._progress_dialog.exec()

    @Slot(Path)
    def _on_creation_complete(self, root: Path):
        self._progress_dialog.complete()
        self._creation_thread = None
        self._state.dataset_dir = root
        self._state.notify(f"Dataset created at {root}")
        QMessageBox.information(self, "Dataset Created", f"Your Psych-DS dataset was created at:\n{root}")
        self.dataset_created.emit(root)

    @Slot(str)
    def _on_creation_error(self, message: str):
        self._progress_dialog.reject()
        self._creation_thread = None
        self._state.add_error(message)
        QMessageBox.critical(self, "Dataset Creation Failed", message)
