"""
Data dictionary page.

Infers variable definitions from the CSV files of a dataset, lets the user
edit them, writes them back to dataset_description.json and renders the
HTML data dictionary.
"""

from pathlib import Path
from typing import Optional

from PySide6.QtWidgets import (
    QCheckBox, QComboBox, QFileDialog, QFormLayout, QGroupBox, QHBoxLayout, QHeaderView, QLabel,
    QLineEdit, QListWidget, QMessageBox, QPlainTextEdit, QPushButton, QSplitter, QTableWidget,
    QTableWidgetItem, QVBoxLayout, QWidget
)
from PySide6.QtCore import Qt, Slot

from psychds.core.dataset_builder import DATA_DIRECTORY
from psychds.core.description import DESCRIPTION_FILENAME, load_json
from psychds.core.dictionary import VARIABLE_TYPES, merge_existing_metadata, save_dictionary_to_description
from psychds.core.dictionary_html import write_dictionary_html
from psychds.core.models import CategoryValue, DataDictionary, DatasetInfo, VariableDefinition
from psychds.infrastructure.csv_loader import list_csv_files
from psychds.infrastructure.logging_config import get_logger
from psychds.infrastructure.paths import get_reports_directory
from psychds.ui.progress_dialog import ProgressDialog
from psychds.ui.report_viewer_dialog import show_report
from psychds.ui.workers import DictionaryAnalysisThread


logger = get_logger(__name__)


class DictionaryPage(QWidget):
    """
    Variable editor and HTML data dictionary generation.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self._dictionary: Optional[DataDictionary] = None
        self._description: dict = {}
        self._current: Optional[VariableDefinition] = None
        self._thread = None
        self._progress_dialog = None

        self._setup_ui()
        self._connect_signals()
        self._set_editor_enabled(False)

    def _setup_ui(self):
        """Setup the user interface."""
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("<h2>Data Dictionary</h2>"))

        dir_row = QHBoxLayout()
        self.editDirectory = QLineEdit()
        self.editDirectory.setPlaceholderText("Dataset folder")
        self.btnBrowse = QPushButton("Browse...")
        self.btnAnalyze = QPushButton("Analyze Variables")
        dir_row.addWidget(self.editDirectory)
        dir_row.addWidget(self.btnBrowse)
        dir_row.addWidget(self.btnAnalyze)
        layout.addLayout(dir_row)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        self.listVariables = QListWidget()
        splitter.addWidget(self.listVariables)

        editor = QGroupBox("Variable")
        form = QFormLayout(editor)
        self.labelPresentIn = QLabel("")
        self.labelPresentIn.setWordWrap(True)
        form.addRow("Found in:", self.labelPresentIn)
        self.comboType = QComboBox()
        self.comboType.addItems(list(VARIABLE_TYPES))
        form.addRow("Type:", self.comboType)
        self.editDescription = QPlainTextEdit()
        self.editDescription.setFixedHeight(70)
        form.addRow("Description:", self.editDescription)
        self.editUnit = QLineEdit()
        form.addRow("Unit:", self.editUnit)
        range_row = QHBoxLayout()
        self.editMin = QLineEdit()
        self.editMin.setPlaceholderText("min")
        self.editMax = QLineEdit()
        self.editMax.setPlaceholderText("max")
        range_row.addWidget(self.editMin)
        range_row.addWidget(self.editMax)
        form.addRow("Range:", range_row)
        flags_row = QHBoxLayout()
        self.checkRequired = QCheckBox("Required")
        self.checkUnique = QCheckBox("Unique")
        flags_row.addWidget(self.checkRequired)
        flags_row.addWidget(self.checkUnique)
        form.addRow(flags_row)
        self.editPattern = QLineEdit()
        form.addRow("Pattern:", self.editPattern)
        self.tableCategories = QTableWidget(0, 3)
        self.tableCategories.setHorizontalHeaderLabels(["Value", "Label", "Description"])
        self.tableCategories.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        form.addRow("Categories:", self.tableCategories)
        category_row = QHBoxLayout()
        self.btnAddCategory = QPushButton("Add Category")
        self.btnRemoveCategory = QPushButton("Remove Category")
        category_row.addWidget(self.btnAddCategory)
        category_row.addWidget(self.btnRemoveCategory)
        form.addRow(category_row)
        self.editNotes = QLineEdit()
        form.addRow("Notes:", self.editNotes)
        splitter.addWidget(editor)
        splitter.setStretchFactor(1, 2)
        layout.addWidget(splitter, stretch=1)

        missing_row = QHBoxLayout()
        missing_row.addWidget(QLabel("Missing value codes:"))
        self.editMissing = QLineEdit()
        self.editMissing.setPlaceholderText("Comma separated")
        missing_row.addWidget(self.editMissing)
        self.checkIncludeMissing = QCheckBox("Include in report")
        self.checkIncludeMissing.setChecked(True)
        missing_row.addWidget(self.checkIncludeMissing)
        layout.addLayout(missing_row)

        buttons = QHBoxLayout()
        buttons.addStretch()
        self.btnSave = QPushButton("Save to dataset_description.json")
        self.btnGenerate = QPushButton("Generate HTML Dictionary")
        buttons.addWidget(self.btnSave)
        buttons.addWidget(self.btnGenerate)
        layout.addLayout(buttons)

    def _connect_signals(self):
        """Connect UI signals to slots."""
        self.btnBrowse.clicked.connect(self._on_browse)
        self.btnAnalyze.clicked.connect(self._on_analyze)
        self.listVariables.currentTextChanged.connect(self._on_variable_selected)
        self.btnAddCategory.clicked.connect(self._on_add_category)
        self.btnRemoveCategory.clicked.connect(self._on_remove_category)
        self.btnSave.clicked.connect(self._on_save)
        self.btnGenerate.clicked.connect(self._on_generate)

    def set_dataset_dir(self, directory: Path):
        """Prefill the dataset folder, e.g. after the wizard created one."""
        self.editDirectory.setText(str(directory))

    def _dataset_dir(self) -> Optional[Path]:
        text = self.editDirectory.text().strip()
        if not text or not Path(text).is_dir():
            return None
        return Path(text)

    def _set_editor_enabled(self, enabled: bool):
        for widget in (self.comboType, self.editDescription, self.editUnit, self.editMin, self.editMax,
                       self.checkRequired, self.checkUnique, self.editPattern, self.tableCategories,
                       self.btnAddCategory, self.btnRemoveCategory, self.editNotes):
            widget.setEnabled(enabled)
        self.btnSave.setEnabled(self._dictionary is not None)
        self.btnGenerate.setEnabled(self._dictionary is not None)

    @Slot()
    def _on_browse(self):
        start = self.editDirectory.text() or str(Path.home())
        directory = QFileDialog.getExistingDirectory(self, "Select Dataset Folder", start)
        if directory:
            self.editDirectory.setText(directory)

    @Slot()
    def _on_analyze(self):
        """Analyze the dataset's CSV files in a worker thread."""
        dataset_dir = self._dataset_dir()
        if dataset_dir is None:
            QMessageBox.warning(self, "Data Dictionary", "Please select a dataset folder.")
            return

        data_dir = dataset_dir / DATA_DIRECTORY
        files = list_csv_files(data_dir) if data_dir.is_dir() else []
        if not files:
            QMessageBox.warning(self, "Data Dictionary", f"No CSV files found in {data_dir}")
            return

        self._description = {}
        description_path = dataset_dir / DESCRIPTION_FILENAME
        if description_path.exists():
            try:
                self._description = load_json(description_path)
            except ValueError as e:
                QMessageBox.warning(self, "Data Dictionary", f"Could not read {DESCRIPTION_FILENAME}:\n{e}")

        self._progress_dialog = ProgressDialog("Analyzing Variables", self)
        self._thread = DictionaryAnalysisThread(data_dir, files, self)
        self._thread.progress_updated.connect(self._progress_dialog.update_progress)
        self._thread.analysis_complete.connect(self._on_analysis_complete)
        self._thread.analysis_error.connect(self._on_analysis_error)
        self._thread.start()
        self._progress_dialog.exec()

    @Slot(object)
    def _on_analysis_complete(self, dictionary: DataDictionary):
        self._progress_dialog.complete()
        self._thread = None
        if self._description:
            merge_existing_metadata(dictionary, self._description)

        self._dictionary = dictionary
        self._current = None
        self.editMissing.setText(", ".join(dictionary.missing_values))
        self.listVariables.clear()
        self.listVariables.addItems(list(dictionary.variables))
        self._set_editor_enabled(False)
        if self.listVariables.count():
            self.listVariables.setCurrentRow(0)

    @Slot(str)
    def _on_analysis_error(self, message: str):
        self._progress_dialog.reject()
        self._thread = None
        QMessageBox.critical(self, "Analysis Failed", message)

    def _store_current(self):
        """Write the editor fields back into the selected variable."""
        variable = self._current
        if variable is None:
            return
        variable.type = self.comboType.currentText()
        variable.description = self.editDescription.toPlainText().strip()
        variable.unit = self.editUnit.text().strip()
        variable.min_value = self.editMin.text().strip()
        variable.max_value = self.editMax.text().strip()
        variable.required = self.checkRequired.isChecked()
        variable.unique = self.checkUnique.isChecked()
        variable.pattern = self.editPattern.text().strip()
        variable.notes = self.editNotes.text().strip()

        categories = []
        for row in range(self.tableCategories.rowCount()):
            cells = [self.tableCategories.item(row, col) for col in range(3)]
            value, label, description = (cell.text().strip() if cell else "" for cell in cells)
            if value:
                categories.append(CategoryValue(value, label or value, description))
        variable.categorical_values = categories

    @Slot(str)
    def _on_variable_selected(self, name: str):
        self._store_current()
        if self._dictionary is None or name not in self._dictionary.variables:
            self._current = None
            self._set_editor_enabled(False)
            return

        variable = self._dictionary.variables[name]
        self._current = variable
        self.labelPresentIn.setText(", ".join(variable.present_in))
        self.comboType.setCurrentText(variable.type)
        self.editDescription.setPlainText(variable.description)
        self.editUnit.setText(variable.unit)
        self.editMin.setText(variable.min_value)
        self.editMax.setText(variable.max_value)
        self.checkRequired.setChecked(variable.required)
        self.checkUnique.setChecked(variable.unique)
        self.editPattern.setText(variable.pattern)
        self.editNotes.setText(variable.notes)

        self.tableCategories.setRowCount(len(variable.categorical_values))
        for row, category in enumerate(variable.categorical_values):
            self.tableCategories.setItem(row, 0, QTableWidgetItem(category.value))
            self.tableCategories.setItem(row, 1, QTableWidgetItem(category.label))
            self.tableCategories.setItem(row, 2, QTableWidgetItem(category.description))
        self._set_editor_enabled(True)

    @Slot()
    def _on_add_category(self):
        self.tableCategories.insertRow(self.tableCategories.rowCount())

    @Slot()
    def _on_remove_category(self):
        row = self.tableCategories.currentRow()
        if row >= 0:
            self.tableCategories.removeRow(row)

    def _collect(self) -> Optional[DataDictionary]:
        if self._dictionary is None:
            return None
        self._store_current()
        self._dictionary.missing_values = [
            code.strip() for code in self.editMissing.text().split(",")
        ] if self.editMissing.text().strip() else []
        return self._dictionary

    @Slot()
    def _on_save(self):
        """Write the variables into dataset_description.json."""
        dictionary = self._collect()
        dataset_dir = self._dataset_dir()
        if dictionary is None or dataset_dir is None:
            return
        try:
            self._description = save_dictionary_to_description(dictionary, dataset_dir / DESCRIPTION_FILENAME)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to save data dictionary: {e}")
            QMessageBox.critical(self, "Save Failed", str(e))
            return
        QMessageBox.information(
            self, "Saved", f"{len(dictionary.variables)} variables written to {DESCRIPTION_FILENAME}."
        )

    @Slot()
    def _on_generate(self):
        """Render the HTML data dictionary and show it."""
        dictionary = self._collect()
        dataset_dir = self._dataset_dir()
        if dictionary is None or dataset_dir is None:
            return

        info = DatasetInfo(
            name=self._description.get("name", dataset_dir.name),
            description=self._description.get("description", ""),
            version=self._description.get("version"),
        )
        default_path = get_reports_directory() / f"{dataset_dir.name}_data_dictionary.html"
        file_path, _ = QFileDialog.getSaveFileName(
            self, "Save Data Dictionary", str(default_path), "HTML Files (*.html)"
        )
        if not file_path:
            return

        try:
            written = write_dictionary_html(
                dictionary, Path(file_path), info, include_missing=self.checkIncludeMissing.isChecked()
            )
        except OSError as e:
            logger.error(f"Failed to write data dictionary: {e}")
            QMessageBox.critical(self, "Export Failed", str(e))
            return

        show_report(written, self)
