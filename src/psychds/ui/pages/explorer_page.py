"""
Dataset explorer page.

Opens an existing Psych-DS dataset, narrows its CSV files down by file
name keywords and shows the selected file as a table that can be filtered
by column values.
"""

import csv
from pathlib import Path
from typing import Optional

from PySide6.QtWidgets import (
    QComboBox, QFileDialog, QGroupBox, QHBoxLayout, QLabel, QLineEdit, QListWidget, QListWidgetItem,
    QMessageBox, QPushButton, QSplitter, QTableView, QVBoxLayout, QWidget
)
from PySide6.QtCore import QAbstractTableModel, QModelIndex, Qt, Slot

from psychds.core.explorer import (
    BLANK_LABEL, ColumnFilter, KeywordFilter, column_choices, extract_keyword_values, extract_keywords,
    filter_files, filter_rows, load_dataset_files
)
from psychds.infrastructure.csv_loader import read_csv_rows
from psychds.infrastructure.logging_config import get_logger


logger = get_logger(__name__)

MAX_TABLE_ROWS = 10000


class CsvTableModel(QAbstractTableModel):
    """
    Table model for displaying CSV rows.
    """

    def __init__(self, headers: list[str], rows: list[list[str]], parent=None):
        super().__init__(parent)
        self._headers = headers
        self._rows = rows

    def rowCount(self, parent=QModelIndex()) -> int:
        """Return the number of rows."""
        return len(self._rows)

    def columnCount(self, parent=QModelIndex()) -> int:
        """Return the number of columns."""
        return len(self._headers)

    def data(self, index: QModelIndex, role=Qt.ItemDataRole.DisplayRole):
        """Return data for the given index and role."""
        if not index.isValid():
            return None
        if role == Qt.ItemDataRole.DisplayRole:
            return self._rows[index.row()][index.column()]
        return None

    def headerData(self, section: int, orientation: Qt.Orientation, role=Qt.ItemDataRole.DisplayRole):
        """Return header data."""
        if role == Qt.ItemDataRole.DisplayRole:
            if orientation == Qt.Orientation.Horizontal:
                return self._headers[section]
            return str(section + 1)
        return None


class ExplorerPage(QWidget):
    """
    Browse the data files of an existing dataset.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self._root: Optional[Path] = None
        self._files: list[str] = []
        self._keyword_filters: list[KeywordFilter] = []
        self._column_filters: list[ColumnFilter] = []
        self._header: list[str] = []
        self._rows: list[list[str]] = []

        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self):
        """Setup the user interface."""
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("<h2>Dataset Explorer</h2>"))

        dir_row = QHBoxLayout()
        self.editDirectory = QLineEdit()
        self.editDirectory.setPlaceholderText("Dataset folder")
        self.btnBrowse = QPushButton("Browse...")
        self.btnLoad = QPushButton("Load Dataset")
        dir_row.addWidget(self.editDirectory)
        dir_row.addWidget(self.btnBrowse)
        dir_row.addWidget(self.btnLoad)
        layout.addLayout(dir_row)

        self.labelStatus = QLabel("")
        layout.addWidget(self.labelStatus)

        splitter = QSplitter(Qt.Orientation.Horizontal)

        # Left: keyword filters and matching files
        left = QWidget()
        left_layout = QVBoxLayout(left)
        keyword_box = QGroupBox("Filter by Keyword")
        keyword_layout = QVBoxLayout(keyword_box)
        keyword_row = QHBoxLayout()
        self.comboKeyword = QComboBox()
        self.comboKeywordValue = QComboBox()
        self.btnAddKeywordFilter = QPushButton("Add")
        keyword_row.addWidget(self.comboKeyword)
        keyword_row.addWidget(self.comboKeywordValue)
        keyword_row.addWidget(self.btnAddKeywordFilter)
        keyword_layout.addLayout(keyword_row)
        self.listKeywordFilters = QListWidget()
        self.listKeywordFilters.setMaximumHeight(90)
        keyword_layout.addWidget(self.listKeywordFilters)
        self.btnRemoveKeywordFilter = QPushButton("Remove Filter")
        keyword_layout.addWidget(self.btnRemoveKeywordFilter)
        left_layout.addWidget(keyword_box)

        left_layout.addWidget(QLabel("Files:"))
        self.listFiles = QListWidget()
        left_layout.addWidget(self.listFiles, stretch=1)
        splitter.addWidget(left)

        # Right: column filters and table
        right = QWidget()
        right_layout = QVBoxLayout(right)
        column_box = QGroupBox("Filter by Column")
        column_layout = QVBoxLayout(column_box)
        column_row = QHBoxLayout()
        self.comboColumn = QComboBox()
        self.comboColumnValue = QComboBox()
        self.btnAddColumnFilter = QPushButton("Add")
        column_row.addWidget(self.comboColumn)
        column_row.addWidget(self.comboColumnValue)
        column_row.addWidget(self.btnAddColumnFilter)
        column_layout.addLayout(column_row)
        self.listColumnFilters = QListWidget()
        self.listColumnFilters.setMaximumHeight(90)
        column_layout.addWidget(self.listColumnFilters)
        self.btnRemoveColumnFilter = QPushButton("Remove Filter")
        column_layout.addWidget(self.btnRemoveColumnFilter)
        right_layout.addWidget(column_box)

        self.labelTable = QLabel("")
        right_layout.addWidget(self.labelTable)
        self.tableView = QTableView()
        self.tableView.setSortingEnabled(False)
        self.tableView.horizontalHeader().setStretchLastSection(True)
        right_layout.addWidget(self.tableView, stretch=1)
        splitter.addWidget(right)

        splitter.setStretchFactor(1, 3)
        layout.addWidget(splitter, stretch=1)

    def _connect_signals(self):
        """Connect UI signals to slots."""
        self.btnBrowse.clicked.connect(self._on_browse)
        self.btnLoad.clicked.connect(self._on_load)
        self.comboKeyword.currentTextChanged.connect(self._on_keyword_selected)
        self.btnAddKeywordFilter.clicked.connect(self._on_add_keyword_filter)
        self.btnRemoveKeywordFilter.clicked.connect(self._on_remove_keyword_filter)
        self.listFiles.currentItemChanged.connect(self._on_file_selected)
        self.comboColumn.currentTextChanged.connect(self._on_column_selected)
        self.btnAddColumnFilter.clicked.connect(self._on_add_column_filter)
        self.btnRemoveColumnFilter.clicked.connect(self._on_remove_column_filter)

    def set_dataset_dir(self, directory: Path):
        """Prefill the dataset folder, e.g. after the wizard created one."""
        self.editDirectory.setText(str(directory))

    @Slot()
    def _on_browse(self):
        start = self.editDirectory.text() or str(Path.home())
        directory = QFileDialog.getExistingDirectory(self, "Select Dataset Folder", start)
        if directory:
            self.editDirectory.setText(directory)

    @Slot()
    def _on_load(self):
        """Load the CSV files of the chosen dataset."""
        root = Path(self.editDirectory.text().strip())
        try:
            files = load_dataset_files(root)
        except ValueError as e:
            QMessageBox.warning(self, "Cannot Load Dataset", str(e))
            return

        self._root = root
        self._files = files
        self._keyword_filters = []
        self.listKeywordFilters.clear()

        self.comboKeyword.blockSignals(True)
        self.comboKeyword.clear()
        self.comboKeyword.addItems(extract_keywords(files))
        self.comboKeyword.blockSignals(False)
        self._on_keyword_selected(self.comboKeyword.currentText())

        if files:
            self.labelStatus.setText(f"Dataset loaded: {root.name} ({len(files)} CSV files found)")
        else:
            self.labelStatus.setText(f"Dataset path selected: {root.name} (no CSV files found in data directory)")
        self._refresh_files()

    @Slot(str)
    def _on_keyword_selected(self, keyword: str):
        self.comboKeywordValue.clear()
        if keyword:
            self.comboKeywordValue.addItems(extract_keyword_values(self._files, keyword))

    @Slot()
    def _on_add_keyword_filter(self):
        keyword = self.comboKeyword.currentText()
        value = self.comboKeywordValue.currentText()
        if not keyword or not value:
            QMessageBox.information(self, "Keyword Filter", "Please select a keyword and a value.")
            return
        new_filter = KeywordFilter(keyword, value)
        if new_filter in self._keyword_filters:
            QMessageBox.information(self, "Keyword Filter", "This filter already exists.")
            return
        self._keyword_filters.append(new_filter)
        self.listKeywordFilters.addItem(str(new_filter))
        self._refresh_files()

    @Slot()
    def _on_remove_keyword_filter(self):
        row = self.listKeywordFilters.currentRow()
        if row < 0:
            return
        self.listKeywordFilters.takeItem(row)
        del self._keyword_filters[row]
        self._refresh_files()

    def _refresh_files(self):
        """Show the files matching the keyword filters and open the first one."""
        matching = filter_files(self._files, self._keyword_filters)
        self.listFiles.clear()
        for path in matching:
            self.listFiles.addItem(QListWidgetItem(path))
        if matching:
            self.listFiles.setCurrentRow(0)
        else:
            self._show_table([], [])
            if self._keyword_filters:
                self.labelTable.setText("No files match the current filters")

    @Slot(QListWidgetItem, QListWidgetItem)
    def _on_file_selected(self, current: Optional[QListWidgetItem], previous: Optional[QListWidgetItem]):
        if current is None or self._root is None:
            return
        path = self._root / "data" / current.text()
        try:
            header, rows = read_csv_rows(path, max_rows=MAX_TABLE_ROWS)
        except (OSError, csv.Error) as e:
            logger.error(f"Failed to read {path}: {e}")
            QMessageBox.warning(self, "Cannot Read File", f"Error reading file: {e}")
            return

        logger.debug(f"Loaded {path.name}: {len(rows)} rows, {len(header)} columns")
        self._header = header
        self._rows = rows

        self.comboColumn.blockSignals(True)
        self.comboColumn.clear()
        self.comboColumn.addItems(header)
        self.comboColumn.blockSignals(False)
        self._on_column_selected(self.comboColumn.currentText())
        self._apply_column_filters()

    @Slot(str)
    def _on_column_selected(self, column: str):
        self.comboColumnValue.clear()
        for value in column_choices(self._header, self._rows, column):
            self.comboColumnValue.addItem(value or BLANK_LABEL, value)

    @Slot()
    def _on_add_column_filter(self):
        column = self.comboColumn.currentText()
        if not column or self.comboColumnValue.currentIndex() < 0:
            QMessageBox.information(self, "Column Filter", "Please select a column and a value.")
            return
        new_filter = ColumnFilter(column, self.comboColumnValue.currentData())
        if new_filter in self._column_filters:
            QMessageBox.information(self, "Column Filter", "This filter already exists.")
            return
        self._column_filters.append(new_filter)
        self.listColumnFilters.addItem(str(new_filter))
        self._apply_column_filters()

    @Slot()
    def _on_remove_column_filter(self):
        row = self.listColumnFilters.currentRow()
        if row < 0:
            return
        self.listColumnFilters.takeItem(row)
        del self._column_filters[row]
        self._apply_column_filters()

    def _apply_column_filters(self):
        rows = filter_rows(self._header, self._rows, self._column_filters)
        self._show_table(self._header, rows)
        self.labelTable.setText(f"Showing {len(rows)} of {len(self._rows)} rows")

    def _show_table(self, header: list[str], rows: list[list[str]]):
        self.tableView.setModel(CsvTableModel(header, rows, self))
        self.tableView.resizeColumnsToContents()
