"""
JSON viewer dialog.

This module provides a dialog for displaying JSON documents in a tree view,
with a raw text tab showing exactly what will be written to disk.
"""

import json
from pathlib import Path
from typing import Any, Optional

from PySide6.QtWidgets import (
    QDialog, QDialogButtonBox, QPlainTextEdit, QTabWidget, QTreeWidget, QTreeWidgetItem, QVBoxLayout
)

from psychds.core.description import load_json
from psychds.infrastructure.logging_config import get_logger


logger = get_logger(__name__)


class JsonViewerDialog(QDialog):
    """
    Dialog for viewing JSON data in a tree structure.

    Displays keys and values, handling nested objects and arrays.
    """

    def __init__(self, data: Optional[dict[str, Any]] = None, file_path: Optional[Path] = None,
                 title: str = "JSON Preview", parent=None):
        """
        Initialize the JSON viewer dialog.

        Args:
            data: Document to display.
            file_path: JSON file to load when data is None.
            title: Window title when no file is given.
            parent: Parent widget.
        """
        super().__init__(parent)

        self._data = data
        self._file_path = file_path

        self._setup_ui(f"File: {file_path.name}" if file_path else title)
        self._load_json()

    def _setup_ui(self, title: str):
        """Setup the user interface."""
        self.setWindowTitle(title)
        self.resize(800, 600)

        layout = QVBoxLayout(self)
        tabs = QTabWidget()

        self.jsonTreeWidget = QTreeWidget()
        self.jsonTreeWidget.setHeaderLabels(["Key", "Value"])
        self.jsonTreeWidget.setColumnWidth(0, 300)
        tabs.addTab(self.jsonTreeWidget, "Tree")

        self.rawText = QPlainTextEdit()
        self.rawText.setReadOnly(True)
        tabs.addTab(self.rawText, "Raw")

        layout.addWidget(tabs)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _load_json(self):
        """Load and display the JSON document."""
        data = self._data
        if data is None and self._file_path is not None:
            try:
                data = load_json(self._file_path)
                logger.debug(f"Loaded JSON file: {self._file_path}")
            except (OSError, ValueError) as e:
                logger.error(f"Failed to load JSON file: {e}")
                self.jsonTreeWidget.addTopLevelItem(QTreeWidgetItem(["Error", f"Failed to load: {e}"]))
                return

        if data is None:
            return

        self._populate_tree(data)
        self.jsonTreeWidget.expandToDepth(0)
        self.rawText.setPlainText(json.dumps(data, indent=2, ensure_ascii=False))

    def _populate_tree(self, data: Any, parent: QTreeWidgetItem | None = None):
        """
        Recursively populate the tree widget with JSON data.

        Args:
            data: JSON data (dict, list, or primitive).
            parent: Parent tree item (None for root).
        """
        if isinstance(data, dict):
            for key, value in data.items():
                self._add_item(key, value, parent)
        elif isinstance(data, list):
            for index, value in enumerate(data):
                self._add_item(f"[{index}]", value, parent)
        else:
            self._add_item("value", data, parent)

    def _add_item(self, key: str, value: Any, parent: QTreeWidgetItem | None = None):
        """
        Add a key-value pair to the tree.

        Args:
            key: Key name.
            value: Value (can be nested dict/list or primitive).
            parent: Parent tree item (None for root).
        """
        if isinstance(value, dict):
            item = QTreeWidgetItem([key, "{object}"])
        elif isinstance(value, list):
            item = QTreeWidgetItem([key, f"[array, {len(value)} items]"])
        else:
            item = QTreeWidgetItem([key, json.dumps(value, ensure_ascii=False) if value is not None else "null"])

        if parent:
            parent.addChild(item)
        else:
            self.jsonTreeWidget.addTopLevelItem(item)

        if isinstance(value, (dict, list)):
            self._populate_tree(value, item)
