"""
Details panel widget for displaying a summary of the dataset being built.

This widget displays information in sections of key-value pairs.
"""

from PySide6.QtWidgets import QWidget, QLabel, QFrame, QVBoxLayout
from PySide6.QtCore import Qt
from PySide6.QtGui import QFont

from psychds.infrastructure.file_tree import format_tree


class DetailsPanel(QWidget):
    """
    Custom widget for displaying details about the dataset.

    Shows information in sections with headers and key-value pairs.
    """

    def __init__(self, placeholder: str = "Nothing to show yet", parent=None):
        """Initialize the details panel."""
        super().__init__(parent)

        self._placeholder = placeholder
        self._layout = QVBoxLayout(self)
        self.clear()

    def _remove_all(self):
        while self._layout.count() > 0:
            item = self._layout.takeAt(0)
            widget = item.widget()
            if widget:
                widget.setParent(None)
                widget.deleteLater()

    def clear(self):
        """Clear all content and show placeholder."""
        self._remove_all()

        placeholder = QLabel(self._placeholder)
        placeholder.setAlignment(Qt.AlignmentFlag.AlignCenter)
        placeholder.setWordWrap(True)
        font = placeholder.font()
        font.setPointSize(11)
        font.setItalic(True)
        placeholder.setFont(font)
        self._layout.addWidget(placeholder)
        self._layout.addStretch()

    def set_content(self, sections: list[dict]):
        """
        Set the content of the details panel.

        Args:
            sections: List of section dictionaries with structure:
                {
                    'title': 'Section Title',
                    'items': [
                        {'key': 'Key Name', 'value': 'Value'},
                        ...
                    ],
                    'tree': {...}  # optional FileTree shown as text
                }
        """
        self._remove_all()

        for section in sections:
            self._add_section(section['title'], section.get('items', []))
            if section.get('tree'):
                self._add_tree(section['tree'])

        self._layout.addStretch()

    def _add_section(self, title: str, items: list[dict]):
        """
        Add a section with title and key-value items.

        Args:
            title: Section title.
            items: List of {'key': ..., 'value': ...} dictionaries.
        """
        title_label = QLabel(title)
        title_font = QFont()
        title_font.setPointSize(12)
        title_font.setBold(True)
        title_label.setFont(title_font)
        self._layout.addWidget(title_label)

        line = QFrame()
        line.setFrameShape(QFrame.Shape.HLine)
        line.setFrameShadow(QFrame.Shadow.Sunken)
        self._layout.addWidget(line)

        for item in items:
            self._add_key_value_pair(item.get('key', ''), item.get('value', ''))

        self._layout.addSpacing(15)

    def _add_key_value_pair(self, key: str, value: str):
        """
        Add a key-value pair to the layout.

        Args:
            key: The key/label.
            value: The value.
        """
        label = QLabel()
        label.setTextInteractionFlags(
            Qt.TextInteractionFlag.TextSelectableByMouse |
            Qt.TextInteractionFlag.TextSelectableByKeyboard
        )
        label.setWordWrap(True)
        label.setContentsMargins(10, 2, 0, 2)
        label.setText(f"<b>{key}:</b> {value}")
        self._layout.addWidget(label)

    def _add_tree(self, tree: dict):
        label = QLabel("\n".join(format_tree(tree)))
        label.setFont(QFont("monospace"))
        label.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        label.setContentsMargins(10, 2, 0, 2)
        self._layout.addWidget(label)
