"""
Step 2 of the wizard: dataset metadata.

Collects the fields of dataset_description.json, the author list and a
short description for each variable found in the selected files.
"""

from PySide6.QtWidgets import (
    QComboBox, QFormLayout, QGroupBox, QHBoxLayout, QHeaderView, QLabel, QLineEdit,
    QMessageBox, QPlainTextEdit, QPushButton, QScrollArea, QTableWidget, QTableWidgetItem,
    QVBoxLayout, QWidget
)
from PySide6.QtCore import Qt, Signal, Slot

from psychds.core.description import build_dataset_description, create_description_template
from psychds.core.models import COMMON_LICENSES, WizardState, create_author
from psychds.core.navigation import check_step2
from psychds.infrastructure.logging_config import get_logger
from psychds.ui.json_viewer_dialog import JsonViewerDialog


logger = get_logger(__name__)


def _lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


class MetadataPage(QWidget):
    """
    Dataset name, description, authors and optional metadata.
    """

    # Signal emitted when the user continues to step 3
    continue_requested = Signal()

    # Signal emitted when the user goes back to step 1
    back_requested = Signal()

    def __init__(self, state: WizardState, parent=None):
        """
        Initialize the page.

        Args:
            state: Shared wizard state.
            parent: Parent widget.
        """
        super().__init__(parent)
        self._state = state

        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self):
        """Setup the user interface."""
        outer = QVBoxLayout(self)
        outer.addWidget(QLabel("<h2>Step 2: Dataset Metadata</h2>"))

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        content = QWidget()
        layout = QVBoxLayout(content)
        scroll.setWidget(content)
        outer.addWidget(scroll, stretch=1)

        # Required fields
        required = QGroupBox("Required")
        required_form = QFormLayout(required)
        self.editName = QLineEdit()
        required_form.addRow("Dataset name:", self.editName)
        self.editDescription = QPlainTextEdit()
        self.editDescription.setFixedHeight(90)
        required_form.addRow("Description:", self.editDescription)
        layout.addWidget(required)

        # Authors
        authors = QGroupBox("Authors")
        authors_layout = QVBoxLayout(authors)
        self.tableAuthors = QTableWidget(0, 3)
        self.tableAuthors.setHorizontalHeaderLabels(["First name", "Last name", "ORCID"])
        self.tableAuthors.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeMode.Stretch)
        self.tableAuthors.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.tableAuthors.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self.tableAuthors.setFixedHeight(130)
        authors_layout.addWidget(self.tableAuthors)
        author_row = QHBoxLayout()
        self.editFirstName = QLineEdit()
        self.editFirstName.setPlaceholderText("First name")
        self.editLastName = QLineEdit()
        self.editLastName.setPlaceholderText("Last name")
        self.editOrcid = QLineEdit()
        self.editOrcid.setPlaceholderText("ORCID (optional)")
        self.btnAddAuthor = QPushButton("Add")
        self.btnRemoveAuthor = QPushButton("Remove")
        for widget in (self.editFirstName, self.editLastName, self.editOrcid,
                       self.btnAddAuthor, self.btnRemoveAuthor):
            author_row.addWidget(widget)
        authors_layout.addLayout(author_row)
        layout.addWidget(authors)

        # Licensing and optional fields
        optional = QGroupBox("Optional")
        optional_form = QFormLayout(optional)
        self.comboLicense = QComboBox()
        self.comboLicense.setEditable(True)
        self.comboLicense.addItems(list(COMMON_LICENSES))
        optional_form.addRow("License:", self.comboLicense)
        self.editVersion = QLineEdit()
        optional_form.addRow("Version:", self.editVersion)
        self.editKeywords = QLineEdit()
        self.editKeywords.setPlaceholderText("Comma separated")
        optional_form.addRow("Keywords:", self.editKeywords)
        self.editAcknowledgements = QLineEdit()
        optional_form.addRow("Acknowledgements:", self.editAcknowledgements)
        self.editHowToAcknowledge = QLineEdit()
        optional_form.addRow("How to acknowledge:", self.editHowToAcknowledge)
        self.editFunding = QPlainTextEdit()
        self.editFunding.setPlaceholderText("One funding source per line")
        self.editFunding.setFixedHeight(60)
        optional_form.addRow("Funding:", self.editFunding)
        self.editReferences = QPlainTextEdit()
        self.editReferences.setPlaceholderText("One reference or link per line")
        self.editReferences.setFixedHeight(60)
        optional_form.addRow("References:", self.editReferences)
        self.editDoi = QLineEdit()
        optional_form.addRow("Dataset DOI:", self.editDoi)
        layout.addWidget(optional)

        # Variables
        variables = QGroupBox("Variables")
        variables_layout = QVBoxLayout(variables)
        self.tableVariables = QTableWidget(0, 3)
        self.tableVariables.setHorizontalHeaderLabels(["Variable", "Type", "Description"])
        self.tableVariables.horizontalHeader().setSectionResizeMode(2, QHeaderView.ResizeMode.Stretch)
        self.tableVariables.setMinimumHeight(180)
        variables_layout.addWidget(self.tableVariables)
        layout.addWidget(variables)

        buttons = QHBoxLayout()
        self.btnBack = QPushButton("Back")
        self.btnPreviewTemplate = QPushButton("Preview Template")
        self.btnPreview = QPushButton("Preview JSON")
        self.btnContinue = QPushButton("Continue")
        buttons.addWidget(self.btnBack)
        buttons.addStretch()
        buttons.addWidget(self.btnPreviewTemplate)
        buttons.addWidget(self.btnPreview)
        buttons.addWidget(self.btnContinue)
        outer.addLayout(buttons)

    def _connect_signals(self):
        """Connect UI signals to slots."""
        self.btnAddAuthor.clicked.connect(self._on_add_author)
        self.btnRemoveAuthor.clicked.connect(self._on_remove_author)
        self.btnBack.clicked.connect(self._on_back)
        self.btnPreview.clicked.connect(self._on_preview)
        self.btnPreviewTemplate.clicked.connect(self._on_preview_template)
        self.btnContinue.clicked.connect(self._on_continue)

    def load_from_state(self):
        """Show the values stored in the wizard state."""
        info = self._state.dataset_info
        if not info.name and self._state.project_name:
            info.name = self._state.project_name

        self.editName.setText(info.name)
        self.editDescription.setPlainText(info.description)
        self.comboLicense.setCurrentText(info.license or "")
        self.editVersion.setText(info.version or "")
        self.editKeywords.setText(", ".join(info.keywords))
        self.editAcknowledgements.setText(info.acknowledgements or "")
        self.editHowToAcknowledge.setText(info.how_to_acknowledge or "")
        self.editFunding.setPlainText("\n".join(info.funding))
        self.editReferences.setPlainText("\n".join(info.references))
        self.editDoi.setText(info.doi or "")

        self._refresh_authors()
        self._refresh_variables()

    def save_to_state(self):
        """Copy the form values into the wizard state."""
        info = self._state.dataset_info
        info.name = self.editName.text().strip()
        info.description = self.editDescription.toPlainText().strip()
        info.license = self.comboLicense.currentText().strip() or None
        info.version = self.editVersion.text().strip() or None
        info.keywords = [k.strip() for k in self.editKeywords.text().split(",") if k.strip()]
        info.acknowledgements = self.editAcknowledgements.text().strip() or None
        info.how_to_acknowledge = self.editHowToAcknowledge.text().strip() or None
        info.funding = _lines(self.editFunding.toPlainText())
        info.references = _lines(self.editReferences.toPlainText())
        info.doi = self.editDoi.text().strip() or None

        # Descriptions are shared by every file holding the variable
        descriptions = {}
        for row in range(self.tableVariables.rowCount()):
            name = self.tableVariables.item(row, 0).text()
            descriptions[name] = self.tableVariables.item(row, 2).text().strip()
        for columns in self._state.columns.values():
            for column in columns:
                if column.name in descriptions:
                    column.description = descriptions[column.name]

    def _refresh_authors(self):
        authors = self._state.dataset_info.authors
        self.tableAuthors.setRowCount(len(authors))
        for row, author in enumerate(authors):
            self.tableAuthors.setItem(row, 0, QTableWidgetItem(author.first_name))
            self.tableAuthors.setItem(row, 1, QTableWidgetItem(author.last_name))
            self.tableAuthors.setItem(row, 2, QTableWidgetItem(author.orcid or ""))

    def _refresh_variables(self):
        seen = {}
        for columns in self._state.columns.values():
            for column in columns:
                if column.name not in seen or not seen[column.name].description:
                    seen[column.name] = column

        self.tableVariables.setRowCount(len(seen))
        for row, column in enumerate(seen.values()):
            name_item = QTableWidgetItem(column.name)
            name_item.setFlags(name_item.flags() & ~Qt.ItemFlag.ItemIsEditable)
            type_item = QTableWidgetItem(column.type)
            type_item.setFlags(type_item.flags() & ~Qt.ItemFlag.ItemIsEditable)
            self.tableVariables.setItem(row, 0, name_item)
            self.tableVariables.setItem(row, 1, type_item)
            self.tableVariables.setItem(row, 2, QTableWidgetItem(column.description))

    @Slot()
    def _on_add_author(self):
        """Add the author typed in the input row."""
        try:
            author = create_author(self.editFirstName.text(), self.editLastName.text(), self.editOrcid.text())
        except ValueError as e:
            QMessageBox.warning(self, "Add Author", str(e))
            return

        self._state.dataset_info.authors.append(author)
        self._refresh_authors()
        for edit in (self.editFirstName, self.editLastName, self.editOrcid):
            edit.clear()
        logger.debug(f"Added author {author.full_name}")

    @Slot()
    def _on_remove_author(self):
        """Remove the selected authors."""
        rows = sorted({index.row() for index in self.tableAuthors.selectedIndexes()}, reverse=True)
        for row in rows:
            del self._state.dataset_info.authors[row]
        self._refresh_authors()

    @Slot()
    def _on_preview(self):
        """Show the dataset_description.json that will be written."""
        self.save_to_state()
        description = build_dataset_description(self._state.dataset_info, self._state.columns)
        JsonViewerDialog(description, title="dataset_description.json", parent=self).exec()

    @Slot()
    def _on_preview_template(self):
        """Show the metadata in the legacy template layout."""
        self.save_to_state()
        template = create_description_template(self._state.dataset_info)
        JsonViewerDialog(template, title="Metadata Template", parent=self).exec()

    @Slot()
    def _on_back(self):
        self.save_to_state()
        self.back_requested.emit()

    @Slot()
    def _on_continue(self):
        """Check the required fields and ask to move to step 3."""
        self.save_to_state()
        check = check_step2(self._state)
        if not check.ok:
            QMessageBox.warning(self, "Missing Information", "\n".join(check.errors))
            return
        self.continue_requested.emit()
