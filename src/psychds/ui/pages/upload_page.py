"""
OSF upload page.
"""

from pathlib import Path

from PySide6.QtWidgets import (
    QCheckBox, QFileDialog, QFormLayout, QHBoxLayout, QLabel, QLineEdit, QListWidget,
    QMessageBox, QPushButton, QVBoxLayout, QWidget
)
from PySide6.QtCore import Slot

from psychds.config.settings import get_settings
from psychds.core.errors import OSFError
from psychds.infrastructure.logging_config import get_logger
from psychds.infrastructure.osf_client import (
    MISSING_PROJECT_ID, OSFClient, UploadReport, check_upload_inputs, iter_upload_files
)
from psychds.ui.progress_dialog import ProgressDialog
from psychds.ui.workers import UploadThread


logger = get_logger(__name__)


class UploadPage(QWidget):
    """
    Upload a dataset folder to an existing or new OSF project.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self._thread = None
        self._progress_dialog = None

        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self):
        """Setup the user interface."""
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("<h2>Upload to OSF</h2>"))

        form = QFormLayout()
        dir_row = QHBoxLayout()
        self.editDirectory = QLineEdit()
        self.btnBrowse = QPushButton("Browse...")
        dir_row.addWidget(self.editDirectory)
        dir_row.addWidget(self.btnBrowse)
        form.addRow("Dataset folder:", dir_row)

        self.editToken = QLineEdit()
        self.editToken.setEchoMode(QLineEdit.EchoMode.Password)
        self.editToken.setPlaceholderText("Personal access token from osf.io/settings/tokens")
        form.addRow("OSF token:", self.editToken)

        self.editProject = QLineEdit()
        self.editProject.setPlaceholderText("Project ID or URL, e.g. https://osf.io/abc12/")
        form.addRow("Project:", self.editProject)

        self.checkCreateProject = QCheckBox("Create a new project")
        form.addRow(self.checkCreateProject)
        self.editProjectTitle = QLineEdit()
        self.editProjectTitle.setEnabled(False)
        form.addRow("New project title:", self.editProjectTitle)

        self.checkCreateReadme = QCheckBox("Generate README.md if the dataset has none")
        self.checkCreateReadme.setChecked(True)
        form.addRow(self.checkCreateReadme)
        layout.addLayout(form)

        buttons = QHBoxLayout()
        self.btnTestConnection = QPushButton("Test Connection")
        self.btnUpload = QPushButton("Upload")
        buttons.addStretch()
        buttons.addWidget(self.btnTestConnection)
        buttons.addWidget(self.btnUpload)
        layout.addLayout(buttons)

        self.listLog = QListWidget()
        layout.addWidget(self.listLog, stretch=1)

    def _connect_signals(self):
        """Connect UI signals to slots."""
        self.btnBrowse.clicked.connect(self._on_browse)
        self.checkCreateProject.toggled.connect(self._on_create_toggled)
        self.btnTestConnection.clicked.connect(self._on_test_connection)
        self.btnUpload.clicked.connect(self._on_upload)

    def set_dataset_dir(self, directory: Path):
        """Prefill the dataset folder, e.g. after the wizard created one."""
        self.editDirectory.setText(str(directory))
        if not self.editProjectTitle.text():
            self.editProjectTitle.setText(directory.name)

    def _client(self) -> OSFClient:
        settings = get_settings()
        return OSFClient(self.editToken.text(), api_url=settings.osf_api_url, files_url=settings.osf_files_url)

    @Slot()
    def _on_browse(self):
        start = self.editDirectory.text() or str(Path.home())
        directory = QFileDialog.getExistingDirectory(self, "Select Dataset Folder", start)
        if directory:
            self.set_dataset_dir(Path(directory))

    @Slot(bool)
    def _on_create_toggled(self, checked: bool):
        self.editProjectTitle.setEnabled(checked)
        self.editProject.setEnabled(not checked)

    @Slot()
    def _on_test_connection(self):
        """Check the token against the OSF API."""
        try:
            full_name = self._client().test_connection()
        except OSFError as e:
            QMessageBox.warning(self, "OSF Connection", str(e))
            return
        QMessageBox.information(self, "OSF Connection", f"Connected as {full_name}.")

    @Slot()
    def _on_upload(self):
        """Start the upload in a worker thread."""
        dataset_text = self.editDirectory.text().strip()
        dataset_dir = Path(dataset_text) if dataset_text else None
        creating = self.checkCreateProject.isChecked()

        problems = check_upload_inputs(dataset_dir, self.editProject.text(), self.editToken.text())
        if creating:
            problems = [p for p in problems if p != MISSING_PROJECT_ID]
            if not self.editProjectTitle.text().strip():
                problems.append("Please enter a title for the new project.")
        if problems:
            QMessageBox.warning(self, "Upload", "\n".join(problems))
            return

        file_count = len(iter_upload_files(dataset_dir))
        reply = QMessageBox.question(
            self, "Upload",
            f"Upload {file_count} files from {dataset_dir.name} to OSF?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.Yes
        )
        if reply != QMessageBox.StandardButton.Yes:
            return

        try:
            client = self._client()
        except OSFError as e:
            QMessageBox.warning(self, "Upload", str(e))
            return

        self.listLog.clear()
        self._progress_dialog = ProgressDialog("Uploading to OSF", self)
        self._thread = UploadThread(
            client, dataset_dir,
            project_id=self.editProject.text(),
            new_project_title=self.editProjectTitle.text().strip() if creating else "",
            create_readme=self.checkCreateReadme.isChecked(),
            parent=self,
        )
        self._thread.progress_updated.connect(self._progress_dialog.update_progress)
        self._thread.progress_updated.connect(self._on_progress)
        self._thread.upload_complete.connect(self._on_upload_complete)
        self._thread.upload_error.connect(self._on_upload_error)
        self._thread.start()
        self._progress_dialog.exec()

    @Slot(int, int, str)
    def _on_progress(self, current: int, total: int, path: str):
        self.listLog.addItem(f"[{current}/{total}] {path}")

    @Slot(object)
    def _on_upload_complete(self, report: UploadReport):
        self._progress_dialog.complete()
        self._thread = None
        for path, error in report.failed.items():
            self.listLog.addItem(f"✗ {path}: {error}")

        if report.success:
            QMessageBox.information(
                self, "Upload Complete",
                f"Uploaded {len(report.uploaded)} files.\n\nView the project at {report.project_url}"
            )
        else:
            QMessageBox.warning(
                self, "Upload Incomplete",
                f"Uploaded {len(report.uploaded)} files, {len(report.failed)} failed.\n\n"
                f"Project: {report.project_url}"
            )

    @Slot(str)
    def _on_upload_error(self, message: str):
        self._progress_dialog.reject()
        self._thread = None
        QMessageBox.critical(self, "Upload Failed", message)
