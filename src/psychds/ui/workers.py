"""
Worker threads for background operations.

This module provides worker threads for long-running operations that should
not block the UI thread: dataset creation, validation, data dictionary
analysis and OSF upload.
"""

from pathlib import Path
from typing import Optional

from PySide6.QtCore import QThread, Signal

from psychds.core.dataset_builder import CreateDatasetRequest, create_dataset
from psychds.core.dictionary import build_data_dictionary
from psychds.core.errors import PsychDSError
from psychds.infrastructure.logging_config import get_logger
from psychds.infrastructure.osf_client import OSFClient
from psychds.infrastructure.validator_backend import SubprocessValidator, validate_directory


logger = get_logger(__name__)


class DatasetCreationThread(QThread):
    """
    Worker thread for writing a new dataset to disk.

    Emits progress for every copied data file.
    """

    # Signal emitted when progress updates (current, total, filename)
    progress_updated = Signal(int, int, str)

    # Signal emitted when the dataset is written (dataset root)
    creation_complete = Signal(Path)

    # Signal emitted when an error occurs (error_message)
    creation_error = Signal(str)

    def __init__(self, request: CreateDatasetRequest, parent=None):
        """
        Initialize the creation thread.

        Args:
            request: CreateDatasetRequest with everything collected by the wizard.
            parent: Parent QObject.
        """
        super().__init__(parent)
        self._request = request

    def run(self):
        """Run the dataset creation."""
        try:
            root = create_dataset(self._request, progress_callback=self._progress_callback)
            self.creation_complete.emit(root)
        except PsychDSError as e:
            logger.error(f"Dataset creation failed: {e}")
            self.creation_error.emit(str(e))
        except Exception as e:
            logger.error(f"Error creating dataset in thread: {e}", exc_info=True)
            self.creation_error.emit(str(e))

    def _progress_callback(self, current: int, total: int, file_path: Path):
        self.progress_updated.emit(current, total, f"Copying {file_path.name}")


class ValidationThread(QThread):
    """
    Worker thread that runs the external validator on a directory.
    """

    # Signal emitted when validation finishes (ValidationResult)
    validation_complete = Signal(object)

    # Signal emitted when an error occurs (error_message)
    validation_error = Signal(str)

    def __init__(self, dataset_dir: Path, validator: Optional[SubprocessValidator] = None, parent=None):
        """
        Initialize the validation thread.

        Args:
            dataset_dir: Dataset root to validate.
            validator: Backend to use; built from the settings when None.
            parent: Parent QObject.
        """
        super().__init__(parent)
        self._dataset_dir = dataset_dir
        self._validator = validator

    def run(self):
        """Run the validation."""
        try:
            result = validate_directory(self._dataset_dir, self._validator)
            self.validation_complete.emit(result)
        except Exception as e:
            logger.error(f"Error validating dataset in thread: {e}", exc_info=True)
            self.validation_error.emit(str(e))


class DictionaryAnalysisThread(QThread):
    """
    Worker thread that infers variable definitions from CSV files.
    """

    # Signal emitted when progress updates (current, total, message)
    progress_updated = Signal(int, int, str)

    # Signal emitted when analysis is complete (DataDictionary)
    analysis_complete = Signal(object)

    # Signal emitted when an error occurs (error_message)
    analysis_error = Signal(str)

    def __init__(self, data_dir: Path, files: list[str], parent=None):
        """
        Initialize the analysis thread.

        Args:
            data_dir: Directory the files are relative to.
            files: CSV files to analyze.
            parent: Parent QObject.
        """
        super().__init__(parent)
        self._data_dir = data_dir
        self._files = files

    def run(self):
        """Run the analysis."""
        try:
            self.progress_updated.emit(0, 1, f"Analyzing {len(self._files)} data files...")
            dictionary = build_data_dictionary(self._data_dir, self._files)
            self.progress_updated.emit(1, 1, f"Found {len(dictionary.variables)} variables")
            self.analysis_complete.emit(dictionary)
        except Exception as e:
            logger.error(f"Error analyzing data files in thread: {e}", exc_info=True)
            self.analysis_error.emit(str(e))


class UploadThread(QThread):
    """
    Worker thread for uploading a dataset to OSF.

    When a project title is given a new project is created first.
    """

    # Signal emitted when progress updates (current, total, relative path)
    progress_updated = Signal(int, int, str)

    # Signal emitted when the upload finishes (UploadReport)
    upload_complete = Signal(object)

    # Signal emitted when an error occurs (error_message)
    upload_error = Signal(str)

    def __init__(self, client: OSFClient, dataset_dir: Path, project_id: str = "",
                 new_project_title: str = "", create_readme: bool = False, parent=None):
        """
        Initialize the upload thread.

        Args:
            client: Authenticated OSF client.
            dataset_dir: Dataset root to upload.
            project_id: Existing project id or URL.
            new_project_title: Title of a project to create instead.
            create_readme: Upload a generated README.md when the dataset has none.
            parent: Parent QObject.
        """
        super().__init__(parent)
        self._client = client
        self._dataset_dir = dataset_dir
        self._project_id = project_id
        self._new_project_title = new_project_title
        self._create_readme = create_readme

    def run(self):
        """Run the upload."""
        try:
            self._client.test_connection()
            project_id = self._project_id
            if self._new_project_title:
                self.progress_updated.emit(0, 1, f"Creating project '{self._new_project_title}'")
                project_id = self._client.create_project(self._new_project_title)

            report = self._client.upload_dataset(
                project_id, self._dataset_dir, progress_callback=self.progress_updated.emit,
                create_readme=self._create_readme,
            )
            self.upload_complete.emit(report)
        except PsychDSError as e:
            logger.error(f"Upload failed: {e}")
            self.upload_error.emit(str(e))
        except Exception as e:
            logger.error(f"Error uploading dataset in thread: {e}", exc_info=True)
            self.upload_error.emit(str(e))
