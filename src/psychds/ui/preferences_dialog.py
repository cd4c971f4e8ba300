"""
Preferences dialog for application settings.

This dialog allows users to view and modify application settings.
"""

import logging
import shlex
from pathlib import Path

from PySide6.QtWidgets import (
    QCheckBox, QComboBox, QDialog, QFileDialog, QFormLayout, QGroupBox, QHBoxLayout,
    QLineEdit, QMessageBox, QPushButton, QRadioButton, QSpinBox, QVBoxLayout
)
from PySide6.QtCore import Slot, Signal

from psychds.config.settings import STARTUP_MODES, VALIDATION_LEVELS, get_settings_manager, get_settings
from psychds.infrastructure.logging_config import get_logger

logger = get_logger(__name__)


class PreferencesDialog(QDialog):
    """
    Dialog for editing application preferences.

    Allows users to modify settings organized by category.
    """

    # Signal emitted when preferences are saved
    close_preferences_dialog = Signal()
    preview_theme_changed = Signal(str)

    # Color name mappings
    COLOR_DISPLAY_TO_VALUE = {
        "Blue": "blue",
        "Amber": "amber",
        "Cyan": "cyan",
        "Light Green": "lightgreen",
        "Pink": "pink",
        "Purple": "purple",
        "Red": "red",
        "Teal": "teal",
        "Yellow": "yellow",
    }

    COLOR_VALUE_TO_DISPLAY = {v: k for k, v in COLOR_DISPLAY_TO_VALUE.items()}

    # Log level mappings
    LOG_LEVEL_DISPLAY_TO_VALUE = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    LOG_LEVEL_VALUE_TO_DISPLAY = {v: k for k, v in LOG_LEVEL_DISPLAY_TO_VALUE.items()}

    def __init__(self, parent=None):
        """
        Initialize the preferences dialog.

        Args:
            parent: Parent widget.
        """
        super().__init__(parent)

        self._settings_manager = get_settings_manager()

        self._setup_ui()
        self._connect_signals()
        self._load_settings()

        logger.debug("PreferencesDialog initialized")

    def _setup_ui(self):
        """Setup the user interface."""
        self.setWindowTitle("Preferences")
        self.setMinimumWidth(520)
        layout = QVBoxLayout(self)

        # Appearance
        appearance = QGroupBox("Appearance")
        appearance_form = QFormLayout(appearance)
        mode_row = QHBoxLayout()
        self.radioLight = QRadioButton("Light")
        self.radioDark = QRadioButton("Dark")
        mode_row.addWidget(self.radioLight)
        mode_row.addWidget(self.radioDark)
        appearance_form.addRow("Mode:", mode_row)
        self.comboPrimaryColor = QComboBox()
        self.comboPrimaryColor.addItems(list(self.COLOR_DISPLAY_TO_VALUE))
        appearance_form.addRow("Primary color:", self.comboPrimaryColor)
        self.checkForceBrowser = QCheckBox("Open reports in the system web browser")
        appearance_form.addRow(self.checkForceBrowser)
        layout.addWidget(appearance)

        # Startup
        startup = QGroupBox("Startup")
        startup_form = QFormLayout(startup)
        self.comboStartupMode = QComboBox()
        self.comboStartupMode.addItems(list(STARTUP_MODES))
        startup_form.addRow("Dependency check:", self.comboStartupMode)
        self.checkSkipStartupCheck = QCheckBox("Skip the dependency check at startup")
        startup_form.addRow(self.checkSkipStartupCheck)
        layout.addWidget(startup)

        # Validation
        validation = QGroupBox("Validation")
        validation_form = QFormLayout(validation)
        self.comboValidationLevel = QComboBox()
        self.comboValidationLevel.addItems(list(VALIDATION_LEVELS))
        validation_form.addRow("Level:", self.comboValidationLevel)
        self.editValidatorCommand = QLineEdit()
        validation_form.addRow("Validator command:", self.editValidatorCommand)
        self.spinValidatorTimeout = QSpinBox()
        self.spinValidatorTimeout.setRange(5, 3600)
        self.spinValidatorTimeout.setSuffix(" s")
        validation_form.addRow("Timeout:", self.spinValidatorTimeout)
        layout.addWidget(validation)

        # Logging
        logging_group = QGroupBox("Logging")
        logging_form = QFormLayout(logging_group)
        self.comboLogLevel = QComboBox()
        self.comboLogLevel.addItems(list(self.LOG_LEVEL_DISPLAY_TO_VALUE))
        logging_form.addRow("Log level:", self.comboLogLevel)
        self.checkLogToFile = QCheckBox("Write log to file")
        logging_form.addRow(self.checkLogToFile)
        path_row = QHBoxLayout()
        self.editLogFilePath = QLineEdit()
        self.btnBrowseLogFile = QPushButton("Browse...")
        path_row.addWidget(self.editLogFilePath)
        path_row.addWidget(self.btnBrowseLogFile)
        logging_form.addRow("Log file:", path_row)
        self.spinMaxRecentItems = QSpinBox()
        self.spinMaxRecentItems.setRange(1, 50)
        logging_form.addRow("Recent projects:", self.spinMaxRecentItems)
        layout.addWidget(logging_group)

        buttons = QHBoxLayout()
        self.btnResetDefaults = QPushButton("Reset to Defaults")
        self.btnCancel = QPushButton("Cancel")
        self.btnSave = QPushButton("Save")
        self.btnSave.setDefault(True)
        buttons.addWidget(self.btnResetDefaults)
        buttons.addStretch()
        buttons.addWidget(self.btnCancel)
        buttons.addWidget(self.btnSave)
        layout.addLayout(buttons)

    def _connect_signals(self):
        """Connect UI signals to slots."""
        self.btnSave.clicked.connect(self._on_save)
        self.btnCancel.clicked.connect(self._on_cancel)
        self.btnResetDefaults.clicked.connect(self._on_reset_defaults)
        self.btnBrowseLogFile.clicked.connect(self._on_browse_log_file)
        self.checkLogToFile.toggled.connect(self._on_log_to_file_toggled)
        self.radioDark.toggled.connect(self._on_theme_settings_changed)
        self.comboPrimaryColor.currentTextChanged.connect(self._on_theme_settings_changed)

    def _load_settings(self):
        """Load current settings into the UI."""
        settings = get_settings()

        self.comboLogLevel.setCurrentText(self.LOG_LEVEL_VALUE_TO_DISPLAY.get(settings.log_level, "INFO"))
        self.checkLogToFile.setChecked(settings.log_to_file)
        if settings.log_file_path:
            self.editLogFilePath.setText(str(settings.log_file_path))
        self._on_log_to_file_toggled(settings.log_to_file)

        # Theme is stored as mode_color
        theme = settings.theme
        if theme.startswith("dark_"):
            self.radioDark.setChecked(True)
            color = theme[5:]
        else:
            self.radioLight.setChecked(True)
            color = theme[6:] if theme.startswith("light_") else "blue"
        self.comboPrimaryColor.setCurrentText(self.COLOR_VALUE_TO_DISPLAY.get(color, "Blue"))

        self.checkForceBrowser.setChecked(settings.force_browser)
        self.comboStartupMode.setCurrentText(settings.startup_mode)
        self.checkSkipStartupCheck.setChecked(settings.skip_startup_check)
        self.comboValidationLevel.setCurrentText(settings.validation_level)
        self.editValidatorCommand.setText(shlex.join(settings.validator_command))
        self.spinValidatorTimeout.setValue(settings.validator_timeout)
        self.spinMaxRecentItems.setValue(settings.max_recent_items)

        logger.debug("Settings loaded into UI")

    def _current_theme(self) -> str:
        mode = "dark" if self.radioDark.isChecked() else "light"
        color = self.COLOR_DISPLAY_TO_VALUE.get(self.comboPrimaryColor.currentText(), "blue")
        return f"{mode}_{color}"

    def _save_settings(self):
        """Save settings from UI to configuration."""
        command = shlex.split(self.editValidatorCommand.text())
        if not command:
            raise ValueError("The validator command must not be empty.")

        log_file_path = Path(self.editLogFilePath.text()) if self.editLogFilePath.text() else None

        self._settings_manager.update(
            log_level=self.LOG_LEVEL_DISPLAY_TO_VALUE.get(self.comboLogLevel.currentText(), logging.INFO),
            log_to_file=self.checkLogToFile.isChecked(),
            log_file_path=log_file_path,
            theme=self._current_theme(),
            force_browser=self.checkForceBrowser.isChecked(),
            startup_mode=self.comboStartupMode.currentText(),
            skip_startup_check=self.checkSkipStartupCheck.isChecked(),
            validation_level=self.comboValidationLevel.currentText(),
            validator_command=command,
            validator_timeout=self.spinValidatorTimeout.value(),
            max_recent_items=self.spinMaxRecentItems.value(),
        )

        logger.info("Settings saved")

    @Slot()
    def _on_save(self):
        """Handle Save button click."""
        try:
            self._save_settings()
            self.accept()
            self.close_preferences_dialog.emit()
        except (ValueError, OSError) as e:
            logger.error(f"Failed to save settings: {e}")
            QMessageBox.critical(self, "Error", f"Failed to save settings:\n{e}")

    @Slot()
    def _on_cancel(self):
        """Handle Cancel button click."""
        self.reject()
        self.close_preferences_dialog.emit()

    @Slot()
    def _on_reset_defaults(self):
        """Handle Reset to Defaults button click."""
        reply = QMessageBox.question(
            self,
            "Reset to Defaults",
            "Are you sure you want to reset all settings to their default values?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No
        )

        if reply == QMessageBox.StandardButton.Yes:
            self._settings_manager.reset_to_defaults()
            self._load_settings()
            logger.info("Settings reset to defaults")
            QMessageBox.information(self, "Reset Complete", "Settings have been reset to default values.")

    @Slot()
    def _on_browse_log_file(self):
        """Handle Browse button click for log file path."""
        current_path = self.editLogFilePath.text()
        initial_dir = str(Path(current_path).parent) if current_path else str(Path.home())

        file_path, _ = QFileDialog.getSaveFileName(
            self,
            "Select Log File",
            initial_dir,
            "Log Files (*.txt *.log);;All Files (*.*)"
        )

        if file_path:
            self.editLogFilePath.setText(file_path)

    @Slot(bool)
    def _on_log_to_file_toggled(self, checked: bool):
        """Handle log to file checkbox toggle."""
        self.editLogFilePath.setEnabled(checked)
        self.btnBrowseLogFile.setEnabled(checked)

    @Slot()
    def _on_theme_settings_changed(self):
        """Handle theme mode or color change."""
        self.preview_theme_changed.emit(self._current_theme())
