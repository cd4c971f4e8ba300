"""
About dialog for the application.

This module provides a dialog displaying application information.
"""

from PySide6.QtWidgets import QDialog, QDialogButtonBox, QLabel, QVBoxLayout
from PySide6.QtCore import Qt

from psychds import __version__
from psychds.infrastructure.logging_config import get_logger
from psychds.infrastructure.paths import get_persistent_data_directory


logger = get_logger(__name__)


ABOUT_TEXT = """
<h2>Psych-DS Dataset Wizard</h2>
<p>Version {version}</p>
<p>Organize psychology research data into datasets that follow the
<a href="https://psych-ds.github.io/">Psych-DS</a> standard: select data files,
describe the dataset, rename files with keywords, validate the result and
upload it to the <a href="https://osf.io/">Open Science Framework</a>.</p>
<p>Settings and logs are stored in:<br><code>{data_dir}</code></p>
"""


class AboutDialog(QDialog):
    """
    About dialog showing application information.
    """

    def __init__(self, parent=None):
        """
        Initialize the About dialog.

        Args:
            parent: Parent widget.
        """
        super().__init__(parent)
        self._setup_ui()

    def _setup_ui(self):
        """Setup the dialog UI."""
        self.setWindowTitle("About psychds")
        self.resize(460, 300)

        layout = QVBoxLayout(self)
        label = QLabel(ABOUT_TEXT.format(version=__version__, data_dir=get_persistent_data_directory()))
        label.setWordWrap(True)
        label.setOpenExternalLinks(True)
        label.setTextInteractionFlags(Qt.TextInteractionFlag.TextBrowserInteraction)
        layout.addWidget(label)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok)
        buttons.accepted.connect(self.accept)
        layout.addWidget(buttons)

        logger.debug("About dialog UI setup complete")
