"""
Main application window.

The window holds the three-step dataset creation wizard followed by tabs
for validation, the data dictionary editor, OSF upload and the dataset
explorer. Business logic is delegated to core/infrastructure modules.
"""

from pathlib import Path
from typing import Optional

from PySide6.QtWidgets import (
    QApplication, QFileDialog, QHBoxLayout, QMainWindow, QMessageBox, QStackedWidget, QTabWidget, QWidget
)
from PySide6.QtGui import QAction, QCloseEvent
from PySide6.QtCore import Slot
from qt_material import apply_stylesheet

from psychds.config.settings import get_settings, get_settings_manager
from psychds.core.errors import PreflightError
from psychds.core.models import WizardState
from psychds.core.navigation import (
    advance, enter_create_tab, go_to_step, leave_create_tab, reachable_steps
)
from psychds.infrastructure.dependencies import run_preflight
from psychds.infrastructure.logging_config import get_logger
from psychds.ui.about_dialog import AboutDialog
from psychds.ui.pages.dictionary_page import DictionaryPage
from psychds.ui.pages.explorer_page import ExplorerPage
from psychds.ui.pages.metadata_page import MetadataPage
from psychds.ui.pages.organize_page import OrganizePage
from psychds.ui.pages.select_files_page import SelectFilesPage
from psychds.ui.pages.upload_page import UploadPage
from psychds.ui.pages.validate_page import ValidatePage
from psychds.ui.preferences_dialog import PreferencesDialog
from psychds.ui.widgets.step_sidebar import StepSidebar


logger = get_logger(__name__)

CREATE_TAB = 0


class MainWindow(QMainWindow):
    """
    Main application window.

    Owns the WizardState of the session and enforces the step gate when
    the user moves between wizard steps.
    """

    def __init__(self, parent=None):
        """Initialize the main window."""
        super().__init__(parent)

        self._state = WizardState()
        self._current_tab = CREATE_TAB

        self._setup_ui()
        self._setup_menus()
        self._connect_signals()
        self._show_step(self._state.current_step)

        logger.info("MainWindow initialized")

    def _setup_ui(self):
        """Setup the user interface."""
        self.setWindowTitle("Psych-DS Dataset Wizard")
        settings = get_settings()
        self.resize(settings.window_width, settings.window_height)

        self.tabs = QTabWidget()
        self.setCentralWidget(self.tabs)

        # Create tab: step sidebar next to the step pages
        create_tab = QWidget()
        create_layout = QHBoxLayout(create_tab)
        self.stepSidebar = StepSidebar()
        create_layout.addWidget(self.stepSidebar)

        self.stepStack = QStackedWidget()
        self.selectFilesPage = SelectFilesPage(self._state)
        self.metadataPage = MetadataPage(self._state)
        self.organizePage = OrganizePage(self._state)
        for page in (self.selectFilesPage, self.metadataPage, self.organizePage):
            self.stepStack.addWidget(page)
        create_layout.addWidget(self.stepStack, stretch=1)

        self.validatePage = ValidatePage()
        self.dictionaryPage = DictionaryPage()
        self.uploadPage = UploadPage()
        self.explorerPage = ExplorerPage()

        self.tabs.addTab(create_tab, "Create Dataset")
        self.tabs.addTab(self.validatePage, "Validate")
        self.tabs.addTab(self.dictionaryPage, "Data Dictionary")
        self.tabs.addTab(self.uploadPage, "Upload to OSF")
        self.tabs.addTab(self.explorerPage, "Dataset Explorer")

        self.statusBar().showMessage("Select a data directory to start")
        logger.debug("UI setup complete")

    def _setup_menus(self):
        """Create the menu bar."""
        file_menu = self.menuBar().addMenu("&File")

        self.actionOpenProject = QAction("&Open Data Directory...", self)
        self.actionOpenProject.setShortcut("Ctrl+O")
        file_menu.addAction(self.actionOpenProject)

        self.menuOpenRecent = file_menu.addMenu("Open &Recent")
        self._update_recent_menu()

        self.actionNewDataset = QAction("&New Dataset", self)
        self.actionNewDataset.setShortcut("Ctrl+N")
        file_menu.addAction(self.actionNewDataset)

        file_menu.addSeparator()
        self.actionClose = QAction("&Quit", self)
        self.actionClose.setShortcut("Ctrl+Q")
        file_menu.addAction(self.actionClose)

        settings_menu = self.menuBar().addMenu("&Settings")
        self.actionPreferences = QAction("&Preferences...", self)
        settings_menu.addAction(self.actionPreferences)
        self.actionCheckDependencies = QAction("Check &Dependencies", self)
        settings_menu.addAction(self.actionCheckDependencies)

        help_menu = self.menuBar().addMenu("&Help")
        self.actionAbout = QAction("&About", self)
        help_menu.addAction(self.actionAbout)

    def _connect_signals(self):
        """Connect signals and slots."""
        self.actionOpenProject.triggered.connect(self._on_open_project)
        self.actionNewDataset.triggered.connect(self._on_new_dataset)
        self.actionClose.triggered.connect(self.close)
        self.actionPreferences.triggered.connect(self.show_preferences)
        self.actionCheckDependencies.triggered.connect(self.check_dependencies)
        self.actionAbout.triggered.connect(self.show_about)

        self.tabs.currentChanged.connect(self._on_tab_changed)
        self.stepSidebar.step_clicked.connect(self.navigate_to_step)

        self.selectFilesPage.continue_requested.connect(self._on_continue)
        self.selectFilesPage.project_opened.connect(self._on_project_opened)
        self.metadataPage.continue_requested.connect(self._on_continue)
        self.metadataPage.back_requested.connect(lambda: self.navigate_to_step(1))
        self.organizePage.back_requested.connect(lambda: self.navigate_to_step(2))
        self.organizePage.dataset_created.connect(self._on_dataset_created)

        logger.debug("Signals connected")

    def _page_for_step(self, step: int):
        return (self.selectFilesPage, self.metadataPage, self.organizePage)[step - 1]

    def _show_step(self, step: int):
        """Display a step page and refresh the sidebar."""
        page = self._page_for_step(step)
        page.load_from_state()
        self.stepStack.setCurrentWidget(page)
        self.stepSidebar.update_steps(step, reachable_steps(self._state))

    @Slot(int)
    def navigate_to_step(self, step: int):
        """
        Move to a wizard step if the step gate allows it.

        Args:
            step: Target step (1-3).
        """
        if self._state.current_step:
            self._page_for_step(self._state.current_step).save_to_state()

        result = go_to_step(self._state, step)
        if not result.allowed:
            QMessageBox.warning(self, "Step Not Available", result.message)
            self.stepSidebar.update_steps(self._state.current_step, reachable_steps(self._state))
            return

        self._show_step(result.step)
        logger.debug(f"Moved to step {result.step}")

    @Slot()
    def _on_continue(self):
        """Handle a page's Continue button; the page already checked its inputs."""
        result = advance(self._state)
        if result.allowed:
            self._show_step(result.step)
        elif result.message:
            QMessageBox.warning(self, "Step Not Available", result.message)

    @Slot(int)
    def _on_tab_changed(self, index: int):
        if self._current_tab == CREATE_TAB and index != CREATE_TAB:
            self._page_for_step(self._state.current_step).save_to_state()
            leave_create_tab(self._state)
        elif index == CREATE_TAB and self._current_tab != CREATE_TAB:
            self._show_step(enter_create_tab(self._state))
        self._current_tab = index

    @Slot(str)
    def _on_project_opened(self, path: str):
        self.statusBar().showMessage(f"Data directory: {path}")
        self._update_recent_menu()

    @Slot(Path)
    def _on_dataset_created(self, root: Path):
        """Hand the new dataset to the other tabs and switch to validation."""
        for page in (self.validatePage, self.dictionaryPage, self.uploadPage, self.explorerPage):
            page.set_dataset_dir(root)
        self.statusBar().showMessage(f"Dataset created: {root}")
        self.tabs.setCurrentWidget(self.validatePage)

    @Slot()
    def _on_open_project(self):
        """Choose a data directory and restart at step 1."""
        directory = QFileDialog.getExistingDirectory(self, "Select Data Directory", str(Path.home()))
        if directory:
            self._open_project(directory)

    def _open_project(self, directory: str):
        self.tabs.setCurrentIndex(CREATE_TAB)
        self.navigate_to_step(1)
        self.selectFilesPage.open_directory(directory)

    def _update_recent_menu(self):
        """Update the recent projects menu with current list."""
        self.menuOpenRecent.clear()
        recent_projects = get_settings().recent_projects

        if not recent_projects:
            no_recent_action = QAction("No recent projects", self)
            no_recent_action.setEnabled(False)
            self.menuOpenRecent.addAction(no_recent_action)
            return

        for project_path in recent_projects:
            action = QAction(project_path, self)
            action.triggered.connect(lambda checked=False, path=project_path: self._load_recent_project(path))
            self.menuOpenRecent.addAction(action)

        self.menuOpenRecent.addSeparator()
        clear_action = QAction("Clear Recent Projects", self)
        clear_action.triggered.connect(self._clear_recent_projects)
        self.menuOpenRecent.addAction(clear_action)

    def _load_recent_project(self, project_path: str):
        """Open a directory from the recent projects list."""
        logger.info(f"Opening recent project: {project_path}")
        if not Path(project_path).is_dir():
            QMessageBox.warning(
                self,
                "Directory Not Found",
                f"The directory no longer exists:\n{project_path}\n\n"
                f"It will be removed from recent projects."
            )
            settings = get_settings()
            settings.recent_projects.remove(project_path)
            get_settings_manager().save()
            self._update_recent_menu()
            return
        self._open_project(project_path)

    @Slot()
    def _clear_recent_projects(self):
        """Clear the recent projects list."""
        reply = QMessageBox.question(
            self,
            "Clear Recent Projects",
            "Are you sure you want to clear the recent projects list?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No
        )
        if reply == QMessageBox.StandardButton.Yes:
            get_settings_manager().update(recent_projects=[])
            self._update_recent_menu()

    @Slot()
    def _on_new_dataset(self):
        """Discard the wizard state and start over."""
        reply = QMessageBox.question(
            self,
            "New Dataset",
            "Discard everything entered so far and start a new dataset?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No
        )
        if reply != QMessageBox.StandardButton.Yes:
            return

        # Pages hold a reference to the state object, so reset it in place
        fresh = WizardState()
        for name in vars(fresh):
            setattr(self._state, name, getattr(fresh, name))
        self.tabs.setCurrentIndex(CREATE_TAB)
        self._show_step(self._state.current_step)
        logger.info("Wizard reset")

    def apply_theme(self, theme: str):
        """
        Apply the specified theme to the application.

        Args:
            theme: Name of the theme to apply.
        """
        app = QApplication.instance()
        if app is None:
            return
        if not theme.endswith('.xml'):
            theme = f"{theme}.xml"
        try:
            apply_stylesheet(app, theme=theme, invert_secondary=theme.startswith('light_'))
            logger.info(f"Theme applied: {theme}")
        except Exception as e:
            logger.error(f"Failed to apply theme: {e}")

    @Slot()
    def show_about(self):
        """Show the About dialog."""
        AboutDialog(self).exec()
        logger.debug("About dialog shown")

    @Slot()
    def show_preferences(self):
        """Show the Preferences dialog."""
        dialog = PreferencesDialog(self)
        dialog.close_preferences_dialog.connect(self._on_preferences_dialog_closed)
        dialog.preview_theme_changed.connect(self.apply_theme)
        if dialog.exec():
            logger.info("Preferences saved")
            self._update_recent_menu()
        else:
            logger.debug("Preferences dialog cancelled")

    @Slot()
    def _on_preferences_dialog_closed(self):
        self.apply_theme(get_settings().theme)

    @Slot()
    def check_dependencies(self):
        """Run the dependency checks again and show the findings."""
        try:
            report = run_preflight(force=True)
        except PreflightError as e:
            QMessageBox.critical(self, "Dependency Check", str(e))
            return

        lines = report.summary_lines()
        if report.pdf_backend:
            lines.append(f"PDF backend: {report.pdf_backend}")
        QMessageBox.information(self, "Dependency Check", "\n".join(lines) or "All dependency checks passed.")

    def show_startup_warnings(self, lines: list[str]):
        """Show non-fatal findings of the startup check."""
        if lines:
            QMessageBox.warning(self, "Dependency Check", "\n".join(lines))

    def closeEvent(self, event: QCloseEvent):
        """Remember the window size."""
        get_settings_manager().update(window_width=self.width(), window_height=self.height())
        super().closeEvent(event)

    @property
    def state(self) -> WizardState:
        return self._state

    def open_initial_project(self, directory: Optional[str]):
        """Open a directory given on the command line."""
        if directory:
            self._open_project(directory)
