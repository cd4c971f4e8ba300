"""
Main application entry point.

This module initializes and runs the PySide6 application.
"""

import sys
from typing import Optional

from PySide6.QtWidgets import QApplication, QMessageBox

from psychds import __version__
from psychds.config.settings import get_settings
from psychds.core.errors import PreflightError
from psychds.infrastructure.dependencies import run_preflight
from psychds.infrastructure.logging_config import setup_logging, get_logger
from psychds.ui.main_window import MainWindow


logger = get_logger(__name__)


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the GUI application.

    Args:
        argv: Command-line arguments; the first positional one, if any, is
            opened as the data directory.

    Returns:
        Exit code.
    """
    argv = sys.argv if argv is None else argv

    # Setup logging (logs to persistent data directory with rotation)
    settings = get_settings()
    setup_logging(
        level=settings.log_level,
        log_file=settings.log_file_path,
        log_to_file=settings.log_to_file
    )

    logger.info(f"Starting psychds {__version__}")

    app = QApplication(argv)
    app.setApplicationName("psychds")
    app.setApplicationVersion(__version__)

    try:
        report = run_preflight()
    except PreflightError as e:
        logger.critical(f"Startup check failed: {e}")
        QMessageBox.critical(None, "Missing Dependencies", f"psychds cannot start:\n\n{e}")
        return 1

    window = MainWindow()
    window.apply_theme(settings.theme)
    window.show()

    logger.info("Main window displayed")

    window.show_startup_warnings(report.summary_lines())

    positional = [arg for arg in argv[1:] if not arg.startswith("-")]
    window.open_initial_project(positional[0] if positional else None)

    exit_code = app.exec()

    logger.info(f"Application exiting with code {exit_code}")

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
