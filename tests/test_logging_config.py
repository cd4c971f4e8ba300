"""
Tests for log file rotation and logging setup.
"""

import logging
from pathlib import Path

import pytest

from psychds.infrastructure.logging_config import get_logger, rotate_log_files, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    before, level = set(root.handlers), root.level
    yield
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_rotate_keeps_previous_run(tmp_path: Path):
    log_file = tmp_path / "log.txt"
    log_file.write_text("first run\n", encoding="utf-8")
    (tmp_path / "log.old.txt").write_text("older run\n", encoding="utf-8")

    rotate_log_files(log_file)

    assert not log_file.exists()
    assert (tmp_path / "log.old.txt").read_text(encoding="utf-8") == "first run\n"


def test_rotate_without_log_file(tmp_path: Path):
    log_dir = tmp_path / "logs"
    log_dir.mkdir()

    rotate_log_files(log_dir / "log.txt")

    assert list(log_dir.iterdir()) == []


def test_setup_logging_writes_file(tmp_path: Path):
    log_file = tmp_path / "logs" / "log.txt"

    assert setup_logging(level=logging.DEBUG, log_file=log_file) == log_file

    get_logger("psychds.test").debug("written to file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "written to file" in log_file.read_text(encoding="utf-8")
    assert logging.getLogger("urllib3").level == logging.WARNING


def test_setup_logging_console_only(tmp_path: Path):
    assert setup_logging(level=logging.INFO, log_to_file=False) is None

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert not isinstance(handlers[0], logging.FileHandler)
