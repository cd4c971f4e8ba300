"""
Tests for the SettingsManager persistence behaviour.

These tests verify that settings are saved and loaded correctly, that
session-only flags never reach the settings file, and that the global
settings manager uses the persistent data directory when no custom
config_file is provided.
"""
from __future__ import annotations

from pathlib import Path
import json

import pytest


def test_save_and_load(tmp_path: Path):
    from psychds.config.settings import SettingsManager

    config_file = tmp_path / "settings.json"

    # Create a manager with a custom file path
    manager = SettingsManager(config_file=config_file)
    manager.load()

    # Update and add recent projects (auto-saves)
    manager.update(theme="dark_teal", window_width=1400, force_browser=True, startup_mode="minimal")
    manager.add_recent_project("/path/to/project1")
    manager.add_recent_project("/path/to/project2")

    # File should be created
    assert config_file.exists()

    # Load again using a new manager instance to verify persistence
    new_manager = SettingsManager(config_file=config_file)
    new_manager.load()
    settings = new_manager.get()

    assert settings.theme == "dark_teal"
    assert settings.window_width == 1400
    assert settings.force_browser is True
    assert settings.startup_mode == "minimal"
    assert settings.recent_projects == ["/path/to/project2", "/path/to/project1"]

    # Check contents on disk match expectations
    with open(config_file, "r", encoding="utf-8") as f:
        data = json.load(f)

    assert data["theme"] == "dark_teal"
    assert data["window_width"] == 1400


def test_session_flags_are_not_saved(tmp_path: Path):
    from psychds.config.settings import SESSION_ONLY_FIELDS, SettingsManager

    config_file = tmp_path / "settings.json"
    manager = SettingsManager(config_file=config_file)
    manager.load()

    manager.set_flag("pdf_check_done", True)
    manager.set_flag("dependency_check_done", True)
    manager.save()

    with open(config_file, "r", encoding="utf-8") as f:
        data = json.load(f)
    for key in SESSION_ONLY_FIELDS:
        assert key not in data

    # A flag written to the file by hand is ignored on load
    data["pdf_check_done"] = True
    config_file.write_text(json.dumps(data), encoding="utf-8")

    new_manager = SettingsManager(config_file=config_file)
    new_manager.load()
    assert new_manager.get().pdf_check_done is False


def test_set_flag_does_not_write_file(tmp_path: Path):
    from psychds.config.settings import SettingsManager

    config_file = tmp_path / "settings.json"
    manager = SettingsManager(config_file=config_file)

    manager.set_flag("force_browser", True)

    assert manager.get().force_browser is True
    assert not config_file.exists()


def test_set_unknown_flag(tmp_path: Path):
    from psychds.config.settings import SettingsManager

    manager = SettingsManager(config_file=tmp_path / "settings.json")

    with pytest.raises(AttributeError):
        manager.set_flag("no_such_flag", True)


def test_invalid_choices_fall_back_to_defaults(tmp_path: Path):
    from psychds.config.settings import SettingsManager

    config_file = tmp_path / "settings.json"
    config_file.write_text(json.dumps({
        "startup_mode": "paranoid",
        "validation_level": "extreme",
        "theme": "dark_amber",
        "unknown_key": 1,
    }), encoding="utf-8")

    manager = SettingsManager(config_file=config_file)
    settings = manager.load()

    assert settings.startup_mode == "recommended"
    assert settings.validation_level == "standard"
    assert settings.theme == "dark_amber"
    assert not hasattr(settings, "unknown_key")


def test_corrupt_file_uses_defaults(tmp_path: Path):
    from psychds.config.settings import SettingsManager

    config_file = tmp_path / "settings.json"
    config_file.write_text("{not json", encoding="utf-8")

    settings = SettingsManager(config_file=config_file).load()

    assert settings.startup_mode == "recommended"


def test_recent_projects_are_limited(tmp_path: Path):
    from psychds.config.settings import SettingsManager

    manager = SettingsManager(config_file=tmp_path / "settings.json")
    manager.update(max_recent_items=3)

    for i in range(5):
        manager.add_recent_project(f"/projects/p{i}")
    manager.add_recent_project("/projects/p3")

    assert manager.get().recent_projects == ["/projects/p3", "/projects/p4", "/projects/p2"]


def test_reset_keeps_session_flags(tmp_path: Path):
    from psychds.config.settings import SettingsManager

    manager = SettingsManager(config_file=tmp_path / "settings.json")
    manager.update(theme="dark_blue")
    manager.set_flag("dependency_check_done", True)

    manager.reset_to_defaults()

    assert manager.get().theme == "light_blue"
    assert manager.get().dependency_check_done is True


def test_get_settings_manager_uses_default_path(tmp_path: Path, monkeypatch):
    import psychds.config.settings as settings_mod

    # Monkeypatch the persistent directory to the temporary path
    monkeypatch.setattr(
        "psychds.config.settings.get_persistent_data_directory",
        lambda: tmp_path,
    )

    # Ensure we start with a fresh global manager
    settings_mod._settings_manager = None

    # Call the helper which should create a manager and write to our tmp path
    manager = settings_mod.get_settings_manager()
    manager.save()
    assert manager.config_file.parent == tmp_path
    assert manager.config_file.name == "settings.json"
    assert manager.config_file.exists()
    assert settings_mod.get_settings_manager() is manager

    # Cleanup the global manager for subsequent tests
    settings_mod._settings_manager = None
