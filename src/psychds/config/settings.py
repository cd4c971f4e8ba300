"""
Application settings and configuration.

This module provides centralized access to application settings with automatic
persistence to disk. Settings are stored as JSON in a platform-specific location:

- Windows: %APPDATA%/LocalLow/psychds/settings.json
- macOS: ~/Library/Application Support/psychds/settings.json
- Linux: ~/.config/psychds/settings.json

Settings are automatically loaded on first access and saved when updated.
They also carry the process-wide flags shared by the wizard, such as whether
the dependency check already ran in this session and whether generated
reports should open in the system browser.

Example:
    from psychds.config.settings import get_settings, get_settings_manager

    settings = get_settings()
    print(settings.startup_mode)

    # Update settings (auto-saves)
    manager = get_settings_manager()
    manager.update(force_browser=True)

    # Remember a project directory (auto-saves)
    manager.add_recent_project("/path/to/project")
"""

import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional

from ..infrastructure.paths import get_persistent_data_directory, get_log_file_path


STARTUP_MODES = ("minimal", "recommended")
VALIDATION_LEVELS = ("basic", "standard", "strict")

# Flags that only describe the running process and are never written to disk
SESSION_ONLY_FIELDS = ("pdf_check_done", "dependency_check_done")


@dataclass
class AppSettings:
    """Application-wide settings."""

    # Logging settings
    log_level: int = logging.INFO
    log_to_file: bool = True
    log_file_path: Optional[Path] = field(default_factory=get_log_file_path)
    debug: bool = False

    # UI settings
    window_width: int = 1200
    window_height: int = 800
    theme: str = "light_blue"  # Available: dark_blue, dark_teal, dark_amber, light_blue, light_teal, light_amber

    # Startup and preflight
    startup_mode: str = "recommended"  # minimal or recommended
    skip_startup_check: bool = False
    dependency_check_done: bool = False
    pdf_check_done: bool = False

    # Reports open in the system web browser instead of the in-app viewer
    force_browser: bool = False

    # Dataset handling
    max_file_size_mb: int = 100
    validation_level: str = "standard"

    # External validator: command line that reads a file tree as JSON on stdin
    validator_command: list[str] = field(default_factory=lambda: ["psychds-validator", "--json"])
    validator_timeout: int = 120

    # OSF endpoints
    osf_api_url: str = "https://api.osf.io/v2"
    osf_files_url: str = "https://files.osf.io/v1"

    # Recent files
    recent_projects: list[str] = field(default_factory=list)
    max_recent_items: int = 10


class SettingsManager:
    """
    Manages loading and saving application settings.
    """

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize the settings manager.

        Args:
            config_file: Path to configuration file. If None, uses default location.
        """
        if config_file is None:
            config_file = get_persistent_data_directory() / "settings.json"

        self.config_file = config_file
        self._settings = AppSettings()
        self._logger = logging.getLogger(__name__)

    def load(self) -> AppSettings:
        """
        Load settings from configuration file.

        Unknown keys and invalid choice values are ignored.

        Returns:
            The loaded settings object.
        """
        if not self.config_file.exists():
            self._logger.info(f"Settings file not found at {self.config_file}, using defaults")
            return self._settings

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)

            if data.get('log_file_path'):
                data['log_file_path'] = Path(data['log_file_path'])

            if data.get('recent_projects'):
                data['recent_projects'] = [
                    str(Path(p)).replace('\\', '/') for p in data['recent_projects']
                ]

            if data.get('startup_mode') not in (None, *STARTUP_MODES):
                self._logger.warning(f"Unknown startup_mode {data['startup_mode']!r}, using default")
                data.pop('startup_mode')
            if data.get('validation_level') not in (None, *VALIDATION_LEVELS):
                self._logger.warning(f"Unknown validation_level {data['validation_level']!r}, using default")
                data.pop('validation_level')

            for key, value in data.items():
                if key in SESSION_ONLY_FIELDS:
                    continue
                if hasattr(self._settings, key):
                    setattr(self._settings, key, value)

            self._logger.info(f"Settings loaded from {self.config_file}")

        except json.JSONDecodeError as e:
            self._logger.error(f"Failed to parse settings file: {e}. Using defaults.")
        except OSError as e:
            self._logger.error(f"Failed to load settings: {e}. Using defaults.")

        return self._settings

    def save(self, settings: Optional[AppSettings] = None) -> None:
        """
        Save settings to configuration file.

        Args:
            settings: Settings object to save. If None, saves current settings.
        """
        if settings is not None:
            self._settings = settings

        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)

            data = asdict(self._settings)
            for key in SESSION_ONLY_FIELDS:
                data.pop(key, None)

            if data.get('log_file_path'):
                data['log_file_path'] = str(Path(data['log_file_path'])).replace('\\', '/')

            # Atomic write: write to temp file, then rename
            temp_file = self.config_file.with_suffix('.tmp')
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)

            temp_file.replace(self.config_file)

            self._logger.info(f"Settings saved to {self.config_file}")

        except OSError as e:
            self._logger.error(f"Failed to save settings: {e}")

    def get(self) -> AppSettings:
        """
        Get the current settings.

        Returns:
            The current settings object.
        """
        return self._settings

    def update(self, **kwargs) -> None:
        """
        Update specific settings and auto-save.

        Args:
            **kwargs: Setting names and values to update.
        """
        for key, value in kwargs.items():
            if hasattr(self._settings, key):
                setattr(self._settings, key, value)
            else:
                self._logger.warning(f"Ignoring unknown setting: {key}")

        self.save()

    def set_flag(self, name: str, value: bool) -> None:
        """
        Set a process-wide flag without writing the settings file.

        Args:
            name: Name of a boolean setting (e.g. 'pdf_check_done').
            value: New value.

        Raises:
            AttributeError: If the setting does not exist.
        """
        if not hasattr(self._settings, name):
            raise AttributeError(f"Unknown setting: {name}")
        setattr(self._settings, name, value)

    def add_recent_project(self, path: str) -> None:
        """
        Add a project directory to the recent projects list.

        Args:
            path: Path to the project directory.
        """
        normalized_path = str(Path(path)).replace('\\', '/')

        if normalized_path in self._settings.recent_projects:
            self._settings.recent_projects.remove(normalized_path)

        self._settings.recent_projects.insert(0, normalized_path)

        if len(self._settings.recent_projects) > self._settings.max_recent_items:
            self._settings.recent_projects = self._settings.recent_projects[:self._settings.max_recent_items]

        self.save()

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values and save. Session flags are kept."""
        session_flags = {name: getattr(self._settings, name) for name in SESSION_ONLY_FIELDS}
        self._settings = AppSettings(**session_flags)
        self.save()


# Global settings instance
_settings_manager: Optional[SettingsManager] = None


def get_settings_manager() -> SettingsManager:
    """
    Get the global settings manager instance.

    Returns:
        The global SettingsManager.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
        _settings_manager.load()
    return _settings_manager


def get_settings() -> AppSettings:
    """
    Get the current application settings.

    Returns:
        The current AppSettings object.
    """
    return get_settings_manager().get()
