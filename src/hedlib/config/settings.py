"""
Application settings and configuration.

This module provides centralized access to application settings with automatic
persistence to disk. Settings are stored as JSON in a platform-specific location:

- Windows: %APPDATA%/LocalLow/hedlib/settings.json
- macOS: ~/Library/Application Support/hedlib/settings.json
- Linux: ~/.config/hedlib/settings.json

Settings are automatically loaded on first access and saved when updated.

Example:
    from hedlib.config.settings import get_settings, get_settings_manager

    # Get current settings
    settings = get_settings()
    print(settings.schema_directories)

    # Update settings (auto-saves)
    manager = get_settings_manager()
    manager.update(max_tag_depth=6, check_style=False)

    # Remember a schema file (auto-saves)
    manager.add_recent_schema("/path/to/HED_driving_1.0.0.xml")
"""

import json
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional
import logging

from ..core.validator import DEFAULT_MAX_DEPTH
from ..infrastructure.logging_config import get_logger
from ..infrastructure.paths import get_schema_cache_directory, get_settings_file_path


@dataclass
class AppSettings:
    """Application-wide settings."""

    # Logging settings
    log_level: int = logging.INFO
    log_to_file: bool = True
    log_file_path: Optional[Path] = None

    # Schema lookup
    schema_directories: list[str] = field(default_factory=list)
    """Directories searched for HED_<library>_<version>.xml files, in order."""

    # Validation settings
    max_tag_depth: int = DEFAULT_MAX_DEPTH
    check_style: bool = True
    validate_on_load: bool = True

    # Recent files
    recent_schemas: list[str] = field(default_factory=list)
    max_recent_items: int = 10

    def get_search_dirs(self) -> list[Path]:
        """
        Get the configured schema directories followed by the default schema cache.

        Returns:
            List of directories to search for schema files.
        """
        dirs = [Path(d).expanduser() for d in self.schema_directories]
        cache = get_schema_cache_directory()
        if cache not in dirs:
            dirs.append(cache)
        return dirs


_PATH_LIST_FIELDS = ('schema_directories', 'recent_schemas')


def _posix(path: str | Path) -> str:
    """Store paths with forward slashes so settings files are portable."""
    return str(Path(path)).replace('\\', '/')


class SettingsManager:
    """
    Loads, saves and edits the application settings.

    Every mutating method saves immediately.
    """

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize the settings manager.

        Args:
            config_file: Path to configuration file. If None, uses default location.
        """
        self.config_file = config_file if config_file is not None else get_settings_file_path()
        self._settings = AppSettings()
        self._logger = get_logger(__name__)

    def load(self) -> AppSettings:
        """
        Load settings from the configuration file.

        A missing or unreadable file leaves the defaults in place. Values
        whose JSON type does not match the default are skipped with a warning.

        Returns:
            The loaded settings object.
        """
        if not self.config_file.exists():
            self._logger.info(f"No settings file at {self.config_file}, using defaults")
            return self._settings

        try:
            data = json.loads(self.config_file.read_text(encoding='utf-8'))
        except json.JSONDecodeError as e:
            self._logger.error(f"Failed to parse settings file {self.config_file}: {e}. Using defaults.")
            return self._settings
        except OSError as e:
            self._logger.error(f"Failed to read settings file {self.config_file}: {e}. Using defaults.")
            return self._settings

        if not isinstance(data, dict):
            self._logger.error(f"Settings file {self.config_file} does not hold an object. Using defaults.")
            return self._settings

        defaults = asdict(AppSettings())
        for key, value in data.items():
            if key not in defaults:
                self._logger.warning(f"Ignoring unknown setting in file: {key}")
                continue
            if key == 'log_file_path':
                if value is None or isinstance(value, str):
                    self._settings.log_file_path = Path(value) if value else None
                else:
                    self._logger.warning(f"Ignoring setting {key} with unexpected value {value!r}")
            elif key in _PATH_LIST_FIELDS and isinstance(value, list):
                setattr(self._settings, key, [_posix(p) for p in value])
            elif isinstance(value, type(defaults[key])):
                setattr(self._settings, key, value)
            else:
                self._logger.warning(f"Ignoring setting {key} with unexpected value {value!r}")

        self._logger.info(f"Settings loaded from {self.config_file}")
        return self._settings

    def save(self, settings: Optional[AppSettings] = None) -> None:
        """
        Write settings to the configuration file.

        The file is replaced atomically; a failed write is logged and the
        previous file is left intact.

        Args:
            settings: Settings object to save. If None, saves current settings.
        """
        if settings is not None:
            self._settings = settings

        data = asdict(self._settings)
        data['log_file_path'] = _posix(data['log_file_path']) if data['log_file_path'] else None
        for key in _PATH_LIST_FIELDS:
            data[key] = [_posix(p) for p in data[key]]

        temp_file = self.config_file.with_suffix('.tmp')
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            temp_file.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding='utf-8')
            temp_file.replace(self.config_file)
        except OSError as e:
            self._logger.error(f"Failed to save settings to {self.config_file}: {e}")
            return

        self._logger.debug(f"Settings saved to {self.config_file}")

    def get(self) -> AppSettings:
        return self._settings

    def update(self, **kwargs) -> None:
        """
        Update specific settings and save.

        Args:
            **kwargs: Setting names and values; unknown names are ignored.
        """
        for key, value in kwargs.items():
            if hasattr(self._settings, key):
                setattr(self._settings, key, value)
            else:
                self._logger.warning(f"Ignoring unknown setting: {key}")
        self.save()

    def add_schema_directory(self, path: str | Path) -> None:
        """
        Append a directory to the schema search path (no duplicates).

        Args:
            path: Directory holding schema files.
        """
        normalized = _posix(path)
        if normalized not in self._settings.schema_directories:
            self._settings.schema_directories.append(normalized)
            self.save()

    def remove_schema_directory(self, path: str | Path) -> bool:
        """
        Remove a directory from the schema search path.

        Returns:
            True if the directory was configured and has been removed.
        """
        normalized = _posix(path)
        if normalized not in self._settings.schema_directories:
            return False
        self._settings.schema_directories.remove(normalized)
        self.save()
        return True

    def add_recent_schema(self, path: str | Path) -> None:
        """
        Move a schema file to the front of the recent schemas list.

        The list is capped at max_recent_items.

        Args:
            path: Path to the schema file.
        """
        normalized = _posix(path)
        recent = [p for p in self._settings.recent_schemas if p != normalized]
        recent.insert(0, normalized)
        self._settings.recent_schemas = recent[:self._settings.max_recent_items]
        self.save()

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values and save."""
        self._settings = AppSettings()
        self.save()


# Global settings instance
_settings_manager: Optional[SettingsManager] = None


def get_settings_manager() -> SettingsManager:
    """Get the global settings manager, loading it on first use."""
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
        _settings_manager.load()
    return _settings_manager


def get_settings() -> AppSettings:
    return get_settings_manager().get()
