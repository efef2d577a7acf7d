"""
Path utilities and constants.

This module provides helper functions for the application's persistent
locations: settings, logs and the local schema directory.
"""

import platform
from pathlib import Path
from typing import Iterable


def get_persistent_data_directory() -> Path:
    """
    Get the persistent data directory for the application (cross-platform).

    Returns:
        Path to the persistent data directory.

    Platform-specific locations:
        - Windows: %APPDATA%/LocalLow/hedlib
        - macOS: ~/Library/Application Support/hedlib
        - Linux: ~/.config/hedlib
    """
    system = platform.system()
    app_name = "hedlib"

    if system == "Windows":
        base = Path.home() / "AppData" / "LocalLow"
    elif system == "Darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path.home() / ".config"

    data_dir = base / app_name
    data_dir.mkdir(parents=True, exist_ok=True)

    return data_dir


def get_settings_file_path() -> Path:
    """
    Get the path to the settings file.

    Returns:
        Path to the settings.json file.
    """
    return get_persistent_data_directory() / "settings.json"


def get_log_file_path() -> Path:
    """
    Get the path to the main log file.

    Returns:
        Path to the log.txt file.
    """
    return get_persistent_data_directory() / "log.txt"


def get_old_log_file_path() -> Path:
    """
    Get the path to the old log file.

    Returns:
        Path to the log.old.txt file.
    """
    return get_persistent_data_directory() / "log.old.txt"


def get_schema_cache_directory() -> Path:
    """
    Get the default directory searched for local schema files.

    Returns:
        Path to the schemas directory (created if missing).
    """
    schema_dir = get_persistent_data_directory() / "schemas"
    schema_dir.mkdir(parents=True, exist_ok=True)
    return schema_dir


def normalize_search_dirs(dirs: Iterable[str | Path]) -> list[Path]:
    """
    Convert configured schema directories into existing, de-duplicated paths.

    Args:
        dirs: Directory paths as strings or Path objects.

    Returns:
        List of existing directories in their original order.
    """
    result = []
    seen = set()
    for entry in dirs:
        path = Path(entry).expanduser()
        if not path.is_dir():
            continue
        key = str(path.resolve())
        if key in seen:
            continue
        seen.add(key)
        result.append(path)
    return result
