"""
BIDS dataset_description.json access.

A BIDS dataset declares the HED schemas its annotations use in the HEDVersion
key of dataset_description.json. Only that file is read; the dataset itself
is not traversed.
"""

import json
from pathlib import Path
from typing import Any, Optional

from .logging_config import get_logger

logger = get_logger(__name__)

DESCRIPTION_FILE = "dataset_description.json"


def is_bids_dataset(path: Path) -> bool:
    """
    Quick check if a directory appears to be a BIDS dataset.

    Args:
        path: Path to check.

    Returns:
        True if the directory contains a dataset_description.json file.
    """
    return (Path(path) / DESCRIPTION_FILE).exists()


def load_dataset_description(dataset_path: Path) -> dict:
    """
    Load the dataset_description.json file of a dataset.

    Args:
        dataset_path: Path to the BIDS dataset root.

    Returns:
        Dictionary with the dataset description.

    Raises:
        FileNotFoundError: If the dataset or its description file does not exist.
        ValueError: If the file is not valid JSON or not a JSON object.
    """
    desc_path = Path(dataset_path) / DESCRIPTION_FILE

    if not desc_path.exists():
        raise FileNotFoundError(f"{DESCRIPTION_FILE} not found at: {desc_path}")

    try:
        with open(desc_path, 'r', encoding='utf-8') as f:
            description = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {desc_path}: {e}") from e

    if not isinstance(description, dict):
        raise ValueError(f"{desc_path} must contain a JSON object")

    return description


def get_hed_version(dataset_path: Path) -> Optional[Any]:
    """
    Get the HEDVersion value of a dataset.

    Args:
        dataset_path: Path to the BIDS dataset root.

    Returns:
        The raw HEDVersion value (string, list or object), or None if absent.

    Raises:
        FileNotFoundError: If the description file does not exist.
        ValueError: If the description file is not valid JSON.
    """
    description = load_dataset_description(dataset_path)
    hed_version = description.get("HEDVersion")

    if hed_version is None:
        logger.warning(f"HEDVersion field missing in {Path(dataset_path) / DESCRIPTION_FILE}")

    return hed_version
