"""
Data file loader for Kotoba.

Loads YAML (or JSON) word catalogs from the data/ directory.
"""

import json
from pathlib import Path
from typing import Any

import yaml


# Default data directory (relative to project root)
DATA_DIR = Path(__file__).parent.parent.parent / "data"

CATALOG_SUFFIXES = (".yaml", ".yml", ".json")


def load_data_file(path: str | Path, data_dir: Path | None = None) -> Any:
    """
    Load a YAML or JSON data file.

    Args:
        path: File path, or a bare catalog name (e.g., "words") looked up
            in the data directory
        data_dir: Optional custom data directory for bare names

    Returns:
        The parsed document

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        json.JSONDecodeError: If JSON parsing fails
    """
    file_path = Path(path)
    if not file_path.suffix:
        dir_path = data_dir or DATA_DIR
        candidates = [dir_path / f"{file_path.name}{suffix}" for suffix in CATALOG_SUFFIXES]
        file_path = next((c for c in candidates if c.exists()), candidates[0])

    if not file_path.exists():
        raise FileNotFoundError(f"Data file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        if file_path.suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def get_available_catalogs(data_dir: Path | None = None) -> list[str]:
    """
    List all catalog files in the data directory.

    Args:
        data_dir: Optional custom data directory

    Returns:
        List of catalog names (without extension)
    """
    dir_path = data_dir or DATA_DIR
    if not dir_path.exists():
        return []
    return sorted({p.stem for p in dir_path.iterdir() if p.suffix in CATALOG_SUFFIXES})
