"""
Reading and writing request data files for the CLI scripts.

JSON files are read with the json module; YAML files go through OmegaConf like
every other YAML file in the project.
"""

import json
from pathlib import Path
from typing import Any

from omegaconf import OmegaConf

YAML_SUFFIXES = (".yaml", ".yml")


def load_data_file(path: Path) -> Any:
    """
    Load a JSON or YAML data file into plain Python containers.

    Raises:
        FileNotFoundError: If path does not exist
        ValueError: If the file cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    if path.suffix.lower() in YAML_SUFFIXES:
        return OmegaConf.to_container(OmegaConf.load(path), resolve=True)

    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e


def write_json(path: Path, data: Any) -> Path:
    """Write data as indented JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return path
