"""File I/O helpers for sources, catalogs and snapshots."""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel

logger = logging.getLogger(__name__)

BOM = "\ufeff"


def ensure_directory(path: str | Path) -> Path:
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def read_source(path: str | Path) -> str:
    """Read a UTF-8 source file with a leading BOM dropped and ``\\n`` line endings."""
    text = Path(path).read_text(encoding="utf-8")
    if text.startswith(BOM):
        text = text[len(BOM):]
    return text.replace("\r\n", "\n").replace("\r", "\n")


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML mapping; an empty file yields ``{}``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the document is not a mapping.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping at the top of {path}, got {type(data).__name__}")
    return data


def load_json(path: str | Path) -> dict[str, Any]:
    """Load a JSON file, e.g. a saved ``presentations.get`` payload."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"JSON file not found: {path}")
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def save_model(model: BaseModel, path: str | Path) -> Path:
    """Write a compiled deck or presentation snapshot as indented JSON.

    Unset optional fields are left out so the files stay diffable.
    """
    path = Path(path)
    ensure_directory(path.parent)
    path.write_text(model.model_dump_json(indent=2, exclude_none=True), encoding="utf-8")
    logger.debug(f"Wrote {type(model).__name__} to {path}")
    return path
