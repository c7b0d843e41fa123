"""File utilities."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def ensure_dir(path: str) -> Path:
    """Ensure directory exists and return Path."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def read_text_file(path: str) -> str:
    """Safely read a markup or project file as UTF-8 with fallbacks.

    - Raises FileNotFoundError when the path is missing.
    - Tries a strict UTF-8 read first, then falls back to UTF-8 with errors="ignore".
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Missing file: {path}")
    try:
        return p.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return p.read_text(encoding="utf-8", errors="ignore")


def read_json_file(path: str) -> Any:
    return json.loads(read_text_file(path))


def write_text_file(path: str, content: str) -> Path:
    p = Path(path)
    if p.parent and str(p.parent) not in ("", "."):
        ensure_dir(str(p.parent))
    p.write_text(content, encoding="utf-8")
    return p
