"""Read YAML documents whose top level must be a mapping."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Type

import yaml


def read_yaml_mapping(path: Path, error: Type[Exception], label: str) -> Dict[str, Any]:
    """Parse ``path`` and return its top-level mapping.

    Every failure is raised as ``error`` with ``label`` naming the kind of
    document, so callers keep their own exception types. An empty file is an
    empty mapping.
    """

    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise error(f"{label} not found: {path}") from exc
    except OSError as exc:
        raise error(f"Failed to read {label.lower()} {path}: {exc}") from exc

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise error(f"Invalid YAML in {label.lower()} {path}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise error(f"{label} must be a mapping, got {type(data).__name__}: {path}")
    return data


__all__ = ["read_yaml_mapping"]
