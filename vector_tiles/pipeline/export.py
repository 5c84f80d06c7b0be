"""Staging writes for finished feature collections."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from vector_tiles.common.constants import STAGING_SUFFIX
from vector_tiles.common.errors import PersistenceError
from vector_tiles.common.fs import write_json
from vector_tiles.common.models import Group


def staging_path_for(staging_dir: Path, group: Group) -> Path:
    return staging_dir / f"{group.destination_id}{STAGING_SUFFIX}"


def write_feature_collection(path: Path, collection: dict[str, Any]) -> Path:
    try:
        write_json(path, collection, compact=True)
    except (OSError, TypeError, ValueError) as exc:
        raise PersistenceError(f"Failed to write staging file {path}: {exc}") from exc
    return path
