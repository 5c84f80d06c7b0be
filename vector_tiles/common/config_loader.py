"""Configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from vector_tiles.common.constants import DEFAULT_PAGE_SIZE
from vector_tiles.common.errors import ConfigError
from vector_tiles.common.fs import read_yaml
from vector_tiles.common.models import Group
from vector_tiles.common.schema import validate_updater_config
from vector_tiles.common.time_utils import utc_now
from vector_tiles.pipeline.groups import build_groups


@dataclass(frozen=True)
class ConfigBundle:
    search: dict
    publish: dict
    run: dict
    groups: list[Group]

    @property
    def page_size(self) -> int:
        return int(self.search.get("page_size", DEFAULT_PAGE_SIZE))

    @property
    def concurrency(self) -> int:
        return int(self.run["concurrency"])

    @property
    def staging_dir(self) -> Path:
        return Path(self.run["staging_dir"])


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = read_yaml(path) or {}
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path) or {}
    return _deep_merge(base, overlay)


def load_config(
    config_path: Path,
    *,
    overlay_path: Path | None = None,
    allow_unknown: bool = False,
    now: datetime | None = None,
) -> ConfigBundle:
    cfg = validate_updater_config(
        _load_yaml_with_overlay(config_path, overlay_path),
        allow_unknown=allow_unknown,
    )
    groups = build_groups(
        cfg.get("groups") or [],
        cfg.get("generated") or [],
        current_year=(now or utc_now()).year,
    )
    return ConfigBundle(search=cfg["search"], publish=cfg["publish"], run=cfg["run"], groups=groups)
