"""Map raw scene records of each record type onto the canonical feature schema."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

from vector_tiles.common.errors import ConfigError
from vector_tiles.common.models import CanonicalFeature
from vector_tiles.common.padding import pad

LANDSAT_PLATFORM = "L"


@dataclass(frozen=True)
class RecordTypeStrategy:
    name: str
    required_fields: tuple[str, ...]
    extract: Callable[[dict[str, Any]], CanonicalFeature]


def _extract_landsat(raw: dict[str, Any]) -> CanonicalFeature:
    # Scene ids look like LC80010022016230LGN00: sensor, satellite, path, row, year, day.
    scene_id = str(raw["scene_id"])
    if len(scene_id) < 16:
        raise ValueError(f"scene_id too short: {scene_id!r}")
    return CanonicalFeature(
        geometry=raw["data_geometry"],
        cloud_coverage=float(raw["cloud_coverage"]),
        day_of_year=int(scene_id[13:16]),
        scene_code=f"{LANDSAT_PLATFORM}{scene_id[1]}{scene_id[2]}{pad(raw['path'], 3)}{pad(raw['row'], 3)}",
        year=scene_id[11:13],
    )


def _extract_sentinel2(raw: dict[str, Any]) -> CanonicalFeature:
    acquired = str(raw["date"])
    day_of_year = date.fromisoformat(acquired[:10]).timetuple().tm_yday
    path = str(raw["path"])
    if not path:
        raise ValueError("empty path")
    return CanonicalFeature(
        geometry=raw["tile_geometry"],
        cloud_coverage=float(raw["cloud_coverage"]),
        day_of_year=day_of_year,
        scene_code=f"{pad(raw['utm_zone'], 2)}{raw['latitude_band']}{raw['grid_square']}{path[-1]}",
        year=acquired[2:4],
    )


RECORD_TYPES: dict[str, RecordTypeStrategy] = {
    "landsat": RecordTypeStrategy(
        name="landsat",
        required_fields=("cloud_coverage", "scene_id", "data_geometry", "path", "row"),
        extract=_extract_landsat,
    ),
    "sentinel2": RecordTypeStrategy(
        name="sentinel2",
        required_fields=(
            "cloud_coverage",
            "date",
            "tile_geometry",
            "utm_zone",
            "latitude_band",
            "grid_square",
            "path",
        ),
        extract=_extract_sentinel2,
    ),
}


def get_record_type(record_type: str) -> RecordTypeStrategy:
    try:
        return RECORD_TYPES[record_type]
    except KeyError as exc:
        supported = ", ".join(sorted(RECORD_TYPES))
        raise ConfigError(f"Unsupported record type: {record_type} (supported: {supported})") from exc


def missing_fields(raw: dict[str, Any], strategy: RecordTypeStrategy) -> list[str]:
    return [name for name in strategy.required_fields if raw.get(name) in (None, "")]


def normalise_record(raw: dict[str, Any], strategy: RecordTypeStrategy) -> CanonicalFeature | None:
    """Return the canonical feature for ``raw``, or ``None`` when it has to be skipped.

    A record is skipped when any required field of its type is absent, null or
    an empty string, or when a present value cannot be parsed (bad date,
    truncated scene id).
    """
    if missing_fields(raw, strategy):
        return None
    try:
        return strategy.extract(raw)
    except (TypeError, ValueError, IndexError):
        return None
