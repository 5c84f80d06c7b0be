"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

RUN_SUCCESS = "success"
RUN_FAILED = "failed"
OUTCOME_PUBLISHED = "published"
OUTCOME_SKIPPED_EMPTY = "skipped_empty"
OUTCOME_STAGED = "staged"


@dataclass(frozen=True)
class Group:
    date_pattern: str
    record_type: str
    destination_id: str
    account: str
    query_filter: str | None = None


@dataclass
class CanonicalFeature:
    geometry: dict[str, Any]
    cloud_coverage: float
    day_of_year: int
    scene_code: str
    year: str

    def to_geojson(self) -> dict[str, Any]:
        return {
            "type": "Feature",
            "geometry": self.geometry,
            "properties": {
                "cloudCoverage": self.cloud_coverage,
                "dayOfYear": self.day_of_year,
                "sceneCode": self.scene_code,
                "year": self.year,
            },
        }


@dataclass(frozen=True)
class GroupOutcome:
    group: Group
    status: str
    feature_count: int
    corrected_count: int = 0
    skipped_missing: int = 0
    skipped_unparseable: int = 0
    staging_path: Path | None = None


@dataclass
class RunResult:
    status: str
    outcomes: list[GroupOutcome] = field(default_factory=list)
    error: BaseException | None = None
    failing_group: Group | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == RUN_SUCCESS
