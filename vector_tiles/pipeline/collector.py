"""Per-group accumulation of canonical features."""

from __future__ import annotations

import logging
from typing import Any

from vector_tiles.common.constants import PROGRESS_EVERY
from vector_tiles.common.logging import log_event
from vector_tiles.common.models import CanonicalFeature, Group
from vector_tiles.pipeline.antimeridian import correct_geometry


class FeatureCollector:
    def __init__(self, group: Group, *, run_id: str | None = None, logger: logging.Logger | None = None) -> None:
        self.group = group
        self.run_id = run_id
        self.logger = logger
        self.features: list[CanonicalFeature] = []
        self.skipped_missing = 0
        self.skipped_unparseable = 0
        self.corrected = 0

    def __len__(self) -> int:
        return len(self.features)

    def add(self, feature: CanonicalFeature) -> None:
        self.features.append(feature)
        if len(self.features) % PROGRESS_EVERY == 0:
            log_event(
                self.logger,
                f"Collected {len(self.features)} features.",
                run_id=self.run_id,
                group=self.group.destination_id,
                stage="collect",
                event="FEATURES_COLLECTED",
                status="ok",
                records=len(self.features),
            )

    def skip(self, missing: list[str]) -> None:
        if missing:
            self.skipped_missing += 1
            reason = f"missing {', '.join(missing)}"
        else:
            self.skipped_unparseable += 1
            reason = "unparseable values"
        log_event(
            self.logger,
            f"Skipping record: {reason}",
            level=logging.DEBUG,
            run_id=self.run_id,
            group=self.group.destination_id,
            stage="normalise",
            event="RECORD_SKIPPED",
            status="skipped",
        )

    def correct_antimeridian(self) -> int:
        log_event(
            self.logger,
            "World wrapping started",
            level=logging.DEBUG,
            run_id=self.run_id,
            group=self.group.destination_id,
            stage="correct",
            event="CORRECT_START",
            status="ok",
            records=len(self.features),
        )
        self.corrected = sum(1 for feature in self.features if correct_geometry(feature.geometry))
        log_event(
            self.logger,
            f"World wrapping complete, {self.corrected} features rewrapped",
            level=logging.DEBUG,
            run_id=self.run_id,
            group=self.group.destination_id,
            stage="correct",
            event="CORRECT_END",
            status="ok",
            records=self.corrected,
        )
        return self.corrected

    def to_feature_collection(self) -> dict[str, Any]:
        return {
            "type": "FeatureCollection",
            "features": [feature.to_geojson() for feature in self.features],
        }
