from __future__ import annotations

import logging

from vector_tiles.common.models import CanonicalFeature, Group
from vector_tiles.pipeline.collector import FeatureCollector

GROUP = Group(date_pattern="2016", record_type="sentinel2", destination_id="s2-2016", account="devseed")


def _feature(n: int) -> CanonicalFeature:
    ring = [[10.0, 0.0], [11.0, 0.0], [11.0, 1.0], [10.0, 0.0]]
    return CanonicalFeature(
        geometry={"type": "Polygon", "coordinates": [ring]},
        cloud_coverage=float(n % 100),
        day_of_year=1,
        scene_code=f"S{n}",
        year="16",
    )


def test_collector_logs_every_thousand_features(caplog):
    logger = logging.getLogger("vector_tiles.test-collector")
    collector = FeatureCollector(GROUP, run_id="run-test", logger=logger)

    with caplog.at_level(logging.INFO, logger=logger.name):
        for n in range(1500):
            collector.add(_feature(n))

    collected = [record for record in caplog.records if getattr(record, "event", None) == "FEATURES_COLLECTED"]
    assert len(collected) == 1
    assert collected[0].records == 1000
    assert collected[0].group == "s2-2016"
    assert len(collector) == 1500


def test_collector_counts_skips_by_reason():
    collector = FeatureCollector(GROUP)

    collector.skip(["cloud_coverage"])
    collector.skip([])
    collector.skip([])

    assert collector.skipped_missing == 1
    assert collector.skipped_unparseable == 2
