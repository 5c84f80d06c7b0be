"""One group pipeline: stream, normalise, collect, correct, stage, publish."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from vector_tiles.common.logging import log_event
from vector_tiles.common.models import OUTCOME_PUBLISHED, OUTCOME_SKIPPED_EMPTY, OUTCOME_STAGED, Group, GroupOutcome
from vector_tiles.pipeline.collector import FeatureCollector
from vector_tiles.pipeline.export import staging_path_for, write_feature_collection
from vector_tiles.pipeline.normalise import get_record_type, missing_fields, normalise_record
from vector_tiles.publish.mapbox import PublishRequest
from vector_tiles.search.record_stream import PaginatedRecordStream, build_query_string


@dataclass(frozen=True)
class PipelineContext:
    """Everything a group pipeline needs; shared read-only across groups."""

    run_id: str
    logger: logging.Logger
    search_client: Any
    publisher: Any
    index_name: str
    page_size: int
    staging_dir: Path
    token: str | None


def build_feature_collection(group: Group, ctx: PipelineContext) -> FeatureCollector:
    strategy = get_record_type(group.record_type)
    stream = PaginatedRecordStream(
        ctx.search_client,
        index_name=ctx.index_name,
        record_type=group.record_type,
        query_string=build_query_string(group.date_pattern, group.query_filter),
        page_size=ctx.page_size,
        logger=ctx.logger,
        log_fields={"run_id": ctx.run_id, "group": group.destination_id, "record_type": group.record_type},
    )
    collector = FeatureCollector(group, run_id=ctx.run_id, logger=ctx.logger)

    for raw in stream:
        feature = normalise_record(raw, strategy)
        if feature is None:
            collector.skip(missing_fields(raw, strategy))
            continue
        collector.add(feature)

    log_event(
        ctx.logger,
        "Search stream ended",
        level=logging.DEBUG,
        run_id=ctx.run_id,
        group=group.destination_id,
        stage="search",
        event="STREAM_END",
        status="ok",
        records=stream.consumed,
    )
    collector.correct_antimeridian()
    return collector


def _publish(group: Group, path: Path, ctx: PipelineContext) -> None:
    def _on_progress(percentage: float) -> None:
        log_event(
            ctx.logger,
            f"Upload progress for {group.destination_id}: {percentage}",
            level=logging.DEBUG,
            run_id=ctx.run_id,
            group=group.destination_id,
            stage="publish",
            event="PUBLISH_PROGRESS",
            status="ok",
            percentage=percentage,
        )

    log_event(
        ctx.logger,
        f"Started uploading to {group.account}.{group.destination_id}",
        run_id=ctx.run_id,
        group=group.destination_id,
        stage="publish",
        event="PUBLISH_START",
        status="ok",
    )
    job = ctx.publisher.start(
        PublishRequest(
            file_path=path,
            account=group.account,
            token=ctx.token or "",
            destination_id=group.destination_id,
        ),
        on_progress=_on_progress,
    )
    job.wait()
    log_event(
        ctx.logger,
        f"Finished uploading to {group.destination_id}",
        run_id=ctx.run_id,
        group=group.destination_id,
        stage="publish",
        event="PUBLISH_END",
        status="ok",
    )


def run_group_pipeline(group: Group, ctx: PipelineContext) -> GroupOutcome:
    started = time.monotonic()
    log_event(
        ctx.logger,
        f"Running for grouping {group.date_pattern} and uploading to {group.destination_id}",
        run_id=ctx.run_id,
        group=group.destination_id,
        record_type=group.record_type,
        stage="group",
        event="GROUP_START",
        status="ok",
    )

    collector = build_feature_collection(group, ctx)
    if not len(collector):
        log_event(
            ctx.logger,
            f"No features for {group.destination_id}, skipping publish",
            run_id=ctx.run_id,
            group=group.destination_id,
            stage="group",
            event="GROUP_EMPTY",
            status="skipped",
            records=0,
        )
        return GroupOutcome(
            group=group,
            status=OUTCOME_SKIPPED_EMPTY,
            feature_count=0,
            skipped_missing=collector.skipped_missing,
            skipped_unparseable=collector.skipped_unparseable,
        )

    path = staging_path_for(ctx.staging_dir, group)
    log_event(
        ctx.logger,
        f"Saving geojson to disk at {path}",
        run_id=ctx.run_id,
        group=group.destination_id,
        stage="stage",
        event="STAGING_WRITE",
        status="ok",
        records=len(collector),
    )
    write_feature_collection(path, collector.to_feature_collection())

    if ctx.publisher is not None:
        _publish(group, path, ctx)

    log_event(
        ctx.logger,
        f"Group {group.destination_id} complete",
        run_id=ctx.run_id,
        group=group.destination_id,
        stage="group",
        event="GROUP_END",
        status="ok",
        records=len(collector),
        skipped_missing=collector.skipped_missing,
        skipped_unparseable=collector.skipped_unparseable,
        duration_ms=int((time.monotonic() - started) * 1000),
    )
    return GroupOutcome(
        group=group,
        status=OUTCOME_PUBLISHED if ctx.publisher is not None else OUTCOME_STAGED,
        feature_count=len(collector),
        corrected_count=collector.corrected,
        skipped_missing=collector.skipped_missing,
        skipped_unparseable=collector.skipped_unparseable,
        staging_path=path,
    )
