"""Run report aggregation."""

from __future__ import annotations

from pathlib import Path

from vector_tiles.common.errors import PersistenceError
from vector_tiles.common.fs import write_json
from vector_tiles.common.models import RunResult


def write_run_summary(staging_dir: Path, run_id: str, result: RunResult) -> Path:
    groups = {}
    for outcome in result.outcomes:
        groups[outcome.group.destination_id] = {
            "status": outcome.status,
            "record_type": outcome.group.record_type,
            "date_pattern": outcome.group.date_pattern,
            "feature_count": outcome.feature_count,
            "corrected_count": outcome.corrected_count,
            "skipped_missing": outcome.skipped_missing,
            "skipped_unparseable": outcome.skipped_unparseable,
            "staging_path": str(outcome.staging_path) if outcome.staging_path else None,
        }

    failing = result.failing_group
    payload = {
        "run_id": run_id,
        "status": result.status,
        "group_count": len(groups),
        "feature_total": sum(outcome.feature_count for outcome in result.outcomes),
        "groups": groups,
        "failure": None,
    }
    if failing is not None:
        payload["failure"] = {
            "group": failing.destination_id,
            "error_code": getattr(result.error, "error_code", "UNEXPECTED_ERROR"),
            "message": str(result.error),
        }

    summary_path = staging_dir / "run_summary.json"
    try:
        write_json(summary_path, payload)
    except OSError as exc:
        raise PersistenceError(f"Failed to write run summary {summary_path}: {exc}") from exc
    return summary_path
