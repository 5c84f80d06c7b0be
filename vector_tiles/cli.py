"""CLI entrypoint for the satellite scene vector tile updater."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from vector_tiles.common.config_loader import ConfigBundle, load_config
from vector_tiles.common.constants import EXIT_FAILURE, EXIT_SUCCESS
from vector_tiles.common.errors import ConfigError, PipelineError
from vector_tiles.common.ids import generate_run_id
from vector_tiles.common.logging import build_logger, log_event
from vector_tiles.pipeline.reports import write_run_summary
from vector_tiles.pipeline.runner import PipelineContext, run_group_pipeline
from vector_tiles.pipeline.scheduler import run_groups
from vector_tiles.publish.mapbox import MapboxPublisher
from vector_tiles.search.client import SearchClient


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", default="./config/updater.yml")
    parser.add_argument("--overlay-config", default=None)
    parser.add_argument("--group", action="append", default=None, help="only run the given destination id(s)")
    parser.add_argument("--concurrency", type=int, default=None)
    parser.add_argument("--page-size", type=int, default=None)
    parser.add_argument("--staging-dir", default=None)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--dry-run", action="store_true", help="build and stage collections without publishing")
    return parser.parse_args(argv)


def _select_groups(bundle: ConfigBundle, wanted: list[str] | None):
    if not wanted:
        return list(bundle.groups)
    known = {group.destination_id for group in bundle.groups}
    unknown = sorted(set(wanted) - known)
    if unknown:
        raise ConfigError(f"Unknown group(s): {', '.join(unknown)}")
    return [group for group in bundle.groups if group.destination_id in set(wanted)]


def _resolve_token(bundle: ConfigBundle, dry_run: bool) -> str | None:
    if dry_run:
        return None
    token_env = bundle.publish["token_env"]
    token = os.environ.get(token_env)
    if not token:
        raise ConfigError(f"Publish token missing: set {token_env}")
    return token


def run_command(args: argparse.Namespace, *, search_client=None, publisher=None) -> int:
    run_id = args.run_id or generate_run_id()
    logger = build_logger(
        run_id,
        log_dir=Path(args.log_dir) if args.log_dir else None,
        level=args.log_level,
    )

    try:
        bundle = load_config(
            Path(args.config),
            overlay_path=Path(args.overlay_config) if args.overlay_config else None,
        )
        groups = _select_groups(bundle, args.group)
        token = _resolve_token(bundle, args.dry_run)
    except ConfigError as exc:
        log_event(
            logger,
            f"Invalid configuration: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            stage="config",
            event="CONFIG_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_FAILURE

    concurrency = args.concurrency if args.concurrency is not None else bundle.concurrency
    if concurrency < 1:
        log_event(logger, "--concurrency must be at least 1", level=logging.ERROR, run_id=run_id, status="error")
        return EXIT_FAILURE
    page_size = args.page_size if args.page_size is not None else bundle.page_size
    if page_size < 1:
        log_event(logger, "--page-size must be at least 1", level=logging.ERROR, run_id=run_id, status="error")
        return EXIT_FAILURE
    staging_dir = Path(args.staging_dir) if args.staging_dir else bundle.staging_dir

    owns_search = search_client is None
    owns_publisher = publisher is None and not args.dry_run
    search_client = search_client or SearchClient(bundle.search["url"])
    if owns_publisher:
        publisher = MapboxPublisher.from_config(bundle.publish, max_workers=concurrency)
    if args.dry_run:
        publisher = None

    ctx = PipelineContext(
        run_id=run_id,
        logger=logger,
        search_client=search_client,
        publisher=publisher,
        index_name=bundle.search["index"],
        page_size=page_size,
        staging_dir=staging_dir,
        token=token,
    )

    log_event(logger, f"Starting run with {len(groups)} group(s)", run_id=run_id, stage="run", event="RUN_START", status="ok")
    try:
        result = run_groups(
            groups,
            lambda group: run_group_pipeline(group, ctx),
            concurrency_limit=concurrency,
            logger=logger,
            run_id=run_id,
        )
    finally:
        if owns_search:
            search_client.close()
        if owns_publisher:
            publisher.close()

    write_run_summary(staging_dir, run_id=run_id, result=result)

    if not result.succeeded:
        log_event(
            logger,
            f"Exiting with an error: {result.error}",
            level=logging.ERROR,
            run_id=run_id,
            group=result.failing_group.destination_id if result.failing_group else None,
            stage="run",
            event="RUN_FAIL",
            status="error",
            error_code=getattr(result.error, "error_code", "UNEXPECTED_ERROR"),
        )
        return EXIT_FAILURE

    log_event(
        logger,
        "All vectorization processes have finished.",
        run_id=run_id,
        stage="run",
        event="RUN_END",
        status="ok",
        records=sum(outcome.feature_count for outcome in result.outcomes),
    )
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except PipelineError:
        return EXIT_FAILURE
    except Exception:
        return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
