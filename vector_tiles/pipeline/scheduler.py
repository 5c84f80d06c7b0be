"""Bounded-concurrency execution of group pipelines."""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Iterable

from vector_tiles.common.constants import DEFAULT_CONCURRENCY
from vector_tiles.common.logging import log_event
from vector_tiles.common.models import RUN_FAILED, RUN_SUCCESS, Group, GroupOutcome, RunResult


def run_groups(
    groups: Iterable[Group],
    run_pipeline: Callable[[Group], GroupOutcome],
    *,
    concurrency_limit: int = DEFAULT_CONCURRENCY,
    logger: logging.Logger | None = None,
    run_id: str | None = None,
) -> RunResult:
    """Run one pipeline per group with at most ``concurrency_limit`` in flight.

    The first failure fails the run and stops new groups from starting. Groups
    already in flight are left to finish, since an issued publish cannot be
    aborted; their outcomes are still recorded.
    """
    if concurrency_limit < 1:
        raise ValueError("concurrency_limit must be at least 1")

    pending = iter(groups)
    outcomes: list[GroupOutcome] = []
    failure: tuple[BaseException, Group] | None = None

    with ThreadPoolExecutor(max_workers=concurrency_limit, thread_name_prefix="group") as executor:
        in_flight: dict[Future, Group] = {}

        def _fill() -> None:
            while failure is None and len(in_flight) < concurrency_limit:
                group = next(pending, None)
                if group is None:
                    return
                in_flight[executor.submit(run_pipeline, group)] = group

        _fill()
        while in_flight:
            done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
            for future in done:
                group = in_flight.pop(future)
                try:
                    outcomes.append(future.result())
                except Exception as exc:
                    log_event(
                        logger,
                        f"Group {group.destination_id} failed: {exc}",
                        level=logging.ERROR,
                        run_id=run_id,
                        group=group.destination_id,
                        record_type=group.record_type,
                        stage="group",
                        event="GROUP_FAIL",
                        status="error",
                        error_code=getattr(exc, "error_code", "UNEXPECTED_ERROR"),
                    )
                    if failure is None:
                        failure = (exc, group)
            _fill()

    if failure is not None:
        error, failing_group = failure
        return RunResult(status=RUN_FAILED, outcomes=outcomes, error=error, failing_group=failing_group)
    return RunResult(status=RUN_SUCCESS, outcomes=outcomes)
