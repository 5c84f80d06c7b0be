"""Offset-paged, forward-only stream of raw scene records."""

from __future__ import annotations

import logging
from typing import Any, Iterator

from vector_tiles.common.constants import DEFAULT_PAGE_SIZE, PROGRESS_EVERY
from vector_tiles.common.errors import PipelineError, QueryError
from vector_tiles.common.logging import log_event
from vector_tiles.common.time_utils import date_range_for_pattern


def build_query_string(date_pattern: str, query_filter: str | None = None) -> str:
    start, end = date_range_for_pattern(date_pattern)
    query = f"date:[{start} TO {end}]"
    if query_filter:
        query = f"{query} AND {query_filter}"
    return query


def _hits_total(hits: dict[str, Any]) -> int | None:
    total = hits.get("total")
    if isinstance(total, dict):
        total = total.get("value")
    if total is None:
        return None
    return int(total)


class PaginatedRecordStream:
    """Lazily pages through ``_search`` results, yielding each hit's ``_source``.

    The stream can be consumed once. A page shorter than ``page_size`` or a
    reported total of zero ends it. Backend failures surface as ``QueryError``.
    """

    def __init__(
        self,
        client,
        *,
        index_name: str,
        record_type: str | None,
        query_string: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        logger: logging.Logger | None = None,
        log_fields: dict[str, Any] | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self.client = client
        self.index_name = index_name
        self.record_type = record_type
        self.query_string = query_string
        self.page_size = page_size
        self.logger = logger
        self.log_fields = log_fields or {}
        self.fetch_count = 0
        self.consumed = 0
        self._started = False

    def _fetch_page(self, offset: int) -> tuple[list[dict[str, Any]], int | None]:
        try:
            payload = self.client.search(
                index_name=self.index_name,
                record_type=self.record_type,
                query_string=self.query_string,
                from_offset=offset,
                page_size=self.page_size,
            )
        except PipelineError as exc:
            raise QueryError(f"Search request failed: {exc}", offset=offset) from exc
        self.fetch_count += 1

        hits = payload.get("hits") if isinstance(payload, dict) else None
        if not isinstance(hits, dict) or not isinstance(hits.get("hits"), list):
            raise QueryError("Malformed search response: missing hits", offset=offset)
        try:
            total = _hits_total(hits)
        except (TypeError, ValueError) as exc:
            raise QueryError("Malformed search response: bad hits.total", offset=offset) from exc
        return hits["hits"], total

    def __iter__(self) -> Iterator[dict[str, Any]]:
        if self._started:
            return
        self._started = True

        offset = 0
        while True:
            page, total = self._fetch_page(offset)
            if total == 0:
                return

            for hit in page:
                self.consumed += 1
                if self.consumed % PROGRESS_EVERY == 0:
                    log_event(
                        self.logger,
                        f"Processed {self.consumed} records.",
                        stage="search",
                        event="RECORDS_CONSUMED",
                        status="ok",
                        records=self.consumed,
                        offset=offset,
                        **self.log_fields,
                    )
                yield hit.get("_source") or {}

            if len(page) < self.page_size:
                return
            offset += self.page_size
