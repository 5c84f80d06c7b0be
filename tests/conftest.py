from __future__ import annotations

from pathlib import Path

import pytest


def search_page(sources: list[dict], total: int | None = None) -> dict:
    return {
        "hits": {
            "total": len(sources) if total is None else total,
            "hits": [{"_source": source} for source in sources],
        }
    }


class FakeSearchClient:
    """Serves pre-built pages keyed by record type, in request order."""

    def __init__(self, records_by_type: dict[str, list[dict]] | None = None, failing_types: set[str] | None = None):
        self.records_by_type = records_by_type or {}
        self.failing_types = failing_types or set()
        self.calls: list[dict] = []

    def search(self, **kwargs):
        self.calls.append(kwargs)
        record_type = kwargs["record_type"]
        if record_type in self.failing_types:
            from vector_tiles.common.http import HttpRequestError

            raise HttpRequestError("HTTP status: 500", status_code=500)
        records = self.records_by_type.get(record_type, [])
        start = kwargs["from_offset"]
        page = records[start : start + kwargs["page_size"]]
        return search_page(page, total=len(records))

    def close(self):
        return None


class FakeJob:
    def __init__(self, error: Exception | None = None):
        self.error = error

    def wait(self, timeout=None):
        if self.error is not None:
            raise self.error
        return None


class FakePublisher:
    def __init__(self, failing_destinations: set[str] | None = None):
        self.failing_destinations = failing_destinations or set()
        self.requests = []
        self.uploaded: dict[str, dict] = {}

    def start(self, request, on_progress=None):
        import json

        self.requests.append(request)
        self.uploaded[request.destination_id] = json.loads(Path(request.file_path).read_text(encoding="utf-8"))
        if on_progress is not None:
            on_progress(50.0)
        if request.destination_id in self.failing_destinations:
            from vector_tiles.common.errors import PublishError

            return FakeJob(PublishError(f"upload of {request.destination_id} rejected"))
        return FakeJob()

    def close(self):
        return None


def sentinel_record(**overrides) -> dict:
    record = {
        "cloud_coverage": 12.5,
        "date": "2016-08-17",
        "tile_geometry": {
            "type": "Polygon",
            "coordinates": [[[10.0, 0.0], [11.0, 0.0], [11.0, 1.0], [10.0, 1.0], [10.0, 0.0]]],
        },
        "utm_zone": 3,
        "latitude_band": "N",
        "grid_square": "WE",
        "path": "tiles/3/N/WE/2016/8/17/0",
    }
    record.update(overrides)
    return record


def landsat_record(**overrides) -> dict:
    record = {
        "cloud_coverage": 4.0,
        "scene_id": "LC80010022016230LGN00",
        "data_geometry": {
            "type": "Polygon",
            "coordinates": [[[-170.0, 0.0], [170.0, 0.0], [170.0, 10.0], [-170.0, 10.0], [-170.0, 0.0]]],
        },
        "path": 1,
        "row": 2,
    }
    record.update(overrides)
    return record


@pytest.fixture
def fake_search_client():
    return FakeSearchClient


@pytest.fixture
def fake_publisher():
    return FakePublisher


@pytest.fixture
def make_sentinel_record():
    return sentinel_record


@pytest.fixture
def make_landsat_record():
    return landsat_record
