"""Publish staged feature collections as Mapbox vector tilesets.

The upload runs on a worker thread and is exposed as a ``PublishJob``: the
caller receives zero or more progress callbacks and then exactly one terminal
outcome, either a ``PublishReceipt`` from ``wait()`` or a ``PublishError``.

Protocol (Mapbox Tilesets API):
    1. replace the tileset source with the collection as line-delimited GeoJSON
    2. update the tileset recipe, creating the tileset on first use
    3. start a publish job and poll it until it succeeds, fails or times out
"""

from __future__ import annotations

import json
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from vector_tiles.common.errors import PipelineError, PublishError
from vector_tiles.common.fs import read_json
from vector_tiles.common.http import SINGLE_ATTEMPT, HttpClient, HttpRequestError, TimeoutConfig

ProgressCallback = Callable[[float], None]

UPLOAD_TIMEOUT = TimeoutConfig(connect=20, read=600)
JOB_SUCCESS = "success"
JOB_FAILED = "failed"


@dataclass(frozen=True)
class PublishRequest:
    file_path: Path
    account: str
    token: str
    destination_id: str

    @property
    def tileset_id(self) -> str:
        return f"{self.account}.{self.destination_id}"


@dataclass(frozen=True)
class PublishReceipt:
    tileset_id: str
    job_id: str
    source_id: str


class PublishJob:
    def __init__(self, request: PublishRequest, future: Future) -> None:
        self.request = request
        self._future = future

    def wait(self, timeout: float | None = None) -> PublishReceipt:
        try:
            return self._future.result(timeout=timeout)
        except PublishError:
            raise
        except (PipelineError, OSError, ValueError) as exc:
            raise PublishError(f"Upload to {self.request.tileset_id} failed: {exc}") from exc


def to_line_delimited(collection: dict[str, Any]) -> bytes:
    lines = [json.dumps(feature, separators=(",", ":")) for feature in collection.get("features", [])]
    return ("\n".join(lines) + "\n").encode("utf-8")


class MapboxPublisher:
    def __init__(
        self,
        *,
        api_url: str = "https://api.mapbox.com",
        poll_interval_seconds: float = 5.0,
        timeout_seconds: float = 3600.0,
        minzoom: int = 0,
        maxzoom: int = 9,
        max_workers: int = 1,
        http_client: HttpClient | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.poll_interval_seconds = poll_interval_seconds
        self.timeout_seconds = timeout_seconds
        self.minzoom = minzoom
        self.maxzoom = maxzoom
        self.owns_http = http_client is None
        self.http = http_client or HttpClient()
        self.executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="publish")

    @classmethod
    def from_config(cls, publish_cfg: dict, *, max_workers: int = 1, http_client: HttpClient | None = None):
        return cls(
            api_url=publish_cfg["api_url"],
            poll_interval_seconds=float(publish_cfg.get("poll_interval_seconds", 5)),
            timeout_seconds=float(publish_cfg.get("timeout_seconds", 3600)),
            minzoom=int(publish_cfg.get("minzoom", 0)),
            maxzoom=int(publish_cfg.get("maxzoom", 9)),
            max_workers=max_workers,
            http_client=http_client,
        )

    def close(self) -> None:
        self.executor.shutdown(wait=True)
        if self.owns_http:
            self.http.close()

    def start(self, request: PublishRequest, on_progress: ProgressCallback | None = None) -> PublishJob:
        future = self.executor.submit(self._publish, request, on_progress or (lambda _p: None))
        return PublishJob(request, future)

    def _recipe(self, request: PublishRequest) -> dict[str, Any]:
        return {
            "version": 1,
            "layers": {
                request.destination_id: {
                    "source": f"mapbox://tileset-source/{request.account}/{request.destination_id}",
                    "minzoom": self.minzoom,
                    "maxzoom": self.maxzoom,
                }
            },
        }

    def _upload_source(self, request: PublishRequest, params: dict) -> str:
        collection = read_json(request.file_path)
        payload = self.http.put_file(
            f"{self.api_url}/tilesets/v1/sources/{request.account}/{request.destination_id}",
            filename=f"{request.destination_id}.ldgeojson",
            content=to_line_delimited(collection),
            params=params,
            timeout=UPLOAD_TIMEOUT,
        )
        return str(payload.get("id", f"mapbox://tileset-source/{request.account}/{request.destination_id}"))

    def _ensure_recipe(self, request: PublishRequest, params: dict) -> None:
        recipe = self._recipe(request)
        try:
            self.http.send_json(
                "PATCH",
                f"{self.api_url}/tilesets/v1/{request.tileset_id}/recipe",
                payload=recipe,
                params=params,
            )
        except HttpRequestError as exc:
            if exc.status_code != 404:
                raise
            self.http.send_json(
                "POST",
                f"{self.api_url}/tilesets/v1/{request.tileset_id}",
                payload={"recipe": recipe, "name": request.destination_id},
                params=params,
                retry=SINGLE_ATTEMPT,
            )

    def _await_job(self, request: PublishRequest, job_id: str, params: dict, on_progress: ProgressCallback) -> None:
        deadline = time.monotonic() + self.timeout_seconds
        while True:
            job = self.http.get_json(
                f"{self.api_url}/tilesets/v1/{request.tileset_id}/jobs/{job_id}",
                params=params,
            )
            stage = job.get("stage")
            if stage == JOB_SUCCESS:
                return
            if stage == JOB_FAILED:
                errors = job.get("errors") or []
                raise PublishError(f"Publish job {job_id} for {request.tileset_id} failed: {errors}")
            on_progress(75.0 if stage == "processing" else 60.0)
            if time.monotonic() >= deadline:
                raise PublishError(f"Publish job {job_id} for {request.tileset_id} timed out in stage {stage}")
            time.sleep(self.poll_interval_seconds)

    def _publish(self, request: PublishRequest, on_progress: ProgressCallback) -> PublishReceipt:
        params = {"access_token": request.token}
        on_progress(0.0)
        source_id = self._upload_source(request, params)
        on_progress(40.0)
        self._ensure_recipe(request, params)
        on_progress(50.0)
        started = self.http.send_json(
            "POST",
            f"{self.api_url}/tilesets/v1/{request.tileset_id}/publish",
            payload={},
            params=params,
            retry=SINGLE_ATTEMPT,
        )
        job_id = started.get("jobId")
        if not job_id:
            raise PublishError(f"Publish of {request.tileset_id} returned no job id: {started}")
        self._await_job(request, str(job_id), params, on_progress)
        on_progress(100.0)
        return PublishReceipt(tileset_id=request.tileset_id, job_id=str(job_id), source_id=source_id)
