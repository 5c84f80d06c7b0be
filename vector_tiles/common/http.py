"""JSON-over-HTTP client shared by the search stream and the tileset publisher."""

from __future__ import annotations

from dataclasses import dataclass
from types import TracebackType
from typing import Any
from urllib.parse import urlparse

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from vector_tiles.common.constants import USER_AGENT
from vector_tiles.common.errors import PipelineError

RETRYABLE_STATUS_CODES = {408, 425, 429, 500, 502, 503, 504}


@dataclass(frozen=True)
class TimeoutConfig:
    connect: float = 20.0
    read: float = 120.0


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 5
    multiplier: float = 1.0
    max_wait: float = 30.0


SINGLE_ATTEMPT = RetryConfig(max_attempts=1)


class HttpRequestError(PipelineError):
    error_code = "HTTP_ERROR"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RetryableHttpError(HttpRequestError):
    """Transient failure: timeouts, dropped connections, throttling, 5xx."""


class HttpClient:
    """One ``requests.Session`` used concurrently by every group pipeline.

    Transient failures are retried with jittered exponential backoff. Calls
    that must not be repeated pass ``retry=SINGLE_ATTEMPT``.
    """

    def __init__(
        self,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self.timeout = timeout or TimeoutConfig()
        self.retry = retry or RetryConfig()
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _retrying(self, retry: RetryConfig | None) -> Retrying:
        policy = retry or self.retry
        return Retrying(
            stop=stop_after_attempt(policy.max_attempts),
            wait=wait_exponential_jitter(initial=policy.multiplier, max=policy.max_wait, jitter=1.0),
            retry=retry_if_exception_type(RetryableHttpError),
            reraise=True,
        )

    def _send_once(self, method: str, url: str, timeout: TimeoutConfig, **request_kwargs: Any) -> dict[str, Any]:
        host = urlparse(url).netloc
        try:
            response = self.session.request(
                method=method,
                url=url,
                timeout=(timeout.connect, timeout.read),
                **request_kwargs,
            )
        except requests.RequestException as exc:
            raise RetryableHttpError(f"{method} {host} failed: {exc}") from exc

        status = response.status_code
        if status in RETRYABLE_STATUS_CODES:
            raise RetryableHttpError(f"{method} {host} returned {status}", status_code=status)
        if status >= 400:
            raise HttpRequestError(f"{method} {host} returned {status}", status_code=status)
        if status == 204:
            return {}

        try:
            return response.json()
        except ValueError as exc:
            raise HttpRequestError(f"Invalid JSON payload from {host}", status_code=status) from exc

    def request_json(
        self,
        method: str,
        url: str,
        *,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
        **request_kwargs: Any,
    ) -> dict[str, Any]:
        return self._retrying(retry)(self._send_once, method, url, timeout or self.timeout, **request_kwargs)

    def get_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> dict[str, Any]:
        return self.request_json("GET", url, params=params, timeout=timeout)

    def send_json(
        self,
        method: str,
        url: str,
        *,
        payload: Any,
        params: dict[str, Any] | None = None,
        timeout: TimeoutConfig | None = None,
        retry: RetryConfig | None = None,
    ) -> dict[str, Any]:
        return self.request_json(method, url, params=params, json=payload, timeout=timeout, retry=retry)

    def put_file(
        self,
        url: str,
        *,
        filename: str,
        content: bytes,
        params: dict[str, Any] | None = None,
        timeout: TimeoutConfig | None = None,
    ) -> dict[str, Any]:
        files = {"file": (filename, content, "application/octet-stream")}
        return self.request_json("PUT", url, params=params, files=files, timeout=timeout)
