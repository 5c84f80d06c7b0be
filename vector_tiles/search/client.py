"""Search backend client for the scene metadata index."""

from __future__ import annotations

from typing import Any

from vector_tiles.common.http import HttpClient, TimeoutConfig

SEARCH_TIMEOUT = TimeoutConfig(connect=20, read=120)


class SearchClient:
    """Issues ``_search`` queries; one instance is shared by every group pipeline."""

    def __init__(self, base_url: str, http_client: HttpClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.owns_http = http_client is None
        self.http = http_client or HttpClient()

    def close(self) -> None:
        if self.owns_http:
            self.http.close()

    def search_url(self, index_name: str, record_type: str | None) -> str:
        if record_type:
            return f"{self.base_url}/{index_name}/{record_type}/_search"
        return f"{self.base_url}/{index_name}/_search"

    def search(
        self,
        *,
        index_name: str,
        record_type: str | None,
        query_string: str,
        from_offset: int,
        page_size: int,
    ) -> dict[str, Any]:
        return self.http.get_json(
            self.search_url(index_name, record_type),
            params={"q": query_string, "from": from_offset, "size": page_size},
            timeout=SEARCH_TIMEOUT,
        )
