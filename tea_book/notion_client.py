from __future__ import annotations

from typing import Any, Iterator

import httpx

from .config_schema import NotionConfig
from .errors import TransportFailure
from .pagination import Page, iterate_paginated


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return (response.text or "").strip()[:500]

    if isinstance(body, dict):
        code = body.get("code")
        message = body.get("message")
        if code or message:
            return f"{code}: {message}"
    return str(body)[:500]


def _page_from_response(data: Any, *, operation: str) -> Page[dict[str, Any]]:
    if not isinstance(data, dict):
        raise TransportFailure(
            f"Notion returned a non-object list response ({operation})",
            operation=operation,
        )

    results = data.get("results")
    if not isinstance(results, list):
        raise TransportFailure(
            f"Notion list response is missing results ({operation})",
            operation=operation,
        )

    next_cursor = data.get("next_cursor") if data.get("has_more") else None
    if next_cursor is not None and not isinstance(next_cursor, str):
        raise TransportFailure(
            f"Notion list response has a non-string next_cursor ({operation})",
            operation=operation,
        )

    return Page(results=results, next_cursor=next_cursor or None)


class NotionClient:
    """
    Thin wrapper around the two Notion REST endpoints the book needs.

    Every failure (network error, non-2xx status, undecodable body) surfaces as
    TransportFailure. There is no retry: one failed page aborts the build.
    """

    def __init__(
        self,
        token: str,
        *,
        config: NotionConfig | None = None,
        client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config or NotionConfig()
        self._owns_client = client is None

        headers = {
            "Authorization": f"Bearer {token}",
            "Notion-Version": self._config.notion_version,
            "Accept": "application/json",
        }
        if client is not None:
            client.headers.update(headers)
            self._client = client
        else:
            self._client = httpx.Client(
                base_url=self._config.api_base_url,
                headers=headers,
                timeout=self._config.timeout_secs,
                transport=transport,
            )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "NotionClient":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def query_database(
        self,
        database_id: str,
        *,
        start_cursor: str | None = None,
    ) -> Page[dict[str, Any]]:
        """
        Fetch one page of database rows that have at least one location tag,
        sorted ascending by the configured sort property.
        """
        db = (database_id or "").strip()
        if not db:
            raise ValueError("database_id must be a non-empty string")

        body: dict[str, Any] = {
            "sorts": [
                {"property": self._config.sort_property, "direction": "ascending"},
            ],
            "filter": {
                "property": self._config.filter_property,
                "multi_select": {"is_not_empty": True},
            },
            "page_size": self._config.page_size,
        }
        if start_cursor:
            body["start_cursor"] = start_cursor

        return self._request_page(
            "POST",
            f"/databases/{db}/query",
            operation=f"notion.databases.query:{db}",
            json=body,
        )

    def list_block_children(
        self,
        block_id: str,
        *,
        start_cursor: str | None = None,
    ) -> Page[dict[str, Any]]:
        bid = (block_id or "").strip()
        if not bid:
            raise ValueError("block_id must be a non-empty string")

        params: dict[str, Any] = {"page_size": self._config.page_size}
        if start_cursor:
            params["start_cursor"] = start_cursor

        return self._request_page(
            "GET",
            f"/blocks/{bid}/children",
            operation=f"notion.blocks.children.list:{bid}",
            params=params,
        )

    def iter_database_rows(self, database_id: str) -> Iterator[dict[str, Any]]:
        return iterate_paginated(
            lambda cursor: self.query_database(database_id, start_cursor=cursor)
        )

    def iter_block_children(self, block_id: str) -> Iterator[dict[str, Any]]:
        return iterate_paginated(
            lambda cursor: self.list_block_children(block_id, start_cursor=cursor)
        )

    def _request_page(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        **kwargs: Any,
    ) -> Page[dict[str, Any]]:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportFailure(f"Notion request failed ({operation}): {e}", operation=operation) from e

        if response.is_error:
            raise TransportFailure(
                f"Notion returned HTTP {response.status_code} ({operation}): {_error_detail(response)}",
                operation=operation,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise TransportFailure(
                f"Notion returned an undecodable body ({operation}): {e}",
                operation=operation,
            ) from e

        return _page_from_response(data, operation=operation)
