from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Sequence

import httpx

from .config import RuntimeSecrets
from .config_schema import NotionConfig
from .notion_client import NotionClient

OFFLINE_DATABASE_ID = "offline-tea-db"
OFFLINE_TOKEN = "offline-token"


def _spans(text: str | Sequence[str]) -> list[dict[str, Any]]:
    parts = [text] if isinstance(text, str) else list(text)
    return [{"type": "text", "text": {"content": t}, "plain_text": t} for t in parts]


def tea_row(
    page_id: str,
    *,
    name: str | Sequence[str],
    caffeine: str | None = None,
    temperature: str | None = None,
    steep_time: str | None = None,
    serving: str | Sequence[str] = "",
    tea_type: str | None = None,
    location: Sequence[str] = (),
) -> dict[str, Any]:
    """A tea database row shaped like the Notion query endpoint returns it."""
    return {
        "object": "page",
        "id": page_id,
        "properties": {
            "Name": {"id": "title", "type": "title", "title": _spans(name)},
            "Caffeine": {
                "id": "caf",
                "type": "select",
                "select": {"name": caffeine} if caffeine else None,
            },
            "Temperature": {
                "id": "tmp",
                "type": "formula",
                "formula": {"type": "string", "string": temperature},
            },
            "Steep time": {
                "id": "stp",
                "type": "formula",
                "formula": {"type": "string", "string": steep_time},
            },
            "Serving": {"id": "srv", "type": "rich_text", "rich_text": _spans(serving) if serving else []},
            "Type": {
                "id": "typ",
                "type": "select",
                "select": {"name": tea_type} if tea_type else None,
            },
            "Location": {
                "id": "loc",
                "type": "multi_select",
                "multi_select": [{"name": loc} for loc in location],
            },
        },
    }


def paragraph_block(block_id: str, text: str | Sequence[str]) -> dict[str, Any]:
    return {
        "object": "block",
        "id": block_id,
        "type": "paragraph",
        "paragraph": {"rich_text": _spans(text), "color": "default"},
    }


def image_block(block_id: str, url: str, *, hosted: bool = False) -> dict[str, Any]:
    if hosted:
        image = {"type": "file", "file": {"url": url, "expiry_time": "2030-01-01T00:00:00.000Z"}}
    else:
        image = {"type": "external", "external": {"url": url}}
    return {"object": "block", "id": block_id, "type": "image", "image": {"caption": [], **image}}


_DEFAULT_ROWS: list[dict[str, Any]] = [
    tea_row(
        "tea-1",
        name="Assam Breakfast",
        caffeine="★★★",
        temperature="212°F",
        steep_time="4 min",
        serving="1 tsp / 8 oz",
        tea_type="Black tea",
        location=["Display (top)"],
    ),
    tea_row(
        "tea-2",
        name="Dragonwell",
        caffeine="★★☆",
        temperature="175°F",
        steep_time="2 min",
        serving="1 tbsp / 8 oz",
        tea_type="Green tea",
        location=["Display (top)", "Display (bottom)"],
    ),
    tea_row(
        "tea-3",
        name="Chamomile Lemongrass Blend",
        caffeine="☆☆☆",
        temperature="212°F",
        steep_time="5 min",
        serving="1 bag",
        tea_type="Herbal tea",
        location=["Display (bottom)"],
    ),
    tea_row(
        "tea-4",
        name="Genmaicha",
        caffeine="★☆☆",
        temperature="180°F",
        steep_time="3 min",
        serving="1 tsp / 8 oz",
        tea_type="Green tea",
        location=["Pantry Shelf", "Kitchen"],
    ),
    tea_row(
        "tea-5",
        name="Rooibos",
        caffeine=None,
        temperature="212°F",
        steep_time="5 min",
        serving="1 tsp / 8 oz",
        tea_type="Herbal tea",
        location=["Kitchen"],
    ),
]

_DEFAULT_BLOCKS: dict[str, list[dict[str, Any]]] = {
    "tea-1": [
        paragraph_block("b-1", "Malty and bold. Takes milk well."),
        image_block("b-2", "https://example.com/assam.png"),
        paragraph_block("b-3", "Gift from the farmers market."),
    ],
    "tea-2": [paragraph_block("b-4", "Pan-fired; do not use boiling water.")],
    "tea-3": [],
    "tea-4": [image_block("b-5", "https://files.example.com/genmaicha.jpg", hosted=True)],
    "tea-5": [paragraph_block("b-6", "Naturally caffeine free.")],
}


@dataclass
class OfflineNotionTransport:
    """
    Network-free stand-in for the Notion API used by `--offline` runs and tests.

    Serves a small fixed tea database with cursor pagination. `page_size`
    defaults to 2 so that listing rows always spans several pages.
    """

    rows: Sequence[dict[str, Any]] = tuple(_DEFAULT_ROWS)
    blocks: dict[str, list[dict[str, Any]]] = field(default_factory=lambda: dict(_DEFAULT_BLOCKS))
    page_size: int = 2
    requests: list[httpx.Request] = field(default_factory=list)

    def _page(self, items: Sequence[dict[str, Any]], cursor: str | None) -> dict[str, Any]:
        start = int(cursor) if cursor else 0
        end = start + self.page_size
        has_more = end < len(items)
        return {
            "object": "list",
            "results": list(items[start:end]),
            "next_cursor": str(end) if has_more else None,
            "has_more": has_more,
        }

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        segments = [s for s in request.url.path.split("/") if s]

        if request.method == "POST" and segments[-3:-2] == ["databases"] and segments[-1] == "query":
            body = json.loads(request.content or b"{}")
            return httpx.Response(200, json=self._page(self.rows, body.get("start_cursor")))

        if request.method == "GET" and segments[-3:-2] == ["blocks"] and segments[-1] == "children":
            block_id = segments[-2]
            if block_id not in self.blocks:
                return httpx.Response(
                    404,
                    json={"object": "error", "code": "object_not_found", "message": f"No block {block_id}"},
                )
            cursor = request.url.params.get("start_cursor")
            return httpx.Response(200, json=self._page(self.blocks[block_id], cursor))

        return httpx.Response(
            400,
            json={"object": "error", "code": "invalid_request_url", "message": "Unknown endpoint"},
        )

    def mock_transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def offline_secrets() -> RuntimeSecrets:
    return RuntimeSecrets(notion_token=OFFLINE_TOKEN, database_id=OFFLINE_DATABASE_ID)


def offline_notion_client(
    config: NotionConfig | None = None,
    *,
    transport: OfflineNotionTransport | None = None,
) -> NotionClient:
    cfg = config or NotionConfig()
    fixture = transport or OfflineNotionTransport()
    return NotionClient(OFFLINE_TOKEN, config=cfg, transport=fixture.mock_transport())
