from __future__ import annotations

import json
import tempfile
import unittest
from datetime import date
from pathlib import Path

from tea_book.config_schema import AppConfig
from tea_book.errors import SchemaViolation, TransportFailure, UnsupportedBlockType
from tea_book.offline import (
    OfflineNotionTransport,
    image_block,
    offline_notion_client,
    offline_secrets,
    paragraph_block,
    tea_row,
)
from tea_book.pipeline import build_book, inventory
from tea_book.run_log import RunLogger


def _events(path: Path) -> list[str]:
    return [json.loads(ln)["event"] for ln in path.read_text(encoding="utf-8").splitlines() if ln.strip()]


class TestBuildBook(unittest.TestCase):
    def test_offline_build_writes_cover_manuscript_and_stylesheet(self) -> None:
        cfg = AppConfig()

        with tempfile.TemporaryDirectory() as td:
            out = Path(td) / "out"
            log_path = Path(td) / "run.log"

            with offline_notion_client(cfg.notion) as client, RunLogger.open(log_path) as log:
                result = build_book(
                    cfg,
                    offline_secrets(),
                    out_dir=out,
                    database=client,
                    logger=log,
                    today=date(2024, 3, 9),
                )

            self.assertEqual(result.top_display, 2)
            self.assertEqual(result.bottom_display, 1)
            self.assertEqual(result.pantry, 2)
            self.assertEqual(result.content_fragments, 6)

            self.assertEqual(result.manuscript_path, out / "tea-list.txt")
            self.assertEqual(result.cover_path, out / "tea.svg")
            self.assertEqual(result.stylesheet_path, out / "assets" / "epub.css")
            self.assertTrue(result.stylesheet_path.exists())

            cover = result.cover_path.read_text(encoding="utf-8")
            manuscript = result.manuscript_path.read_text(encoding="utf-8")
            events = _events(log_path)

        self.assertNotIn("<slot", cover)
        self.assertIn("Assam Breakfast", cover)
        self.assertIn("Chamomile Lemongrass Blend", cover)
        self.assertNotIn("Rooibos", cover)

        self.assertTrue(manuscript.startswith("---\ntitle: Tea\n"))
        self.assertIn("date: 2024-03-09\n", manuscript)
        self.assertIn("<caption>Display (top)</caption>", manuscript)
        self.assertIn("<caption>Pantry</caption>", manuscript)

        headings = [ln for ln in manuscript.splitlines() if ln.startswith("# ")]
        self.assertEqual(
            headings,
            [
                "# Assam Breakfast {#chtea-1}",
                "# Dragonwell {#chtea-2}",
                "# Chamomile Lemongrass Blend {#chtea-3}",
                "# Genmaicha {#chtea-4}",
                "# Rooibos {#chtea-5}",
            ],
        )
        self.assertIn('<a href="#chtea-5" title="Chapter 5">Rooibos</a>', manuscript)
        self.assertIn('<img src="https://files.example.com/genmaicha.jpg" height="200" />', manuscript)
        self.assertIn("_Stored in Pantry Shelf and Kitchen_", manuscript)

        for event in ("rows_fetched", "teas_classified", "content_fetched", "cover_written", "manuscript_written"):
            self.assertIn(event, events)

    def test_inventory_only_lists_rows(self) -> None:
        fixture = OfflineNotionTransport()
        cfg = AppConfig()

        with offline_notion_client(cfg.notion, transport=fixture) as client:
            buckets = inventory(cfg, offline_secrets(), database=client)

        self.assertEqual([t.name for t in buckets.top_display], ["Assam Breakfast", "Dragonwell"])
        self.assertEqual([t.id for t in buckets.pantry], ["tea-4", "tea-5"])
        paths = {r.url.path for r in fixture.requests}
        self.assertEqual(paths, {"/v1/databases/offline-tea-db/query"})
        self.assertEqual(len(fixture.requests), 3)

    def test_partial_pages_are_skipped(self) -> None:
        rows = [
            tea_row("t1", name="Sencha", caffeine="★★☆", location=["Display (top)"]),
            {"object": "page", "id": "t2"},
        ]
        fixture = OfflineNotionTransport(rows=rows, blocks={"t1": []})
        cfg = AppConfig()

        with offline_notion_client(cfg.notion, transport=fixture) as client:
            buckets = inventory(cfg, offline_secrets(), database=client)

        self.assertEqual([t.id for t in buckets.all_teas()], ["t1"])

    def test_unsupported_block_aborts_without_writing(self) -> None:
        rows = [
            tea_row("t1", name="Sencha", caffeine="★★☆", location=["Display (top)"]),
            tea_row("t2", name="Oolong", caffeine="★★☆", location=["Kitchen"]),
        ]
        blocks = {
            "t1": [paragraph_block("b1", "Grassy.")],
            "t2": [
                image_block("b2", "https://example.com/o.png"),
                {"object": "block", "id": "b3", "type": "heading_1", "heading_1": {"rich_text": []}},
            ],
        }
        fixture = OfflineNotionTransport(rows=rows, blocks=blocks)
        cfg = AppConfig()

        with tempfile.TemporaryDirectory() as td:
            out = Path(td) / "out"
            with offline_notion_client(cfg.notion, transport=fixture) as client:
                with self.assertRaises(UnsupportedBlockType) as ctx:
                    build_book(cfg, offline_secrets(), out_dir=out, database=client)

            self.assertFalse((out / "tea-list.txt").exists())
            self.assertFalse((out / "tea.svg").exists())

        self.assertIn("heading_1", str(ctx.exception))
        self.assertIn("Oolong", str(ctx.exception))

    def test_schema_violation_aborts_build(self) -> None:
        bad = tea_row("t1", name="Sencha", location=["Kitchen"])
        bad["properties"]["Name"] = {"id": "title", "type": "select", "select": {"name": "Sencha"}}
        fixture = OfflineNotionTransport(rows=[bad], blocks={})
        cfg = AppConfig()

        with tempfile.TemporaryDirectory() as td:
            with offline_notion_client(cfg.notion, transport=fixture) as client:
                with self.assertRaises(SchemaViolation) as ctx:
                    build_book(cfg, offline_secrets(), out_dir=td, database=client)

        self.assertEqual(ctx.exception.field, "Name")
        self.assertEqual(ctx.exception.row_id, "t1")

    def test_missing_block_listing_is_transport_failure(self) -> None:
        rows = [tea_row("t1", name="Sencha", location=["Kitchen"])]
        fixture = OfflineNotionTransport(rows=rows, blocks={})
        cfg = AppConfig()

        with tempfile.TemporaryDirectory() as td:
            with offline_notion_client(cfg.notion, transport=fixture) as client:
                with self.assertRaises(TransportFailure) as ctx:
                    build_book(cfg, offline_secrets(), out_dir=td, database=client)

        self.assertIn("object_not_found", str(ctx.exception))

    def test_absolute_css_is_not_copied(self) -> None:
        cfg = AppConfig.model_validate({"book": {"css": "https://example.com/epub.css"}})

        with tempfile.TemporaryDirectory() as td:
            with offline_notion_client(cfg.notion) as client:
                result = build_book(cfg, offline_secrets(), out_dir=td, database=client)

            self.assertIsNone(result.stylesheet_path)
            self.assertFalse((Path(td) / "assets").exists())


if __name__ == "__main__":
    unittest.main()
