from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Protocol

from .classify import TeaBuckets, classify_teas
from .config import RuntimeSecrets
from .config_schema import AppConfig
from .content import fetch_all_content
from .normalize import tea_from_page
from .notion_client import NotionClient
from .notion_schema import is_full_page
from .output import write_stylesheet, write_text_output
from .render_book import manuscript_markdown
from .render_cover import cover_svg, load_cover_template
from .run_log import RunLogger
from .tea import Tea


class TeaDatabase(Protocol):
    def iter_database_rows(self, database_id: str) -> Iterable[dict[str, Any]]: ...

    def iter_block_children(self, block_id: str) -> Iterable[dict[str, Any]]: ...


@dataclass(frozen=True)
class BuildResult:
    top_display: int
    bottom_display: int
    pantry: int
    content_fragments: int
    manuscript_path: Path
    cover_path: Path
    stylesheet_path: Path | None


def fetch_teas(
    database: TeaDatabase,
    database_id: str,
    *,
    logger: RunLogger | None = None,
) -> list[Tea]:
    """Fetch and validate every stored tea, in the database's sort order."""
    teas: list[Tea] = []
    skipped = 0
    for page in database.iter_database_rows(database_id):
        if not is_full_page(page):
            skipped += 1
            if logger is not None:
                logger.warning("partial_page_skipped", tea_id=page.get("id"))
            continue
        teas.append(tea_from_page(page))

    if logger is not None:
        logger.info("rows_fetched", teas=len(teas), partial_skipped=skipped)
    return teas


def inventory(
    config: AppConfig,
    secrets: RuntimeSecrets,
    *,
    database: TeaDatabase | None = None,
    logger: RunLogger | None = None,
) -> TeaBuckets:
    """Fetch and classify the tea list without rendering anything."""
    if database is None:
        with NotionClient(secrets.notion_token, config=config.notion) as client:
            return inventory(config, secrets, database=client, logger=logger)

    teas = fetch_teas(database, secrets.database_id, logger=logger)
    buckets = classify_teas(
        teas,
        top_marker=config.locations.top_display,
        bottom_marker=config.locations.bottom_display,
    )
    if logger is not None:
        logger.info("teas_classified", **buckets.counts())
    return buckets


def build_book(
    config: AppConfig,
    secrets: RuntimeSecrets,
    *,
    out_dir: str | Path,
    database: TeaDatabase | None = None,
    logger: RunLogger | None = None,
    today: date | None = None,
) -> BuildResult:
    """
    Build the ebook manuscript and cover from the Notion tea database.

    Stages run in order (fetch, classify, cover, page content, manuscript) and
    the first error from any stage aborts the build. Nothing is written until
    every tea's content has been fetched and rendered.
    """
    if database is None:
        with NotionClient(secrets.notion_token, config=config.notion) as client:
            return build_book(
                config,
                secrets,
                out_dir=out_dir,
                database=client,
                logger=logger,
                today=today,
            )

    out = Path(out_dir)
    built_on = today or date.today()

    buckets = inventory(config, secrets, database=database, logger=logger)

    template = load_cover_template(config.output.cover_template)
    cover = cover_svg(buckets.top_display, buckets.bottom_display, template=template)

    teas = buckets.all_teas()
    content = fetch_all_content(
        database,
        teas,
        image_height=config.content.image_height,
        max_workers=config.content.max_concurrent_fetches,
        logger=logger,
    )
    fragment_total = sum(len(fragments) for fragments in content.values())
    if logger is not None:
        logger.info("content_fetched", teas=len(content), fragments=fragment_total)

    manuscript = manuscript_markdown(
        buckets,
        content,
        book=config.book,
        locations=config.locations,
        built_on=built_on,
    )

    cover_path = write_text_output(out / config.output.cover_filename, cover)
    if logger is not None:
        logger.info("cover_written", path=str(cover_path))

    manuscript_path = write_text_output(out / config.output.manuscript_filename, manuscript)
    if logger is not None:
        logger.info("manuscript_written", path=str(manuscript_path))

    stylesheet_path: Path | None = None
    css = config.book.css
    if css and "://" not in css and not Path(css).is_absolute():
        stylesheet_path = write_stylesheet(out, css)

    counts = buckets.counts()
    return BuildResult(
        top_display=counts["top_display"],
        bottom_display=counts["bottom_display"],
        pantry=counts["pantry"],
        content_fragments=fragment_total,
        manuscript_path=manuscript_path,
        cover_path=cover_path,
        stylesheet_path=stylesheet_path,
    )
