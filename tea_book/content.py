from __future__ import annotations

from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Protocol, Union

from pydantic import ValidationError

from .errors import SchemaViolation, UnsupportedBlockType
from .normalize import file_url, plain_text
from .notion_schema import ImageBlock, ParagraphBlock, is_full_block
from .run_log import RunLogger
from .tea import Tea


@dataclass(frozen=True)
class TextFragment:
    text: str


@dataclass(frozen=True)
class ImageFragment:
    url: str
    height: int


ContentFragment = Union[TextFragment, ImageFragment]


class BlockSource(Protocol):
    def iter_block_children(self, block_id: str) -> Iterable[dict[str, Any]]: ...


def _parse_block(model: type[ParagraphBlock] | type[ImageBlock], block: Mapping[str, Any], tea: str) -> Any:
    try:
        return model.model_validate(block)
    except ValidationError as e:
        raise SchemaViolation(
            field=f"{block.get('type')} block in {tea}",
            expected=str(block.get("type")),
            actual="malformed block",
            row_id=str(block.get("id") or "") or None,
            detail=str(e),
        ) from e


def content_fragment_from_block(
    block: Mapping[str, Any],
    *,
    tea_name: str,
    image_height: int = 200,
) -> ContentFragment:
    block_type = block.get("type")

    if block_type == "paragraph":
        paragraph = _parse_block(ParagraphBlock, block, tea_name)
        return TextFragment(plain_text(paragraph.paragraph.rich_text))

    if block_type == "image":
        image = _parse_block(ImageBlock, block, tea_name)
        return ImageFragment(url=file_url(image.image), height=image_height)

    raise UnsupportedBlockType(block_type=str(block_type), tea_name=tea_name)


def fetch_tea_content(
    source: BlockSource,
    tea: Tea,
    *,
    image_height: int = 200,
    logger: RunLogger | None = None,
) -> list[ContentFragment]:
    """
    Fetch a tea's page content as fragments, in the page's document order.

    Only paragraphs and images are supported; any other block type fails the
    whole fetch with UnsupportedBlockType.
    """
    fragments: list[ContentFragment] = []
    for block in source.iter_block_children(tea.id):
        if not is_full_block(block):
            if logger is not None:
                logger.warning("partial_block_skipped", tea_id=tea.id, block_id=block.get("id"))
            continue
        fragments.append(content_fragment_from_block(block, tea_name=tea.name, image_height=image_height))
    return fragments


def fetch_all_content(
    source: BlockSource,
    teas: Iterable[Tea],
    *,
    image_height: int = 200,
    max_workers: int | None = None,
    logger: RunLogger | None = None,
) -> dict[str, list[ContentFragment]]:
    """
    Fetch page content for every tea concurrently, keyed by tea id.

    Each tea's pages are fetched sequentially on one worker. The first failure
    cancels fetches that have not started yet and is re-raised.
    """
    tea_list = list(teas)
    if not tea_list:
        return {}

    workers = max_workers if max_workers is not None else len(tea_list)
    workers = max(1, min(int(workers), len(tea_list)))

    results: dict[str, list[ContentFragment]] = {}
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tea-content") as executor:
        futures: dict[Future[list[ContentFragment]], Tea] = {
            executor.submit(
                fetch_tea_content,
                source,
                tea,
                image_height=image_height,
                logger=logger,
            ): tea
            for tea in tea_list
        }

        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        # pending is only non-empty when a fetch has already failed.
        for future in pending:
            future.cancel()

        for future in done:
            exc = future.exception()
            if exc is not None:
                raise exc
            results[futures[future].id] = future.result()

    return results
