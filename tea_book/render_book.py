from __future__ import annotations

from datetime import date
from typing import Mapping, Sequence
from xml.sax.saxutils import escape

import yaml

from .classify import TeaBuckets
from .config_schema import BookConfig, LocationsConfig
from .content import ContentFragment, ImageFragment, TextFragment
from .tea import Tea, caffeine_description

_ATTR_ENTITIES = {'"': "&quot;"}
# Keeps long titles on one metadata line.
_YAML_LINE_WIDTH = 4096


def ereader_caffeine_glyphs(level: str) -> str:
    """
    Swap star glyphs for circles.

    Nook e-readers only render the WGL4 character set, which has no stars.
    See https://en.wikipedia.org/wiki/Windows_Glyph_List_4
    """
    return level.replace("★", "●").replace("☆", "○")


def format_list(items: Sequence[str]) -> str:
    """English conjunction list: "a", "a and b", "a, b, and c"."""
    values = [str(item) for item in items]
    if not values:
        return ""
    if len(values) == 1:
        return values[0]
    if len(values) == 2:
        return f"{values[0]} and {values[1]}"
    return ", ".join(values[:-1]) + f", and {values[-1]}"


def chapter_anchor(tea: Tea) -> str:
    """Identifier of a tea's chapter heading; pandoc resolves links to it across chapter files."""
    return f"ch{tea.id}"


def tea_table_html(caption: str, teas: Sequence[Tea], starting_index: int = 0) -> str:
    """
    Render a table summarizing `teas`, one name row and one detail row per tea.

    Name rows link to the tea's chapter heading. `starting_index` is the
    position of the first tea among all chapters in the book and numbers the
    link titles.
    """
    rows: list[str] = []
    for index, tea in enumerate(teas):
        href = escape(f"#{chapter_anchor(tea)}", _ATTR_ENTITIES)
        number = starting_index + index + 1
        rows.append(
            "<tr>"
            f'<th class="cell-name" colspan="5">'
            f'<a href="{href}" title="Chapter {number}">{escape(tea.name)}</a></th>'
            "</tr>"
            "<tr>"
            f'<td class="cell-caffeine">{escape(ereader_caffeine_glyphs(tea.caffeine))}</td>'
            f'<td class="cell-temperature">{escape(tea.temperature)}</td>'
            f'<td class="cell-steep-time">{escape(tea.steep_time)}</td>'
            f'<td class="cell-serving">{escape(tea.serving)}</td>'
            f'<td class="cell-type">{escape(tea.type)}</td>'
            "</tr>"
        )

    return (
        "<table>"
        f"<caption>{escape(caption)}</caption>"
        "<thead><tr>"
        '<th class="cell-caffeine">Caffeine</th>'
        '<th class="cell-temperature">Temp</th>'
        '<th class="cell-steep-time">Steep time</th>'
        '<th class="cell-serving">Serving</th>'
        '<th class="cell-type">Type</th>'
        "</tr></thead>"
        f"<tbody>{''.join(rows)}</tbody>"
        "</table>"
    )


def chapter_properties_markdown(tea: Tea) -> str:
    caffeine = caffeine_description(tea.caffeine) or "unknown caffeine level"
    return (
        f"\n# {tea.name} {{#{chapter_anchor(tea)}}}\n"
        "\n"
        f"- {tea.type}\n"
        f"- {ereader_caffeine_glyphs(tea.caffeine)} ({caffeine})\n"
        f"- Boil water to {tea.temperature}\n"
        f"- Serve {tea.serving}\n"
        f"- Steep {tea.steep_time}\n"
        "\n"
        f"_Stored in {format_list(tea.location)}_\n"
        "\n"
    )


def fragment_markdown(fragment: ContentFragment) -> str:
    if isinstance(fragment, TextFragment):
        return fragment.text
    if isinstance(fragment, ImageFragment):
        return f'<img src="{escape(fragment.url, _ATTR_ENTITIES)}" height="{int(fragment.height)}" />'
    raise TypeError(f"Unknown content fragment: {fragment!r}")


def chapter_markdown(tea: Tea, fragments: Sequence[ContentFragment]) -> str:
    """
    Render one chapter: a level 1 heading with the tea's properties, then its
    page content below a horizontal rule when there is any.
    """
    parts = [chapter_properties_markdown(tea)]
    if fragments:
        parts.append("---\n\n")
        parts.append("\n\n".join(fragment_markdown(f) for f in fragments))
        parts.append("\n")
    return "".join(parts)


def front_matter(book: BookConfig, built_on: date) -> str:
    """Pandoc metadata block for the EPUB conversion."""
    metadata = {
        "title": book.title,
        "creator": book.creator,
        "date": built_on,
        "lang": book.lang,
        "cover-image": book.cover_image,
        "css": book.css,
    }
    return yaml.safe_dump(
        metadata,
        sort_keys=False,
        allow_unicode=True,
        explicit_start=True,
        explicit_end=True,
        width=_YAML_LINE_WIDTH,
    )


def manuscript_markdown(
    buckets: TeaBuckets,
    content: Mapping[str, Sequence[ContentFragment]],
    *,
    book: BookConfig,
    locations: LocationsConfig,
    built_on: date,
) -> str:
    """
    Assemble the full manuscript: metadata, the three storage tables, then one
    chapter per tea in the same order the tables list them.
    """
    top = list(buckets.top_display)
    bottom = list(buckets.bottom_display)
    pantry = list(buckets.pantry)

    sections = [
        front_matter(book, built_on),
        tea_table_html(book.top_caption or locations.top_display, top, 0),
        tea_table_html(book.bottom_caption or locations.bottom_display, bottom, len(top)),
        tea_table_html(book.pantry_caption, pantry, len(top) + len(bottom)),
    ]
    for tea in buckets.all_teas():
        sections.append(chapter_markdown(tea, content.get(tea.id, ())))

    return "\n\n".join(sections)
