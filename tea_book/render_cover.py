from __future__ import annotations

import re
from importlib.resources import files
from pathlib import Path
from typing import Sequence
from xml.sax.saxutils import escape, quoteattr

from .errors import ExportError, TemplateMarkerMissing
from .tea import Tea, caffeine_description

# Two columns of three teas per display shelf.
SLOT_POSITIONS: tuple[str, ...] = (
    "30 85",
    "30 180",
    "30 275",
    "322 85",
    "322 180",
    "322 275",
)
TOP_DISPLAY_POSITION = "8 8"
BOTTOM_DISPLAY_POSITION = "8 360"

# Names longer than this are drawn condensed so they fit above the rule line.
_CONDENSE_NAME_AFTER = 20

# Matches <slot /> and <slot/>
SLOT_RE = re.compile(r"<slot\s*/>")


def default_cover_template() -> str:
    return (files("tea_book") / "assets" / "cover.svg").read_text(encoding="utf-8")


def load_cover_template(path: str | Path | None = None) -> str:
    if path is None:
        return default_cover_template()

    p = Path(path)
    try:
        return p.read_text(encoding="utf-8")
    except OSError as e:
        raise ExportError(f"Failed to read cover template: {p}: {e}") from e


def tea_info_svg(tea: Tea, position: str) -> str:
    """SVG group with a tea's name, kind, caffeine and brewing summary."""
    serving = tea.serving.replace(" / ", "/")
    caffeine = caffeine_description(tea.caffeine) or ""

    name_attrs = ' class="name"'
    if len(tea.name) > _CONDENSE_NAME_AFTER:
        name_attrs = ' transform="scale(0.9 1)"' + name_attrs

    return (
        f"<g transform={quoteattr(f'translate({position})')}>"
        f"<text{name_attrs}>{escape(tea.name)}</text>"
        '<line x1="0" y1="10" x2="220" y2="10" stroke="black" />'
        f'<text y="30" class="desc">{escape(tea.type)}, {escape(caffeine)}</text>'
        f'<text y="48" class="desc">{escape(serving)}, steep {escape(tea.steep_time)}, '
        f"{escape(tea.temperature)}</text>"
        "</g>"
    )


def display_group_svg(teas: Sequence[Tea], position: str, *, label: str = "display") -> str:
    if len(teas) > len(SLOT_POSITIONS):
        raise ExportError(
            f"The cover has room for {len(SLOT_POSITIONS)} teas per shelf, "
            f"but the {label} has {len(teas)}"
        )

    groups = "".join(tea_info_svg(tea, slot) for tea, slot in zip(teas, SLOT_POSITIONS))
    return f"<g transform={quoteattr(f'translate({position})')}>{groups}</g>"


def cover_svg(
    top_display: Sequence[Tea],
    bottom_display: Sequence[Tea],
    *,
    template: str | None = None,
) -> str:
    """
    Fill the cover template with the teas on the two display shelves.

    The template must contain a `<slot />` element, which is replaced by the
    generated groups. Raises TemplateMarkerMissing if there is none.
    """
    svg_template = default_cover_template() if template is None else template

    groups = (
        '<g id="tea">'
        + display_group_svg(top_display, TOP_DISPLAY_POSITION, label="top display")
        + display_group_svg(bottom_display, BOTTOM_DISPLAY_POSITION, label="bottom display")
        + "</g>"
    )

    svg, replaced = SLOT_RE.subn(lambda _m: groups, svg_template, count=1)
    if replaced == 0:
        raise TemplateMarkerMissing("Could not find <slot /> marker element in cover template")
    return svg
