from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .tea import Tea


@dataclass(frozen=True)
class TeaBuckets:
    top_display: Sequence[Tea] = ()
    bottom_display: Sequence[Tea] = ()
    pantry: Sequence[Tea] = ()

    def all_teas(self) -> list[Tea]:
        """Every tea in bucket order: top display, bottom display, pantry."""
        return [*self.top_display, *self.bottom_display, *self.pantry]

    def counts(self) -> dict[str, int]:
        return {
            "top_display": len(self.top_display),
            "bottom_display": len(self.bottom_display),
            "pantry": len(self.pantry),
        }


def classify_teas(
    teas: Iterable[Tea],
    *,
    top_marker: str = "Display (top)",
    bottom_marker: str = "Display (bottom)",
) -> TeaBuckets:
    """
    Split teas by where they are stored, keeping input order within each bucket.

    A tea tagged with both display markers goes to the top display.
    """
    top: list[Tea] = []
    bottom: list[Tea] = []
    pantry: list[Tea] = []

    for tea in teas:
        locations = set(tea.location)
        if top_marker in locations:
            top.append(tea)
        elif bottom_marker in locations:
            bottom.append(tea)
        else:
            pantry.append(tea)

    return TeaBuckets(top_display=tuple(top), bottom_display=tuple(bottom), pantry=tuple(pantry))
