from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

# Caffeine levels as stored in Notion, mapped to display text.
CAFFEINE_LEVELS: dict[str, str] = {
    "☆☆☆": "decaf",
    "★☆☆": "low caffeine",
    "★★☆": "moderate caffeine",
    "★★★": "high caffeine",
}


@dataclass(frozen=True)
class Tea:
    """A validated row of the tea database."""

    # Notion page id; also the block id of the tea's page content.
    id: str
    name: str
    # One of the CAFFEINE_LEVELS keys, or "" when unset.
    caffeine: str = ""
    temperature: str = ""
    steep_time: str = ""
    # Leaf amount per amount of water, e.g. "1 tsp / 8 oz".
    serving: str = ""
    # Kind of tea, e.g. "Black tea" or "Herbal tea".
    type: str = ""
    # Where in the house the tea is kept, in Notion's order.
    location: Sequence[str] = ()


def caffeine_description(level: str) -> str | None:
    return CAFFEINE_LEVELS.get(level)
