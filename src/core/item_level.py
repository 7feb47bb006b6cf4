"""Maximum attainable item level estimate."""

from __future__ import annotations

from typing import Iterable, Mapping, Tuple

from core.errors import InvalidArgument

EQUIPMENT_SLOTS = (
    "main_hand",
    "off_hand",
    "head",
    "chest",
    "hands",
    "waist",
    "legs",
    "feet",
    "earrings",
    "neck",
    "wrist",
    "ring_left",
    "ring_right",
)


def max_item_level_attainable(equipment: Iterable[Tuple[str, int]]) -> int:
    """Return the integer mean of the best item level per equipment slot.

    ``equipment`` yields ``(slot, item_level)`` pairs, one per known item. A
    listing asking for more than this figure cannot be joined by anyone.
    Returns 0 when no equippable item is known.
    """

    best: dict[str, int] = {}
    for slot, item_level in equipment:
        if slot not in EQUIPMENT_SLOTS:
            raise InvalidArgument(f"Unknown equipment slot: {slot}")
        if best.get(slot, -1) < item_level:
            best[slot] = item_level

    if not best:
        return 0
    return int(sum(best.values()) / len(best))


def equipment_from_config(entries: Iterable[Mapping]) -> list[Tuple[str, int]]:
    """Convert ``[{"slot": ..., "item_level": ...}]`` config entries to pairs."""

    return [(str(entry["slot"]), int(entry["item_level"])) for entry in entries]
