"""Pure ordering operations for ranked lists.

Nothing here touches the store. Every function takes a sequence of
RankedItem and returns a new tuple, so a caller can keep the previous tuple
as a rollback snapshot.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Union

from .models import ItemId, RankedItem


# =============================================================================
# Mutation intents
# =============================================================================


@dataclass(frozen=True)
class Move:
    """Drop ``item_id`` onto the slot currently held by ``over_id``."""

    item_id: ItemId
    over_id: ItemId


@dataclass(frozen=True)
class Promote:
    """Move ``item_id`` to the front of the list."""

    item_id: ItemId


MutationIntent = Union[Move, Promote]


# =============================================================================
# Helpers
# =============================================================================


def index_of(items: Sequence[RankedItem], item_id: ItemId) -> int:
    """Index of the item with ``item_id``, or -1."""
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    return -1


def move_index(items: Sequence[RankedItem], old_index: int, new_index: int) -> tuple[RankedItem, ...]:
    """Single-item move: remove at ``old_index`` and reinsert at ``new_index``.

    Every other item keeps its relative order and shifts by at most one.
    """
    result = list(items)
    item = result.pop(old_index)
    result.insert(new_index, item)
    return tuple(result)


def assign_positions(items: Iterable[RankedItem]) -> tuple[RankedItem, ...]:
    """Re-rank items densely from 0; only index 0 is preferred."""
    return tuple(item.with_rank(i) for i, item in enumerate(items))


def split_entries(raw: str) -> list[str]:
    """Split comma separated user input into trimmed, non-empty entries."""
    return [part.strip() for part in raw.split(",") if part.strip()]


# =============================================================================
# Mutations
# =============================================================================


def apply_mutation(items: tuple[RankedItem, ...], intent: MutationIntent) -> tuple[RankedItem, ...]:
    """Apply a reorder intent and return the re-ranked list.

    Returns ``items`` itself (the same object) when the intent is a no-op:
    an unknown id, a drop onto itself, or promoting the item already first.
    """
    if isinstance(intent, Promote):
        old_index = index_of(items, intent.item_id)
        new_index = 0
    elif isinstance(intent, Move):
        if intent.item_id == intent.over_id:
            return items
        old_index = index_of(items, intent.item_id)
        new_index = index_of(items, intent.over_id)
        if new_index == -1:
            return items
    else:
        raise TypeError(f"Unknown mutation intent: {intent!r}")

    if old_index == -1 or old_index == new_index:
        return items

    return assign_positions(move_index(items, old_index, new_index))


# =============================================================================
# Fetch-time ordering
# =============================================================================


def _fetch_sort_key(item: RankedItem) -> tuple[float, int, int | float, str]:
    order: float
    if item.position is not None:
        order = item.position
    elif isinstance(item.id, int):
        # Rows written before sort_order existed rank by their id.
        order = item.id
    else:
        order = math.inf

    if isinstance(item.id, int):
        return (order, 0, item.id, "")
    return (order, 1, 0, str(item.id))


def sort_fetched(items: Iterable[RankedItem]) -> tuple[RankedItem, ...]:
    """Order items as loaded from the store.

    The persisted ``sort_order`` wins; when it is null the integer id stands
    in for it, and ties are broken by id. Non-integer ids without an order
    sort after everything that has one.
    """
    return tuple(sorted(items, key=_fetch_sort_key))


def normalize_for_display(items: Sequence[RankedItem]) -> tuple[RankedItem, ...]:
    """Sort fetched items and derive positions/preferred from their index.

    Nothing is written back; ``drifted`` reports rows whose stored values
    disagree with what is displayed.
    """
    return assign_positions(sort_fetched(items))


def drifted(stored: Iterable[RankedItem], displayed: Iterable[RankedItem]) -> list[ItemId]:
    """Ids whose stored position/preferred differ from the displayed rank."""
    by_id = {item.id: item for item in stored}
    result = []
    for item in displayed:
        before = by_id.get(item.id)
        if before is None:
            continue
        if before.position != item.position or bool(before.is_preferred) != bool(item.is_preferred):
            result.append(item.id)
    return result
