"""Turn drag-and-drop results into dense order_index batches."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Position:
    """New order_index for one row."""

    id: str
    order_index: int


@dataclass(frozen=True)
class DragEnd:
    """Drop signal: the dragged item and what it landed on (None when outside any target)."""

    active_id: str
    over_id: str | None


def move_item(items: Sequence[T], source: int, target: int) -> list[T]:
    """Move the element at source to target, shifting the ones in between by one.

    [A, B, C, D] with source=3, target=1 → [A, D, B, C]
    """
    moved = list(items)
    if not moved:
        return moved
    if not 0 <= source < len(moved):
        raise IndexError(f"source {source} out of range for {len(moved)} items")
    item = moved.pop(source)
    moved.insert(min(max(target, 0), len(moved)), item)
    return moved


def dense_positions(items: Sequence[Any]) -> list[Position]:
    """Assign order_index = position to every item, ignoring prior values."""
    return [Position(str(item.id), index) for index, item in enumerate(items)]


def plan_move(items: Sequence[Any], source: int, target: int) -> list[Position]:
    """Single-collection move followed by dense reassignment."""
    return dense_positions(move_item(items, source, target))


def _index_of(items: Sequence[Any], item_id: str) -> int | None:
    for index, item in enumerate(items):
        if str(item.id) == item_id:
            return index
    return None


def plan_drag(items: Sequence[Any], drag: DragEnd) -> list[Position] | None:
    """Resolve a drop within one sortable collection.

    Returns None when nothing should change: dropped outside, onto
    itself, or onto an id that is not in the collection.
    """
    if drag.over_id is None or drag.active_id == drag.over_id:
        return None
    source = _index_of(items, drag.active_id)
    target = _index_of(items, drag.over_id)
    if source is None or target is None:
        return None
    return plan_move(items, source, target)


def plan_cross_move(
    source_items: Sequence[Any],
    target_items: Sequence[Any],
    moved: Any,
    target_index: int,
) -> tuple[list[Position], list[Position]]:
    """Move an item between two collections.

    ``moved`` carries the item's new field values and is spliced into
    the destination at target_index. Both groups are densely reassigned,
    so the source is left without a gap.

    Returns (destination batch, source batch).
    """
    moved_id = str(moved.id)
    remaining = [item for item in source_items if str(item.id) != moved_id]
    destination = [item for item in target_items if str(item.id) != moved_id]
    destination.insert(min(max(target_index, 0), len(destination)), moved)
    return dense_positions(destination), dense_positions(remaining)


def changed_positions(items: Sequence[Any], batch: Sequence[Position]) -> list[Position]:
    """Drop entries whose order_index already matches the current row."""
    current = {str(item.id): item.order_index for item in items}
    return [p for p in batch if current.get(p.id) != p.order_index]
