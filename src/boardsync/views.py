"""Data behind the status-column and table views of a board."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Sequence

from boardsync.model.rows import Card, CardPatch
from boardsync.remote import RemoteStore
from boardsync.notify import NotificationBus
from boardsync.reorder import DragEnd, changed_positions, plan_cross_move, plan_drag
from boardsync.status import TaskStatus, classify, group_by_status, transition
from boardsync.store import EPOCH, CardStore, Result

logger = logging.getLogger(__name__)

FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


class BoardCards(CardStore):
    """Every card of one board, across all of its lists.

    Scoped by the board's list ids: fetched with one membership filter
    and fed by one subscription per list.
    """

    def __init__(self, remote: RemoteStore, bus: NotificationBus, list_ids: Sequence[str] = ()) -> None:
        super().__init__(remote, bus, scope=tuple(list_ids))

    async def follow(self, list_ids: Iterable[str]) -> Result[list[Card]] | None:
        """Rebind when the board's set of lists changed. Returns None if it did not."""
        list_ids = tuple(str(i) for i in list_ids)
        if set(list_ids) == set(self.scope):
            return None
        return await self.bind(list_ids)

    # -- status columns --

    def status_groups(self, now: datetime) -> dict[TaskStatus, list[Card]]:
        return group_by_status(self.rows, now)

    async def move_to_status(self, card_id: str, status: TaskStatus, now: datetime) -> Result[Card]:
        """Apply the field changes that put a card into status."""
        card = self.items[card_id]
        if card is None:
            raise KeyError(card_id)
        if classify(card, now) is TaskStatus(status):
            return Result(data=card)
        return await self.update(card_id, transition(card, status, now))

    async def handle_status_drag(self, drag: DragEnd, now: datetime) -> Result | None:
        """Apply a drop in the status-column view. Returns None when nothing changes.

        Dropping on a column moves the card into that status. Dropping on a
        card in the same column reorders that column; dropping on a card in
        another column moves the card into that status first, then splices
        it in at the drop position and re-compacts both columns.
        """
        if drag.over_id is None:
            return None
        card = self.items[drag.active_id]
        if card is None:
            return None
        source_status = classify(card, now)

        try:
            zone = TaskStatus(drag.over_id)
        except ValueError:
            zone = None
        if zone is not None:
            if zone is source_status:
                return None
            return await self.move_to_status(card.id, zone, now)

        over = self.items[drag.over_id]
        if over is None:
            logger.debug("drop of %s on unknown target %s ignored", card.id, drag.over_id)
            return None
        groups = self.status_groups(now)
        target_status = classify(over, now)

        if target_status is source_status:
            batch = plan_drag(groups[source_status], drag)
            return await self.reorder(batch) if batch else None

        patch = transition(card, target_status, now)
        moved = await self.update(card.id, patch)
        if not moved.ok:
            return moved
        target_group = groups[target_status]
        target_index = next(i for i, c in enumerate(target_group) if c.id == over.id)
        destination, source = plan_cross_move(
            groups[source_status],
            target_group,
            moved.data or card.apply(patch),
            target_index,
        )
        return await self.reorder(destination + changed_positions(groups[source_status], source))

    # -- table --

    async def toggle_completed(self, card_id: str, now: datetime) -> Result[Card]:
        card = self.items[card_id]
        if card is None:
            raise KeyError(card_id)
        done = not card.completed
        return await self.update(card_id, CardPatch(completed=done, completed_at=now if done else None))

    async def set_color(self, card_id: str, color: str | None) -> Result[Card]:
        return await self.update(card_id, CardPatch(color_label=color))


class StatusFilter(str, Enum):
    ALL = "all"
    TODO = "todo"
    DONE = "done"


class SortOrder(str, Enum):
    CREATED_DESC = "created_desc"
    DUE_ASC = "due_asc"
    DUE_DESC = "due_desc"


@dataclass(frozen=True)
class TableQuery:
    text: str = ""
    status: StatusFilter = StatusFilter.ALL
    sort: SortOrder = SortOrder.CREATED_DESC

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", StatusFilter(self.status))
        object.__setattr__(self, "sort", SortOrder(self.sort))


def _matches(card: Card, list_title: str, query: TableQuery) -> bool:
    if query.status is StatusFilter.TODO and card.completed:
        return False
    if query.status is StatusFilter.DONE and not card.completed:
        return False
    text = query.text.strip().lower()
    if not text:
        return True
    return text in card.title.lower() or text in (card.description or "").lower() or text in list_title.lower()


def filter_rows(cards: Iterable[Card], list_titles: dict[str, str], query: TableQuery) -> list[Card]:
    """Search, filter and sort cards for the table view.

    Text matches title, description or list title, case-insensitively.
    Cards without a due date sort last by due_asc and first by due_desc.
    """
    rows = [c for c in cards if _matches(c, list_titles.get(c.list_id, ""), query)]
    if query.sort is SortOrder.CREATED_DESC:
        return sorted(rows, key=lambda c: c.created_at or EPOCH, reverse=True)
    return sorted(
        rows,
        key=lambda c: c.due_date or FAR_FUTURE,
        reverse=query.sort is SortOrder.DUE_DESC,
    )
