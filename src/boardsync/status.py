"""Derived lifecycle status of a card, and the field changes that move it."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Iterable

from boardsync.model.rows import UNSET, Card, CardPatch, parse_timestamp


class TaskStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


STATUS_TITLES = {
    TaskStatus.NOT_STARTED: "Not started",
    TaskStatus.IN_PROGRESS: "In progress",
    TaskStatus.COMPLETED: "Completed",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def classify(card: Card, now: datetime) -> TaskStatus:
    """Status of card at time now. Pure; nothing is stored."""
    if card.completed:
        return TaskStatus.COMPLETED
    now = parse_timestamp(now)
    start = parse_timestamp(card.start_date)
    due = parse_timestamp(card.due_date)
    if start is None and due is None:
        return TaskStatus.NOT_STARTED
    if start is not None and start <= now:
        return TaskStatus.IN_PROGRESS
    # an unstarted card past its deadline counts as in progress
    if due is not None and due < now:
        return TaskStatus.IN_PROGRESS
    return TaskStatus.NOT_STARTED


def transition(card: Card, status: TaskStatus, now: datetime) -> CardPatch:
    """Field changes that put card into status."""
    status = TaskStatus(status)
    now = parse_timestamp(now)
    if status is TaskStatus.COMPLETED:
        return CardPatch(completed=True, completed_at=now)
    if status is TaskStatus.IN_PROGRESS:
        return CardPatch(
            completed=False,
            completed_at=None,
            start_date=now if card.start_date is None else UNSET,
        )
    return CardPatch(completed=False, completed_at=None, start_date=None)


def group_by_status(cards: Iterable[Card], now: datetime) -> dict[TaskStatus, list[Card]]:
    """Cards per status, each group sorted by order_index."""
    groups: dict[TaskStatus, list[Card]] = {status: [] for status in TaskStatus}
    for card in cards:
        groups[classify(card, now)].append(card)
    for group in groups.values():
        group.sort(key=lambda c: c.order_index)
    return groups
