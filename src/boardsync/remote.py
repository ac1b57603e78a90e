"""Contract between the stores and the hosted data store."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol, Sequence

BOARDS = "boards"
LISTS = "lists"
CARDS = "cards"
CARD_ASSIGNMENTS = "card_assignments"


class RemoteError(Exception):
    """A CRUD, auth or subscribe call against the remote store failed."""


class EventType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """One change-feed event. ``new`` is the full row; DELETE carries ``old``."""

    type: EventType
    new: dict[str, Any] = field(default_factory=dict)
    old: dict[str, Any] = field(default_factory=dict)

    @property
    def row_id(self) -> str | None:
        row = self.old if self.type is EventType.DELETE else self.new
        row_id = row.get("id") or self.new.get("id") or self.old.get("id")
        return str(row_id) if row_id is not None else None


def parse_change(payload: dict[str, Any]) -> ChangeEvent:
    """Decode a postgres_changes payload into a ChangeEvent.

    Accepts the realtime server shape (``data.type``, ``data.record``,
    ``data.old_record``) and the flattened client shape (``eventType``,
    ``new``, ``old``).
    """
    data = payload.get("data", payload)
    kind = data.get("type") or data.get("eventType")
    if kind is None:
        raise ValueError(f"change payload has no event type: {sorted(payload)}")
    # realtime-py hands over its own listen-event enum, not a plain string
    kind = getattr(kind, "value", kind)
    new = data.get("record") or data.get("new") or {}
    old = data.get("old_record") or data.get("old") or {}
    return ChangeEvent(EventType(str(kind).upper()), dict(new), dict(old))


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription(Protocol):
    async def close(self) -> None: ...


class RemoteStore(Protocol):
    """CRUD + subscribe surface over the remote tables.

    Every method raises RemoteError on failure.
    """

    async def current_user(self) -> str | None: ...

    async def select(
        self,
        table: str,
        *,
        eq: dict[str, Any] | None = None,
        in_: tuple[str, Sequence[Any]] | None = None,
        order: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        columns: str = "*",
    ) -> list[dict[str, Any]]: ...

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]: ...

    async def update(self, table: str, fields: dict[str, Any], match: dict[str, Any]) -> dict[str, Any] | None: ...

    async def delete(self, table: str, match: dict[str, Any]) -> None: ...

    async def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        column: str | None = None,
        value: Any = None,
    ) -> Subscription: ...
