"""Row types for the remote tables and typed partial updates."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import datetime, timezone
from typing import Any, ClassVar


class _Unset:
    """Marker for patch fields that were not given."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 value into an aware datetime. Naive values are UTC.

    "2025-06-01" → 2025-06-01T00:00:00+00:00, "" → None
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime | None) -> str | None:
    """Serialize a datetime for the wire."""
    if value is None:
        return None
    return parse_timestamp(value).isoformat()


def _to_wire(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    return value


class RowMixin:
    """Shared conversion between wire dicts and row dataclasses."""

    TIMESTAMPS: ClassVar[tuple[str, ...]] = ("created_at", "updated_at")

    @classmethod
    def from_row(cls, row: dict[str, Any]):
        """Build from a wire dict. Unknown columns are dropped."""
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in row.items() if k in known}
        for name in cls.TIMESTAMPS:
            if name in data:
                data[name] = parse_timestamp(data[name])
        return cls(**data)

    def to_row(self) -> dict[str, Any]:
        """Serialize every column for the wire."""
        return {f.name: _to_wire(getattr(self, f.name)) for f in fields(self)}

    def apply(self, patch: Patch):
        """Return a copy with the patch's set fields applied."""
        if not isinstance(patch, self.PATCH):
            raise TypeError(f"{type(patch).__name__} cannot update {type(self).__name__}")
        return replace(self, **patch.changes())


@dataclass(frozen=True)
class Patch:
    """Partial update. Fields left as UNSET are not sent; None clears a column."""

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were set."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}

    def to_row(self) -> dict[str, Any]:
        """Serialize the set fields for the wire."""
        return {k: _to_wire(v) for k, v in self.changes().items()}

    def snapshot(self, row: Any) -> Patch:
        """Return a patch that restores row's current values for the fields this patch sets."""
        return type(self)(**{k: getattr(row, k) for k in self.changes()})

    def __bool__(self) -> bool:
        return bool(self.changes())


@dataclass(frozen=True)
class BoardPatch(Patch):
    title: str = UNSET
    description: str | None = UNSET
    color: str | None = UNSET


@dataclass(frozen=True)
class ListPatch(Patch):
    title: str = UNSET
    order_index: int = UNSET


@dataclass(frozen=True)
class CardPatch(Patch):
    list_id: str = UNSET
    title: str = UNSET
    description: str | None = UNSET
    color_label: str | None = UNSET
    start_date: datetime | None = UNSET
    due_date: datetime | None = UNSET
    completed: bool = UNSET
    completed_at: datetime | None = UNSET
    order_index: int = UNSET


@dataclass(frozen=True)
class Board(RowMixin):
    """A board owned by one user. Top level, ordered newest first."""

    PATCH: ClassVar[type[Patch]] = BoardPatch

    id: str
    title: str
    user_id: str | None = None
    description: str | None = None
    color: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class BoardList(RowMixin):
    """A list on a board, ordered by order_index."""

    PATCH: ClassVar[type[Patch]] = ListPatch

    id: str
    board_id: str
    title: str
    order_index: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Card(RowMixin):
    """A card in a list, ordered by order_index."""

    PATCH: ClassVar[type[Patch]] = CardPatch
    TIMESTAMPS: ClassVar[tuple[str, ...]] = (
        "start_date",
        "due_date",
        "completed_at",
        "created_at",
        "updated_at",
    )

    id: str
    list_id: str
    title: str
    description: str | None = None
    color_label: str | None = None
    start_date: datetime | None = None
    due_date: datetime | None = None
    completed: bool = False
    completed_at: datetime | None = None
    order_index: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Card:
        card = super().from_row(row)
        # completed is nullable in the table
        if card.completed is None:
            card = replace(card, completed=False)
        return card


@dataclass(frozen=True)
class CardAssignment(RowMixin):
    """A user assigned to a card."""

    PATCH: ClassVar[type[Patch]] = Patch
    TIMESTAMPS: ClassVar[tuple[str, ...]] = ("created_at",)

    id: str
    card_id: str
    user_id: str
    created_at: datetime | None = None
