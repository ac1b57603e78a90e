"""Local, live-synced collections of boards, lists and cards.

Each store keeps the rows of one remote table (optionally scoped by a
parent id) in a ListNode sorted by order_index, mutates it optimistically
before the remote call resolves, rolls back on failure, and merges the
table's change feed into it. Merges replace whole rows by id, so they are
idempotent and tolerate echoes arriving before or after the local write.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, ClassVar, Generic, Sequence, TypeVar

from boardsync.model.node import ListNode, Node
from boardsync.model.rows import (
    Board,
    BoardList,
    Card,
    CardAssignment,
    CardPatch,
    Patch,
    format_timestamp,
)
from boardsync.notify import NotificationBus
from boardsync.remote import (
    BOARDS,
    CARD_ASSIGNMENTS,
    CARDS,
    LISTS,
    ChangeEvent,
    EventType,
    RemoteError,
    RemoteStore,
    Subscription,
)
from boardsync.reorder import Position, changed_positions, dense_positions

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "Not authenticated"

EPOCH = datetime.min.replace(tzinfo=timezone.utc)

R = TypeVar("R")
T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a store operation. ``error`` is None on success."""

    data: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _normalize_scope(scope: str | Sequence[str] | None) -> tuple[str, ...]:
    if scope is None:
        return ()
    if isinstance(scope, str):
        return (scope,)
    return tuple(str(s) for s in scope)


class EntityStore(Generic[R]):
    """CRUD + live-sync facade over one remote table.

    ``items`` holds the rows keyed by id and is re-sorted after every
    change; ``state`` holds ``loading`` and ``error``. Every operation
    reports failures through the notification bus and returns a Result
    instead of raising.
    """

    table: ClassVar[str]
    row_type: ClassVar[type]
    label: ClassVar[str]
    plural: ClassVar[str]
    scope_column: ClassVar[str | None] = None
    scope_label: ClassVar[str] = ""
    order_column: ClassVar[str] = "order_index"
    descending: ClassVar[bool] = False

    def __init__(
        self,
        remote: RemoteStore,
        bus: NotificationBus,
        scope: str | Sequence[str] | None = None,
    ) -> None:
        self.remote = remote
        self.bus = bus
        self.items = ListNode()
        self.state = Node(loading=False)
        self._scope = _normalize_scope(scope)
        self._subscriptions: list[Subscription] = []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.scope_column}={list(self._scope)} rows={len(self.items)}>"

    @property
    def scope(self) -> tuple[str, ...]:
        return self._scope

    @property
    def rows(self) -> list[R]:
        return list(self.items)

    def get(self, row_id: str) -> R | None:
        return self.items[row_id]

    @property
    def missing_scope(self) -> str:
        return f"No {self.scope_label} selected"

    # -- local state --

    def sort_key(self, row: R) -> Any:
        return getattr(row, self.order_column)

    def _resort(self) -> None:
        self.items.sort(key=self.sort_key, reverse=self.descending)

    def in_scope(self, row: R) -> bool:
        if self.scope_column is None:
            return True
        return str(getattr(row, self.scope_column)) in self._scope

    def _put(self, row: R) -> None:
        """Store row (or drop it if it left the scope) and keep the order."""
        if self.in_scope(row):
            self.items[row.id] = row
            self._resort()
        elif row.id in self.items:
            self.items[row.id] = None

    def _fail(self, action: str, error: RemoteError | str) -> Result:
        message = str(error) or f"Failed to {action} {self.label}"
        logger.warning("%s %s failed: %s", self.table, action, message)
        self.state.error = message
        self.bus.error(message)
        return Result(error=message)

    # -- realtime --

    def apply_change(self, event: ChangeEvent) -> None:
        """Merge one change-feed event. Applying it again changes nothing."""
        if event.type is EventType.DELETE:
            row_id = event.row_id
            if row_id is not None and row_id in self.items:
                self.items[row_id] = None
            return
        row = self.row_type.from_row(event.new)
        if event.type is EventType.INSERT and row.id in self.items:
            logger.debug("%s insert echo for %s ignored", self.table, row.id)
            return
        if not self.in_scope(row) and row.id not in self.items:
            return
        self._put(row)

    async def open(self) -> Result[list[R]]:
        """Subscribe to the change feed for the current scope, then fetch."""
        if not self._subscriptions:
            try:
                if self.scope_column is None:
                    self._subscriptions.append(await self.remote.subscribe(self.table, self.apply_change))
                else:
                    for scope_id in self._scope:
                        self._subscriptions.append(
                            await self.remote.subscribe(self.table, self.apply_change, self.scope_column, scope_id)
                        )
            except RemoteError as exc:
                # All or none, so the next open() subscribes every scope again
                await self.close()
                self._fail("subscribe to", exc)
        return await self.fetch()

    async def close(self) -> None:
        """Release every subscription. Failures are logged, never raised."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            try:
                await subscription.close()
            except RemoteError as exc:
                logger.warning("%s unsubscribe failed: %s", self.table, exc)

    async def bind(self, scope: str | Sequence[str] | None) -> Result[list[R]]:
        """Switch to a new scope: drop the old feed, subscribe and fetch the new one."""
        await self.close()
        self._scope = _normalize_scope(scope)
        return await self.open()

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # -- CRUD --

    async def _fetch_filters(self) -> dict[str, Any] | None:
        """Select filters for the scope, or None when there is nothing to fetch."""
        if self.scope_column is None:
            return {}
        if not self._scope:
            return None
        if len(self._scope) == 1:
            return {"eq": {self.scope_column: self._scope[0]}}
        return {"in_": (self.scope_column, list(self._scope))}

    async def fetch(self) -> Result[list[R]]:
        """Load every row in scope. Prior rows are kept if the call fails."""
        self.state.loading = True
        try:
            filters = await self._fetch_filters()
            if filters is None:
                rows = []
            else:
                rows = await self.remote.select(
                    self.table,
                    order=self.order_column,
                    descending=self.descending,
                    **filters,
                )
        except RemoteError as exc:
            return self._fail("fetch", exc)
        finally:
            self.state.loading = False

        fresh = ListNode()
        for raw in rows:
            row = self.row_type.from_row(raw)
            fresh[row.id] = row
        self.items.update(fresh)
        self._resort()
        self.state.error = None
        return Result(data=self.rows)

    def _target_scope(self, scope_id: str | None) -> str | None:
        if scope_id is not None:
            return str(scope_id)
        if len(self._scope) == 1:
            return self._scope[0]
        return None

    async def _next_order_index(self, scope_id: str) -> int:
        rows = await self.remote.select(
            self.table,
            columns="order_index",
            eq={self.scope_column: scope_id},
            order="order_index",
            descending=True,
            limit=1,
        )
        return rows[0]["order_index"] + 1 if rows else 0

    async def _create(self, fields: dict[str, Any], scope_id: str | None = None) -> Result[R]:
        """Append a row at the end of its scope."""
        target = self._target_scope(scope_id)
        if target is None:
            return self._fail("create", self.missing_scope)
        try:
            order_index = await self._next_order_index(target)
            raw = await self.remote.insert(
                self.table,
                {**fields, self.scope_column: target, "order_index": order_index},
            )
        except RemoteError as exc:
            return self._fail("create", exc)
        row = self.row_type.from_row(raw)
        self._put(row)
        return Result(data=row)

    async def update(self, row_id: str, patch: Patch) -> Result[R]:
        """Apply patch locally, then remotely. Reverts the patched fields on failure."""
        if not isinstance(patch, self.row_type.PATCH):
            raise TypeError(f"{type(patch).__name__} cannot update {self.plural}")
        current = self.items[row_id]
        if not patch:
            return Result(data=current)
        index = self.items.index(row_id) if current is not None else None
        optimistic = current.apply(patch) if current is not None else None
        if optimistic is not None:
            self._put(optimistic)

        try:
            raw = await self.remote.update(self.table, patch.to_row(), {"id": row_id})
        except RemoteError as exc:
            if current is not None:
                latest = self.items[row_id]
                if latest is not None:
                    self._put(latest.apply(patch.snapshot(current)))
                elif not self.in_scope(optimistic):
                    self.items.insert(index, row_id, current)
                    self._resort()
            return self._fail("update", exc)

        if raw is not None:
            row = self.row_type.from_row(raw)
            self._put(row)
            return Result(data=row)
        return Result(data=self.items[row_id] or optimistic)

    async def delete(self, row_id: str) -> Result[None]:
        """Remove locally, then remotely, then close the gap in its siblings. Puts the row back on failure."""
        current = self.items[row_id]
        index = None
        if current is not None:
            index = self.items.index(row_id)
            self.items[row_id] = None
        try:
            await self.remote.delete(self.table, {"id": row_id})
        except RemoteError as exc:
            if current is not None and row_id not in self.items:
                self.items.insert(index, row_id, current)
            return self._fail("delete", exc)
        if current is not None:
            await self._compact(current)
        return Result()

    async def _compact(self, removed: R) -> None:
        """Close the gap a removed row leaves in its sibling group."""
        if self.scope_column is None:
            return
        group = getattr(removed, self.scope_column)
        siblings = [row for row in self.items if getattr(row, self.scope_column) == group]
        batch = changed_positions(siblings, dense_positions(siblings))
        if batch:
            await self.reorder(batch)

    def _apply_positions(self, positions: Sequence[Position]) -> None:
        for position in positions:
            row = self.items[position.id]
            if row is not None:
                self.items[position.id] = row.apply(self.row_type.PATCH(order_index=position.order_index))
        self._resort()

    async def reorder(self, batch: Sequence[Position]) -> Result[list[R]]:
        """Write a batch of new positions as one all-or-nothing unit.

        Local order changes immediately. All remote updates run
        concurrently; if any fails, the ones that succeeded are written
        back to their previous order_index and the local order is
        restored, with a single notification for the whole batch.
        """
        batch = list(batch)
        if not batch:
            return Result(data=self.rows)
        previous = {p.id: self.items[p.id].order_index for p in batch if self.items[p.id] is not None}
        self._apply_positions(batch)

        results = await asyncio.gather(
            *(self.remote.update(self.table, {"order_index": p.order_index}, {"id": p.id}) for p in batch),
            return_exceptions=True,
        )
        for outcome in results:
            if isinstance(outcome, BaseException) and not isinstance(outcome, RemoteError):
                raise outcome
        failed = [outcome for outcome in results if isinstance(outcome, RemoteError)]
        if not failed:
            return Result(data=self.rows)

        written = [p for p, outcome in zip(batch, results) if not isinstance(outcome, BaseException)]
        undo = [Position(p.id, previous[p.id]) for p in written if p.id in previous]
        undo_results = await asyncio.gather(
            *(self.remote.update(self.table, {"order_index": p.order_index}, {"id": p.id}) for p in undo),
            return_exceptions=True,
        )
        unreverted = sum(1 for outcome in undo_results if isinstance(outcome, BaseException))
        self._apply_positions([Position(row_id, index) for row_id, index in previous.items()])

        message = f"Failed to reorder {self.plural}: {len(failed)} of {len(batch)} updates failed ({failed[0]})"
        if unreverted:
            message += f"; {unreverted} could not be reverted"
        return self._fail("reorder", message)


class BoardStore(EntityStore[Board]):
    """The signed-in user's boards, newest first."""

    table = BOARDS
    row_type = Board
    label = "board"
    plural = "boards"
    order_column = "created_at"
    descending = True

    def __init__(self, remote: RemoteStore, bus: NotificationBus) -> None:
        super().__init__(remote, bus)
        self.user_id: str | None = None

    def sort_key(self, row: Board) -> Any:
        return row.created_at or EPOCH

    def in_scope(self, row: Board) -> bool:
        return self.user_id is None or row.user_id is None or row.user_id == self.user_id

    async def _fetch_filters(self) -> dict[str, Any] | None:
        self.user_id = await self.remote.current_user()
        if self.user_id is None:
            return None
        return {"eq": {"user_id": self.user_id}}

    async def create(self, title: str, description: str | None = None, color: str | None = None) -> Result[Board]:
        try:
            user_id = await self.remote.current_user()
        except RemoteError as exc:
            return self._fail("create", exc)
        if user_id is None:
            return self._fail("create", NOT_AUTHENTICATED)
        self.user_id = user_id
        try:
            raw = await self.remote.insert(
                BOARDS,
                {"title": title, "description": description or None, "color": color or None, "user_id": user_id},
            )
        except RemoteError as exc:
            return self._fail("create", exc)
        board = Board.from_row(raw)
        self._put(board)
        return Result(data=board)

    async def reorder(self, batch: Sequence[Position]) -> Result[list[Board]]:
        raise TypeError("boards are ordered by creation time")


class ListStore(EntityStore[BoardList]):
    """Lists of one board."""

    table = LISTS
    row_type = BoardList
    label = "list"
    plural = "lists"
    scope_column = "board_id"
    scope_label = "board"

    async def create(self, title: str) -> Result[BoardList]:
        return await self._create({"title": title})


class CardStore(EntityStore[Card]):
    """Cards of one list, or of several lists when given a sequence of ids."""

    table = CARDS
    row_type = Card
    label = "card"
    plural = "cards"
    scope_column = "list_id"
    scope_label = "list"

    async def create(
        self,
        title: str,
        description: str | None = None,
        start_date: datetime | None = None,
        due_date: datetime | None = None,
        list_id: str | None = None,
    ) -> Result[Card]:
        return await self._create(
            {
                "title": title,
                "description": description or None,
                "start_date": format_timestamp(start_date),
                "due_date": format_timestamp(due_date),
                "completed": False,
            },
            scope_id=list_id,
        )

    async def move_to_list(self, card_id: str, list_id: str, order_index: int | None = None) -> Result[Card]:
        """Move a card to another list. It leaves this store unless that list is in scope.

        Without an order_index the card goes after the last card the remote
        holds for that list.
        """
        card = self.items[card_id]
        if order_index is None:
            try:
                order_index = await self._next_order_index(list_id)
            except RemoteError as exc:
                return self._fail("move", exc)
        result = await self.update(card_id, CardPatch(list_id=list_id, order_index=order_index))
        if result.ok and card is not None and card.list_id != list_id:
            await self._compact(card)
        return result

    # -- assignments --

    async def assignments(self, card_id: str) -> Result[list[CardAssignment]]:
        try:
            rows = await self.remote.select(CARD_ASSIGNMENTS, eq={"card_id": card_id})
        except RemoteError as exc:
            return self._fail("fetch assignments for", exc)
        return Result(data=[CardAssignment.from_row(row) for row in rows])

    async def assign(self, card_id: str, user_id: str) -> Result[CardAssignment]:
        try:
            raw = await self.remote.insert(CARD_ASSIGNMENTS, {"card_id": card_id, "user_id": user_id})
        except RemoteError as exc:
            return self._fail("assign user to", exc)
        return Result(data=CardAssignment.from_row(raw))

    async def unassign(self, card_id: str, user_id: str) -> Result[None]:
        try:
            await self.remote.delete(CARD_ASSIGNMENTS, {"card_id": card_id, "user_id": user_id})
        except RemoteError as exc:
            return self._fail("unassign user from", exc)
        return Result()
