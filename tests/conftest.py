"""Shared fixtures: an in-memory remote store with failure injection."""

import copy
import itertools
from datetime import datetime, timedelta, timezone

import pytest

from boardsync.context import AppContext
from boardsync.notify import NotificationBus
from boardsync.remote import BOARDS, CARD_ASSIGNMENTS, CARDS, LISTS, ChangeEvent, EventType, RemoteError

BASE_TIME = datetime(2025, 1, 1, tzinfo=timezone.utc)


class FakeSubscription:
    def __init__(self, remote, table, callback, column, value):
        self.remote = remote
        self.table = table
        self.callback = callback
        self.column = column
        self.value = value
        self.closed = False

    def matches(self, table, row):
        if table != self.table:
            return False
        return self.column is None or str(row.get(self.column)) == str(self.value)

    async def close(self):
        self.closed = True
        if self in self.remote.subscriptions:
            self.remote.subscriptions.remove(self)


class FakeRemote:
    """RemoteStore over dicts of rows, recording calls.

    ``fail_on(op, table, when)`` makes matching calls raise RemoteError
    until ``failures`` is cleared.
    """

    def __init__(self, user_id="user-1"):
        self.user_id = user_id
        self.tables = {BOARDS: {}, LISTS: {}, CARDS: {}, CARD_ASSIGNMENTS: {}}
        self.calls = []
        self.failures = []
        self.subscriptions = []
        self._ids = itertools.count(1)

    # -- test helpers --

    def _stamp(self):
        return (BASE_TIME + timedelta(seconds=next(self._ids))).isoformat()

    def seed(self, table, **row):
        row.setdefault("id", f"{table}-{next(self._ids)}")
        row.setdefault("created_at", self._stamp())
        self.tables[table][row["id"]] = row
        return copy.deepcopy(row)

    def fail_on(self, op, table=None, when=None, message="boom"):
        self.failures.append((op, table, when, message))

    def _check(self, op, table, *args):
        self.calls.append((op, table, *args))
        for fail_op, fail_table, when, message in self.failures:
            if fail_op != op or (fail_table is not None and fail_table != table):
                continue
            if when is None or when(*args):
                raise RemoteError(message)

    def emit(self, table, kind, new=None, old=None):
        """Deliver a change event to every matching subscription."""
        event = ChangeEvent(EventType(kind), dict(new or {}), dict(old or {}))
        row = event.old if event.type is EventType.DELETE else event.new
        for subscription in list(self.subscriptions):
            if subscription.matches(table, row):
                subscription.callback(event)

    def order_of(self, table, **eq):
        rows = [r for r in self.tables[table].values() if all(r.get(k) == v for k, v in eq.items())]
        return {r["id"]: r["order_index"] for r in rows}

    # -- RemoteStore --

    async def current_user(self):
        self._check("current_user", None)
        return self.user_id

    async def sign_in(self, email, password):
        self._check("sign_in", None, email)
        self.user_id = f"user-{email}"
        return self.user_id

    async def sign_up(self, email, password):
        self._check("sign_up", None, email)
        self.user_id = f"user-{email}"
        return self.user_id

    async def sign_out(self):
        self._check("sign_out", None)
        self.user_id = None

    async def select(self, table, *, eq=None, in_=None, order=None, descending=False, limit=None, columns="*"):
        self._check("select", table, eq, in_)
        rows = list(self.tables[table].values())
        for column, value in (eq or {}).items():
            rows = [r for r in rows if r.get(column) == value]
        if in_ is not None:
            column, values = in_
            rows = [r for r in rows if r.get(column) in values]
        if order is not None:
            rows.sort(key=lambda r: (r.get(order) is None, r.get(order)), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        return copy.deepcopy(rows)

    async def insert(self, table, row):
        self._check("insert", table, row)
        return self.seed(table, **copy.deepcopy(row))

    async def update(self, table, fields, match):
        self._check("update", table, fields, match)
        updated = None
        for row in self.tables[table].values():
            if all(row.get(k) == v for k, v in match.items()):
                row.update(copy.deepcopy(fields))
                row["updated_at"] = self._stamp()
                updated = updated or copy.deepcopy(row)
        return updated

    async def delete(self, table, match):
        self._check("delete", table, match)
        for row_id, row in list(self.tables[table].items()):
            if all(row.get(k) == v for k, v in match.items()):
                del self.tables[table][row_id]

    async def subscribe(self, table, callback, column=None, value=None):
        self._check("subscribe", table, column, value)
        subscription = FakeSubscription(self, table, callback, column, value)
        self.subscriptions.append(subscription)
        return subscription


@pytest.fixture
def remote():
    return FakeRemote()


@pytest.fixture
def bus():
    return NotificationBus(timeout=None)


@pytest.fixture
def context(remote, bus):
    return AppContext(remote=remote, bus=bus)


@pytest.fixture
def board(remote):
    return remote.seed(BOARDS, id="b1", title="Work", user_id="user-1")


@pytest.fixture
def abcd(remote, board):
    """List l1 holding cards A, B, C, D at order_index 0..3."""
    remote.seed(LISTS, id="l1", board_id="b1", title="Todo", order_index=0)
    for index, card_id in enumerate("ABCD"):
        remote.seed(CARDS, id=card_id, list_id="l1", title=f"Card {card_id}", order_index=index, completed=False)
    return remote
