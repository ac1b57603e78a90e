"""Tests for the notification bus."""

import asyncio

import pytest

from boardsync.notify import NotificationBus, Severity


def test_subscribe_receives_current_snapshot():
    bus = NotificationBus(timeout=None)
    bus.info("hello")
    seen = []
    bus.subscribe(seen.append)
    assert [n.message for n in seen[0]] == ["hello"]


def test_show_publishes_to_listeners():
    bus = NotificationBus(timeout=None)
    seen = []
    bus.subscribe(seen.append)
    bus.error("boom")
    assert len(seen) == 2
    assert seen[-1][0].message == "boom"
    assert seen[-1][0].severity is Severity.ERROR


def test_shorthands_set_severity():
    bus = NotificationBus(timeout=None)
    assert bus.success("a").severity is Severity.SUCCESS
    assert bus.error("b").severity is Severity.ERROR
    assert bus.info("c").severity is Severity.INFO
    assert bus.show("d", "error").severity is Severity.ERROR


def test_unsubscribe_stops_delivery():
    bus = NotificationBus(timeout=None)
    seen = []
    unsubscribe = bus.subscribe(seen.append)
    unsubscribe()
    unsubscribe()
    bus.info("ignored")
    assert len(seen) == 1


def test_dismiss():
    bus = NotificationBus(timeout=None)
    first = bus.info("first")
    bus.info("second")
    bus.dismiss(first.id)
    assert [n.message for n in bus.notifications] == ["second"]


def test_dismiss_unknown_id_is_silent():
    bus = NotificationBus(timeout=None)
    seen = []
    bus.subscribe(seen.append)
    bus.dismiss("nope")
    assert len(seen) == 1


def test_clear():
    bus = NotificationBus(timeout=None)
    bus.info("a")
    bus.info("b")
    bus.clear()
    assert bus.notifications == ()


def test_ids_are_unique():
    bus = NotificationBus(timeout=None)
    ids = {bus.info("x").id for _ in range(20)}
    assert len(ids) == 20


def test_no_auto_dismiss_without_loop():
    bus = NotificationBus(timeout=0.01)
    bus.info("stays")
    assert len(bus.notifications) == 1


@pytest.mark.asyncio
async def test_auto_dismiss_after_timeout():
    bus = NotificationBus(timeout=0.01)
    bus.success("saved")
    assert len(bus.notifications) == 1
    await asyncio.sleep(0.05)
    assert bus.notifications == ()


@pytest.mark.asyncio
async def test_manual_dismiss_cancels_timer():
    bus = NotificationBus(timeout=0.01)
    seen = []
    note = bus.info("x")
    bus.subscribe(seen.append)
    bus.dismiss(note.id)
    await asyncio.sleep(0.05)
    assert len(seen) == 2
