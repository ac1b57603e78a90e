"""Tests for the application context."""

from boardsync.context import AppContext
from boardsync.views import BoardCards


def test_from_config_sets_notification_timeout(remote):
    context = AppContext.from_config(remote, {"notification_timeout": 2.0, "log_level": "INFO"})
    assert context.bus.timeout == 2.0
    assert not hasattr(context, "config")


def test_stores_share_remote_and_bus(context):
    cards = context.cards("l1")
    assert cards.remote is context.remote
    assert cards.bus is context.bus
    assert cards.scope == ("l1",)


def test_board_cards_scoped_to_lists(context):
    store = context.board_cards(["l1", "l2"])
    assert isinstance(store, BoardCards)
    assert store.scope == ("l1", "l2")
