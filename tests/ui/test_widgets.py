"""Tests for shared widgets and labels."""

from datetime import datetime, timezone

import pytest
from textual.app import App, ComposeResult

from boardsync.model.rows import Card
from boardsync.ui.widgets import COLOR_LABELS, RowList, card_label, next_color

NOW = datetime(2025, 6, 15, tzinfo=timezone.utc)


def test_next_color_cycles():
    colors = [None]
    for _ in range(len(COLOR_LABELS)):
        colors.append(next_color(colors[-1]))
    assert colors[1] == "red"
    assert colors[-1] is None


def test_next_color_unknown_restarts():
    assert next_color("chartreuse") == "red"


def test_card_label_shows_title_and_due():
    card = Card(id="c1", list_id="l1", title="Ship it", due_date=datetime(2025, 6, 20, 12, tzinfo=timezone.utc))
    text = card_label(card, NOW)
    assert "Ship it" in text.plain
    assert "Jun" in text.plain


def test_card_label_marks_done():
    card = Card(id="c1", list_id="l1", title="Done", completed=True)
    assert card_label(card).plain.startswith("✓")


class RowApp(App):
    def compose(self) -> ComposeResult:
        yield RowList()


def rows(*ids):
    return [Card(id=i, list_id="l1", title=f"Card {i}") for i in ids]


@pytest.mark.asyncio
async def test_row_list_shows_rows():
    app = RowApp()
    async with app.run_test():
        row_list = app.query_one(RowList)
        row_list.show(rows("a", "b"), lambda c: c.title)
        assert row_list.row_ids() == ["a", "b"]
        assert row_list.highlighted_id == "a"


@pytest.mark.asyncio
async def test_row_list_keeps_highlight_by_id():
    app = RowApp()
    async with app.run_test():
        row_list = app.query_one(RowList)
        row_list.show(rows("a", "b", "c"), lambda c: c.title)
        row_list.highlighted = 1
        row_list.show(rows("c", "a", "b"), lambda c: c.title)
        assert row_list.highlighted_id == "b"


@pytest.mark.asyncio
async def test_row_list_empty():
    app = RowApp()
    async with app.run_test():
        row_list = app.query_one(RowList)
        row_list.show([], lambda c: c.title)
        assert row_list.highlighted_id is None
        assert row_list.row_ids() == []
