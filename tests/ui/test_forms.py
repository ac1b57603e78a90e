"""Tests for the card and board forms."""

from datetime import datetime, timezone

import pytest
from textual.app import App
from textual.widgets import Checkbox, Input, Static, TextArea

from boardsync.model.rows import Board, Card
from boardsync.ui.forms import (
    BOARD_COLORS,
    BoardFormScreen,
    CardFormScreen,
    ColorButton,
    format_date_input,
    parse_date_input,
)


class FormApp(App):
    """Pushes one form and records what it dismisses with."""

    def __init__(self, form):
        super().__init__()
        self.form = form
        self.results = []

    def on_mount(self) -> None:
        self.push_screen(self.form, self.results.append)


# --- date fields ---


def test_blank_date_is_none():
    assert parse_date_input("  ") is None


def test_date_only_is_local_midnight():
    value = parse_date_input("2025-06-01")
    local = value.astimezone()
    assert (local.year, local.month, local.day, local.hour) == (2025, 6, 1, 0)
    assert value.tzinfo is not None


def test_date_with_time():
    local = parse_date_input("2025-06-01 09:30").astimezone()
    assert (local.hour, local.minute) == (9, 30)


def test_bad_date():
    with pytest.raises(ValueError, match="not a date"):
        parse_date_input("next week")


def test_format_date_input():
    assert format_date_input(None) == ""
    assert format_date_input(parse_date_input("2025-06-01 09:30")) == "2025-06-01 09:30"


# --- card form ---


def existing_card(**fields):
    base = {"id": "c1", "list_id": "l1", "title": "Write", "description": "draft"}
    return Card(**{**base, **fields})


@pytest.mark.asyncio
async def test_card_form_returns_only_changed_fields():
    app = FormApp(CardFormScreen(existing_card()))
    async with app.run_test(size=(100, 50)) as pilot:
        await pilot.pause()
        app.screen.query_one("#due", Input).value = "2025-06-20"
        await pilot.click("#save")
        await pilot.pause()
    assert len(app.results) == 1
    assert app.results[0].changes() == {"due_date": parse_date_input("2025-06-20")}


@pytest.mark.asyncio
async def test_card_form_unchanged_is_empty():
    due = datetime(2025, 6, 20, 12, 0, 30, tzinfo=timezone.utc)
    app = FormApp(CardFormScreen(existing_card(due_date=due)))
    async with app.run_test(size=(100, 50)) as pilot:
        await pilot.pause()
        await pilot.click("#save")
        await pilot.pause()
    assert not app.results[0]


@pytest.mark.asyncio
async def test_card_form_completion_and_color():
    app = FormApp(CardFormScreen(existing_card()))
    async with app.run_test(size=(100, 50)) as pilot:
        await pilot.pause()
        app.screen.query_one("#completed", Checkbox).value = True
        await pilot.click("#color")
        await pilot.pause()
        assert app.screen.query_one("#color", ColorButton).color == "red"
        await pilot.click("#save")
        await pilot.pause()
    changes = app.results[0].changes()
    assert changes["completed"] is True
    assert changes["completed_at"] is not None
    assert changes["color_label"] == "red"


@pytest.mark.asyncio
async def test_card_form_rejects_bad_input():
    app = FormApp(CardFormScreen(existing_card()))
    async with app.run_test(size=(100, 50)) as pilot:
        await pilot.pause()
        app.screen.query_one("#start", Input).value = "soon"
        await pilot.click("#save")
        await pilot.pause()
        assert isinstance(app.screen, CardFormScreen)
        assert "Start" in str(app.screen.query_one("#form-error", Static).content)

        app.screen.query_one("#start", Input).value = ""
        app.screen.query_one("#title", Input).value = "  "
        await pilot.click("#save")
        await pilot.pause()
        assert "Title is required" in str(app.screen.query_one("#form-error", Static).content)
    assert app.results == []


@pytest.mark.asyncio
async def test_new_card_form_sets_every_field():
    app = FormApp(CardFormScreen(heading="New card in Todo"))
    async with app.run_test(size=(100, 50)) as pilot:
        await pilot.pause()
        assert not app.screen.query("#color")
        assert not app.screen.query("#completed")
        app.screen.query_one("#title", Input).value = "Plan"
        app.screen.query_one("#description", TextArea).text = "Sketch the week"
        app.screen.query_one("#start", Input).value = "2025-06-01"
        await pilot.click("#save")
        await pilot.pause()
    patch = app.results[0]
    assert patch.title == "Plan"
    assert patch.description == "Sketch the week"
    assert patch.start_date == parse_date_input("2025-06-01")
    assert patch.due_date is None


@pytest.mark.asyncio
async def test_card_form_cancel():
    app = FormApp(CardFormScreen(existing_card()))
    async with app.run_test(size=(100, 50)) as pilot:
        await pilot.pause()
        await pilot.press("escape")
        await pilot.pause()
    assert app.results == [None]


# --- board form ---


@pytest.mark.asyncio
async def test_board_form_create():
    app = FormApp(BoardFormScreen())
    async with app.run_test(size=(100, 40)) as pilot:
        await pilot.pause()
        app.screen.query_one("#title", Input).value = "Home"
        app.screen.query_one("#description", Input).value = "Chores"
        await pilot.click("#color")
        await pilot.click("#save")
        await pilot.pause()
    patch = app.results[0]
    assert (patch.title, patch.description, patch.color) == ("Home", "Chores", BOARD_COLORS[1])


@pytest.mark.asyncio
async def test_board_form_edit_clears_description():
    board = Board(id="b1", title="Work", description="Office", color="green")
    app = FormApp(BoardFormScreen(board))
    async with app.run_test(size=(100, 40)) as pilot:
        await pilot.pause()
        app.screen.query_one("#description", Input).value = ""
        await pilot.click("#save")
        await pilot.pause()
    assert app.results[0].changes() == {"description": None}
