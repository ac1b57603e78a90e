"""Pilot tests for the application shell and screens."""

import pytest
from textual.widgets import Input

from boardsync.remote import BOARDS, CARDS, LISTS
from boardsync.ui.app import BoardsyncApp
from boardsync.ui.board import BoardScreen, ListColumn
from boardsync.ui.boards import BoardsScreen
from boardsync.ui.forms import CardFormScreen
from boardsync.ui.prompt import LoginScreen
from boardsync.ui.widgets import RowList

CONFIG = {"supabase_url": "", "supabase_key": "", "notification_timeout": None}


async def settle(app, pilot):
    for _ in range(3):
        await pilot.pause()
        await app.workers.wait_for_complete()
    await pilot.pause()


@pytest.mark.asyncio
async def test_signed_in_user_sees_boards(remote, board):
    remote.seed(BOARDS, id="b2", title="Home", user_id="user-1")
    app = BoardsyncApp(CONFIG, remote=remote)
    async with app.run_test() as pilot:
        await settle(app, pilot)
        assert isinstance(app.screen, BoardsScreen)
        assert app.screen.query_one("#boards", RowList).row_ids() == ["b2", "b1"]


@pytest.mark.asyncio
async def test_login_then_boards(remote):
    remote.user_id = None
    app = BoardsyncApp(CONFIG, remote=remote)
    async with app.run_test() as pilot:
        await pilot.pause()
        assert isinstance(app.screen, LoginScreen)
        app.screen.query_one("#email", Input).value = "me@example.com"
        app.screen.query_one("#password", Input).value = "secret"
        await pilot.click("#sign_in")
        await settle(app, pilot)
        assert isinstance(app.screen, BoardsScreen)
        assert remote.user_id == "user-me@example.com"


@pytest.mark.asyncio
async def test_failed_login_asks_again(remote):
    remote.user_id = None
    remote.fail_on("sign_in", message="Invalid login credentials")
    app = BoardsyncApp(CONFIG, remote=remote)
    async with app.run_test() as pilot:
        await pilot.pause()
        app.screen.query_one("#email", Input).value = "me@example.com"
        app.screen.query_one("#password", Input).value = "wrong"
        await pilot.click("#sign_in")
        await settle(app, pilot)
        assert isinstance(app.screen, LoginScreen)
        assert [n.message for n in app.context.bus.notifications] == ["Invalid login credentials"]


@pytest.mark.asyncio
async def test_open_board_directly(abcd):
    app = BoardsyncApp(CONFIG, board_id="b1", remote=abcd)
    async with app.run_test(size=(120, 40)) as pilot:
        await settle(app, pilot)
        assert isinstance(app.screen, BoardScreen)
        columns = list(app.screen.query(ListColumn))
        assert [c.board_list.id for c in columns] == ["l1"]
        assert columns[0].query_one(".cards", RowList).row_ids() == ["A", "B", "C", "D"]


@pytest.mark.asyncio
async def test_unknown_board_reports_error(remote, board):
    app = BoardsyncApp(CONFIG, board_id="missing", remote=remote)
    async with app.run_test() as pilot:
        await settle(app, pilot)
        assert isinstance(app.screen, BoardsScreen)
        assert app.context.bus.notifications[-1].message == "Board missing not found"


@pytest.mark.asyncio
async def test_escape_returns_to_boards(abcd):
    app = BoardsyncApp(CONFIG, board_id="b1", remote=abcd)
    async with app.run_test(size=(120, 40)) as pilot:
        await settle(app, pilot)
        await pilot.press("escape")
        await pilot.pause()
        assert isinstance(app.screen, BoardsScreen)


def focus_cards(app, highlighted=0):
    cards = app.screen.query(ListColumn).first().query_one(".cards", RowList)
    cards.focus()
    cards.highlighted = highlighted
    return cards


@pytest.mark.asyncio
async def test_edit_card_saves_due_date(abcd):
    app = BoardsyncApp(CONFIG, board_id="b1", remote=abcd)
    async with app.run_test(size=(120, 50)) as pilot:
        await settle(app, pilot)
        focus_cards(app, highlighted=1)
        await pilot.pause()
        await pilot.press("e")
        await pilot.pause()
        assert isinstance(app.screen, CardFormScreen)
        assert app.screen.card.id == "B"
        app.screen.query_one("#due", Input).value = "2030-01-31"
        await pilot.click("#save")
        await settle(app, pilot)
        assert isinstance(app.screen, BoardScreen)
        assert abcd.tables[CARDS]["B"]["due_date"].startswith("2030-01-3")
        assert app.context.bus.notifications[-1].message == "Card updated"


@pytest.mark.asyncio
async def test_rename_list_binding(abcd):
    app = BoardsyncApp(CONFIG, board_id="b1", remote=abcd)
    async with app.run_test(size=(120, 40)) as pilot:
        await settle(app, pilot)
        focus_cards(app)
        await pilot.pause()
        await pilot.press("r")
        await pilot.pause()
        prompt = app.screen.query_one("#prompt-input", Input)
        assert prompt.value == "Todo"
        prompt.value = "Backlog"
        await pilot.press("enter")
        await settle(app, pilot)
        assert abcd.tables[LISTS]["l1"]["title"] == "Backlog"


@pytest.mark.asyncio
async def test_new_board_form(remote, board):
    app = BoardsyncApp(CONFIG, remote=remote)
    async with app.run_test(size=(120, 40)) as pilot:
        await settle(app, pilot)
        await pilot.press("n")
        await pilot.pause()
        app.screen.query_one("#title", Input).value = "Garden"
        app.screen.query_one("#description", Input).value = "Beds and seeds"
        await pilot.click("#color")
        await pilot.click("#save")
        await settle(app, pilot)
        created = [r for r in remote.tables[BOARDS].values() if r["title"] == "Garden"]
        assert len(created) == 1
        assert (created[0]["description"], created[0]["color"]) == ("Beds and seeds", "blue")
