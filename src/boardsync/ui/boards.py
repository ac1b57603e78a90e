"""Board picker: the signed-in user's boards, newest first."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.widgets import Footer, OptionList, Static

from boardsync.context import AppContext
from boardsync.model.rows import Board, BoardPatch
from boardsync.store import BoardStore
from boardsync.ui.board import BoardScreen
from boardsync.ui.forms import BoardFormScreen
from boardsync.ui.watcher import NodeWatcherMixin
from boardsync.ui.widgets import RowList, short_date


def board_label(board: Board) -> Text:
    text = Text()
    if board.color:
        text.append("■ ", style=board.color)
    text.append(board.title, style="bold")
    if board.description:
        text.append(f"  {board.description}", style="dim")
    if board.created_at:
        text.append(f"  {short_date(board.created_at)}", style="italic dim")
    return text


class BoardsScreen(NodeWatcherMixin, Screen):
    """Lists boards and opens the selected one."""

    CSS = """
    #heading {
        text-style: bold;
        padding: 0 1;
    }
    #status {
        color: $text-muted;
        padding: 0 1;
    }
    """

    BINDINGS = [
        ("n", "new_board", "New board"),
        ("e", "edit_board", "Edit"),
        ("delete", "delete_board", "Delete"),
        Binding("ctrl+r", "refresh", "Refresh", show=False),
    ]

    def __init__(self, context: AppContext):
        self._init_watcher()
        super().__init__()
        self.context = context
        self.boards: BoardStore = self.own_store(context.boards())

    def compose(self) -> ComposeResult:
        yield Static("Boards", id="heading")
        yield Static("", id="status")
        yield RowList(id="boards")
        yield Footer()

    def on_mount(self) -> None:
        self.node_watch(self.boards.items, "*", self._on_changed)
        self.node_watch(self.boards.state, "*", self._on_changed)
        self.run_worker(self.boards.open(), exclusive=False)
        self.query_one("#boards", RowList).focus()

    def _on_changed(self, node, key, old, new) -> None:
        self.call_later(self._refresh)

    def _refresh(self) -> None:
        self.query_one("#boards", RowList).show(self.boards.rows, board_label)
        state = self.boards.state
        if state.loading:
            status = "Loading boards…"
        elif state.error:
            status = state.error
        elif not self.boards.items:
            status = "No boards yet. Press n to create one."
        else:
            status = f"{len(self.boards.items)} boards"
        self.query_one("#status", Static).update(status)

    @property
    def selected(self) -> Board | None:
        board_id = self.query_one("#boards", RowList).highlighted_id
        return self.boards.get(board_id) if board_id else None

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        board = self.boards.get(event.option.id)
        if board is not None:
            self.app.push_screen(BoardScreen(self.context, board))

    def action_new_board(self) -> None:
        self.app.push_screen(BoardFormScreen(), self._on_new_board)

    async def _on_new_board(self, patch: BoardPatch | None) -> None:
        if patch is None:
            return
        result = await self.boards.create(patch.title, patch.description, patch.color)
        if result.ok:
            self.context.bus.success(f"Created board {result.data.title}")

    def action_edit_board(self) -> None:
        board = self.selected
        if board is None:
            return

        async def save(patch: BoardPatch | None) -> None:
            if patch:
                await self.boards.update(board.id, patch)

        self.app.push_screen(BoardFormScreen(board), save)

    async def action_delete_board(self) -> None:
        board = self.selected
        if board is not None:
            await self.boards.delete(board.id)

    async def action_refresh(self) -> None:
        await self.boards.fetch()
