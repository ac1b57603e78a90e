"""Status view: every card of a board grouped into derived lifecycle columns."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Footer, Static

from boardsync.context import AppContext
from boardsync.model.rows import Board
from boardsync.reorder import DragEnd
from boardsync.status import STATUS_TITLES, TaskStatus, utcnow
from boardsync.store import ListStore
from boardsync.ui.watcher import NodeWatcherMixin
from boardsync.ui.widgets import RowList, card_label

# Status is derived from dates, so it changes without any write
REFRESH_SECONDS = 60


class StatusColumn(Vertical):
    DEFAULT_CSS = """
    StatusColumn {
        width: 1fr;
        height: 100%;
        padding: 0 1;
        border-right: tall $surface-lighten-1;
    }
    StatusColumn > .status-title {
        width: 100%;
        text-align: center;
        text-style: bold;
    }
    StatusColumn:focus-within > .status-title {
        background: $primary-darken-2;
    }
    """

    def __init__(self, status: TaskStatus):
        super().__init__(id=f"status-{status.value}")
        self.status = status

    def compose(self) -> ComposeResult:
        yield Static(STATUS_TITLES[self.status], classes="status-title")
        yield RowList(classes="cards")

    @property
    def cards(self) -> RowList:
        return self.query_one(".cards", RowList)


class StatusScreen(NodeWatcherMixin, Screen):
    """Not started / in progress / completed columns over one board.

    Keyboard moves stand in for drag and drop: shift+left/right drops the
    selected card on the neighbouring column, shift+up/down drops it on
    the neighbouring card in its column.
    """

    BINDINGS = [
        Binding("escape", "close", "Back"),
        Binding("shift+left", "drop_column(-1)", "Status left"),
        Binding("shift+right", "drop_column(1)", "Status right"),
        Binding("shift+up", "drop_card(-1)", "Up", show=False),
        Binding("shift+down", "drop_card(1)", "Down", show=False),
    ]

    def __init__(self, context: AppContext, board: Board, lists: ListStore):
        self._init_watcher()
        super().__init__()
        self.context = context
        self.board = board
        self.lists = lists
        self.cards = self.own_store(context.board_cards(lists.items.keys()))

    def compose(self) -> ComposeResult:
        yield Static(f"{self.board.title}: by status", id="board-title")
        with Horizontal(id="columns"):
            for status in TaskStatus:
                yield StatusColumn(status)
        yield Footer()

    def on_mount(self) -> None:
        self.node_watch(self.cards.items, "*", self._on_changed)
        self.node_watch(self.lists.items, "*", self._on_lists_changed)
        self.run_worker(self.cards.open(), exclusive=False)
        self.set_interval(REFRESH_SECONDS, self._refresh)

    def _on_changed(self, node, key, old, new) -> None:
        self.call_later(self._refresh)

    def _on_lists_changed(self, node, key, old, new) -> None:
        self.run_worker(self.cards.follow(self.lists.items.keys()), exclusive=False)

    def _refresh(self) -> None:
        now = utcnow()
        groups = self.cards.status_groups(now)
        for column in self.query(StatusColumn):
            column.cards.show(groups[column.status], lambda c: card_label(c, now))

    def _focused_column(self) -> StatusColumn | None:
        widget = self.focused
        while widget is not None:
            if isinstance(widget, StatusColumn):
                return widget
            widget = widget.parent
        return None

    async def action_drop_column(self, direction: int) -> None:
        column = self._focused_column()
        if column is None or not column.cards.highlighted_id:
            return
        statuses = list(TaskStatus)
        index = statuses.index(column.status) + direction
        if 0 <= index < len(statuses):
            drag = DragEnd(column.cards.highlighted_id, statuses[index].value)
            await self.cards.handle_status_drag(drag, utcnow())

    async def action_drop_card(self, direction: int) -> None:
        column = self._focused_column()
        if column is None or not column.cards.highlighted_id:
            return
        active = column.cards.highlighted_id
        ids = column.cards.row_ids()
        index = ids.index(active) + direction
        if 0 <= index < len(ids):
            await self.cards.handle_status_drag(DragEnd(active, ids[index]), utcnow())

    def action_close(self) -> None:
        self.app.pop_screen()
