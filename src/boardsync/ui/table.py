"""Table view: every card of a board, searchable and sortable."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Input, Static

from boardsync.context import AppContext
from boardsync.model.rows import Board, Card, CardPatch
from boardsync.status import STATUS_TITLES, classify, utcnow
from boardsync.store import ListStore
from boardsync.ui.forms import CardFormScreen
from boardsync.ui.watcher import NodeWatcherMixin
from boardsync.ui.widgets import ICON_DONE, ICON_OPEN, next_color, short_date
from boardsync.views import SortOrder, StatusFilter, TableQuery, filter_rows

COLUMNS = ("", "Title", "List", "Status", "Start", "Due", "Color")


def _cycle(value, enum):
    members = list(enum)
    return members[(members.index(value) + 1) % len(members)]


class TableScreen(NodeWatcherMixin, Screen):
    """Flat table of a board's cards with search, status filter and sort."""

    CSS = """
    #toolbar {
        height: 3;
    }
    #search {
        width: 1fr;
    }
    #query {
        width: auto;
        padding: 1 1 0 1;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Back"),
        ("ctrl+f", "cycle_filter", "Filter"),
        ("ctrl+s", "cycle_sort", "Sort"),
        ("ctrl+x", "toggle_done", "Done"),
        ("ctrl+l", "cycle_color", "Color"),
        Binding("slash", "focus_search", "Search", show=False),
    ]

    def __init__(self, context: AppContext, board: Board, lists: ListStore):
        self._init_watcher()
        super().__init__()
        self.context = context
        self.board = board
        self.lists = lists
        self.cards = self.own_store(context.board_cards(lists.items.keys()))
        self.query_state = TableQuery()

    def compose(self) -> ComposeResult:
        with Horizontal(id="toolbar"):
            yield Input(placeholder="Search title, description or list", id="search")
            yield Static("", id="query")
        yield DataTable(id="cards", cursor_type="row", zebra_stripes=True)
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#cards", DataTable)
        table.add_columns(*COLUMNS)
        self.node_watch(self.cards.items, "*", self._on_changed)
        self.node_watch(self.lists.items, "*", self._on_lists_changed)
        self.run_worker(self.cards.open(), exclusive=False)
        self._refresh()
        table.focus()

    def _on_changed(self, node, key, old, new) -> None:
        self.call_later(self._refresh)

    def _on_lists_changed(self, node, key, old, new) -> None:
        self.run_worker(self.cards.follow(self.lists.items.keys()), exclusive=False)
        self.call_later(self._refresh)

    def _list_titles(self) -> dict[str, str]:
        return {board_list.id: board_list.title for board_list in self.lists.rows}

    def _cells(self, card: Card, list_titles: dict[str, str], now) -> tuple:
        color = Text("●", style=card.color_label) if card.color_label else Text("")
        return (
            ICON_DONE if card.completed else ICON_OPEN,
            card.title,
            list_titles.get(card.list_id, ""),
            STATUS_TITLES[classify(card, now)],
            short_date(card.start_date),
            short_date(card.due_date),
            color,
        )

    def _refresh(self) -> None:
        table = self.query_one("#cards", DataTable)
        selected = self.selected_card
        now = utcnow()
        titles = self._list_titles()
        rows = filter_rows(self.cards.rows, titles, self.query_state)
        table.clear()
        for card in rows:
            table.add_row(*self._cells(card, titles, now), key=card.id)
        ids = [card.id for card in rows]
        if selected in ids:
            table.move_cursor(row=ids.index(selected))
        query = self.query_state
        self.query_one("#query", Static).update(f"{query.status.value} · {query.sort.value} · {len(rows)} cards")

    @property
    def selected_card(self) -> str | None:
        table = self.query_one("#cards", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return row_key.value

    def on_input_changed(self, event: Input.Changed) -> None:
        self.query_state = TableQuery(event.value, self.query_state.status, self.query_state.sort)
        self._refresh()

    def action_cycle_filter(self) -> None:
        query = self.query_state
        self.query_state = TableQuery(query.text, _cycle(query.status, StatusFilter), query.sort)
        self._refresh()

    def action_cycle_sort(self) -> None:
        query = self.query_state
        self.query_state = TableQuery(query.text, query.status, _cycle(query.sort, SortOrder))
        self._refresh()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        card = self.cards.get(event.row_key.value)
        if card is None:
            return

        async def save(patch: CardPatch | None) -> None:
            if patch:
                await self.cards.update(card.id, patch)

        self.app.push_screen(CardFormScreen(card), save)

    async def action_toggle_done(self) -> None:
        card_id = self.selected_card
        if card_id is not None:
            await self.cards.toggle_completed(card_id, utcnow())

    async def action_cycle_color(self) -> None:
        card = self.cards.get(self.selected_card) if self.selected_card else None
        if card is not None:
            await self.cards.set_color(card.id, next_color(card.color_label))

    def action_focus_search(self) -> None:
        self.query_one("#search", Input).focus()

    def action_close(self) -> None:
        self.app.pop_screen()
