"""Board screen: one column per list, each with its own live card store."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Footer, OptionList, Static

from boardsync.context import AppContext
from boardsync.model.rows import Board, BoardList, CardPatch, ListPatch
from boardsync.reorder import plan_move
from boardsync.status import utcnow
from boardsync.store import CardStore, ListStore
from boardsync.ui.forms import CardFormScreen
from boardsync.ui.prompt import PromptScreen
from boardsync.ui.watcher import NodeWatcherMixin
from boardsync.ui.widgets import RowList, card_label


class ListColumn(NodeWatcherMixin, Vertical):
    """A single list on the board, backed by a CardStore scoped to it."""

    DEFAULT_CSS = """
    ListColumn {
        width: 1fr;
        height: 100%;
        min-width: 25;
        max-width: 32;
        padding: 0 1;
        border-right: tall $surface-lighten-1;
    }
    ListColumn > .list-title {
        width: 100%;
        text-align: center;
        text-style: bold;
    }
    ListColumn > .list-status {
        color: $text-muted;
    }
    ListColumn:focus-within > .list-title {
        background: $primary-darken-2;
    }
    """

    def __init__(self, board_list: BoardList, cards: CardStore):
        self._init_watcher()
        super().__init__(id=f"list-{board_list.id}")
        self.board_list = board_list
        self.cards = self.own_store(cards)

    def compose(self) -> ComposeResult:
        yield Static(self.board_list.title, classes="list-title")
        yield Static("", classes="list-status")
        yield RowList(classes="cards")

    def on_mount(self) -> None:
        self.node_watch(self.cards.items, "*", self._on_cards_changed)
        self.node_watch(self.cards.state, "*", self._on_cards_changed)
        self.run_worker(self.cards.open(), exclusive=False)
        self._refresh()

    def set_list(self, board_list: BoardList) -> None:
        """Show a newer snapshot of the list row."""
        self.board_list = board_list
        self.query_one(".list-title", Static).update(board_list.title)

    def _on_cards_changed(self, node, key, old, new) -> None:
        self.call_later(self._refresh)

    def _refresh(self) -> None:
        now = utcnow()
        self.query_one(".cards", RowList).show(self.cards.rows, lambda c: card_label(c, now))
        state = self.cards.state
        status = "loading…" if state.loading else (state.error or f"{len(self.cards.items)} cards")
        self.query_one(".list-status", Static).update(status)

    @property
    def selected_card(self) -> str | None:
        return self.query_one(".cards", RowList).highlighted_id


class BoardScreen(NodeWatcherMixin, Screen):
    """Main board screen showing all lists."""

    BINDINGS = [
        Binding("escape", "close", "Boards"),
        ("n", "new_list", "New list"),
        ("a", "new_card", "New card"),
        ("e", "edit_card", "Edit card"),
        ("r", "rename_list", "Rename list"),
        ("x", "toggle_done", "Done"),
        ("delete", "delete_card", "Delete card"),
        Binding("ctrl+delete", "delete_list", "Delete list", show=False),
        Binding("shift+up", "move_card(-1)", "Card up", show=False),
        Binding("shift+down", "move_card(1)", "Card down", show=False),
        Binding("shift+left", "move_list(-1)", "List left", show=False),
        Binding("shift+right", "move_list(1)", "List right", show=False),
        Binding("ctrl+left", "send_card(-1)", "Card to prev list", show=False),
        Binding("ctrl+right", "send_card(1)", "Card to next list", show=False),
        ("s", "status_view", "Status"),
        ("t", "table_view", "Table"),
    ]

    def __init__(self, context: AppContext, board: Board):
        self._init_watcher()
        super().__init__()
        self.context = context
        self.board = board
        self.lists: ListStore = self.own_store(context.lists(board.id))

    def compose(self) -> ComposeResult:
        yield Static(self.board.title, id="board-title")
        yield Horizontal(id="lists")
        yield Footer()

    def on_mount(self) -> None:
        self.node_watch(self.lists.items, "*", self._on_lists_changed)
        self.run_worker(self.lists.open(), exclusive=False)

    def _on_lists_changed(self, node, key, old, new) -> None:
        self.call_later(self._sync_columns)

    def _columns(self) -> dict[str, ListColumn]:
        return {col.board_list.id: col for col in self.query(ListColumn)}

    async def _sync_columns(self) -> None:
        """Mount, update, remove and reorder column widgets to match the list store."""
        container = self.query_one("#lists", Horizontal)
        columns = self._columns()
        wanted = self.lists.rows
        for list_id, column in columns.items():
            if list_id not in self.lists.items:
                await column.remove()
        for board_list in wanted:
            column = columns.get(board_list.id)
            if column is None:
                await container.mount(ListColumn(board_list, self.context.cards(board_list.id)))
            elif column.board_list != board_list:
                column.set_list(board_list)
        previous = None
        for board_list in wanted:
            column = self._columns()[board_list.id]
            if previous is None:
                container.move_child(column, before=0)
            else:
                container.move_child(column, after=previous)
            previous = column

    def _focused_column(self) -> ListColumn | None:
        widget = self.focused
        while widget is not None:
            if isinstance(widget, ListColumn):
                return widget
            widget = widget.parent
        return None

    # -- lists --

    def action_new_list(self) -> None:
        self.app.push_screen(PromptScreen("New list title"), self._on_list_title)

    async def _on_list_title(self, title: str | None) -> None:
        if title:
            await self.lists.create(title)

    async def action_move_list(self, direction: int) -> None:
        column = self._focused_column()
        if column is None:
            return
        rows = self.lists.rows
        source = self.lists.items.index(column.board_list.id)
        target = source + direction
        if 0 <= target < len(rows):
            await self.lists.reorder(plan_move(rows, source, target))

    async def action_delete_list(self) -> None:
        column = self._focused_column()
        if column is not None:
            await self.lists.delete(column.board_list.id)

    async def rename_list(self, list_id: str, title: str) -> None:
        await self.lists.update(list_id, ListPatch(title=title))

    def action_rename_list(self) -> None:
        column = self._focused_column()
        if column is None:
            return
        board_list = column.board_list

        async def rename(title: str | None) -> None:
            if title and title != board_list.title:
                await self.rename_list(board_list.id, title)

        self.app.push_screen(PromptScreen("Rename list", value=board_list.title), rename)

    # -- cards --

    def action_new_card(self) -> None:
        column = self._focused_column()
        if column is None:
            return

        async def create(patch: CardPatch | None) -> None:
            if patch is not None:
                await column.cards.create(patch.title, patch.description, patch.start_date, patch.due_date)

        self.app.push_screen(CardFormScreen(heading=f"New card in {column.board_list.title}"), create)

    def action_edit_card(self) -> None:
        column = self._focused_column()
        card = column.cards.get(column.selected_card) if column and column.selected_card else None
        if card is None:
            return

        async def save(patch: CardPatch | None) -> None:
            if not patch:
                return
            result = await column.cards.update(card.id, patch)
            if result.ok:
                self.context.bus.success("Card updated")

        self.app.push_screen(CardFormScreen(card), save)

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        event.stop()
        self.action_edit_card()

    async def action_toggle_done(self) -> None:
        column = self._focused_column()
        card = column.cards.get(column.selected_card) if column and column.selected_card else None
        if card is None:
            return
        done = not card.completed
        await column.cards.update(card.id, CardPatch(completed=done, completed_at=utcnow() if done else None))

    async def action_delete_card(self) -> None:
        column = self._focused_column()
        if column is not None and column.selected_card:
            await column.cards.delete(column.selected_card)

    async def action_move_card(self, direction: int) -> None:
        column = self._focused_column()
        if column is None or not column.selected_card:
            return
        rows = column.cards.rows
        source = column.cards.items.index(column.selected_card)
        target = source + direction
        if 0 <= target < len(rows):
            await column.cards.reorder(plan_move(rows, source, target))

    async def action_send_card(self, direction: int) -> None:
        """Move the selected card to the end of the neighbouring list."""
        column = self._focused_column()
        if column is None or not column.selected_card:
            return
        rows = self.lists.rows
        index = self.lists.items.index(column.board_list.id) + direction
        if not 0 <= index < len(rows):
            return
        await column.cards.move_to_list(column.selected_card, rows[index].id)

    # -- other views --

    def action_status_view(self) -> None:
        from boardsync.ui.status import StatusScreen

        self.app.push_screen(StatusScreen(self.context, self.board, self.lists))

    def action_table_view(self) -> None:
        from boardsync.ui.table import TableScreen

        self.app.push_screen(TableScreen(self.context, self.board, self.lists))

    def action_close(self) -> None:
        self.app.pop_screen()
