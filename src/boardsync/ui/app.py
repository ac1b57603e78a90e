"""Main Textual application for boardsync."""

from __future__ import annotations

import logging
from typing import Any

from textual.app import App

from boardsync.context import AppContext
from boardsync.notify import Notification, Severity
from boardsync.remote import RemoteError, RemoteStore
from boardsync.supabase_store import SupabaseStore
from boardsync.ui.board import BoardScreen
from boardsync.ui.boards import BoardsScreen
from boardsync.ui.prompt import LoginScreen

logger = logging.getLogger(__name__)

TOAST_SEVERITY = {
    Severity.ERROR: "error",
    Severity.SUCCESS: "information",
    Severity.INFO: "information",
}


class BoardsyncApp(App):
    """Live-synced kanban boards in the terminal."""

    CSS = """
    Tooltip {
        padding: 0 1;
        margin: 0;
    }
    #board-title {
        text-style: bold;
        padding: 0 1;
    }
    """

    TITLE = "boardsync"
    BINDINGS = [("ctrl+q", "quit", "Quit"), ("ctrl+o", "sign_out", "Sign out")]

    def __init__(self, config: dict[str, Any], board_id: str | None = None, remote: RemoteStore | None = None):
        super().__init__()
        self.config = config
        self.board_id = board_id
        self.remote = remote
        self.context: AppContext | None = None
        self._seen: set[str] = set()
        self._unsubscribe = None

    async def on_mount(self) -> None:
        if self.remote is None:
            try:
                self.remote = await SupabaseStore.connect(self.config["supabase_url"], self.config["supabase_key"])
            except RemoteError as exc:
                logger.error("connect failed: %s", exc)
                self.exit(message=f"Could not connect: {exc}")
                return
        self.context = AppContext.from_config(self.remote, self.config)
        self._unsubscribe = self.context.bus.subscribe(self._on_notifications)

        try:
            user_id = await self.remote.current_user()
        except RemoteError as exc:
            self.notify(str(exc), severity="error")
            user_id = None
        if user_id is None:
            self.push_screen(LoginScreen(), self._on_login)
        else:
            await self._show_boards()

    def _on_notifications(self, notifications: tuple[Notification, ...]) -> None:
        """Mirror new bus messages as toasts. Dismissal is left to the bus."""
        current = {n.id for n in notifications}
        for notification in notifications:
            if notification.id not in self._seen:
                self.notify(
                    notification.message,
                    severity=TOAST_SEVERITY[notification.severity],
                    timeout=self.context.bus.timeout or 5.0,
                )
        self._seen = current

    async def _on_login(self, result: tuple[str, str, str] | None) -> None:
        if result is None:
            self.exit()
            return
        action, email, password = result
        try:
            if action == "sign_up":
                await self.remote.sign_up(email, password)
                self.context.bus.success("Account created")
            else:
                await self.remote.sign_in(email, password)
        except RemoteError as exc:
            logger.warning("%s failed for %s: %s", action, email, exc)
            self.context.bus.error(str(exc))
            self.push_screen(LoginScreen(), self._on_login)
            return
        await self._show_boards()

    async def _show_boards(self) -> None:
        await self.push_screen(BoardsScreen(self.context))
        if self.board_id is None:
            return
        board_id, self.board_id = self.board_id, None
        boards = self.context.boards()
        result = await boards.fetch()
        board = boards.get(board_id) if result.ok else None
        if board is None:
            self.context.bus.error(f"Board {board_id} not found")
        else:
            await self.push_screen(BoardScreen(self.context, board))

    async def action_sign_out(self) -> None:
        try:
            await self.remote.sign_out()
        except RemoteError as exc:
            self.context.bus.error(str(exc))
            return
        while len(self.screen_stack) > 1:
            self.pop_screen()
        self.push_screen(LoginScreen(), self._on_login)

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        if self.context is not None:
            self.context.bus.clear()
