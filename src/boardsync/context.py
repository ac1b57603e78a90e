"""Process-wide application context: the remote store and the notification bus."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from boardsync.notify import NotificationBus
from boardsync.remote import RemoteStore
from boardsync.store import BoardStore, CardStore, ListStore
from boardsync.views import BoardCards


@dataclass
class AppContext:
    """Owns the collaborators every store needs and hands out stores."""

    remote: RemoteStore
    bus: NotificationBus = field(default_factory=NotificationBus)

    @classmethod
    def from_config(cls, remote: RemoteStore, config: dict[str, Any]) -> AppContext:
        return cls(
            remote=remote,
            bus=NotificationBus(timeout=config.get("notification_timeout")),
        )

    def boards(self) -> BoardStore:
        return BoardStore(self.remote, self.bus)

    def lists(self, board_id: str | None) -> ListStore:
        return ListStore(self.remote, self.bus, board_id)

    def cards(self, list_id: str | None) -> CardStore:
        return CardStore(self.remote, self.bus, list_id)

    def board_cards(self, list_ids: Sequence[str]) -> BoardCards:
        return BoardCards(self.remote, self.bus, list_ids)
