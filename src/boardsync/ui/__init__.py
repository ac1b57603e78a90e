"""Textual UI for boardsync."""

from boardsync.ui.app import BoardsyncApp
from boardsync.ui.widgets import RowList, card_label, next_color

__all__ = [
    "BoardsyncApp",
    "RowList",
    "card_label",
    "next_color",
]
