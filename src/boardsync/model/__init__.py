"""Reactive collections and row types."""

from boardsync.model.node import ListNode, Node
from boardsync.model.rows import (
    UNSET,
    Board,
    BoardList,
    BoardPatch,
    Card,
    CardAssignment,
    CardPatch,
    ListPatch,
    Patch,
    parse_timestamp,
)

__all__ = [
    "UNSET",
    "Board",
    "BoardList",
    "BoardPatch",
    "Card",
    "CardAssignment",
    "CardPatch",
    "ListNode",
    "ListPatch",
    "Node",
    "Patch",
    "parse_timestamp",
]
