"""Shared widgets: row lists that track a store, and card labels."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Sequence

from rich.text import Text
from textual.widgets import OptionList
from textual.widgets.option_list import Option

from boardsync.model.rows import Card

ICON_DONE = "✓"
ICON_OPEN = "·"

COLOR_LABELS = [None, "red", "orange", "yellow", "green", "blue", "purple"]


def next_color(current: str | None, palette: Sequence[str | None] = COLOR_LABELS) -> str | None:
    """Cycle through a palette that starts with None. Unknown colors restart the cycle."""
    try:
        index = palette.index(current)
    except ValueError:
        return palette[1]
    return palette[(index + 1) % len(palette)]


def short_date(value: datetime | None) -> str:
    return value.astimezone().strftime("%b %d") if value else ""


def card_label(card: Card, now: datetime | None = None) -> Text:
    """One-line card rendering: done mark, color dot, title, due date."""
    text = Text()
    text.append(f"{ICON_DONE if card.completed else ICON_OPEN} ", style="green" if card.completed else "dim")
    if card.color_label:
        text.append("● ", style=card.color_label)
    text.append(card.title, style="strike dim" if card.completed else "")
    if card.due_date:
        overdue = now is not None and not card.completed and card.due_date < now
        text.append(f"  {short_date(card.due_date)}", style="red" if overdue else "italic")
    return text


class RowList(OptionList):
    """OptionList whose options mirror a sequence of rows, keyed by row id."""

    DEFAULT_CSS = """
    RowList {
        height: auto;
        max-height: 100%;
        border: none;
    }
    """

    def show(self, rows: Sequence, render: Callable[[object], Text | str]) -> None:
        """Replace the options, keeping the highlight on the same row id."""
        selected = self.highlighted_id
        self.clear_options()
        self.add_options([Option(render(row), id=str(row.id)) for row in rows])
        ids = [str(row.id) for row in rows]
        if selected in ids:
            self.highlighted = ids.index(selected)
        elif ids:
            self.highlighted = 0

    @property
    def highlighted_id(self) -> str | None:
        if self.highlighted is None or self.option_count == 0:
            return None
        return self.get_option_at_index(self.highlighted).id

    def row_ids(self) -> list[str]:
        return [self.get_option_at_index(i).id for i in range(self.option_count)]
