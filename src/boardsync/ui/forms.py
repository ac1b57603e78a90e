"""Modal forms for creating and editing cards and boards."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Checkbox, Input, Label, Static, TextArea

from boardsync.model.rows import Board, BoardPatch, Card, CardPatch
from boardsync.status import utcnow
from boardsync.ui.widgets import COLOR_LABELS, next_color

BOARD_COLORS = [None, "blue", "green", "yellow", "orange", "red", "purple", "grey50"]

DATE_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%d")
DATE_HINT = "YYYY-MM-DD or YYYY-MM-DD HH:MM"


def parse_date_input(text: str) -> datetime | None:
    """Read a local date typed into a form. Blank means no date.

    "2025-06-01" → midnight local time, "2025-06-01 09:30" → 09:30 local time
    """
    text = text.strip()
    if not text:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).astimezone()
        except ValueError:
            continue
    raise ValueError(f"{text!r} is not a date ({DATE_HINT})")


def format_date_input(value: datetime | None) -> str:
    return value.astimezone().strftime(DATE_FORMATS[0]) if value else ""


class ColorButton(Button):
    """Button that steps through a palette on each press. None means no color."""

    def __init__(self, color: str | None = None, palette: Sequence[str | None] = COLOR_LABELS, **kwargs):
        super().__init__(self._label_for(color), **kwargs)
        self.color = color
        self.palette = palette

    @staticmethod
    def _label_for(color: str | None) -> Text:
        if color is None:
            return Text("○ no color", style="dim")
        return Text(f"● {color}", style=color)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.color = next_color(self.color, self.palette)
        self.label = self._label_for(self.color)


class FormScreen(ModalScreen):
    """Shared layout and submit handling. Subclasses build the result in ``build``."""

    DEFAULT_CSS = """
    FormScreen {
        align: center middle;
    }
    FormScreen #dialog {
        width: 70;
        height: auto;
        max-height: 90%;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }
    FormScreen #message {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    FormScreen Label {
        margin-top: 1;
    }
    FormScreen TextArea {
        height: 6;
    }
    FormScreen .row {
        height: auto;
    }
    FormScreen .row > Vertical {
        width: 1fr;
        height: auto;
    }
    FormScreen #form-error {
        color: $error;
        height: auto;
    }
    FormScreen #buttons {
        width: 100%;
        height: 3;
        align: center middle;
        margin-top: 1;
    }
    FormScreen #buttons Button {
        margin: 0 2;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
        Binding("ctrl+s", "save", "Save", show=False),
    ]

    def build(self):
        raise NotImplementedError

    def buttons(self) -> ComposeResult:
        yield Static("", id="form-error")
        with Horizontal(id="buttons"):
            yield Button("Save", id="save", variant="primary")
            yield Button("Cancel", id="cancel")

    def action_save(self) -> None:
        try:
            result = self.build()
        except ValueError as exc:
            self.query_one("#form-error", Static).update(str(exc))
            return
        self.dismiss(result)

    def action_cancel(self) -> None:
        self.dismiss(None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.action_save()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save":
            self.action_save()
        elif event.button.id == "cancel":
            self.action_cancel()

    def _text(self, selector: str) -> str:
        return self.query_one(selector, Input).value.strip()


class CardFormScreen(FormScreen):
    """New-card form, or the detail editor when given a card.

    Dismisses with a CardPatch: every field for a new card, only the
    changed fields for an existing one (possibly empty), or None.
    """

    def __init__(self, card: Card | None = None, heading: str = ""):
        super().__init__()
        self.card = card
        self.heading = heading or ("Card details" if card else "New card")

    def compose(self) -> ComposeResult:
        card = self.card
        with Vertical(id="dialog"):
            yield Static(self.heading, id="message")
            if card is not None:
                yield Checkbox("Completed", card.completed, id="completed")
            yield Label("Title")
            yield Input(card.title if card else "", placeholder="Title", id="title")
            yield Label("Description")
            yield TextArea((card.description or "") if card else "", id="description")
            with Horizontal(classes="row"):
                with Vertical():
                    yield Label("Start")
                    yield Input(format_date_input(card.start_date if card else None), placeholder=DATE_HINT, id="start")
                with Vertical():
                    yield Label("Due")
                    yield Input(format_date_input(card.due_date if card else None), placeholder=DATE_HINT, id="due")
            if card is not None:
                yield Label("Color label")
                yield ColorButton(card.color_label, id="color")
            yield from self.buttons()

    def on_mount(self) -> None:
        self.query_one("#title", Input).focus()

    def _date(self, selector: str, label: str, original: datetime | None) -> datetime | None:
        text = self._text(selector)
        # Unchanged text keeps the stored value, seconds included
        if text == format_date_input(original):
            return original
        try:
            return parse_date_input(text)
        except ValueError as exc:
            raise ValueError(f"{label}: {exc}") from None

    def build(self) -> CardPatch:
        card = self.card
        title = self._text("#title")
        if not title:
            raise ValueError("Title is required")
        values = {
            "title": title,
            "description": self.query_one("#description", TextArea).text.strip() or None,
            "start_date": self._date("#start", "Start", card.start_date if card else None),
            "due_date": self._date("#due", "Due", card.due_date if card else None),
        }
        if card is None:
            return CardPatch(**values)
        completed = self.query_one("#completed", Checkbox).value
        values["color_label"] = self.query_one("#color", ColorButton).color
        values["completed"] = completed
        values["completed_at"] = (card.completed_at or utcnow()) if completed else None
        return CardPatch(**{k: v for k, v in values.items() if getattr(card, k) != v})


class BoardFormScreen(FormScreen):
    """Create or edit a board's title, description and color.

    Dismisses with a BoardPatch (only changed fields when editing) or None.
    """

    def __init__(self, board: Board | None = None):
        super().__init__()
        self.board = board

    def compose(self) -> ComposeResult:
        board = self.board
        with Vertical(id="dialog"):
            yield Static("Edit board" if board else "New board", id="message")
            yield Label("Title")
            yield Input(board.title if board else "", placeholder="Title", id="title")
            yield Label("Description")
            yield Input((board.description or "") if board else "", placeholder="Optional", id="description")
            yield Label("Color")
            yield ColorButton(board.color if board else None, palette=BOARD_COLORS, id="color")
            yield from self.buttons()

    def on_mount(self) -> None:
        self.query_one("#title", Input).focus()

    def build(self) -> BoardPatch:
        title = self._text("#title")
        if not title:
            raise ValueError("Title is required")
        values = {
            "title": title,
            "description": self._text("#description") or None,
            "color": self.query_one("#color", ColorButton).color,
        }
        if self.board is None:
            return BoardPatch(**values)
        return BoardPatch(**{k: v for k, v in values.items() if getattr(self.board, k) != v})
