"""Modal screens that ask for text."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static


class PromptScreen(ModalScreen[str | None]):
    """Ask for one line of text. Dismisses with None on escape or empty input."""

    CSS = """
    PromptScreen {
        align: center middle;
    }
    #dialog {
        width: 60;
        height: auto;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }
    #message {
        text-align: center;
        margin-bottom: 1;
    }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel", show=False)]

    def __init__(self, message: str, value: str = "", placeholder: str = ""):
        super().__init__()
        self.message = message
        self.value = value
        self.placeholder = placeholder

    def compose(self) -> ComposeResult:
        with Vertical(id="dialog"):
            yield Static(self.message, id="message")
            yield Input(self.value, placeholder=self.placeholder, id="prompt-input")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.dismiss(event.value.strip() or None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class LoginScreen(ModalScreen[tuple[str, str, str] | None]):
    """Email/password form. Dismisses with (action, email, password), or None to quit."""

    CSS = """
    LoginScreen {
        align: center middle;
    }
    #dialog {
        width: 60;
        height: auto;
        border: thick $primary;
        background: $surface;
        padding: 1 2;
    }
    #message {
        text-align: center;
        margin-bottom: 1;
    }
    #buttons {
        width: 100%;
        height: 3;
        align: center middle;
    }
    Button {
        margin: 0 2;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="dialog"):
            yield Static("Sign in to boardsync", id="message")
            yield Input(placeholder="email", id="email")
            yield Input(placeholder="password", password=True, id="password")
            with Horizontal(id="buttons"):
                yield Button("Sign in", id="sign_in", variant="primary")
                yield Button("Sign up", id="sign_up")
                yield Button("Quit", id="quit")

    def _submit(self, action: str) -> None:
        email = self.query_one("#email", Input).value.strip()
        password = self.query_one("#password", Input).value
        if not email or not password:
            self.notify("Email and password are required", severity="error")
            return
        self.dismiss((action, email, password))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self._submit("sign_in")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "quit":
            self.dismiss(None)
        else:
            self._submit(event.button.id)
