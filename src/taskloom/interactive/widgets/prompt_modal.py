"""Single-line prompt modal (import path, tag, due date, title)."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Grid, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label


class PromptModal(ModalScreen):
    """Ask for one line of text; dismisses with the text or None."""

    DEFAULT_CSS = """
    PromptModal {
        align: center middle;
    }

    PromptModal > Vertical {
        width: 70;
        height: auto;
        background: $panel;
        border: thick $primary;
        padding: 1 2;
    }

    PromptModal Label {
        width: 100%;
        content-align: center middle;
        text-style: bold;
        color: $text;
        margin-bottom: 1;
    }

    PromptModal Input {
        width: 100%;
        margin-bottom: 1;
    }

    PromptModal Grid {
        width: 100%;
        height: auto;
        grid-size: 2;
        grid-gutter: 1;
    }

    PromptModal Button {
        width: 100%;
    }
    """

    def __init__(
        self,
        title: str,
        placeholder: str = "",
        value: str = "",
        allow_empty: bool = False,
    ) -> None:
        super().__init__()
        self.prompt_title = title
        self.placeholder = placeholder
        self.initial_value = value
        self.allow_empty = allow_empty

    def compose(self) -> ComposeResult:
        """Compose the modal layout."""
        with Vertical():
            yield Label(self.prompt_title)
            yield Input(value=self.initial_value, placeholder=self.placeholder, id="prompt-input")
            with Grid():
                yield Button("Cancel", variant="default", id="cancel-button")
                yield Button("OK", variant="primary", id="ok-button")

    def on_mount(self) -> None:
        self.query_one("#prompt-input", Input).focus()

    def _submit(self) -> None:
        field = self.query_one("#prompt-input", Input)
        value = field.value.strip()
        if value or self.allow_empty:
            self.dismiss(value)
        else:
            field.focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self._submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        if event.button.id == "cancel-button":
            self.dismiss(None)
        elif event.button.id == "ok-button":
            self._submit()
