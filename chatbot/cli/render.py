"""Terminal rendering for messages and notifications."""

from typing import Callable
import click

from ..core.segmenter import split_message
from ..state.conversation_store import Message, Role


_NOTIFY_STYLES = {
    "error": ("✖", "red"),
    "success": ("✔", "green"),
    "info": ("ℹ", "blue"),
}


class MessageRenderer:
    """Renders messages segment by segment; fenced code is drawn as a box."""

    def __init__(self, echo: Callable[..., None] = click.echo, color: bool = None):
        self.echo = echo
        self.color = color

    def _styled(self, text: str, **style) -> None:
        self.echo(click.style(text, **style), color=self.color)

    def on_message(self, index: int, message: Message) -> None:
        """ConversationStore listener."""
        self.render(index, message)

    def render(self, index: int, message: Message) -> None:
        is_user = message.role is Role.USER
        self._styled(
            f"[{index + 1}] {'You' if is_user else 'Bot'}:",
            fg="blue" if is_user else "cyan",
            bold=True,
        )

        code_blocks = 0
        for segment in split_message(message.text):
            if segment.is_code:
                code_blocks += 1
                self._render_code(segment.content, code_blocks)
            else:
                self.echo(segment.content.strip("\n"))

        if not is_user:
            hint = f"/speak {index + 1} to listen"
            if code_blocks:
                hint += f", /copy {index + 1} [block] to copy code"
            self._styled(f"  ({hint})", dim=True)
        self.echo("")

    def _render_code(self, content: str, number: int) -> None:
        language = ""
        body = content
        first, newline, rest = content.partition("\n")
        # A language tag sits on the opening fence line itself.
        if newline and first.strip() and " " not in first.strip():
            language = first.strip()
            body = rest
        lines = body.strip("\n").splitlines() or [""]

        self._styled(f"┌─ code #{number} {language}".rstrip(), fg="cyan")
        for line in lines:
            self._styled(f"│ {line}", fg="bright_white")
        self._styled("└─", fg="cyan")

    def loading(self) -> None:
        self._styled("Generating response...", fg="bright_black", italic=True)

    def notify(self, level: str, message: str) -> None:
        """Notifier collaborator: transient messages on stderr."""
        symbol, color = _NOTIFY_STYLES.get(level, _NOTIFY_STYLES["info"])
        click.secho(f"{symbol} {message}", fg=color, err=True, color=self.color)
