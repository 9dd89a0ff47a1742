"""Interactive chat loop."""

import asyncio
import shlex
import sys
import threading
from typing import Optional
import click
import structlog

from ..core.conversation_manager import ConversationController
from .render import MessageRenderer


logger = structlog.get_logger()


HELP_TEXT = """Type a message and press Enter to send it.
  /send           send the input buffer (e.g. after /voice)
  /stop           cancel the request in flight
  /voice          fill the input buffer from the microphone
  /speak N        read message N aloud (again to stop)
  /copy N [K]     copy code block K (default 1) of message N
  /reason         show example questions
  /search [TEXT]  search the web for TEXT or the input buffer
  /status         show controller status
  /help           show this help
  /quit           exit"""


class ChatRepl:
    """Reads lines from stdin on a daemon thread and drives the controller."""

    def __init__(self, controller: ConversationController, renderer: MessageRenderer):
        self.controller = controller
        self.renderer = renderer
        self._lines: Optional[asyncio.Queue] = None

    def _start_reader(self, loop: asyncio.AbstractEventLoop) -> None:
        def reader():
            while True:
                try:
                    line = sys.stdin.readline()
                except (OSError, ValueError):
                    # stdin closed or replaced
                    line = ""
                try:
                    loop.call_soon_threadsafe(
                        self._lines.put_nowait, line.rstrip("\r\n") if line else None
                    )
                except RuntimeError:
                    # Loop already closed
                    return
                if not line:
                    return

        # Daemon so a blocked readline never holds up interpreter exit.
        threading.Thread(target=reader, daemon=True, name="stdin-reader").start()

    async def run(self) -> None:
        self._lines = asyncio.Queue()
        self._start_reader(asyncio.get_running_loop())
        self.controller.state.store.subscribe(self.renderer.on_message)

        try:
            while True:
                line = await self._lines.get()
                if line is None:
                    break
                if not await self.handle_line(line):
                    break
        finally:
            self.controller.state.store.unsubscribe(self.renderer.on_message)

    async def handle_line(self, line: str) -> bool:
        """
        Handle one input line.

        Returns:
            False when the loop should exit
        """
        stripped = line.strip()
        if not stripped.startswith("/"):
            self.controller.set_input(line)
            self._submit()
            return True

        try:
            parts = shlex.split(stripped[1:])
        except ValueError:
            parts = stripped[1:].split()
        command = parts[0].lower() if parts else ""
        args = parts[1:]
        logger.debug("Chat command", command=command, args=len(args))

        if command in ("quit", "exit"):
            return False
        if command == "help":
            click.echo(HELP_TEXT)
        elif command == "send":
            self._submit()
        elif command in ("stop", "cancel"):
            if not self.controller.cancel():
                self.controller.notify("info", "No request in progress.")
        elif command == "voice":
            await self._voice()
        elif command == "speak":
            index = self._message_index(args)
            if index is not None:
                self.controller.toggle_speech(index)
        elif command == "copy":
            index = self._message_index(args)
            if index is not None:
                block = self._parse_number(args[1]) if len(args) > 1 else 1
                if block is not None:
                    self.controller.copy_code(index, block - 1)
        elif command == "reason":
            self.controller.show_reasons()
        elif command == "search":
            url = self.controller.search(" ".join(args) if args else None)
            if url:
                self.controller.notify("info", f"Opened {url}")
        elif command == "status":
            status = self.controller.get_status()
            click.echo(
                f"Messages: {status['messages']} | Request: {status['request']['request_state']} | "
                f"Speaking: {self._display_index(status['speaking_index'])} | "
                f"Listening: {'yes' if status['listening'] else 'no'}"
            )
        else:
            self.controller.notify("error", f"Unknown command '/{command}'. Type /help.")
        return True

    def _submit(self) -> None:
        if self.controller.submit() is not None:
            self.renderer.loading()

    async def _voice(self) -> None:
        self.controller.notify("info", "Listening...")
        transcript = await self.controller.start_voice_capture()
        if transcript:
            click.echo(f"Heard: {transcript}")
            click.echo("Type /send to send it, or type a new message.")

    def _message_index(self, args) -> Optional[int]:
        if not args:
            self.controller.notify("error", "Give a message number, e.g. /speak 2")
            return None
        number = self._parse_number(args[0])
        return None if number is None else number - 1

    def _parse_number(self, value: str) -> Optional[int]:
        try:
            number = int(value)
        except ValueError:
            number = 0
        if number < 1:
            self.controller.notify("error", f"Not a valid number: {value}")
            return None
        return number

    @staticmethod
    def _display_index(index: Optional[int]) -> str:
        return "-" if index is None else str(index + 1)
