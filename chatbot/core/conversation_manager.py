"""
Conversation controller that ties the store, request lifecycle, speech
playback and voice capture together behind one object.
"""

import webbrowser
from dataclasses import dataclass
from typing import Callable, List, Optional
from urllib.parse import quote_plus
import pyperclip
import structlog

from ..providers.ai.base import AIProvider
from ..providers.stt.base import STTProvider
from ..providers.tts.base import TTSProvider
from ..providers.registry import registry
from ..state.conversation_store import ConversationState, Role
from .errors import ChatbotError, ConfigurationError, ValidationError
from .playback import SpeechPlaybackController
from .request_manager import RequestLifecycleManager, RequestSession
from .segmenter import Segment, code_segments, split_message
from .voice_capture import VoiceCaptureAdapter


logger = structlog.get_logger()


Notifier = Callable[[str, str], None]

SUGGESTED_QUESTIONS = ["Why is the sky blue?", "Explain quantum physics.", "How does AI work?"]
SEARCH_URL = "https://www.google.com/search?q={query}"


def log_notifier(level: str, message: str) -> None:
    """Default notifier: route notifications to the log."""
    if level == "error":
        logger.warning("Notification", level=level, message=message)
    else:
        logger.info("Notification", level=level, message=message)


@dataclass
class ConversationConfig:
    """Configuration for the conversation controller."""

    ai_provider: str = "gemini"
    tts_provider: str = "elevenlabs"
    stt_provider: str = "google"
    enable_speech: bool = True
    enable_voice: bool = True
    mock_mode: bool = False


class ConversationController:
    """
    Main entry point for a chat session.

    Owns the ConversationState and hands it to the components that read
    or write it. Validation and configuration failures become
    notifications; request outcomes become bot messages.
    """

    def __init__(
        self,
        config: Optional[ConversationConfig] = None,
        notifier: Optional[Notifier] = None,
        ai_provider: Optional[AIProvider] = None,
        tts_provider: Optional[TTSProvider] = None,
        stt_provider: Optional[STTProvider] = None,
    ):
        self.config = config or ConversationConfig()
        self.notify = notifier or log_notifier
        self.state = ConversationState()

        self.ai_provider = ai_provider or self._initialize_ai_provider()
        self.tts_provider = tts_provider or self._initialize_tts_provider()
        self.stt_provider = stt_provider or self._initialize_stt_provider()

        self.requests = RequestLifecycleManager(self.state, self.ai_provider)
        self.playback = SpeechPlaybackController(self.tts_provider)
        self.voice = VoiceCaptureAdapter(self.state, self.stt_provider, self.notify)

        self.speech_available = False
        self.voice_available = False

    def _initialize_ai_provider(self) -> AIProvider:
        """Initialize the AI provider based on configuration."""
        if self.config.mock_mode:
            from mocks.providers import MockAIProvider

            return MockAIProvider()
        return registry.get_ai_provider(self.config.ai_provider)

    def _initialize_tts_provider(self) -> TTSProvider:
        """Initialize the TTS provider based on configuration."""
        if self.config.mock_mode:
            from mocks.providers import MockTTSProvider

            return MockTTSProvider()
        return registry.get_tts_provider(self.config.tts_provider)

    def _initialize_stt_provider(self) -> STTProvider:
        """Initialize the STT provider based on configuration."""
        if self.config.mock_mode:
            from mocks.providers import MockSTTProvider

            return MockSTTProvider()
        return registry.get_stt_provider(self.config.stt_provider)

    def start(self) -> None:
        """
        Initialize providers.

        Raises:
            ConfigurationError: If the generation endpoint is not configured
        """
        logger.info(
            "Starting conversation",
            ai_provider=self.config.ai_provider,
            mock_mode=self.config.mock_mode,
        )
        self.ai_provider.initialize()

        if self.config.enable_speech:
            self.speech_available = self._start_optional(self.tts_provider, "tts")
        if self.config.enable_voice:
            self.voice_available = self._start_optional(self.stt_provider, "stt")

    def _start_optional(self, provider, kind: str) -> bool:
        try:
            provider.initialize()
            return True
        except (ChatbotError, ValueError, RuntimeError, OSError) as e:
            logger.warning("Provider unavailable", kind=kind, error=str(e))
            return False

    def stop(self) -> None:
        """Cancel any request, stop playback and release providers."""
        logger.info("Stopping conversation")
        self.requests.cancel()
        self.playback.stop()
        for provider in (self.ai_provider, self.tts_provider, self.stt_provider):
            try:
                provider.stop()
            except Exception as e:
                logger.warning("Error stopping provider", error=str(e))

    # Input buffer

    @property
    def input_text(self) -> str:
        return self.state.input_text

    def set_input(self, text: str) -> None:
        """Direct typing into the input buffer."""
        self.state.input_text = text

    # Requests

    def submit(self, text: Optional[str] = None) -> Optional[RequestSession]:
        """Submit the input buffer (or ``text``). Returns None if rejected."""
        try:
            return self.requests.submit(text)
        except (ValidationError, ConfigurationError) as e:
            self.notify("error", e.message)
            return None

    def cancel(self) -> bool:
        return self.requests.cancel()

    async def wait_for_reply(self) -> None:
        await self.requests.wait()

    # Speech

    def toggle_speech(self, index: int) -> Optional[int]:
        """Read bot message ``index`` aloud, or stop it if it is already playing."""
        message = self.state.store.get(index)
        if message is None:
            self.notify("error", f"No message #{index + 1}")
            return self.playback.active_index
        if message.role is not Role.BOT:
            self.notify("error", "Only bot replies can be read aloud.")
            return self.playback.active_index
        if not self.speech_available:
            self.notify("error", "Speech playback is not available.")
            return self.playback.active_index
        return self.playback.toggle(index, message.text)

    async def start_voice_capture(self) -> Optional[str]:
        if not self.voice_available:
            self.notify("error", "Voice input is not available.")
            return None
        return await self.voice.start()

    # Helpers

    def show_reasons(self) -> None:
        """Append a bot message listing example questions."""
        self.state.store.add_bot_message(
            f"Here are some common reasons you can ask: {', '.join(SUGGESTED_QUESTIONS)}"
        )

    def search(self, query: Optional[str] = None) -> str:
        """Open a web search for the input buffer (or ``query``) and clear the buffer."""
        text = self.state.input_text if query is None else query
        if not text.strip():
            self.notify("error", "Please enter something to search for.")
            return ""

        url = SEARCH_URL.format(query=quote_plus(text))
        webbrowser.open(url, new=2)
        self.state.input_text = ""
        logger.info("Opened web search", length=len(text))
        return url

    def segments(self, index: int) -> List[Segment]:
        """Rendering segments for a message."""
        return split_message(self.state.store[index].text)

    def copy_code(self, index: int, block: int = 0) -> Optional[str]:
        """Copy a code block of message ``index`` to the clipboard."""
        message = self.state.store.get(index)
        blocks = code_segments(message.text) if message else []
        if not 0 <= block < len(blocks):
            self.notify("error", "No such code block.")
            return None

        content = blocks[block].content
        try:
            pyperclip.copy(content)
        except pyperclip.PyperclipException as e:
            logger.warning("Clipboard unavailable", error=str(e))
            self.notify("error", "Clipboard is not available.")
            return None

        self.notify("success", "Copied to clipboard!")
        return content

    def get_status(self) -> dict:
        """Get current controller status."""
        return {
            "messages": len(self.state.store),
            "input_length": len(self.state.input_text),
            "loading": self.state.loading,
            "speaking_index": self.playback.active_index,
            "listening": self.voice.is_listening,
            "speech_available": self.speech_available,
            "voice_available": self.voice_available,
            "request": self.requests.get_status(),
            "providers_status": {
                "ai": self.ai_provider.get_status(),
                "tts": self.tts_provider.get_status(),
                "stt": self.stt_provider.get_status(),
            },
        }
