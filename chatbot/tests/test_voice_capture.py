"""Tests for filling the input buffer from voice capture."""

import asyncio

from chatbot.core.errors import RECOGNITION_FAILURE_TEXT, RecognitionError
from chatbot.core.voice_capture import VoiceCaptureAdapter
from chatbot.state.conversation_store import ConversationState
from fakes import FakeSTTProvider, NotificationLog, drain


class TestVoiceCaptureAdapter:
    """Test cases for VoiceCaptureAdapter."""

    def setup_method(self):
        """Set up test fixtures."""
        self.state = ConversationState()
        self.notifications = NotificationLog()

    def adapter(self, stt):
        return VoiceCaptureAdapter(self.state, stt, self.notifications)

    def test_transcript_replaces_buffer(self):
        """Test the transcript replaces, not appends to, the buffer."""
        self.state.input_text = "typed text"
        adapter = self.adapter(FakeSTTProvider(["what is python"]))

        result = asyncio.run(adapter.start())

        assert result == "what is python"
        assert self.state.input_text == "what is python"
        assert adapter.is_listening is False
        assert self.notifications.entries == []

    def test_first_alternative_is_used(self):
        adapter = self.adapter(FakeSTTProvider(["best guess", "second guess"]))

        asyncio.run(adapter.start())

        assert self.state.input_text == "best guess"

    def test_no_alternatives_notifies(self):
        """Test an empty result leaves the buffer and notifies."""
        self.state.input_text = "keep me"
        adapter = self.adapter(FakeSTTProvider([]))

        assert asyncio.run(adapter.start()) is None

        assert self.state.input_text == "keep me"
        assert self.notifications.errors == [RECOGNITION_FAILURE_TEXT]

    def test_recognition_error_notifies(self):
        """Test a provider error leaves the buffer and notifies."""
        self.state.input_text = "keep me"
        adapter = self.adapter(FakeSTTProvider(error=RecognitionError("No microphone found.")))

        assert asyncio.run(adapter.start()) is None

        assert self.state.input_text == "keep me"
        assert self.notifications.errors == ["No microphone found."]
        assert adapter.is_listening is False

    def test_unexpected_error_is_contained(self):
        """Test an unexpected provider failure notifies instead of escaping."""
        self.state.input_text = "keep me"
        adapter = self.adapter(FakeSTTProvider(error=OSError("mic unplugged")))

        assert asyncio.run(adapter.start()) is None

        assert self.state.input_text == "keep me"
        assert self.notifications.errors == [RECOGNITION_FAILURE_TEXT]
        assert adapter.is_listening is False

    def test_second_start_while_listening_is_ignored(self):
        """Test only one recognition session runs at a time."""
        stt = FakeSTTProvider(["hello"])
        adapter = self.adapter(stt)

        async def scenario():
            stt.gate = asyncio.Event()
            first = asyncio.ensure_future(adapter.start())
            await drain()
            assert adapter.is_listening is True

            assert await adapter.start() is None

            stt.gate.set()
            return await first

        assert asyncio.run(scenario()) == "hello"
        assert stt.sessions == 1
