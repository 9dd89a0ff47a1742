"""Fixtures for controller tests."""

import pytest

from chatbot.core.conversation_manager import ConversationConfig, ConversationController
from fakes import FakeAIProvider, FakeSTTProvider, FakeTTSProvider, NotificationLog


@pytest.fixture
def ai_provider():
    return FakeAIProvider()


@pytest.fixture
def tts_provider():
    return FakeTTSProvider()


@pytest.fixture
def stt_provider():
    return FakeSTTProvider()


@pytest.fixture
def notifications():
    return NotificationLog()


@pytest.fixture
def controller(ai_provider, tts_provider, stt_provider, notifications):
    """A started controller wired to fake providers."""
    controller = ConversationController(
        ConversationConfig(),
        notifier=notifications,
        ai_provider=ai_provider,
        tts_provider=tts_provider,
        stt_provider=stt_provider,
    )
    controller.start()
    return controller
