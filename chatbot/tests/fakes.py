"""Fake providers for controller tests."""

import asyncio
from typing import Any, Dict, List, Optional

from chatbot.core.cancellation import CancelToken
from chatbot.core.errors import ConfigurationError
from chatbot.providers.ai.base import AIProvider
from chatbot.providers.stt.base import Alternative, STTProvider, Transcript
from chatbot.providers.tts.base import TTSProvider, Utterance


def gemini_payload(text: str) -> Dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


async def drain(ticks: int = 5) -> None:
    """Let pending tasks run up to their next suspension point."""
    for _ in range(ticks):
        await asyncio.sleep(0)


class FakeAIProvider(AIProvider):
    """Each call waits on a future the test resolves with respond() or fail().

    With ``ignore_cancel`` the call behaves like a transport that keeps going
    after an abort and delivers its result late.
    """

    def __init__(self, configured: bool = True, format_instruction: Optional[str] = None,
                 ignore_cancel: bool = False):
        super().__init__(format_instruction)
        self.configured = configured
        self.ignore_cancel = ignore_cancel
        self.prompts: List[str] = []
        self.tokens: List[CancelToken] = []
        self._pending: List[asyncio.Future] = []

    def initialize(self) -> None:
        if not self.configured:
            raise ConfigurationError("GEMINI_API_KEY is not set")

    def is_configured(self) -> bool:
        return self.configured

    async def generate_content(self, prompt: str, cancel_token: CancelToken) -> Dict[str, Any]:
        future = asyncio.get_running_loop().create_future()
        self.prompts.append(prompt)
        self.tokens.append(cancel_token)
        self._pending.append(future)

        while True:
            try:
                return await asyncio.shield(future)
            except asyncio.CancelledError:
                if not self.ignore_cancel:
                    raise

    def respond(self, payload: Dict[str, Any], call: int = -1) -> None:
        self._pending[call].set_result(payload)

    def fail(self, error: BaseException, call: int = -1) -> None:
        self._pending[call].set_exception(error)

    def stop(self) -> None:
        pass

    def get_status(self) -> dict:
        return {"provider": "fake_ai", "calls": len(self.prompts)}


class FakeTTSProvider(TTSProvider):
    """Records utterances; the test finishes them with finish()."""

    def __init__(self):
        self.utterances: List[Utterance] = []
        self.cancelled: List[Utterance] = []
        self._callbacks = {}

    def initialize(self) -> None:
        pass

    def speak(self, text, on_end=None) -> Utterance:
        utterance = Utterance(text=text)
        self.utterances.append(utterance)
        self._callbacks[utterance.id] = on_end
        return utterance

    def finish(self, utterance: Utterance) -> None:
        utterance.finished = True
        callback = self._callbacks.get(utterance.id)
        if callback:
            callback(utterance)

    def cancel(self, utterance: Utterance) -> None:
        utterance.cancelled = True
        self.cancelled.append(utterance)

    def stop(self) -> None:
        pass

    def get_status(self) -> dict:
        return {"provider": "fake_tts", "utterances": len(self.utterances)}


class FakeSTTProvider(STTProvider):
    """Returns a preset transcript or raises a preset error."""

    def __init__(self, transcripts: Optional[List[str]] = None,
                 error: Optional[Exception] = None):
        self.transcripts = transcripts if transcripts is not None else ["hello from the microphone"]
        self.error = error
        self.sessions = 0
        self.gate: Optional[asyncio.Event] = None

    def initialize(self) -> None:
        pass

    async def listen_once(self) -> Transcript:
        self.sessions += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return Transcript(alternatives=[Alternative(t) for t in self.transcripts])

    def stop(self) -> None:
        pass

    def get_status(self) -> dict:
        return {"provider": "fake_stt", "sessions": self.sessions}


class NotificationLog:
    def __init__(self):
        self.entries = []

    def __call__(self, level: str, message: str) -> None:
        self.entries.append((level, message))

    @property
    def errors(self):
        return [message for level, message in self.entries if level == "error"]
