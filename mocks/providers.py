"""
Mock provider implementations for running the chatbot without API calls.
"""

import asyncio
import time
from typing import Any, Dict, Optional

from chatbot.core.cancellation import CancelToken
from chatbot.providers.ai.base import AIProvider
from chatbot.providers.stt.base import Alternative, STTProvider, Transcript
from chatbot.providers.tts.base import TTSProvider, Utterance, UtteranceCallback


def gemini_payload(text: str) -> Dict[str, Any]:
    """Response body in the shape ``generateContent`` returns."""
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


class MockAIProvider(AIProvider):
    """Mock AI provider that answers with canned replies after a short delay."""

    def __init__(self, format_instruction: Optional[str] = None, delay: float = 1.0):
        super().__init__(format_instruction)
        self.delay = delay
        self.mock_responses = [
            "Hello! I'm a mock assistant running without any API calls.",
            "Here is a small example:\n```python\nprint('hello, world')\n```\nRun it with `python hello.py`.",
            "Two blocks this time:\n```\nx = 1\n```\nand\n```\ny = 2\n```",
            "The current time is " + time.strftime("%I:%M %p"),
        ]
        self.response_index = 0
        self.prompts = []

    def initialize(self) -> None:
        pass

    def is_configured(self) -> bool:
        return True

    async def generate_content(self, prompt: str, cancel_token: CancelToken) -> Dict[str, Any]:
        self.prompts.append(prompt)
        await cancel_token.guard(asyncio.sleep(self.delay))

        response = self.mock_responses[self.response_index % len(self.mock_responses)]
        self.response_index += 1
        return gemini_payload(response)

    def stop(self) -> None:
        pass

    def get_status(self) -> dict:
        return {
            "provider": "mock_ai",
            "responses_generated": self.response_index,
        }


class MockTTSProvider(TTSProvider):
    """Mock TTS provider that "speaks" for a time proportional to the text length."""

    def __init__(self, seconds_per_char: float = 0.01, max_duration: float = 3.0):
        self.seconds_per_char = seconds_per_char
        self.max_duration = max_duration
        self._tasks: Dict[int, asyncio.Task] = {}
        self.spoken = []

    def initialize(self) -> None:
        pass

    def speak(self, text: str, on_end: Optional[UtteranceCallback] = None) -> Utterance:
        utterance = Utterance(text=text)
        self.spoken.append(text)
        duration = min(len(text) * self.seconds_per_char, self.max_duration)
        self._tasks[utterance.id] = asyncio.get_running_loop().create_task(
            self._play(utterance, duration, on_end)
        )
        return utterance

    async def _play(self, utterance: Utterance, duration: float, on_end) -> None:
        await asyncio.sleep(duration)
        self._tasks.pop(utterance.id, None)
        utterance.finished = True
        if on_end:
            on_end(utterance)

    def cancel(self, utterance: Utterance) -> None:
        utterance.cancelled = True
        task = self._tasks.pop(utterance.id, None)
        if task:
            task.cancel()

    def stop(self) -> None:
        for task in self._tasks.values():
            task.cancel()
        self._tasks.clear()

    def get_status(self) -> dict:
        return {
            "provider": "mock_tts",
            "is_playing": bool(self._tasks),
            "utterances": len(self.spoken),
        }


class MockSTTProvider(STTProvider):
    """Mock STT provider that "hears" canned phrases."""

    def __init__(self, delay: float = 1.0):
        self.delay = delay
        self.mock_transcripts = [
            "What's the weather like?",
            "Write a Python function that reverses a string.",
            "Tell me a joke.",
        ]
        self.transcript_index = 0

    def initialize(self) -> None:
        pass

    async def listen_once(self) -> Transcript:
        await asyncio.sleep(self.delay)
        text = self.mock_transcripts[self.transcript_index % len(self.mock_transcripts)]
        self.transcript_index += 1
        return Transcript(
            alternatives=[Alternative(transcript=text, confidence=0.95)],
            timestamp=time.time(),
            language="en-US",
            latency=self.delay * 1000,
        )

    def stop(self) -> None:
        pass

    def get_status(self) -> dict:
        return {
            "provider": "mock_stt",
            "transcripts_generated": self.transcript_index,
        }
