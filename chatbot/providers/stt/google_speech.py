"""One-shot speech recognition through the SpeechRecognition library."""

import asyncio
import time
from typing import Optional
import speech_recognition as sr
import structlog

from .base import Alternative, STTProvider, Transcript
from ...core.errors import RecognitionError


logger = structlog.get_logger()


class GoogleSpeechProvider(STTProvider):
    """
    Captures one phrase from the default microphone and transcribes it with
    the Google Web Speech API. Blocking library calls run off the event loop.
    """

    def __init__(
        self,
        language: str = "en-US",
        listen_timeout: float = 5.0,
        phrase_time_limit: float = 15.0,
        ambient_noise_duration: float = 0.5,
        device_index: Optional[int] = None,
    ):
        self.language = language
        self.listen_timeout = listen_timeout
        self.phrase_time_limit = phrase_time_limit
        self.ambient_noise_duration = ambient_noise_duration
        self.device_index = device_index

        self.recognizer: Optional[sr.Recognizer] = None
        self.is_listening = False
        self.sessions = 0

    def initialize(self) -> None:
        """Create the recognizer and check that a microphone is present."""
        logger.info("Initializing speech recognition", language=self.language)

        self.recognizer = sr.Recognizer()
        try:
            names = sr.Microphone.list_microphone_names()
        except (AttributeError, OSError) as e:
            # AttributeError: PyAudio is not installed.
            raise RecognitionError(f"Microphone access unavailable: {e}") from e
        if not names:
            raise RecognitionError("No microphone found")

        logger.info("Speech recognition initialized", microphones=len(names))

    async def listen_once(self) -> Transcript:
        if self.recognizer is None:
            self.initialize()

        self.is_listening = True
        self.sessions += 1
        start_time = time.time()
        try:
            audio = await asyncio.to_thread(self._capture)
            result = await asyncio.to_thread(self._recognize, audio)
        finally:
            self.is_listening = False

        alternatives = [
            Alternative(transcript=alt["transcript"], confidence=alt.get("confidence"))
            for alt in result.get("alternative", [])
            if alt.get("transcript")
        ]
        if not alternatives:
            raise RecognitionError()

        return Transcript(
            alternatives=alternatives,
            timestamp=time.time(),
            language=self.language,
            latency=(time.time() - start_time) * 1000,
        )

    def _capture(self) -> sr.AudioData:
        try:
            with sr.Microphone(device_index=self.device_index) as source:
                self.recognizer.adjust_for_ambient_noise(
                    source, duration=self.ambient_noise_duration
                )
                return self.recognizer.listen(
                    source,
                    timeout=self.listen_timeout,
                    phrase_time_limit=self.phrase_time_limit,
                )
        except sr.WaitTimeoutError as e:
            logger.debug("No speech before timeout", timeout=self.listen_timeout)
            raise RecognitionError() from e
        except (AttributeError, OSError) as e:
            logger.error("Microphone capture failed", error=str(e))
            raise RecognitionError() from e

    def _recognize(self, audio: sr.AudioData) -> dict:
        try:
            result = self.recognizer.recognize_google(
                audio, language=self.language, show_all=True
            )
        except sr.UnknownValueError as e:
            raise RecognitionError() from e
        except sr.RequestError as e:
            logger.error("Speech recognition request failed", error=str(e))
            raise RecognitionError() from e

        # show_all returns [] rather than raising when nothing was understood.
        return result if isinstance(result, dict) else {}

    def stop(self) -> None:
        logger.info("Stopping speech recognition")
        self.recognizer = None

    def get_status(self) -> dict:
        return {
            "provider": "google",
            "language": self.language,
            "is_listening": self.is_listening,
            "sessions": self.sessions,
            "initialized": self.recognizer is not None,
        }
