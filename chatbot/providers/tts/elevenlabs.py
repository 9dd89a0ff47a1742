"""ElevenLabs TTS provider implementation."""

import asyncio
from io import BytesIO
from typing import Dict, Optional
import pygame
from elevenlabs import VoiceSettings
from elevenlabs.client import ElevenLabs
import structlog

from .base import TTSProvider, Utterance, UtteranceCallback
from ...core.errors import ConfigurationError


logger = structlog.get_logger()


class ElevenLabsProvider(TTSProvider):
    """
    ElevenLabs TTS provider. Audio is synthesized off the event loop and
    played through the pygame mixer; one utterance plays at a time.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        voice_id: str = "pNInz6obpgDQGcFmaJgB",  # Adam voice
        model_id: str = "eleven_flash_v2_5",
        output_format: str = "mp3_22050_32",
        stability: float = 0.5,
        similarity_boost: float = 0.8,
        speed: float = 1.0,
        poll_interval: float = 0.05,
    ):
        self.api_key = api_key
        self.voice_id = voice_id
        self.model_id = model_id
        self.output_format = output_format
        self.poll_interval = poll_interval

        self.voice_settings = VoiceSettings(
            stability=stability,
            similarity_boost=similarity_boost,
            speed=speed,
        )

        self.client: Optional[ElevenLabs] = None
        self._tasks: Dict[int, asyncio.Task] = {}
        self._playing: Optional[Utterance] = None

    def initialize(self) -> None:
        """Initialize ElevenLabs client and pygame mixer."""
        logger.info("Initializing ElevenLabs provider", voice_id=self.voice_id)

        if not self.api_key:
            raise ConfigurationError("ELEVENLABS_API_KEY is not set")

        self.client = ElevenLabs(api_key=self.api_key)

        pygame.mixer.pre_init(frequency=22050, size=-16, channels=2, buffer=1024)
        pygame.mixer.init()

        logger.info("ElevenLabs provider initialized")

    def speak(self, text: str, on_end: Optional[UtteranceCallback] = None) -> Utterance:
        """Schedule synthesis and playback on the running loop."""
        if not self.client:
            raise RuntimeError("ElevenLabs not initialized")

        utterance = Utterance(text=text)
        task = asyncio.get_running_loop().create_task(self._play(utterance, on_end))
        self._tasks[utterance.id] = task
        task.add_done_callback(lambda _: self._tasks.pop(utterance.id, None))
        return utterance

    def _synthesize(self, text: str) -> bytes:
        audio = self.client.text_to_speech.convert(
            voice_id=self.voice_id,
            text=text,
            model_id=self.model_id,
            output_format=self.output_format,
            voice_settings=self.voice_settings,
        )
        if isinstance(audio, (bytes, bytearray)):
            return bytes(audio)
        return b"".join(audio)

    async def _play(self, utterance: Utterance, on_end: Optional[UtteranceCallback]) -> None:
        logger.debug("Generating TTS audio", utterance_id=utterance.id, text_length=len(utterance.text))
        try:
            audio_data = await asyncio.to_thread(self._synthesize, utterance.text)

            if utterance.cancelled:
                return

            pygame.mixer.music.load(BytesIO(audio_data))
            pygame.mixer.music.play()
            self._playing = utterance

            while pygame.mixer.music.get_busy():
                await asyncio.sleep(self.poll_interval)

            logger.debug("Audio playback completed", utterance_id=utterance.id)

        except Exception as e:
            logger.error("Error playing TTS audio", utterance_id=utterance.id, error=str(e))

        finally:
            if self._playing is utterance:
                self._playing = None

        if not utterance.cancelled:
            utterance.finished = True
            if on_end:
                on_end(utterance)

    def cancel(self, utterance: Utterance) -> None:
        """Stop an utterance whether it is still synthesizing or already playing."""
        utterance.cancelled = True

        task = self._tasks.pop(utterance.id, None)
        if task and not task.done():
            task.cancel()

        if self._playing is utterance:
            pygame.mixer.music.stop()
            self._playing = None
            logger.debug("Stopped audio playback", utterance_id=utterance.id)

    def stop(self) -> None:
        """Stop ElevenLabs provider."""
        logger.info("Stopping ElevenLabs provider")

        for task in list(self._tasks.values()):
            task.cancel()
        self._tasks.clear()

        if pygame.mixer.get_init():
            pygame.mixer.music.stop()
            pygame.mixer.quit()
        self._playing = None
        self.client = None

    def get_status(self) -> dict:
        """Get ElevenLabs provider status."""
        return {
            "provider": "elevenlabs",
            "voice_id": self.voice_id,
            "model_id": self.model_id,
            "is_playing": self._playing is not None,
            "pending_utterances": len(self._tasks),
            "initialized": self.client is not None,
            "mixer_initialized": pygame.mixer.get_init() is not None,
        }
