"""Speech playback: at most one message is read aloud at a time."""

from typing import Optional
import structlog

from ..providers.tts.base import TTSProvider, Utterance


logger = structlog.get_logger()


class SpeechPlaybackController:
    """Tracks which message index, if any, is currently being spoken."""

    def __init__(self, tts_provider: TTSProvider):
        self.tts_provider = tts_provider
        self._active_index: Optional[int] = None
        self._utterance: Optional[Utterance] = None

    @property
    def active_index(self) -> Optional[int]:
        return self._active_index

    @property
    def is_speaking(self) -> bool:
        return self._active_index is not None

    def toggle(self, index: int, text: str) -> Optional[int]:
        """
        Start reading message ``index`` aloud, or stop it if it is already playing.

        Starting a message implicitly stops any other one first.

        Returns:
            The active index after the toggle
        """
        if self._active_index == index:
            self.stop()
            return None

        if self._active_index is not None:
            logger.debug("Superseding utterance", previous_index=self._active_index, index=index)
            self.stop()

        self._utterance = self.tts_provider.speak(text, on_end=self._on_end)
        self._active_index = index
        logger.debug("Speaking message", index=index, utterance_id=self._utterance.id)
        return index

    def stop(self) -> None:
        """Stop the current utterance, if any."""
        utterance = self._utterance
        self._utterance = None
        self._active_index = None

        if utterance is not None:
            try:
                self.tts_provider.cancel(utterance)
            except Exception as e:
                logger.warning("Error cancelling utterance", error=str(e))

    def _on_end(self, utterance: Utterance) -> None:
        # A completion for anything but the current utterance is stale.
        if utterance is not self._utterance:
            logger.debug("Ignoring stale utterance completion", utterance_id=utterance.id)
            return

        logger.debug("Utterance finished", index=self._active_index)
        self._utterance = None
        self._active_index = None
