"""Base interface for Text-to-Speech providers."""

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Optional


_utterance_ids = itertools.count(1)


@dataclass(eq=False)
class Utterance:
    """Handle for one spoken text. Compared by identity."""

    text: str
    id: int = field(default_factory=lambda: next(_utterance_ids))
    finished: bool = False
    cancelled: bool = False


UtteranceCallback = Callable[[Utterance], None]


class TTSProvider(ABC):
    """Abstract base class for TTS providers."""

    @abstractmethod
    def initialize(self) -> None:
        """Initialize the TTS provider."""
        pass

    @abstractmethod
    def speak(
        self, text: str, on_end: Optional[UtteranceCallback] = None
    ) -> Utterance:
        """
        Start speaking text without blocking.

        Args:
            text: The text to convert to speech
            on_end: Called with the utterance when playback completes

        Returns:
            Handle for the started utterance
        """
        pass

    @abstractmethod
    def cancel(self, utterance: Utterance) -> None:
        """
        Stop an utterance. ``on_end`` is not called for a cancelled utterance.

        Args:
            utterance: The handle returned by ``speak``
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop the TTS provider and clean up resources."""
        pass

    @abstractmethod
    def get_status(self) -> dict:
        """Get current status of the TTS provider."""
        pass
