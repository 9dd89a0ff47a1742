"""Base interface for Speech-to-Text providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Alternative:
    """One candidate transcription."""

    transcript: str
    confidence: Optional[float] = None


@dataclass
class Transcript:
    """Result of a single recognition session."""

    alternatives: List[Alternative] = field(default_factory=list)
    timestamp: float = 0.0
    language: Optional[str] = None
    latency: Optional[float] = None

    @property
    def text(self) -> str:
        """First alternative's transcript, or an empty string."""
        return self.alternatives[0].transcript if self.alternatives else ""


class STTProvider(ABC):
    """Abstract base class for one-shot STT providers."""

    @abstractmethod
    def initialize(self) -> None:
        """Initialize the STT provider."""
        pass

    @abstractmethod
    async def listen_once(self) -> Transcript:
        """
        Capture one utterance and transcribe it.

        Returns:
            Transcript with at least one alternative

        Raises:
            RecognitionError: If nothing usable was recognized
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop the STT provider and clean up resources."""
        pass

    @abstractmethod
    def get_status(self) -> dict:
        """Get current status of the STT provider."""
        pass
