"""Base interface for text-generation providers."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ...core.cancellation import CancelToken


class AIProvider(ABC):
    """Abstract base class for text-generation providers.

    Providers are request/response only: one prompt in, one response
    payload out, shaped like the Gemini ``generateContent`` response body.
    """

    def __init__(self, format_instruction: Optional[str] = None):
        self.format_instruction = format_instruction or None

    @abstractmethod
    def initialize(self) -> None:
        """
        Initialize the provider.

        Raises:
            ConfigurationError: If the credential or endpoint is missing
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether a credential and endpoint are available."""
        pass

    @abstractmethod
    async def generate_content(
        self, prompt: str, cancel_token: CancelToken
    ) -> Dict[str, Any]:
        """
        Issue exactly one generation request.

        Args:
            prompt: Full prompt text
            cancel_token: Abort signal for this request

        Returns:
            Response payload with ``candidates[0].content.parts[0].text``

        Raises:
            RequestError: On transport failure or an error response
            CancellationError: If the token was signalled before settlement
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop the provider and clean up resources."""
        pass

    @abstractmethod
    def get_status(self) -> dict:
        """Get current status of the provider."""
        pass

    def build_prompt(self, user_input: str) -> str:
        """Prefix the input with the formatting instruction, if any."""
        if self.format_instruction:
            return f"{self.format_instruction}\n\n{user_input}"
        return user_input
