"""Gemini AI provider implementation."""

import asyncio
from typing import Any, Dict, Optional
from urllib.parse import urlparse
import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
import structlog

from .base import AIProvider
from ...core.cancellation import CancelToken
from ...core.errors import ConfigurationError, ErrorKind, RequestError


logger = structlog.get_logger()


def _api_endpoint(base_url: str) -> str:
    """Host (and port) part of the base URL, as the client options expect."""
    parsed = urlparse(base_url)
    return parsed.netloc or parsed.path.rstrip("/")


class GeminiProvider(AIProvider):
    """
    Gemini provider calling ``generateContent`` over the REST transport.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://generativelanguage.googleapis.com",
        model_name: str = "gemini-2.0-flash",
        format_instruction: Optional[str] = None,
        timeout: float = 60.0,
    ):
        super().__init__(format_instruction)
        self.api_key = api_key
        self.base_url = base_url
        self.model_name = model_name
        self.timeout = timeout
        self.model: Optional[genai.GenerativeModel] = None
        self.requests_sent = 0

    def is_configured(self) -> bool:
        return bool(self.api_key and self.base_url)

    def initialize(self) -> None:
        """Configure the Gemini client."""
        logger.info("Initializing Gemini provider", model=self.model_name)

        if not self.api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set")
        if not self.base_url:
            raise ConfigurationError("GEMINI_BASE_URL is not set")

        genai.configure(
            api_key=self.api_key,
            transport="rest",
            client_options={"api_endpoint": _api_endpoint(self.base_url)},
        )
        self.model = genai.GenerativeModel(model_name=self.model_name)

        logger.info("Gemini client initialized", endpoint=_api_endpoint(self.base_url))

    async def generate_content(
        self, prompt: str, cancel_token: CancelToken
    ) -> Dict[str, Any]:
        """Send one prompt and return the response body as a dict."""
        if self.model is None:
            self.initialize()

        contents = [{"role": "user", "parts": [{"text": prompt}]}]
        self.requests_sent += 1
        logger.debug("Sending Gemini request", model=self.model_name, length=len(prompt))

        # The blocking call runs off the loop; a cancelled token abandons it.
        return await cancel_token.guard(
            asyncio.to_thread(self._generate_blocking, contents)
        )

    def _generate_blocking(self, contents: list) -> Dict[str, Any]:
        try:
            response = self.model.generate_content(
                contents, request_options={"timeout": self.timeout}
            )
        except google_exceptions.GoogleAPICallError as e:
            status = e.code if isinstance(e.code, int) else None
            raise RequestError.from_status(status, message=e.message or str(e)) from e
        except google_exceptions.GoogleAPIError as e:
            raise RequestError(str(e), kind=ErrorKind.NETWORK) from e
        except (ConnectionError, TimeoutError, OSError) as e:
            raise RequestError(str(e), kind=ErrorKind.NETWORK) from e

        return response.to_dict()

    def stop(self) -> None:
        """Stop Gemini provider."""
        logger.info("Stopping Gemini provider")
        self.model = None

    def get_status(self) -> dict:
        """Get Gemini provider status."""
        return {
            "provider": "gemini",
            "model": self.model_name,
            "endpoint": _api_endpoint(self.base_url) if self.base_url else None,
            "configured": self.is_configured(),
            "initialized": self.model is not None,
            "requests_sent": self.requests_sent,
        }
