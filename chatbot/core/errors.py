"""Error taxonomy for the conversation controller.

Every error a component detects is contained by that component. User-facing
failures end up either as a notification or as a bot message, never as an
unhandled exception.
"""

from enum import Enum
from typing import Any, Dict, Optional


GENERIC_FAILURE_TEXT = "Sorry, something went wrong. Please try again."
CANCELED_TEXT = "Request canceled"
VALIDATION_TEXT = "Please enter a message or wait for the previous response!"
RECOGNITION_FAILURE_TEXT = "Sorry, I couldn't understand your voice input."


class ErrorKind(str, Enum):
    """Human-readable failure categories for generation requests."""

    INVALID_CREDENTIAL = "invalid_credential"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    NETWORK = "network"
    MALFORMED_RESPONSE = "malformed_response"
    UNKNOWN = "unknown"


ERROR_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.INVALID_CREDENTIAL: "Invalid API key. Please check your configuration.",
    ErrorKind.RATE_LIMITED: "Rate limit exceeded. Please wait a moment and try again.",
    ErrorKind.NOT_FOUND: "The requested model was not found. Please check your configuration.",
    ErrorKind.SERVER_ERROR: "The service is temporarily unavailable. Please try again later.",
    ErrorKind.NETWORK: GENERIC_FAILURE_TEXT,
    ErrorKind.MALFORMED_RESPONSE: GENERIC_FAILURE_TEXT,
    ErrorKind.UNKNOWN: GENERIC_FAILURE_TEXT,
}

_STATUS_NAMES: Dict[str, ErrorKind] = {
    "UNAUTHENTICATED": ErrorKind.INVALID_CREDENTIAL,
    "PERMISSION_DENIED": ErrorKind.INVALID_CREDENTIAL,
    "RESOURCE_EXHAUSTED": ErrorKind.RATE_LIMITED,
    "NOT_FOUND": ErrorKind.NOT_FOUND,
    "UNAVAILABLE": ErrorKind.SERVER_ERROR,
    "INTERNAL": ErrorKind.SERVER_ERROR,
}


class ChatbotError(Exception):
    """Base class for all controller errors.

    Attributes:
        message: Text suitable for showing to the user.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ChatbotError):
    """Empty input, or a submit while another request is in flight."""


class ConfigurationError(ChatbotError):
    """Missing credential or endpoint for the generation service."""


class CancellationError(ChatbotError):
    """The active session was cancelled before it settled."""

    def __init__(self, message: str = CANCELED_TEXT):
        super().__init__(message)


class RecognitionError(ChatbotError):
    """Voice capture could not produce a transcript."""

    def __init__(self, message: str = RECOGNITION_FAILURE_TEXT):
        super().__init__(message)


class RequestError(ChatbotError):
    """Transport failure or error response from the generation endpoint."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        status: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.status = status

    @property
    def user_message(self) -> str:
        """Bot message text for this failure."""
        return ERROR_MESSAGES[self.kind]

    @classmethod
    def from_status(
        cls, status: Optional[int], message: str = "", status_name: Optional[str] = None
    ) -> "RequestError":
        """Build an error classified by HTTP status (or API status name)."""
        return cls(
            message or f"Request failed with status {status}",
            kind=classify_failure(status, message, status_name),
            status=status,
        )

    @classmethod
    def from_payload(cls, error: Dict[str, Any]) -> "RequestError":
        """Build an error from an ``{"error": {...}}`` response body."""
        code = error.get("code")
        return cls.from_status(
            code if isinstance(code, int) else None,
            message=str(error.get("message", "")),
            status_name=error.get("status"),
        )


def classify_failure(
    status: Optional[int], message: str = "", status_name: Optional[str] = None
) -> ErrorKind:
    """Map an HTTP status code (or API status name) to an ErrorKind."""
    if status is not None:
        if status in (401, 403):
            return ErrorKind.INVALID_CREDENTIAL
        if status == 400 and "api key" in message.lower():
            return ErrorKind.INVALID_CREDENTIAL
        if status == 404:
            return ErrorKind.NOT_FOUND
        if status == 429:
            return ErrorKind.RATE_LIMITED
        if 500 <= status < 600:
            return ErrorKind.SERVER_ERROR
        return ErrorKind.UNKNOWN

    if status_name:
        return _STATUS_NAMES.get(status_name.upper(), ErrorKind.UNKNOWN)

    return ErrorKind.UNKNOWN
