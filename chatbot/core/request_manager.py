"""
Request lifecycle: one in-flight generation request at a time, with cancellation.
"""

import asyncio
import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional
import structlog

from ..providers.ai.base import AIProvider
from ..state.conversation_store import ConversationState
from .cancellation import CancelToken
from .errors import (
    CANCELED_TEXT,
    GENERIC_FAILURE_TEXT,
    VALIDATION_TEXT,
    CancellationError,
    ConfigurationError,
    ErrorKind,
    RequestError,
    ValidationError,
)


logger = structlog.get_logger()

_session_ids = itertools.count(1)


class RequestState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"


@dataclass(eq=False)
class RequestSession:
    """One request/response exchange, identified by its cancel token."""

    id: int = field(default_factory=lambda: next(_session_ids))
    token: CancelToken = field(default_factory=CancelToken)
    active: bool = True
    task: Optional[asyncio.Task] = None
    outcome: Optional[str] = None


def extract_reply_text(payload: Dict[str, Any]) -> str:
    """
    Pull the first candidate's text out of a generation response.

    Raises:
        RequestError: If the payload reports an error or has no usable text
    """
    if not isinstance(payload, dict):
        raise RequestError(
            "Response is not a JSON object", kind=ErrorKind.MALFORMED_RESPONSE
        )

    if payload.get("error"):
        error = payload["error"]
        raise RequestError.from_payload(error if isinstance(error, dict) else {"message": str(error)})

    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise RequestError(
            "Response has no candidate text", kind=ErrorKind.MALFORMED_RESPONSE
        ) from e

    if not isinstance(text, str) or not text:
        raise RequestError("Candidate text is empty", kind=ErrorKind.MALFORMED_RESPONSE)

    return text


class RequestLifecycleManager:
    """
    Orchestrates send, cancel and failure for exactly one outstanding request.

    Reads/writes on the shared state:
        submit: reads ``input_text``; appends a user message, clears
            ``input_text`` and sets ``loading``.
        settlement and cancel: append one bot message, clear ``loading``.
    """

    def __init__(self, state: ConversationState, ai_provider: AIProvider):
        self.state = state
        self.ai_provider = ai_provider
        self._session: Optional[RequestSession] = None
        self._request_state = RequestState.IDLE

    @property
    def request_state(self) -> RequestState:
        return self._request_state

    @property
    def is_sending(self) -> bool:
        return self._request_state is RequestState.SENDING

    @property
    def current_session(self) -> Optional[RequestSession]:
        return self._session

    def submit(self, text: Optional[str] = None) -> RequestSession:
        """
        Validate the input and start a request for it.

        Must be called from a running event loop. Side effects happen in a
        fixed order: append user message, clear input, issue request.

        Args:
            text: Input to send; defaults to the shared input buffer

        Returns:
            The new active session

        Raises:
            ValidationError: Empty input, or a request is already in flight
            ConfigurationError: The provider has no credential or endpoint
        """
        user_input = self.state.input_text if text is None else text

        if not user_input.strip() or self.is_sending:
            logger.debug(
                "Submit rejected",
                empty=not user_input.strip(),
                request_state=self._request_state.value,
            )
            raise ValidationError(VALIDATION_TEXT)

        if not self.ai_provider.is_configured():
            raise ConfigurationError(
                "The generation endpoint is not configured. Set GEMINI_API_KEY."
            )

        self.state.store.add_user_message(user_input)
        self.state.input_text = ""
        self.state.loading = True

        session = RequestSession()
        self._session = session
        self._request_state = RequestState.SENDING
        session.task = asyncio.get_running_loop().create_task(
            self._run(session, user_input)
        )

        logger.info("Request submitted", session_id=session.id, length=len(user_input))
        return session

    async def _run(self, session: RequestSession, user_input: str) -> None:
        prompt = self.ai_provider.build_prompt(user_input)
        try:
            payload = await self.ai_provider.generate_content(prompt, session.token)
            reply = extract_reply_text(payload)
        except CancellationError:
            self._settle(session, CANCELED_TEXT, outcome="cancelled")
        except asyncio.CancelledError:
            if not session.token.cancelled:
                # Cancelled from outside (e.g. loop shutdown) rather than by cancel().
                session.token.cancel()
                self._settle(session, CANCELED_TEXT, outcome="cancelled")
                raise
        except RequestError as e:
            logger.warning(
                "Generation request failed",
                session_id=session.id,
                kind=e.kind.value,
                status=e.status,
                error=e.message,
            )
            self._settle(session, e.user_message, outcome="failed")
        except Exception as e:
            logger.error(
                "Unexpected error during generation request",
                session_id=session.id,
                error=str(e),
                exc_info=True,
            )
            self._settle(session, GENERIC_FAILURE_TEXT, outcome="failed")
        else:
            if session.token.cancelled:
                self._settle(session, CANCELED_TEXT, outcome="cancelled")
            else:
                self._settle(session, reply, outcome="success")

    def _settle(self, session: RequestSession, text: str, outcome: str) -> None:
        """Append the outcome for a session unless it was superseded."""
        if not session.active or session is not self._session:
            logger.debug(
                "Discarding settlement of superseded session",
                session_id=session.id,
                outcome=outcome,
            )
            return

        session.active = False
        session.outcome = outcome
        self.state.store.add_bot_message(text)
        self.state.loading = False
        self._request_state = RequestState.IDLE
        logger.info("Request settled", session_id=session.id, outcome=outcome)

    def cancel(self) -> bool:
        """
        Cancel the active request without waiting for it to settle.

        Returns:
            True if a request was cancelled, False if there was none
        """
        session = self._session
        if not self.is_sending or session is None:
            return False

        session.token.cancel()
        self._settle(session, CANCELED_TEXT, outcome="cancelled")
        if session.task is not None and not session.task.done():
            session.task.cancel()
        return True

    async def wait(self) -> None:
        """Wait for the current session's task to finish."""
        session = self._session
        if session is None or session.task is None:
            return
        try:
            await session.task
        except asyncio.CancelledError:
            if not session.token.cancelled:
                raise

    def get_status(self) -> dict:
        return {
            "request_state": self._request_state.value,
            "session_id": self._session.id if self._session else None,
            "loading": self.state.loading,
        }
