"""Tests for the request lifecycle manager."""

import asyncio

import pytest

from chatbot.core.errors import (
    CANCELED_TEXT,
    ERROR_MESSAGES,
    GENERIC_FAILURE_TEXT,
    VALIDATION_TEXT,
    ConfigurationError,
    ErrorKind,
    RequestError,
    ValidationError,
)
from chatbot.core.request_manager import (
    RequestLifecycleManager,
    RequestState,
    extract_reply_text,
)
from chatbot.state.conversation_store import ConversationState, Role
from fakes import FakeAIProvider, drain, gemini_payload


def texts(state):
    return [(message.role, message.text) for message in state.store]


class TestSubmit:
    """Test cases for submitting a request."""

    def setup_method(self):
        """Set up test fixtures."""
        self.state = ConversationState()
        self.provider = FakeAIProvider()
        self.manager = RequestLifecycleManager(self.state, self.provider)

    def test_hello_round_trip(self):
        """Test a successful exchange appends user then bot message."""

        async def scenario():
            self.state.input_text = "Hello"
            session = self.manager.submit()

            assert texts(self.state) == [(Role.USER, "Hello")]
            assert self.state.input_text == ""
            assert self.state.loading is True
            assert self.manager.request_state is RequestState.SENDING

            await drain()
            self.provider.respond(gemini_payload("Hi there"))
            await self.manager.wait()
            return session

        session = asyncio.run(scenario())

        assert texts(self.state) == [(Role.USER, "Hello"), (Role.BOT, "Hi there")]
        assert self.state.loading is False
        assert self.manager.request_state is RequestState.IDLE
        assert session.outcome == "success"
        assert session.active is False
        assert self.provider.prompts == ["Hello"]

    def test_explicit_text_overrides_buffer(self):
        """Test submit(text) sends that text and still clears the buffer."""

        async def scenario():
            self.state.input_text = "draft"
            self.manager.submit("What is Python?")
            await drain()
            self.provider.respond(gemini_payload("A language."))
            await self.manager.wait()

        asyncio.run(scenario())

        assert self.provider.prompts == ["What is Python?"]
        assert self.state.input_text == ""

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_empty_input_is_rejected(self, text):
        """Test empty or whitespace-only input never reaches the endpoint."""
        self.state.input_text = text

        with pytest.raises(ValidationError) as excinfo:
            self.manager.submit()

        assert excinfo.value.message == VALIDATION_TEXT
        assert len(self.state.store) == 0
        assert self.state.input_text == text
        assert self.state.loading is False
        assert self.provider.prompts == []

    def test_submit_while_sending_is_rejected(self):
        """Test a second submit while a request is in flight is rejected."""

        async def scenario():
            self.manager.submit("first")
            await drain()
            self.state.input_text = "second"

            with pytest.raises(ValidationError):
                self.manager.submit()

            assert self.state.input_text == "second"
            assert len(self.state.store) == 1

            self.provider.respond(gemini_payload("done"))
            await self.manager.wait()

        asyncio.run(scenario())

        assert len(self.provider.prompts) == 1
        assert texts(self.state) == [(Role.USER, "first"), (Role.BOT, "done")]

    def test_unconfigured_provider_makes_no_changes(self):
        """Test a missing credential fails before any state is touched."""
        manager = RequestLifecycleManager(self.state, FakeAIProvider(configured=False))
        self.state.input_text = "Hello"

        with pytest.raises(ConfigurationError):
            manager.submit()

        assert len(self.state.store) == 0
        assert self.state.input_text == "Hello"
        assert self.state.loading is False
        assert manager.request_state is RequestState.IDLE

    def test_format_instruction_is_prefixed(self):
        """Test the format instruction is sent ahead of the user input."""
        provider = FakeAIProvider(format_instruction="Use fenced code blocks.")
        manager = RequestLifecycleManager(self.state, provider)

        async def scenario():
            manager.submit("Show a loop")
            await drain()
            provider.respond(gemini_payload("```for x in y: pass```"))
            await manager.wait()

        asyncio.run(scenario())

        assert provider.prompts == ["Use fenced code blocks.\n\nShow a loop"]
        # The stored user message is the raw input
        assert self.state.store[0].text == "Show a loop"


class TestFailures:
    """Test cases for failed requests."""

    def setup_method(self):
        """Set up test fixtures."""
        self.state = ConversationState()
        self.provider = FakeAIProvider()
        self.manager = RequestLifecycleManager(self.state, self.provider)

    def run_with(self, settle):
        async def scenario():
            session = self.manager.submit("Hello")
            await drain()
            settle(self.provider)
            await self.manager.wait()
            return session

        return asyncio.run(scenario())

    def test_rate_limit_becomes_bot_message(self):
        """Test a 429 status produces the rate limit message."""
        session = self.run_with(
            lambda p: p.fail(RequestError.from_status(429, "Quota exceeded"))
        )

        assert self.state.store[-1].role is Role.BOT
        assert self.state.store[-1].text == ERROR_MESSAGES[ErrorKind.RATE_LIMITED]
        assert self.state.loading is False
        assert session.outcome == "failed"

    def test_error_payload_becomes_bot_message(self):
        """Test an error body in a successful response is classified."""
        self.run_with(
            lambda p: p.respond(
                {"error": {"code": 400, "message": "API key not valid.", "status": "INVALID_ARGUMENT"}}
            )
        )

        assert self.state.store[-1].text == ERROR_MESSAGES[ErrorKind.INVALID_CREDENTIAL]

    def test_malformed_payload_gives_generic_message(self):
        """Test a response without candidate text gives the generic message."""
        self.run_with(lambda p: p.respond({"candidates": []}))

        assert self.state.store[-1].text == GENERIC_FAILURE_TEXT
        assert self.manager.request_state is RequestState.IDLE

    def test_unexpected_exception_is_contained(self):
        """Test an unexpected exception still settles the session."""
        session = self.run_with(lambda p: p.fail(KeyError("boom")))

        assert self.state.store[-1].text == GENERIC_FAILURE_TEXT
        assert session.outcome == "failed"

    def test_can_send_again_after_failure(self):
        """Test the manager returns to idle and accepts the next request."""
        self.run_with(lambda p: p.fail(RequestError.from_status(503)))

        async def scenario():
            self.manager.submit("again")
            await drain()
            self.provider.respond(gemini_payload("ok"))
            await self.manager.wait()

        asyncio.run(scenario())

        assert [m.text for m in self.state.store][-2:] == ["again", "ok"]


class TestCancel:
    """Test cases for cancelling a request."""

    def setup_method(self):
        """Set up test fixtures."""
        self.state = ConversationState()

    def test_cancel_appends_canceled_message(self):
        """Test cancel settles the session immediately."""
        provider = FakeAIProvider()
        manager = RequestLifecycleManager(self.state, provider)

        async def scenario():
            session = manager.submit("Hello")
            await drain()

            assert manager.cancel() is True
            assert self.state.store[-1].text == CANCELED_TEXT
            assert self.state.loading is False
            assert manager.request_state is RequestState.IDLE

            await manager.wait()
            return session

        session = asyncio.run(scenario())

        assert session.outcome == "cancelled"
        assert session.token.cancelled
        assert provider.tokens[0] is session.token
        assert texts(self.state) == [(Role.USER, "Hello"), (Role.BOT, CANCELED_TEXT)]

    def test_cancel_before_request_starts(self):
        """Test cancelling in the same tick as submit."""
        provider = FakeAIProvider()
        manager = RequestLifecycleManager(self.state, provider)

        async def scenario():
            manager.submit("Hello")
            manager.cancel()
            await manager.wait()

        asyncio.run(scenario())

        assert texts(self.state) == [(Role.USER, "Hello"), (Role.BOT, CANCELED_TEXT)]

    def test_cancel_when_idle_does_nothing(self):
        """Test cancel without a request in flight."""
        manager = RequestLifecycleManager(self.state, FakeAIProvider())

        assert manager.cancel() is False
        assert len(self.state.store) == 0

    def test_cancel_twice_appends_once(self):
        """Test a second cancel is a no-op."""
        manager = RequestLifecycleManager(self.state, FakeAIProvider())

        async def scenario():
            manager.submit("Hello")
            await drain()
            assert manager.cancel() is True
            assert manager.cancel() is False
            await manager.wait()

        asyncio.run(scenario())

        assert [m.text for m in self.state.store].count(CANCELED_TEXT) == 1

    def test_late_success_is_discarded(self):
        """Test a reply arriving after cancel is never appended."""
        provider = FakeAIProvider(ignore_cancel=True)
        manager = RequestLifecycleManager(self.state, provider)

        async def scenario():
            manager.submit("Hello")
            await drain()
            manager.cancel()
            provider.respond(gemini_payload("too late"))
            await manager.wait()

        asyncio.run(scenario())

        assert texts(self.state) == [(Role.USER, "Hello"), (Role.BOT, CANCELED_TEXT)]

    def test_late_error_is_discarded(self):
        """Test a failure arriving after cancel is never appended."""
        provider = FakeAIProvider(ignore_cancel=True)
        manager = RequestLifecycleManager(self.state, provider)

        async def scenario():
            manager.submit("Hello")
            await drain()
            manager.cancel()
            provider.fail(RequestError.from_status(500))
            await manager.wait()

        asyncio.run(scenario())

        assert texts(self.state) == [(Role.USER, "Hello"), (Role.BOT, CANCELED_TEXT)]

    def test_stale_reply_does_not_leak_into_next_session(self):
        """Test an old session's reply is dropped once a new one is active."""
        provider = FakeAIProvider(ignore_cancel=True)
        manager = RequestLifecycleManager(self.state, provider)

        async def scenario():
            first = manager.submit("first")
            await drain()
            manager.cancel()

            second = manager.submit("second")
            await drain()

            provider.respond(gemini_payload("stale"), call=0)
            await first.task
            assert manager.is_sending

            provider.respond(gemini_payload("fresh"), call=1)
            await second.task

        asyncio.run(scenario())

        assert [m.text for m in self.state.store] == [
            "first",
            CANCELED_TEXT,
            "second",
            "fresh",
        ]

    def test_external_task_cancel_settles_session(self):
        """Test cancelling the task directly still leaves the manager idle."""
        manager = RequestLifecycleManager(self.state, FakeAIProvider())

        async def scenario():
            session = manager.submit("Hello")
            await drain()
            session.task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await session.task
            return session

        session = asyncio.run(scenario())

        assert session.token.cancelled
        assert self.state.store[-1].text == CANCELED_TEXT
        assert manager.request_state is RequestState.IDLE


class TestExtractReplyText:
    """Test cases for reading the reply out of a response payload."""

    def test_first_candidate_text(self):
        payload = {
            "candidates": [
                {"content": {"parts": [{"text": "one"}, {"text": "two"}]}},
                {"content": {"parts": [{"text": "other"}]}},
            ]
        }

        assert extract_reply_text(payload) == "one"

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {},
            {"candidates": []},
            {"candidates": [{"content": {}}]},
            {"candidates": [{"content": {"parts": []}}]},
            {"candidates": [{"content": {"parts": [{"text": ""}]}}]},
            {"candidates": [{"content": {"parts": [{"inline_data": {}}]}}]},
        ],
    )
    def test_malformed_payloads(self, payload):
        with pytest.raises(RequestError) as excinfo:
            extract_reply_text(payload)

        assert excinfo.value.kind is ErrorKind.MALFORMED_RESPONSE

    def test_error_payload(self):
        with pytest.raises(RequestError) as excinfo:
            extract_reply_text({"error": {"code": 404, "message": "models/x is not found"}})

        assert excinfo.value.kind is ErrorKind.NOT_FOUND
        assert excinfo.value.status == 404
