"""Tests for the conversation store."""

import pytest

from chatbot.state.conversation_store import ConversationState, ConversationStore, Role


class TestConversationStore:
    """Test cases for ConversationStore."""

    def setup_method(self):
        """Set up test fixtures."""
        self.store = ConversationStore()

    def test_append_order_is_display_order(self):
        self.store.add_user_message("Hello")
        self.store.add_bot_message("Hi there")

        assert [(m.role, m.text) for m in self.store] == [
            (Role.USER, "Hello"),
            (Role.BOT, "Hi there"),
        ]
        assert len(self.store) == 2

    def test_empty_text_is_rejected(self):
        with pytest.raises(ValueError):
            self.store.add_bot_message("")

        assert len(self.store) == 0

    def test_messages_is_a_snapshot(self):
        self.store.add_user_message("Hello")

        snapshot = self.store.messages
        snapshot.clear()

        assert len(self.store) == 1

    def test_get_out_of_range(self):
        self.store.add_user_message("Hello")

        assert self.store.get(0).text == "Hello"
        assert self.store.get(1) is None
        assert self.store.get(-1) is None

    def test_listeners_receive_index_and_message(self):
        seen = []
        self.store.subscribe(lambda index, message: seen.append((index, message.text)))

        self.store.add_user_message("a")
        self.store.add_bot_message("b")

        assert seen == [(0, "a"), (1, "b")]

    def test_listener_error_does_not_block_append(self):
        """Test a failing listener is contained and later listeners still run."""
        seen = []

        def broken(index, message):
            raise RuntimeError("render failed")

        self.store.subscribe(broken)
        self.store.subscribe(lambda index, message: seen.append(index))

        self.store.add_user_message("a")

        assert len(self.store) == 1
        assert seen == [0]

    def test_unsubscribe(self):
        seen = []
        listener = lambda index, message: seen.append(index)  # noqa: E731
        self.store.subscribe(listener)
        self.store.unsubscribe(listener)
        self.store.unsubscribe(listener)

        self.store.add_user_message("a")

        assert seen == []

    def test_to_dict(self):
        message = self.store.add_bot_message("Hi")

        data = message.to_dict()

        assert data["text"] == "Hi"
        assert data["role"] == "bot"
        assert "created_at" in data


def test_state_defaults():
    state = ConversationState()

    assert state.input_text == ""
    assert state.loading is False
    assert len(state.store) == 0
