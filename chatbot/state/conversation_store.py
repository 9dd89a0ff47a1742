"""Conversation state: the message log, input buffer and loading flag."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Iterator, List, Optional
import structlog


logger = structlog.get_logger()


class Role(str, Enum):
    """Author of a message."""

    USER = "user"
    BOT = "bot"


@dataclass(frozen=True)
class Message:
    """A single entry in the conversation. Never mutated once appended."""

    text: str
    role: Role
    created_at: str = field(
        default_factory=lambda: datetime.now().isoformat(), compare=False
    )

    def to_dict(self) -> dict:
        """Convert message to dictionary for serialization."""
        return {"text": self.text, "role": self.role.value, "created_at": self.created_at}


MessageListener = Callable[[int, Message], None]


class ConversationStore:
    """Append-only, ordered log of messages for one session.

    Insertion order is display order. Listeners are called with
    ``(index, message)`` after every append.
    """

    def __init__(self):
        self._messages: List[Message] = []
        self._listeners: List[MessageListener] = []

    def add_user_message(self, text: str) -> Message:
        """Append a user message."""
        return self._append(Message(text=text, role=Role.USER))

    def add_bot_message(self, text: str) -> Message:
        """Append a bot message."""
        return self._append(Message(text=text, role=Role.BOT))

    def _append(self, message: Message) -> Message:
        if not message.text:
            raise ValueError("Message text must not be empty")

        self._messages.append(message)
        index = len(self._messages) - 1
        logger.debug(
            "Message appended", index=index, role=message.role.value, length=len(message.text)
        )

        for listener in list(self._listeners):
            try:
                listener(index, message)
            except Exception as e:
                logger.error("Message listener error", index=index, error=str(e))

        return message

    def subscribe(self, listener: MessageListener) -> None:
        """Register a callback to be called on every append."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: MessageListener) -> None:
        """Unregister an append callback."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def messages(self) -> List[Message]:
        """Snapshot of the log."""
        return list(self._messages)

    def get(self, index: int) -> Optional[Message]:
        """Get a message by index, or None when out of range."""
        if 0 <= index < len(self._messages):
            return self._messages[index]
        return None

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))


@dataclass
class ConversationState:
    """State owned by one conversation, shared explicitly between components.

    Writers:
        store: RequestLifecycleManager and the reason helper.
        input_text: direct typing and the voice capture adapter (last writer wins).
        loading: RequestLifecycleManager.
    """

    store: ConversationStore = field(default_factory=ConversationStore)
    input_text: str = ""
    loading: bool = False
