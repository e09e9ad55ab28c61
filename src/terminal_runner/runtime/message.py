"""Tagged output chunks delivered by a running process.

A Message is one chunk read from either stdout (OUTPUT) or stderr (ERROR).
The streaming path never merges chunks; ``+`` and the join helpers exist
for callers that accumulate.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

__all__ = [
    "Message",
    "MessageKind",
    "MessageObserver",
    "MessageCollector",
    "join_messages",
    "join_text",
]


class MessageKind(str, Enum):
    """Origin stream of a chunk."""

    OUTPUT = "output"
    ERROR = "error"


@dataclass(frozen=True)
class Message:
    """One chunk of bytes, tagged with the stream it came from.

    Attributes:
        kind: OUTPUT for stdout, ERROR for stderr
        data: Raw bytes, exactly as returned by the read
    """

    kind: MessageKind
    data: bytes

    @classmethod
    def output(cls, data: bytes) -> Message:
        return cls(MessageKind.OUTPUT, bytes(data))

    @classmethod
    def error(cls, data: bytes) -> Message:
        return cls(MessageKind.ERROR, bytes(data))

    @property
    def is_output(self) -> bool:
        return self.kind is MessageKind.OUTPUT

    @property
    def is_error(self) -> bool:
        return self.kind is MessageKind.ERROR

    @property
    def text(self) -> Optional[str]:
        """Chunk decoded as UTF-8, or None if the bytes are not valid UTF-8."""
        try:
            return self.data.decode("utf-8")
        except UnicodeDecodeError:
            return None

    def __add__(self, other: Message) -> Message:
        """Concatenate two chunks.

        Same kinds keep their kind. Mixing OUTPUT and ERROR (in either
        order) yields OUTPUT, so the channel tag is lost.
        """
        if not isinstance(other, Message):
            return NotImplemented
        if self.kind is other.kind:
            kind = self.kind
        else:
            kind = MessageKind.OUTPUT
        return Message(kind, self.data + other.data)

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        preview = self.data[:40]
        suffix = "..." if len(self.data) > 40 else ""
        return f"Message.{self.kind.value}({preview!r}{suffix})"


MessageObserver = Callable[[Message], None]


class MessageCollector:
    """Observer that records every message it is handed, in order.

    Safe to read from another thread while deliveries are still happening.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._messages: list[Message] = []

    def __call__(self, message: Message) -> None:
        with self._lock:
            self._messages.append(message)

    @property
    def messages(self) -> list[Message]:
        """Snapshot of the messages collected so far."""
        with self._lock:
            return list(self._messages)

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)


def join_messages(messages: Iterable[Message]) -> Optional[Message]:
    """Fold messages with ``+``. Returns None for an empty sequence."""
    joined: Optional[Message] = None
    for message in messages:
        joined = message if joined is None else joined + message
    return joined


def join_text(messages: Iterable[Message]) -> Optional[str]:
    """Decode the concatenated bytes of all messages as UTF-8.

    Chunks may split multi-byte characters, so decoding happens after
    joining. Returns None if the result is not valid UTF-8.
    """
    data = b"".join(message.data for message in messages)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None
