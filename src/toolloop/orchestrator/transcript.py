"""Append-only conversation transcript."""

from __future__ import annotations

from typing import TYPE_CHECKING

from toolloop.protocols import Message

if TYPE_CHECKING:
    from collections.abc import Iterator


class Transcript:
    """Ordered log of messages sent to the chat API.

    The only mutation is :meth:`append`; messages are frozen, so nothing
    already in the log can change.
    """

    def __init__(self, messages: tuple[Message, ...] | list[Message] = ()) -> None:
        self._messages: list[Message] = []
        for message in messages:
            self.append(message)

    def append(self, message: Message) -> Message:
        if not isinstance(message, Message):
            raise TypeError(f"Expected Message, got {type(message).__name__}")
        self._messages.append(message)
        return message

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def to_openai(self) -> list[dict]:
        return [m.to_openai() for m in self._messages]

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    def __repr__(self) -> str:
        return f"<Transcript: {len(self._messages)} messages>"
