"""Ordered, mergeable multi-map of field paths to error messages."""

from collections.abc import Iterable, Iterator, Mapping
from typing import Union

MessageSource = Union["ErrorBag", Mapping[str, Union[str, Iterable[str]]]]


def _as_messages(value: str | Iterable[str]) -> list[str]:
    if isinstance(value, str):
        return [value]
    return [str(message) for message in value]


class ErrorBag:
    """Error messages keyed by field path.

    Keys keep their first insertion order and messages for a key keep the
    order they were added in. Merging always appends, so nothing already in
    the bag is ever dropped by a merge.
    """

    def __init__(self, messages: MessageSource | None = None):
        self._messages: dict[str, list[str]] = {}
        if messages:
            self.merge(messages)

    def flush(self) -> "ErrorBag":
        """Remove every message."""
        self._messages = {}
        return self

    def merge(self, incoming: MessageSource) -> "ErrorBag":
        """Append the messages of ``incoming`` key by key."""
        if isinstance(incoming, ErrorBag):
            incoming = incoming._messages

        for key, value in incoming.items():
            messages = _as_messages(value)
            if not messages:
                continue
            self._messages.setdefault(key, []).extend(messages)

        return self

    def add(self, key: str, message: str | Iterable[str]) -> "ErrorBag":
        """Add one message or a list of messages for ``key``."""
        return self.merge({key: message})

    def has(self, key: str) -> bool:
        return bool(self._messages.get(key))

    def get(self, key: str) -> list[str]:
        return list(self._messages.get(key, []))

    def first(self, key: str) -> str | None:
        messages = self._messages.get(key)
        return messages[0] if messages else None

    def remove(self, key: str) -> "ErrorBag":
        """Drop ``key`` and all of its messages.

        The mapping is rebuilt without empty entries so a key that lost all
        its messages cannot reappear as an empty phantom key.
        """
        self._messages = {
            field: messages
            for field, messages in self._messages.items()
            if field != key and messages
        }
        return self

    def is_empty(self) -> bool:
        return self.count() == 0

    def count(self) -> int:
        """Total number of messages across all keys."""
        return sum(len(messages) for messages in self._messages.values())

    def keys(self) -> list[str]:
        return list(self._messages)

    def all(self) -> list[str]:
        """Every message, flattened in key order."""
        return [message for messages in self._messages.values() for message in messages]

    def messages(self) -> dict[str, list[str]]:
        """Copy of the key to messages mapping."""
        return {key: list(messages) for key, messages in self._messages.items()}

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "count": self.count(),
            "errors": self.messages(),
        }

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.has(key)

    def __iter__(self) -> Iterator[tuple[str, list[str]]]:
        return iter(self.messages().items())

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorBag):
            return self._messages == other._messages
        if isinstance(other, Mapping):
            return self._messages == {key: list(value) for key, value in other.items()}
        return NotImplemented

    def __repr__(self) -> str:
        return f"ErrorBag({self._messages!r})"
