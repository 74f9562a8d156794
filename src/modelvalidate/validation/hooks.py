"""Validation lifecycle hooks.

Listeners are registered explicitly against a record type and an event. A
listener registered for a base class also hears events fired for records of
its subclasses.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

HookCallback = Callable[[Any], Any]


class HookEvent(str, Enum):
    """Events fired around a validation pass."""
    VALIDATING = "validating"
    VALIDATED = "validated"


@dataclass(frozen=True)
class _Listener:
    event: HookEvent
    record_type: type
    callback: HookCallback


class HookRegistry:
    """Holds validation listeners keyed by event and record type."""

    def __init__(self):
        self._listeners: list[_Listener] = []

    def listen(self, event: HookEvent | str, record_type: type, callback: HookCallback) -> HookCallback:
        """Register ``callback`` for ``event`` on ``record_type`` and its subclasses.

        Returns the callback so the method can be used as a decorator helper.
        """
        listener = _Listener(HookEvent(event), record_type, callback)
        self._listeners.append(listener)
        logger.debug(f"Registered {listener.event.value} listener for {record_type.__name__}")
        return callback

    def forget(self, record_type: type | None = None, event: HookEvent | str | None = None) -> None:
        """Remove listeners, optionally only those of one record type and/or event."""
        event = HookEvent(event) if event is not None else None
        self._listeners = [
            listener for listener in self._listeners
            if not (
                (record_type is None or listener.record_type is record_type)
                and (event is None or listener.event is event)
            )
        ]

    def clear(self) -> None:
        """Remove every listener."""
        self._listeners = []

    def listeners(self, event: HookEvent | str, record: Any) -> list[HookCallback]:
        event = HookEvent(event)
        return [
            listener.callback for listener in self._listeners
            if listener.event is event and isinstance(record, listener.record_type)
        ]

    def fire(self, event: HookEvent | str, record: Any) -> list[Any]:
        """Call the listeners of ``event`` for ``record`` in registration order.

        Dispatch stops at the first listener returning ``False``, so a veto
        is always the last element of the returned list. An empty list means
        nobody was listening.
        """
        results = []
        for callback in self.listeners(event, record):
            result = callback(record)
            results.append(result)
            if result is False:
                logger.debug(f"{HookEvent(event).value} halted by {getattr(callback, '__name__', callback)!r}")
                break
        return results


def is_veto(results: list[Any]) -> bool:
    """Check whether fired results ask to halt."""
    return bool(results) and results[-1] is False


default_registry = HookRegistry()
