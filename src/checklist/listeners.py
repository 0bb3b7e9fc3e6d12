"""Listener registry — who gets told when a checklist item changes.

Membership is by identity and kept in registration order. Dispatch always
iterates a snapshot so a listener may add/remove listeners (itself included)
from inside its callback.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .item import ChecklistItem
    from .manager import ChecklistManager

logger = logging.getLogger(__name__)


@runtime_checkable
class ChecklistListener(Protocol):
    def on_item_changed(self, manager: ChecklistManager, item: ChecklistItem) -> None: ...


class CallbackListener:
    """Adapts a plain ``fn(manager, item)`` callable to the listener protocol."""

    def __init__(self, fn: Callable[[Any, Any], Any]) -> None:
        self.fn = fn

    def on_item_changed(self, manager: ChecklistManager, item: ChecklistItem) -> None:
        self.fn(manager, item)


class ListenerRegistry:
    """Thread-safe, ordered, identity-keyed listener set."""

    def __init__(self) -> None:
        self._listeners: list[ChecklistListener] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._listeners)

    def __contains__(self, listener: object) -> bool:
        with self._lock:
            return any(existing is listener for existing in self._listeners)

    def add(self, listener: ChecklistListener | None) -> bool:
        """Register ``listener``. Returns False if None or already registered."""
        if listener is None:
            return False
        with self._lock:
            if any(existing is listener for existing in self._listeners):
                return False
            self._listeners.append(listener)
        return True

    def remove(self, listener: ChecklistListener | None) -> bool:
        if listener is None:
            return False
        with self._lock:
            for i, existing in enumerate(self._listeners):
                if existing is listener:
                    del self._listeners[i]
                    return True
        return False

    def snapshot(self) -> list[ChecklistListener]:
        with self._lock:
            return list(self._listeners)

    def dispatch(self, manager: ChecklistManager, item: ChecklistItem) -> int:
        """Call every listener once. Returns how many of them raised."""
        failures = 0
        for listener in self.snapshot():
            try:
                listener.on_item_changed(manager, item)
            except Exception:
                failures += 1
                logger.exception("Checklist listener error (%r, item=%s)", listener, item.name)
        return failures
