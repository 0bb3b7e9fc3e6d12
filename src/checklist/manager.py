"""Checklist manager — ordered items, aggregate verdict, listener fan-out.

The manager owns the order of its items, starts/stops their monitoring as a
unit, folds their reports into one overall severity and tells listeners about
changes. It never creates items and never decides readiness on its own:
``is_ready_to_fly`` is set by the caller.

Locking:
- ``_state_lock`` guards the collection, cached per-item values, the overall
  verdict and flags. It is never held while calling into an item or listener.
- ``_lifecycle_lock`` (re-entrant) serializes structural edits, start/stop and
  camera-index pushes so an item is started at most once and never sits
  unmonitored while the list is being checked.
Item reports only take ``_state_lock``, so an item may report from inside its
own ``start_monitoring()`` and a listener may call back into the manager.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from .errors import AnchorNotFound, DuplicateItem, InvalidItem
from .item import ChecklistItem
from .listeners import ChecklistListener, ListenerRegistry
from .severity import Severity, aggregate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemSnapshot:
    """Latest values the manager has processed for one item."""

    name: str
    state: Severity
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "state": self.state.label, "description": self.description}


class ChecklistManager:
    """Aggregates a dynamic, ordered set of checklist items.

    Lifecycle:
        manager = ChecklistManager()
        manager.add(item)
        manager.add_listener(listener)
        manager.start_checking_list()
        ...
        manager.stop_checking_list()
    """

    def __init__(self, preferred_camera_index: int = 0) -> None:
        self._state_lock = threading.Lock()
        self._lifecycle_lock = threading.RLock()
        self._changed = threading.Condition(self._state_lock)

        self._items: list[ChecklistItem] = []
        self._states: dict[int, Severity] = {}
        self._descriptions: dict[int, str] = {}
        self._started: set[int] = set()  # guarded by _lifecycle_lock

        self._overall = Severity.SAFE
        self._ready_to_fly = False
        self._camera_index = preferred_camera_index
        self._monitoring = False

        self._listeners = ListenerRegistry()

    @classmethod
    def from_items(
        cls, items: Iterable[ChecklistItem], preferred_camera_index: int = 0,
    ) -> ChecklistManager:
        manager = cls(preferred_camera_index=preferred_camera_index)
        for item in items:
            manager.add(item)
        return manager

    def __repr__(self) -> str:
        return (
            f"<ChecklistManager items={self.count()} overall={self.overall_state.label} "
            f"monitoring={self.monitoring_active}>"
        )

    # -- readiness -------------------------------------------------------------

    @property
    def overall_state(self) -> Severity:
        with self._state_lock:
            return self._overall

    @property
    def is_ready_to_fly(self) -> bool:
        with self._state_lock:
            return self._ready_to_fly

    @is_ready_to_fly.setter
    def is_ready_to_fly(self, value: bool) -> None:
        with self._state_lock:
            self._ready_to_fly = bool(value)

    @property
    def monitoring_active(self) -> bool:
        with self._state_lock:
            return self._monitoring

    @property
    def preferred_camera_index(self) -> int:
        with self._state_lock:
            return self._camera_index

    @preferred_camera_index.setter
    def preferred_camera_index(self, index: int) -> None:
        with self._lifecycle_lock:
            with self._state_lock:
                self._camera_index = int(index)
                items = list(self._items)
            for item in items:
                self._push_camera_index(item, int(index))

    # -- ordered collection ----------------------------------------------------

    @property
    def items(self) -> tuple[ChecklistItem, ...]:
        with self._state_lock:
            return tuple(self._items)

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[ChecklistItem]:
        return iter(self.items)

    def __contains__(self, item: object) -> bool:
        with self._state_lock:
            return id(item) in self._states

    def count(self) -> int:
        with self._state_lock:
            return len(self._items)

    def item_at(self, index: int) -> ChecklistItem | None:
        """Item at ``index``, or None when out of range (negatives included)."""
        with self._state_lock:
            if 0 <= index < len(self._items):
                return self._items[index]
        return None

    def index_of(self, item: ChecklistItem) -> int | None:
        with self._state_lock:
            return self._position(item)

    def add(self, item: ChecklistItem | None) -> None:
        """Append ``item`` to the end of the checklist."""
        if item is None:
            raise InvalidItem("Cannot add None to the checklist")

        def at_end() -> int:
            if id(item) in self._states:
                raise InvalidItem(f"Item already in checklist: {item.name}")
            return len(self._items)

        self._insert(item, at_end)

    def insert_after(self, item: ChecklistItem | None, anchor: ChecklistItem | None) -> None:
        self._insert_relative(item, anchor, offset=1)

    def insert_before(self, item: ChecklistItem | None, anchor: ChecklistItem | None) -> None:
        self._insert_relative(item, anchor, offset=0)

    def remove(self, item: ChecklistItem | None) -> bool:
        """Remove ``item``; no-op (returns False) when it isn't present.

        A monitored item is stopped before it is detached, so its later
        reports are ignored.
        """
        if item is None:
            return False
        with self._lifecycle_lock:
            with self._state_lock:
                if id(item) not in self._states:
                    return False
            if id(item) in self._started:
                self._stop_item(item)
            with self._state_lock:
                self._items.pop(self._position(item))
                del self._states[id(item)]
                del self._descriptions[id(item)]
                self._recompute()
                self._changed.notify_all()
            item._detach(self)
        logger.debug("Removed checklist item %s", item.name)
        return True

    def snapshot(self) -> list[ItemSnapshot]:
        with self._state_lock:
            return [
                ItemSnapshot(i.name, self._states[id(i)], self._descriptions[id(i)])
                for i in self._items
            ]

    # -- monitoring lifecycle ----------------------------------------------------

    def start_checking_list(self) -> None:
        """Start monitoring every item, in list order. No-op if already started."""
        with self._lifecycle_lock:
            with self._state_lock:
                if self._monitoring:
                    return
                self._monitoring = True
                items = list(self._items)
            for item in items:
                self._start_item(item)
        logger.info("Checklist monitoring started: %d items", len(items))

    def stop_checking_list(self) -> None:
        """Stop monitoring every item. No-op if not started."""
        with self._lifecycle_lock:
            with self._state_lock:
                if not self._monitoring:
                    return
                items = list(self._items)
            for item in items:
                if id(item) in self._started:
                    self._stop_item(item)
            self._started.clear()
            with self._state_lock:
                self._monitoring = False
        logger.info("Checklist monitoring stopped")

    def wait_until_settled(self, timeout: float | None = None) -> bool:
        """Block until no item is PENDING. Returns False on timeout."""
        with self._changed:
            return self._changed.wait_for(
                lambda: Severity.PENDING not in self._states.values(), timeout,
            )

    # -- item → manager ------------------------------------------------------------

    def item_changed(
        self,
        item: ChecklistItem,
        did_change_state: bool,
        did_change_description: bool,
    ) -> None:
        """Process a report from ``item``; thread-safe, callable from anywhere."""
        with self._state_lock:
            key = id(item)
            if key not in self._states:
                logger.debug("Ignoring report from item not in checklist: %r", item)
                return

            changed = False
            if did_change_state:
                state = item.report_state()
                if state != self._states[key]:
                    self._states[key] = state
                    changed = True
            if did_change_description:
                description = item.report_description()
                if description != self._descriptions[key]:
                    self._descriptions[key] = description
                    changed = True

            previous = self._overall
            self._recompute()
            if self._overall != previous:
                changed = True
                logger.info(
                    "Overall checklist state %s -> %s (via %s)",
                    previous.label, self._overall.label, item.name,
                )
            if changed:
                self._changed.notify_all()

        if changed:
            self._listeners.dispatch(self, item)

    # -- listeners -------------------------------------------------------------------

    def add_listener(self, listener: ChecklistListener | None) -> None:
        self._listeners.add(listener)

    def remove_listener(self, listener: ChecklistListener | None) -> None:
        self._listeners.remove(listener)

    @property
    def listeners(self) -> list[ChecklistListener]:
        return self._listeners.snapshot()

    # -- internals ---------------------------------------------------------------------

    def _position(self, item: object) -> int | None:
        for i, existing in enumerate(self._items):
            if existing is item:
                return i
        return None

    def _recompute(self) -> None:
        self._overall = aggregate(self._states.values())

    def _insert_relative(
        self, item: ChecklistItem | None, anchor: ChecklistItem | None, offset: int,
    ) -> None:
        if item is None:
            raise InvalidItem("Cannot insert None into the checklist")

        def next_to_anchor() -> int:
            if id(item) in self._states:
                raise DuplicateItem(f"Item already in checklist: {item.name}")
            position = self._position(anchor) if anchor is not None else None
            if position is None:
                raise AnchorNotFound(f"Anchor not in checklist: {anchor!r}")
            return position + offset

        self._insert(item, next_to_anchor)

    def _insert(self, item: ChecklistItem, resolve: Callable[[], int]) -> None:
        with self._lifecycle_lock:
            # positions stay valid: structural edits all hold _lifecycle_lock
            with self._state_lock:
                index = resolve()
            item._attach(self)
            with self._state_lock:
                self._items.insert(index, item)
                self._states[id(item)] = item.report_state()
                self._descriptions[id(item)] = item.report_description()
                self._recompute()
                self._changed.notify_all()
                camera_index = self._camera_index
                monitoring = self._monitoring
            self._push_camera_index(item, camera_index)
            if monitoring:
                self._start_item(item)
        logger.debug("Inserted checklist item %s at %d", item.name, index)

    def _push_camera_index(self, item: ChecklistItem, index: int) -> None:
        if not item.supports_camera_index:
            return
        try:
            item.set_preferred_camera_index(index)
        except Exception:
            logger.exception("Failed to push camera index %d to %s", index, item.name)

    def _start_item(self, item: ChecklistItem) -> None:
        key = id(item)
        if key in self._started:
            return
        with self._state_lock:
            if key not in self._states:
                return  # removed earlier in this start pass
        # recorded first so a removal triggered from inside start() stops it
        self._started.add(key)
        try:
            item.start_monitoring()
        except Exception:
            self._started.discard(key)
            logger.exception("Failed to start monitoring for %s", item.name)

    def _stop_item(self, item: ChecklistItem) -> None:
        self._started.discard(id(item))
        try:
            item.stop_monitoring()
        except Exception:
            logger.exception("Failed to stop monitoring for %s", item.name)
