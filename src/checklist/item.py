"""Checklist item contract — the capability a manager consumes.

An item owns its own check logic and concurrency. It only has to:
- expose its latest severity + description,
- start / stop its monitoring when the manager says so,
- tell its manager when either facet changes (from any thread).

Subclasses call ``_update()`` whenever they learn something new; the base
class diffs against the previous values and forwards real changes only.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from .errors import InvalidItem
from .severity import Severity

if TYPE_CHECKING:
    from .manager import ChecklistManager


class ChecklistItem:
    """Base class for a single go/no-go probe.

    Items that care about the preferred camera index set
    ``supports_camera_index = True`` and override
    ``set_preferred_camera_index()``.
    """

    supports_camera_index: bool = False

    def __init__(
        self,
        name: str,
        state: Severity = Severity.PENDING,
        description: str = "",
    ) -> None:
        self.name = name
        self._state = state
        self._description = description
        self._monitoring = False
        self._manager: ChecklistManager | None = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} {self._state.label}>"

    # -- reporting ------------------------------------------------------------

    def report_state(self) -> Severity:
        with self._lock:
            return self._state

    def report_description(self) -> str:
        with self._lock:
            return self._description

    @property
    def is_monitoring(self) -> bool:
        return self._monitoring

    def _update(
        self,
        state: Severity | None = None,
        description: str | None = None,
    ) -> bool:
        """Record new values and notify the manager if anything changed."""
        with self._lock:
            state_changed = state is not None and state != self._state
            desc_changed = description is not None and description != self._description
            if state_changed:
                self._state = state
            if desc_changed:
                self._description = description
            manager = self._manager

        if not (state_changed or desc_changed):
            return False
        if manager is not None:
            manager.item_changed(self, state_changed, desc_changed)
        return True

    # -- lifecycle (overridden by concrete items) ------------------------------

    def start_monitoring(self) -> None:
        self._monitoring = True

    def stop_monitoring(self) -> None:
        self._monitoring = False

    def set_preferred_camera_index(self, index: int) -> None:
        """Only called for items with ``supports_camera_index``."""

    # -- manager attachment ----------------------------------------------------

    def _attach(self, manager: ChecklistManager) -> None:
        with self._lock:
            if self._manager is not None and self._manager is not manager:
                raise InvalidItem(f"Item already belongs to another checklist: {self.name}")
            self._manager = manager

    def _detach(self, manager: ChecklistManager) -> None:
        with self._lock:
            if self._manager is manager:
                self._manager = None


class StaticChecklistItem(ChecklistItem):
    """Item driven entirely by its owner, e.g. a manual acknowledgement."""

    def set(self, state: Severity, description: str | None = None) -> bool:
        return self._update(state=state, description=description)
