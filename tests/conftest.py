"""Shared test fixtures."""

from __future__ import annotations

import threading

import pytest

from src.checklist.item import ChecklistItem, StaticChecklistItem
from src.checklist.manager import ChecklistManager
from src.checklist.severity import Severity


class CountingItem(StaticChecklistItem):
    """Static item that records lifecycle calls and camera-index pushes."""

    def __init__(self, name: str, state: Severity = Severity.SAFE, description: str = "") -> None:
        super().__init__(name, state, description)
        self.starts = 0
        self.stops = 0
        self.camera_indexes: list[int] = []

    def start_monitoring(self) -> None:
        self.starts += 1
        super().start_monitoring()

    def stop_monitoring(self) -> None:
        self.stops += 1
        super().stop_monitoring()


class CameraItem(CountingItem):
    supports_camera_index = True

    def set_preferred_camera_index(self, index: int) -> None:
        self.camera_indexes.append(index)


class RecordingListener:
    """Listener that records (manager, item, overall) for every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[ChecklistManager, ChecklistItem, Severity]] = []
        self.event = threading.Event()

    def on_item_changed(self, manager: ChecklistManager, item: ChecklistItem) -> None:
        self.calls.append((manager, item, manager.overall_state))
        self.event.set()

    @property
    def items(self) -> list[ChecklistItem]:
        return [c[1] for c in self.calls]


@pytest.fixture
def manager() -> ChecklistManager:
    return ChecklistManager()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def abc_items() -> tuple[CountingItem, CountingItem, CountingItem]:
    return (
        CountingItem("A", Severity.SAFE, "ok"),
        CountingItem("B", Severity.WARNING, "low battery"),
        CountingItem("C", Severity.PENDING, "checking"),
    )
