"""Tests for listener registration and dispatch."""

from __future__ import annotations

from conftest import CountingItem, RecordingListener
from src.checklist import CallbackListener, ChecklistManager, ListenerRegistry, Severity


class TestListenerRegistry:
    def test_add_is_identity_based(self) -> None:
        reg = ListenerRegistry()
        l1, l2 = RecordingListener(), RecordingListener()
        assert reg.add(l1) is True
        assert reg.add(l1) is False
        assert reg.add(l2) is True
        assert len(reg) == 2
        assert reg.snapshot() == [l1, l2]

    def test_add_none(self) -> None:
        reg = ListenerRegistry()
        assert reg.add(None) is False
        assert len(reg) == 0

    def test_remove_non_member_is_noop(self) -> None:
        reg = ListenerRegistry()
        assert reg.remove(RecordingListener()) is False
        assert reg.remove(None) is False

    def test_dispatch_isolates_failures(self) -> None:
        reg = ListenerRegistry()
        first, last = RecordingListener(), RecordingListener()

        def boom(manager, item):
            raise RuntimeError("listener blew up")

        reg.add(first)
        reg.add(CallbackListener(boom))
        reg.add(last)
        item = CountingItem("x")
        failures = reg.dispatch(ChecklistManager(), item)
        assert failures == 1
        assert first.items == [item]
        assert last.items == [item]


class TestManagerNotifications:
    def test_change_notifies_with_manager_and_item(self, manager: ChecklistManager, listener) -> None:
        item = CountingItem("battery", Severity.SAFE, "100%")
        manager.add(item)
        manager.add_listener(listener)
        item.set(Severity.WARNING, "20%")
        assert len(listener.calls) == 1
        called_manager, called_item, overall = listener.calls[0]
        assert called_manager is manager
        assert called_item is item
        assert overall == Severity.WARNING

    def test_description_only_change_notifies(self, manager: ChecklistManager, listener) -> None:
        item = CountingItem("battery", Severity.SAFE, "100%")
        manager.add(item)
        manager.add_listener(listener)
        item.set(Severity.SAFE, "99%")
        assert listener.items == [item]

    def test_no_change_no_notification(self, manager: ChecklistManager, listener) -> None:
        item = CountingItem("battery", Severity.SAFE, "100%")
        manager.add(item)
        manager.add_listener(listener)
        item.set(Severity.SAFE, "100%")
        manager.item_changed(item, False, False)
        assert listener.calls == []

    def test_state_change_masked_by_worse_item_still_notifies(self, manager: ChecklistManager, listener) -> None:
        bad = CountingItem("bad", Severity.ERROR)
        other = CountingItem("other", Severity.SAFE)
        manager.add(bad)
        manager.add(other)
        manager.add_listener(listener)
        other.set(Severity.WARNING)
        assert listener.items == [other]
        assert manager.overall_state == Severity.ERROR

    def test_listener_added_twice_notified_once(self, manager: ChecklistManager, listener) -> None:
        item = CountingItem("x")
        manager.add(item)
        manager.add_listener(listener)
        manager.add_listener(listener)
        item.set(Severity.ERROR)
        assert len(listener.calls) == 1

    def test_registration_order(self, manager: ChecklistManager) -> None:
        order: list[str] = []
        manager.add_listener(CallbackListener(lambda m, i: order.append("first")))
        manager.add_listener(CallbackListener(lambda m, i: order.append("second")))
        item = CountingItem("x")
        manager.add(item)
        item.set(Severity.WARNING)
        assert order == ["first", "second"]

    def test_removed_listener_not_notified(self, manager: ChecklistManager, listener) -> None:
        item = CountingItem("x")
        manager.add(item)
        manager.add_listener(listener)
        manager.remove_listener(listener)
        item.set(Severity.ERROR)
        assert listener.calls == []
        assert manager.listeners == []

    def test_removed_item_never_reaches_listeners(self, manager: ChecklistManager, listener) -> None:
        item = CountingItem("x")
        manager.add(item)
        manager.add_listener(listener)
        manager.remove(item)
        item.set(Severity.ERROR)
        assert listener.calls == []

    def test_failing_listener_does_not_corrupt_state(self, manager: ChecklistManager, listener) -> None:
        def boom(m, i):
            raise ValueError("nope")

        item = CountingItem("x")
        manager.add(item)
        manager.add_listener(CallbackListener(boom))
        manager.add_listener(listener)
        item.set(Severity.ERROR)
        assert manager.overall_state == Severity.ERROR
        assert listener.items == [item]

    def test_listener_can_remove_itself(self, manager: ChecklistManager) -> None:
        calls: list[str] = []

        class OneShot:
            def on_item_changed(self, m, i):
                calls.append(i.name)
                m.remove_listener(self)

        manager.add_listener(OneShot())
        item = CountingItem("x")
        manager.add(item)
        item.set(Severity.WARNING)
        item.set(Severity.ERROR)
        assert calls == ["x"]

    def test_listener_can_edit_checklist(self, manager: ChecklistManager) -> None:
        faulty = CountingItem("faulty")
        manager.add(faulty)
        manager.add_listener(CallbackListener(lambda m, i: m.remove(i) if i.report_state() == Severity.ERROR else None))
        manager.start_checking_list()
        faulty.set(Severity.ERROR)
        assert manager.count() == 0
        assert faulty.stops == 1
        assert manager.overall_state == Severity.SAFE

    def test_structural_changes_do_not_notify(self, manager: ChecklistManager, listener) -> None:
        manager.add_listener(listener)
        a = CountingItem("a", Severity.ERROR)
        manager.add(a)
        manager.insert_before(CountingItem("b"), a)
        manager.remove(a)
        assert listener.calls == []
