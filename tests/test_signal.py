"""Tests for Signal."""

import logging
import threading
from dataclasses import dataclass

from sigtrack import Signal, configure, effect, set_scheduler
from sigtrack.signal import is_same, produce


class TestSignal:
    def test_get_set(self):
        s = Signal(42)
        assert s.value == 42
        s.value = 100
        assert s.value == 100

    def test_dedup(self):
        """Setting the same value should not trigger observers."""
        s = Signal(42)
        log = []
        effect(lambda: log.append(s.value))
        assert log == [42]
        s.value = 42
        assert log == [42]  # no re-run

    def test_same_primitive_twice_notifies_once(self):
        s = Signal(0)
        log = []
        effect(lambda: log.append(s.value))
        s.value = 1000
        s.value = 1000
        assert log == [0, 1000]

    def test_identical_object_never_notifies(self):
        items = [1, 2]
        s = Signal(items)
        log = []
        effect(lambda: log.append(len(s.value)))
        items.append(3)
        s.value = items
        assert log == [2]

    def test_equal_but_distinct_object_notifies(self):
        s = Signal([1])
        log = []
        effect(lambda: log.append(s.value))
        s.value = [1]
        assert len(log) == 2

    def test_notifies_observers(self):
        s = Signal("hello")
        log = []
        effect(lambda: log.append(s.value))
        assert log == ["hello"]
        s.value = "world"
        assert log == ["hello", "world"]

    def test_each_write_is_its_own_pass(self):
        s = Signal(0)
        log = []
        effect(lambda: log.append(s.value))
        s.value = 1
        s.value = 2
        s.value = 3
        assert log == [0, 1, 2, 3]

    def test_repr(self):
        assert "Signal(5)" in repr(Signal(5))


class TestMutationWarning:
    def test_warns_in_development(self, caplog):
        configure(development=True)
        items = []
        s = Signal(items)
        with caplog.at_level(logging.WARNING, logger="sigtrack.signal"):
            s.value = items
        assert "Did you mutate it?" in caplog.text

    def test_silent_outside_development(self, caplog):
        items = []
        s = Signal(items)
        with caplog.at_level(logging.WARNING, logger="sigtrack.signal"):
            s.value = items
        assert caplog.text == ""

    def test_no_warning_for_primitives(self, caplog):
        configure(development=True)
        s = Signal(1)
        with caplog.at_level(logging.WARNING, logger="sigtrack.signal"):
            s.value = 1
        assert caplog.text == ""


class TestRecipes:
    def test_recipe_returning_value(self):
        s = Signal(1)
        s.value = lambda current: current + 1
        assert s.value == 2

    def test_recipe_mutating_draft(self):
        original = {"count": 0}
        s = Signal(original)
        s.value = lambda draft: draft.update(count=1)
        assert s.value == {"count": 1}
        assert original == {"count": 0}  # old value untouched
        assert s.value is not original

    def test_noop_recipe_does_not_notify(self):
        s = Signal({"count": 0})
        log = []
        effect(lambda: log.append(s.value))
        s.value = lambda draft: None
        assert len(log) == 1

    def test_noop_recipe_on_object_without_eq_notifies(self):
        class Plain:
            pass

        current = Plain()
        s = Signal(current)
        log = []
        effect(lambda: log.append(s.value))
        s.value = lambda draft: None
        assert len(log) == 2
        assert s.value is not current

    def test_noop_recipe_on_dataclass_does_not_notify(self):
        @dataclass
        class Point:
            x: int

        s = Signal(Point(1))
        log = []
        effect(lambda: log.append(s.value))
        s.value = lambda draft: None
        assert len(log) == 1

    def test_classes_are_stored_not_called(self):
        s = Signal(None)
        s.value = dict
        assert s.value is dict

    def test_produce(self):
        assert produce([1], lambda draft: draft.append(2)) == [1, 2]
        current = [1]
        assert produce(current, lambda draft: None) is current


class TestOnChange:
    def test_listener_receives_new_and_previous(self):
        s = Signal(1)
        changes = []
        s.on_change(lambda new, old: changes.append((new, old)))
        s.value = 2
        assert changes == [(2, 1)]

    def test_unsubscribe(self):
        s = Signal(1)
        changes = []
        unsubscribe = s.on_change(lambda new, old: changes.append(new))
        unsubscribe()
        unsubscribe()  # idempotent
        s.value = 2
        assert changes == []


class TestWriteTracking:
    def test_read_then_write_does_not_loop(self):
        count = Signal(0)
        runs = []

        def bump():
            runs.append(count.value)
            count.value = count.value + 1

        effect(bump)
        assert runs == [0]
        assert count.value == 1

    def test_effect_writing_what_it_read_converges(self):
        count = Signal(0)
        other = Signal(0)
        runs = []

        def clamp():
            runs.append(other.value)
            if count.value < 3:
                count.value = count.value + 1

        effect(clamp)
        other.value = 1
        other.value = 2
        assert runs == [0, 1, 2]
        assert count.value == 3


class TestIsSame:
    def test_rules(self):
        a = object()
        assert is_same(a, a)
        assert is_same(10**6, 10**6)
        assert is_same("ab", "a" + "b")
        assert not is_same(1, 1.0)
        assert not is_same(True, 1)
        assert not is_same([1], [1])


class TestScheduler:
    def test_background_writes_are_marshaled(self):
        queued = []
        set_scheduler(queued.append)
        s = Signal(1)

        t = threading.Thread(target=lambda: setattr(s, "value", 2))
        t.start()
        t.join()

        assert s.value == 1  # not applied yet
        queued[0]()
        assert s.value == 2

    def test_main_thread_writes_are_synchronous(self):
        set_scheduler(lambda fn: None)
        s = Signal(1)
        s.value = 2
        assert s.value == 2
