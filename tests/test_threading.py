"""Tests for store thread ownership and scheduler marshaling."""

import threading

import pytest

from snapstore import Store, ThreadOwnershipError


def _in_thread(fn):
    errors = []

    def _run():
        try:
            fn()
        except Exception as e:  # collected for the assertion below
            errors.append(e)

    t = threading.Thread(target=_run)
    t.start()
    t.join()
    return errors


class TestOwnership:
    def test_owner_thread_is_synchronous(self):
        s = Store({"x": 0}, scheduler=lambda f: pytest.fail("scheduler used"))
        s.set("x")(1)
        assert s.get("x") == 1

    def test_rejects_foreign_thread_without_scheduler(self):
        s = Store({"x": 0})
        errors = _in_thread(lambda: s.set("x")(1))
        assert len(errors) == 1
        assert isinstance(errors[0], ThreadOwnershipError)
        assert s.get("x") == 0

    def test_reads_are_allowed_anywhere(self):
        s = Store({"x": 5})
        seen = []
        assert _in_thread(lambda: seen.append(s.get("x"))) == []
        assert seen == [5]


class TestScheduler:
    def test_foreign_write_goes_through_scheduler(self):
        queued = []
        s = Store({"x": 0}, scheduler=queued.append)
        events = []
        s.on("x").subscribe(events.append)

        assert _in_thread(lambda: s.set("x")(1)) == []
        assert s.get("x") == 0
        assert len(queued) == 1

        queued[0]()  # drained on the owner thread
        assert s.get("x") == 1
        assert len(events) == 1

    def test_set_scheduler_rebinds_owner(self):
        s = Store({"x": 0})
        queued = []

        def _adopt():
            s.set_scheduler(queued.append)

        assert _in_thread(_adopt) == []
        # the creating thread is now foreign
        s.set("x")(1)
        assert s.get("x") == 0
        queued[0]()
        assert s.get("x") == 1
