"""Tests for snapstore.textual — Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from snapstore import Store
from snapstore import textual as stx


class _MockApp:
    """Minimal mock matching the Textual App interface stx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        return fn(*args)


class TestConnect:
    def test_renders_on_change(self):
        app = _MockApp()
        s = Store({"count": 0})
        renders = []
        stx.connect(app, s, lambda snap: renders.append(snap.get("count")))
        s.set("count")(1)
        s.set("count")(1)
        s.set("count")(2)
        assert renders == [1, 2]

    def test_fire_immediately(self):
        app = _MockApp()
        s = Store({"count": 0})
        renders = []
        stx.connect(app, s, renders.append, fire_immediately=True)
        assert renders == [s.get_current_snapshot()]

    def test_one_render_per_snapshot(self):
        """Nested writes publish several changes; each snapshot renders once."""
        app = _MockApp()
        s = Store(
            {"a": 0, "b": 0},
            effects=lambda st: st.on("a").subscribe(lambda c: st.set("b")(c.value)),
        )
        renders = []
        stx.connect(app, s, renders.append)
        s.set("a")(1)
        # b's change renders the final snapshot; a's aggregate event sees the same one
        assert renders == [s.get_current_snapshot()]

    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        s = Store({"count": 0})
        renders = []
        stx.connect(app, s, renders.append, fire_immediately=True)
        s.set("count")(1)
        assert renders == []

    def test_skips_during_pause(self):
        app = _MockApp()
        s = Store({"count": 0})
        renders = []
        stx.connect(app, s, renders.append)
        with stx.pause(app):
            s.set("count")(1)
        assert renders == []
        s.set("count")(2)
        assert [snap.get("count") for snap in renders] == [2]

    def test_catches_nomatch(self):
        """NoMatches from widget queries are silently swallowed."""
        app = _MockApp()
        s = Store({"count": 0})

        def _raise_nomatch(snap):
            raise NoMatches("StatusFooter")

        sub = stx.connect(app, s, _raise_nomatch)
        s.set("count")(1)
        sub.dispose()

    def test_propagates_real_errors(self):
        """Non-NoMatches exceptions propagate normally."""
        app = _MockApp()
        s = Store({"count": 0})

        def _raise_value_error(snap):
            raise ValueError("boom")

        stx.connect(app, s, _raise_value_error)
        with pytest.raises(ValueError, match="boom"):
            s.set("count")(1)

    def test_dispose_stops_rendering(self):
        app = _MockApp()
        s = Store({"count": 0})
        renders = []
        sub = stx.connect(app, s, renders.append)
        s.set("count")(1)
        sub.dispose()
        s.set("count")(2)
        assert len(renders) == 1

    def test_thread_marshal(self):
        """Writes from a background thread go through call_from_thread."""
        app = _MockApp()
        s = Store({"count": 0})
        s.set_scheduler(app.call_from_thread)
        renders = []
        stx.connect(app, s, lambda snap: renders.append(snap.get("count")))

        t = threading.Thread(target=lambda: s.set("count")(1))
        t.start()
        t.join()

        assert renders == [1]
        assert len(app._call_from_thread_log) == 1


class TestWatchField:
    def test_receives_values(self):
        app = _MockApp()
        s = Store({"a": 0, "b": 0})
        values = []
        stx.watch_field(app, s, "a", values.append)
        s.set("a")(1)
        s.set("b")(1)
        assert values == [1]

    def test_skips_during_pause_and_catches_nomatch(self):
        app = _MockApp()
        s = Store({"a": 0})
        calls = []

        def _effect(value):
            calls.append(value)
            raise NoMatches("Widget")

        stx.watch_field(app, s, "a", _effect)
        with stx.pause(app):
            s.set("a")(1)
        s.set("a")(2)
        assert calls == [2]


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert stx.is_safe(app)

        with pytest.raises(RuntimeError):
            with stx.pause(app):
                assert not stx.is_safe(app)
                raise RuntimeError("oops")

        # Restored despite exception
        assert stx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        """Pause state lives in the module, not on the app."""
        app = _MockApp()
        attrs_before = set(vars(app))
        with stx.pause(app):
            attrs_during = set(vars(app))
        assert attrs_before == attrs_during
        assert attrs_before == set(vars(app))

    def test_multiple_apps_independent(self):
        """Pausing one app does not affect another."""
        app_a = _MockApp()
        app_b = _MockApp()
        with stx.pause(app_a):
            assert not stx.is_safe(app_a)
            assert stx.is_safe(app_b)
