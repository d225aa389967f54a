"""Textual integration for snapstore. Opt-in — requires textual.

Re-renders are driven by snapshot identity: a render callback fires only when
the store's current Snapshot is a different object from the one it last saw.
Cross-thread writes are the store's concern; give it the app's scheduler:

    store.set_scheduler(app.call_from_thread)
"""

from contextlib import contextmanager

from textual.css.query import NoMatches

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded renders during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def connect(app, store, render, *, fire_immediately=False):
    """Call render(snapshot) whenever the store's snapshot changes.

    Skips while the app is paused or not running, and swallows NoMatches from
    widget queries. Returns the Subscription; dispose() it on unmount.
    """
    last = [store.get_current_snapshot()]

    def _safe(snapshot):
        try:
            render(snapshot)
        except NoMatches:
            pass

    def _guarded(change):
        if not is_safe(app):
            return
        snapshot = store.get_current_snapshot()
        if snapshot is last[0]:
            return
        last[0] = snapshot
        _safe(snapshot)

    if fire_immediately and is_safe(app):
        _safe(last[0])
    return store.on_all().subscribe(_guarded)


def watch_field(app, store, key, effect):
    """Call effect(value) when one field changes, with the same guards as connect()."""

    def _guarded(change):
        if not is_safe(app):
            return
        try:
            effect(change.value)
        except NoMatches:
            pass

    return store.on(key).subscribe(_guarded)
