"""Store — snapshot-based state container with memoized per-field setters.

The store owns exactly one current Snapshot. Every accepted write replaces it
with a new Snapshot and then publishes a Change record, first on the field's
own channel and then on the aggregate channel. Writes that are structurally
equal to the current value are dropped without a new Snapshot or an event.

Values are stored frozen (pyrsistent.freeze): lists become PVectors, dicts
PMaps, sets PSets. Nothing reachable from a Snapshot can be mutated in place,
and equals() treats a list and a PVector with the same items as equal.

Thread ownership: the thread that creates the store (or last calls
set_scheduler()) owns it. A setter called from any other thread is handed to
the scheduler, or rejected with ThreadOwnershipError when there is none.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Iterable, Mapping
from typing import Any, Callable, NamedTuple, Union

from pyrsistent import PMap, freeze, pmap

from snapstore.emitter import CycleHandler, Emitter
from snapstore.equality import equals
from snapstore.errors import ThreadOwnershipError, UnknownFieldError
from snapstore.snapshot import Snapshot
from snapstore.stream import StreamView

logger = logging.getLogger("snapstore.store")

Setter = Callable[[Any], None]
Scheduler = Callable[[Callable[[], None]], object]
Effect = Callable[["Store"], object]
Effects = Union[Effect, Iterable[Effect], None]


class Change(NamedTuple):
    """One accepted write."""

    key: str
    previous_value: Any
    value: Any


def _state_items(initial_state: object) -> dict[str, Any]:
    if dataclasses.is_dataclass(initial_state) and not isinstance(initial_state, type):
        return {f.name: getattr(initial_state, f.name) for f in dataclasses.fields(initial_state)}
    if isinstance(initial_state, Mapping):
        return dict(initial_state)
    raise TypeError(
        f"initial_state must be a mapping or a dataclass instance, "
        f"not {type(initial_state).__name__}"
    )


def _as_effects(effects: Effects) -> tuple[Callable, ...]:
    if effects is None:
        return ()
    if callable(effects):
        return (effects,)
    return tuple(effects)


class Store:
    """Observable state container over a fixed set of fields.

    Usage:
        store = Store({"count": 0})
        store.on_all().subscribe(lambda change: print(change))
        store.set("count")(1)   # Change(key='count', previous_value=0, value=1)
        store.set("count")(1)   # equal value: nothing happens
        store.get("count")      # 1
    """

    def __init__(
        self,
        initial_state: Mapping[str, Any] | object,
        effects: Effects = None,
        *,
        is_dev_mode: bool = False,
        on_cycle: CycleHandler | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        state = _state_items(initial_state)
        self._snapshot = Snapshot(pmap({key: freeze(value) for key, value in state.items()}), self)
        # Both channel families share one emission chain.
        chain: list[str] = []
        self._emitter: Emitter[Change] = Emitter(
            is_dev_mode=is_dev_mode, on_cycle=on_cycle, name="store", chain=chain
        )
        self._befores: Emitter[Change] = Emitter(
            is_dev_mode=is_dev_mode, on_cycle=on_cycle, name="store.before", chain=chain
        )
        self._is_dev_mode = is_dev_mode
        self._scheduler = scheduler
        self._owner = threading.get_ident()
        self._setters: dict[str, Setter] = {key: self._make_setter(key) for key in state}

        for effect in _as_effects(effects):
            effect(self)

    # --- Reads ---

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self._setters)

    def get(self, key: str) -> Any:
        """Value of key in the current snapshot."""
        return self._snapshot.get(key)

    def get_state(self) -> PMap:
        """The whole current state as an immutable mapping."""
        return self._snapshot.get_state()

    def get_current_snapshot(self) -> Snapshot:
        """The current Snapshot. Its identity changes once per accepted write."""
        return self._snapshot

    # --- Writes ---

    def set(self, key: str) -> Setter:
        """The setter for key. Always the same function object for a given key."""
        try:
            return self._setters[key]
        except KeyError:
            raise UnknownFieldError(key) from None

    def set_scheduler(self, scheduler: Scheduler | None) -> None:
        """Marshal off-thread writes through scheduler.

        Call from the thread that should own the store, e.g.
            store.set_scheduler(app.call_from_thread)
        """
        self._scheduler = scheduler
        self._owner = threading.get_ident()

    def _make_setter(self, key: str) -> Setter:
        def setter(value: Any) -> None:
            if threading.get_ident() != self._owner:
                if self._scheduler is None:
                    raise ThreadOwnershipError(
                        f"set({key!r}) called from a thread that does not own this store; "
                        f"configure a scheduler to marshal the write"
                    )
                self._scheduler(lambda v=value: self._write(key, v))
                return
            self._write(key, value)

        setter.__name__ = f"set_{key}"
        setter.__qualname__ = f"Store.set_{key}"
        return setter

    def _write(self, key: str, value: Any) -> None:
        previous = self._snapshot.get_state()[key]
        if equals(previous, value):
            return

        # A write to a field whose subscribers are still running is refused
        # before it touches the snapshot.
        if self._emitter.is_emitting(key):
            self._emitter.report_cycle(key)
            return

        value = freeze(value)

        change = Change(key, previous, value)
        self._befores.emit(key, change)
        self._snapshot = Snapshot(self._snapshot.get_state().set(key, value), self)
        if self._is_dev_mode:
            logger.debug("%s: %r -> %r", key, previous, value)
        self._emitter.emit(key, change)

    # --- Subscriptions ---

    def on(self, key: str) -> StreamView[Change]:
        """Changes to key, delivered after the snapshot has been replaced."""
        self._check_field(key)
        return self._emitter.on(key)

    def on_all(self) -> StreamView[Change]:
        """Changes to every field, in the order they were made."""
        return self._emitter.all()

    def before(self, key: str) -> StreamView[Change]:
        """Changes to key, delivered while the old snapshot is still current."""
        self._check_field(key)
        return self._befores.on(key)

    def before_all(self) -> StreamView[Change]:
        return self._befores.all()

    def _check_field(self, key: str) -> None:
        if key not in self._setters:
            raise UnknownFieldError(key)

    def __repr__(self) -> str:
        return f"Store({dict(self.get_state())!r})"


def create_store(
    initial_state: Mapping[str, Any] | object,
    effects: Effects = None,
    *,
    is_dev_mode: bool = False,
    on_cycle: CycleHandler | None = None,
    scheduler: Scheduler | None = None,
) -> Store:
    """Create a Store. See Store for the arguments."""
    return Store(
        initial_state,
        effects,
        is_dev_mode=is_dev_mode,
        on_cycle=on_cycle,
        scheduler=scheduler,
    )


def connect_as(stores: Mapping[str, Store], *effects: Callable[[PMap], object]) -> PMap:
    """Run multi-store effects.

    Each effect is called once with an immutable alias -> Store mapping:

        def sync_user(stores):
            stores["session"].on("user").subscribe(
                lambda change: stores["profile"].set("name")(change.value.name)
            )

        connect_as({"session": session, "profile": profile}, sync_user)
    """
    bound = pmap(stores)
    for effect in effects:
        effect(bound)
    return bound
