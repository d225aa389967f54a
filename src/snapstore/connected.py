"""Connected stores — scope a fresh Store to a block of code.

A ConnectedStore is a recipe (initial state + effects). Each
``with connected.container():`` block builds its own Store from that recipe
and makes it visible to use_store()/with_store() for the duration of the
block. Consumers that run outside any container fail loudly with
MissingContextError instead of silently reading stale state.

Tracking uses contextvars, so nested containers and separate threads or
asyncio tasks each see their own store.
"""

from __future__ import annotations

import contextvars
import functools
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, TypeVar

from snapstore.errors import MissingContextError
from snapstore.snapshot import Snapshot
from snapstore.store import Change, Effects, Setter, Store

R = TypeVar("R")


class Container:
    """A live store plus the latest snapshot it has published."""

    def __init__(self, store: Store) -> None:
        self.store = store
        self._snapshot = store.get_current_snapshot()
        self._subscription = store.on_all().subscribe(self._on_change)

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def _on_change(self, change: Change) -> None:
        self._snapshot = self.store.get_current_snapshot()

    def close(self) -> None:
        self._subscription.dispose()

    @property
    def closed(self) -> bool:
        return self._subscription.disposed


class ConnectedStore:
    """Store recipe with context-scoped instances."""

    def __init__(
        self,
        initial_state: Mapping[str, Any] | object,
        effects: Effects = None,
        *,
        is_dev_mode: bool = False,
        name: str = "store",
    ) -> None:
        self._initial_state = initial_state
        self._effects = effects
        self._is_dev_mode = is_dev_mode
        self._current: contextvars.ContextVar[Container | None] = contextvars.ContextVar(
            f"snapstore.connected.{name}", default=None
        )

    @contextmanager
    def container(
        self,
        initial_state: Mapping[str, Any] | object | None = None,
        effects: Effects = None,
    ) -> Iterator[Container]:
        """Build a Store and make it current for the with-block.

        initial_state and effects override the recipe's when given.
        """
        store = Store(
            self._initial_state if initial_state is None else initial_state,
            self._effects if effects is None else effects,
            is_dev_mode=self._is_dev_mode,
        )
        container = Container(store)
        token = self._current.set(container)
        try:
            yield container
        finally:
            self._current.reset(token)
            container.close()

    def _require(self, display_name: str) -> Container:
        container = self._current.get()
        if container is None:
            raise MissingContextError(
                f'Component "{display_name}" does not seem to be nested in a '
                f"Container. Run it inside the `with connected.container():` block "
                f"of the ConnectedStore it reads from."
            )
        return container

    def use_store(self, field: str, display_name: str = "Component") -> tuple[Any, Setter]:
        """(current value, setter) for field in the enclosing container."""
        store = self._require(display_name).store
        return store.get(field), store.set(field)

    def current_snapshot(self, display_name: str = "Component") -> Snapshot:
        return self._require(display_name).snapshot

    def with_store(self, fn: Callable[..., R]) -> Callable[..., R]:
        """Decorator: call fn with the enclosing container's snapshot first."""
        display_name = getattr(fn, "__name__", "Component")

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> R:
            return fn(self._require(display_name).snapshot, *args, **kwargs)

        return wrapper


def create_connected_store(
    initial_state: Mapping[str, Any] | object,
    effects: Effects = None,
    *,
    is_dev_mode: bool = False,
    name: str = "store",
) -> ConnectedStore:
    return ConnectedStore(initial_state, effects, is_dev_mode=is_dev_mode, name=name)
