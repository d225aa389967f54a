"""Snapshot — an immutable point-in-time view of a store's state.

A new Snapshot is created for every accepted write, so comparing two
snapshots with ``is`` answers "did anything change" in O(1). Reads go to the
frozen state; writes and subscriptions go to the live store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Iterator

from pyrsistent import PMap

from snapstore.errors import UnknownFieldError

if TYPE_CHECKING:
    from snapstore.store import Change, Store
    from snapstore.stream import StreamView


class Snapshot:
    """Frozen state plus a handle back to the store that produced it."""

    __slots__ = ("_state", "_store")

    def __init__(self, state: PMap, store: Store) -> None:
        object.__setattr__(self, "_state", state)
        object.__setattr__(self, "_store", store)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("Snapshot is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("Snapshot is immutable")

    def get(self, key: str) -> Any:
        try:
            return self._state[key]
        except KeyError:
            raise UnknownFieldError(key) from None

    def get_state(self) -> PMap:
        return self._state

    def set(self, key: str) -> Callable[[Any], None]:
        return self._store.set(key)

    def on(self, key: str) -> StreamView[Change]:
        return self._store.on(key)

    def on_all(self) -> StreamView[Change]:
        return self._store.on_all()

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._state

    def __iter__(self) -> Iterator[str]:
        return iter(self._state)

    def __len__(self) -> int:
        return len(self._state)

    def __repr__(self) -> str:
        return f"Snapshot({dict(self._state)!r})"
