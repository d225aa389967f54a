"""snapstore: observable snapshot store with per-field setters."""

from importlib.metadata import version as _version

__version__ = _version("snapstore")

from snapstore.equality import equals
from snapstore.errors import (
    SnapstoreError,
    CyclicalMutationError,
    MissingContextError,
    StreamDisposedError,
    ThreadOwnershipError,
    UnknownFieldError,
)
from snapstore.stream import EventStream, StreamView, Subscription
from snapstore.emitter import Emitter, raise_on_cycle
from snapstore.snapshot import Snapshot
from snapstore.store import Change, Store, create_store, connect_as
from snapstore.plugins import Plugin, with_logger
from snapstore.connected import Container, ConnectedStore, create_connected_store
# textual NOT auto-imported — opt-in only

__all__ = [
    "equals",
    "SnapstoreError",
    "CyclicalMutationError",
    "MissingContextError",
    "StreamDisposedError",
    "ThreadOwnershipError",
    "UnknownFieldError",
    "EventStream",
    "StreamView",
    "Subscription",
    "Emitter",
    "raise_on_cycle",
    "Snapshot",
    "Change",
    "Store",
    "create_store",
    "connect_as",
    "Plugin",
    "with_logger",
    "Container",
    "ConnectedStore",
    "create_connected_store",
]
