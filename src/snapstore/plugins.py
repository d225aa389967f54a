"""Store plugins. A plugin takes a store, wires itself in, returns the store.

Plugins observe through on_all() only. They must never call setters from
their subscription; that would make them an effect, subject to cycle rules.
"""

from __future__ import annotations

import logging
from typing import Callable

from snapstore.store import Change, Store

Plugin = Callable[[Store], Store]

_default_logger = logging.getLogger("snapstore.plugins.logger")


def with_logger(
    store: Store,
    *,
    logger: logging.Logger | None = None,
    level: int = logging.INFO,
) -> Store:
    """Log every change on the store.

    Usage:
        store = with_logger(create_store({"count": 0}))
        store.set("count")(1)   # INFO snapstore.plugins.logger count: 0 -> 1
    """
    log = logger or _default_logger

    def _log_change(change: Change) -> None:
        log.log(level, "%s: %r -> %r", change.key, change.previous_value, change.value)

    store.on_all().subscribe(_log_change)
    return store
