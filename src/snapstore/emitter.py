"""Emitter — keyed, synchronous publish/subscribe with cycle detection.

One EventStream per key plus one aggregate stream. Every emit() runs inline:
the key's subscribers first, then the aggregate subscribers. Nested emits
triggered by subscribers complete before the outer emit moves on (depth-first).

While a key's subscribers are running the key sits on the emission chain.
Emitting a key that is already on the chain is a cycle: the emission is
refused and reported, so re-entrant effects can never recurse unbounded.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar

from snapstore.errors import CyclicalMutationError
from snapstore.stream import EventStream, StreamView

T = TypeVar("T")

CycleHandler = Callable[[tuple[str, ...]], None]

logger = logging.getLogger("snapstore.emitter")


def format_chain(chain: tuple[str, ...]) -> str:
    return " -> ".join(map(str, chain))


def raise_on_cycle(chain: tuple[str, ...]) -> None:
    """Cycle handler that turns a detected cycle into a hard failure."""
    raise CyclicalMutationError(chain)


class Emitter(Generic[T]):
    """Typed keyed event hub.

    Args:
        is_dev_mode: report cycles at ERROR level with a stack trace instead
            of a one-line WARNING. Diagnostics only; delivery is unchanged.
        on_cycle: called with the offending chain instead of logging.
        name: prefix used in log messages.
        chain: emission chain to share with other emitters, so a cycle that
            crosses them is detected and reported in full.
    """

    def __init__(
        self,
        *,
        is_dev_mode: bool = False,
        on_cycle: CycleHandler | None = None,
        name: str = "emitter",
        chain: list[str] | None = None,
    ) -> None:
        self._streams: dict[str, EventStream[T]] = {}
        self._all: EventStream[T] = EventStream()
        self._chain: list[str] = [] if chain is None else chain
        self._is_dev_mode = is_dev_mode
        self._on_cycle = on_cycle
        self._name = name

    @property
    def chain(self) -> tuple[str, ...]:
        """Keys whose subscribers are currently running, outermost first."""
        return tuple(self._chain)

    def is_emitting(self, key: str) -> bool:
        return key in self._chain

    def on(self, key: str) -> StreamView[T]:
        """Values published for key from now on."""
        stream = self._streams.get(key)
        if stream is None:
            stream = self._streams[key] = EventStream()
        return stream.view()

    def all(self) -> StreamView[T]:
        """Every published value, in publish order."""
        return self._all.view()

    def emit(self, key: str, value: T) -> bool:
        """Publish value on key. Returns False if refused as a cycle."""
        if key in self._chain:
            self.report_cycle(key)
            return False

        self._chain.append(key)
        try:
            stream = self._streams.get(key)
            if stream is not None:
                stream.emit(value)
            self._all.emit(value)
        finally:
            self._chain.pop()
        return True

    def report_cycle(self, key: str) -> None:
        """Report that key was re-entered while the current chain is active."""
        chain = (*self._chain, key)
        if self._on_cycle is not None:
            self._on_cycle(chain)
        elif self._is_dev_mode:
            logger.error(
                "[%s] Cyclical dependency detected, emission of %r skipped: %s",
                self._name, key, format_chain(chain),
                stack_info=True,
            )
        else:
            logger.warning(
                "[%s] Cyclical dependency detected: %s",
                self._name, format_chain(chain),
            )

    def __repr__(self) -> str:
        return f"Emitter({self._name}, keys={sorted(self._streams)!r})"
