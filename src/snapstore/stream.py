"""Push-based event stream with operator chaining.

Synchronous multicast: emit() calls every subscriber inline, in subscription
order, before returning. Nothing is buffered or replayed. Each operator
returns a new child stream; dispose() tears down the whole chain below it.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

from snapstore.errors import StreamDisposedError

T = TypeVar("T")
U = TypeVar("U")

Disposer = Callable[[], None]


class Subscription:
    """Disposable handle for one subscriber."""

    __slots__ = ("_callback", "_disposer", "_disposed")

    def __init__(self, callback: Callable, disposer: Disposer) -> None:
        self._callback = callback
        self._disposer = disposer
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        """Stop delivery. Safe to call more than once, and from inside a callback."""
        if self._disposed:
            return
        self._disposed = True
        self._disposer()

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else "active"
        name = getattr(self._callback, "__name__", repr(self._callback))
        return f"Subscription({name}, {state})"


class EventStream(Generic[T]):
    """Push-based event stream with operator chaining."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []
        self._children: list[EventStream] = []  # downstream streams for dispose
        self._disposed = False
        self._parent_disposer: Disposer | None = None
        self._view: StreamView[T] | None = None

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def emit(self, value: T) -> None:
        """Push a value to the subscribers present when the call started."""
        if self._disposed:
            return
        # Subscribers added or removed by a callback only affect later emits.
        for sub in list(self._subscriptions):
            sub._callback(value)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        """Register a callback. Returns a Subscription that removes it."""
        if self._disposed:
            raise StreamDisposedError("cannot subscribe to a disposed stream")
        sub: Subscription

        def _unsubscribe() -> None:
            try:
                self._subscriptions.remove(sub)
            except ValueError:
                pass  # stream already disposed

        sub = Subscription(callback, _unsubscribe)
        self._subscriptions.append(sub)
        return sub

    def view(self) -> StreamView[T]:
        """Subscribe-only view of this stream."""
        if self._view is None:
            self._view = StreamView(self)
        return self._view

    def map(self, fn: Callable[[T], U]) -> EventStream[U]:
        """Transform events through fn."""
        child: EventStream[U] = EventStream()
        self._attach(child, lambda v: child.emit(fn(v)))
        return child

    def filter(self, fn: Callable[[T], bool]) -> EventStream[T]:
        """Only pass events where fn returns True."""
        child: EventStream[T] = EventStream()
        self._attach(child, lambda v: child.emit(v) if fn(v) else None)
        return child

    def dispose(self) -> None:
        """Tear down this stream and all downstream children."""
        self._disposed = True
        self._subscriptions.clear()
        for child in list(self._children):
            child.dispose()
        self._children.clear()
        if self._parent_disposer is not None:
            self._parent_disposer()
            self._parent_disposer = None

    def _attach(self, child: EventStream, forward: Callable[[T], None]) -> None:
        """Feed child from this stream; disposing child detaches it again."""
        self._children.append(child)
        sub = self.subscribe(forward)

        def _remove() -> None:
            sub.dispose()
            try:
                self._children.remove(child)
            except ValueError:
                pass

        child._parent_disposer = _remove


class StreamView(Generic[T]):
    """Subscribe-only face of an EventStream.

    Handed out for channels shared by many subscribers: it can subscribe and
    derive child streams, but cannot emit into or dispose the channel itself.
    """

    __slots__ = ("_source",)

    def __init__(self, source: EventStream[T]) -> None:
        self._source = source

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        return self._source.subscribe(callback)

    def map(self, fn: Callable[[T], U]) -> EventStream[U]:
        return self._source.map(fn)

    def filter(self, fn: Callable[[T], bool]) -> EventStream[T]:
        return self._source.filter(fn)

    @property
    def subscriber_count(self) -> int:
        return self._source.subscriber_count

    def __repr__(self) -> str:
        return f"StreamView(subscribers={self.subscriber_count})"
