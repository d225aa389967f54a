"""Exceptions raised by snapstore."""

from __future__ import annotations


class SnapstoreError(Exception):
    """Base class for all snapstore errors."""


class CyclicalMutationError(SnapstoreError):
    """A field's emission was re-entered while already in progress."""

    def __init__(self, chain: tuple[str, ...]) -> None:
        self.chain = tuple(chain)
        super().__init__(
            "Cyclical dependency detected: " + " -> ".join(map(str, self.chain))
        )


class MissingContextError(SnapstoreError):
    """A consumer asked for a store outside of any Container."""


class ThreadOwnershipError(SnapstoreError):
    """A setter was called off the store's owner thread with no scheduler."""


class UnknownFieldError(SnapstoreError, KeyError):
    """The key is not one of the store's fields."""

    def __str__(self) -> str:
        return f"Unknown field {self.args[0]!r}"


class StreamDisposedError(SnapstoreError):
    """subscribe() was called on a stream that has been disposed."""
