"""Optimistic local updates with confirm-or-revert, and their result types."""

from dataclasses import dataclass
from enum import Enum
from itertools import count
from typing import Any, Generic, TypeVar

from ..errors import BotdeskError

T = TypeVar("T")


class Outcome(str, Enum):
    """How an operation ended, as seen by the local state."""

    CONFIRMED = "confirmed"  # applied and confirmed by the backend
    REVERTED = "reverted"  # applied locally, then rolled back after a failure
    REJECTED = "rejected"  # not attempted: guard, validation or missing state
    FAILED = "failed"  # attempted, nothing had been applied locally
    DISCARDED = "discarded"  # finished after the view moved on; result not applied


@dataclass(frozen=True)
class Pending(Generic[T]):
    """Handle to an item applied optimistically."""

    token: int
    item: T


class OptimisticList(Generic[T]):
    """A list whose items can be applied before they are confirmed.

    apply() adds an item immediately and returns a handle; confirm() keeps
    it (optionally swapping in the confirmed version) and revert() takes
    it out again. Both are no-ops once the item is gone, e.g. after clear().
    """

    def __init__(self, items: list[T] | None = None):
        self._tokens = count(1)
        self._entries: list[tuple[int | None, T]] = [(None, item) for item in items or []]

    @property
    def items(self) -> list[T]:
        return [item for _, item in self._entries]

    @property
    def pending_count(self) -> int:
        return sum(1 for token, _ in self._entries if token is not None)

    def __len__(self) -> int:
        return len(self._entries)

    def _index(self, pending: Pending[T]) -> int | None:
        for i, (token, _) in enumerate(self._entries):
            if token == pending.token:
                return i
        return None

    def apply(self, item: T) -> Pending[T]:
        pending = Pending(token=next(self._tokens), item=item)
        self._entries.append((pending.token, item))
        return pending

    def is_pending(self, pending: Pending[T]) -> bool:
        return self._index(pending) is not None

    def confirm(self, pending: Pending[T], replacement: T | None = None) -> bool:
        """Make a pending item permanent. Returns False if it is no longer present."""
        index = self._index(pending)
        if index is None:
            return False
        self._entries[index] = (None, pending.item if replacement is None else replacement)
        return True

    def revert(self, pending: Pending[T]) -> bool:
        """Remove a pending item. Returns False if it is no longer present."""
        index = self._index(pending)
        if index is None:
            return False
        del self._entries[index]
        return True

    def append(self, item: T) -> None:
        """Add an already-confirmed item."""
        self._entries.append((None, item))

    def replace_all(self, items: list[T]) -> None:
        self._entries = [(None, item) for item in items]

    def clear(self) -> None:
        self._entries = []


@dataclass(frozen=True)
class ActionResult:
    """Result of a controller operation."""

    outcome: Outcome
    error: BotdeskError | None = None
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.outcome == Outcome.CONFIRMED

    @classmethod
    def confirmed(cls, value: Any = None) -> "ActionResult":
        return cls(outcome=Outcome.CONFIRMED, value=value)

    @classmethod
    def rejected(cls, error: BotdeskError) -> "ActionResult":
        return cls(outcome=Outcome.REJECTED, error=error)

    @classmethod
    def failed(cls, error: BotdeskError) -> "ActionResult":
        return cls(outcome=Outcome.FAILED, error=error)

    @classmethod
    def discarded(cls) -> "ActionResult":
        return cls(outcome=Outcome.DISCARDED)


@dataclass(frozen=True)
class SendResult(ActionResult):
    """Result of submitting a message.

    ``reply`` is the assistant's text when the exchange was confirmed.
    """

    content: str | None = None
    reply: str | None = None
