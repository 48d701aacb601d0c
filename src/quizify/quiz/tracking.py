"""Per-key state for asynchronous operations.

Each unit of async work (a generation, an extraction, the explanation for
question 3) takes a :class:`Ticket` before it starts. Tickets carry a
monotonic sequence number; completing with a ticket that is no longer the
latest for its key is a no-op, so a late result can never overwrite newer
state or land on the wrong question.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Hashable, Iterator, TypeVar

__all__ = [
    "Operation",
    "OperationState",
    "OperationTracker",
    "Ticket",
]

T = TypeVar("T")


class OperationState(Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Ticket:
    key: Hashable
    seq: int


@dataclass(frozen=True)
class Operation(Generic[T]):
    """Snapshot of one key's latest operation."""

    state: OperationState = OperationState.IDLE
    result: T | None = None
    error: str | None = None
    seq: int = 0

    @property
    def in_flight(self) -> bool:
        return self.state is OperationState.IN_FLIGHT


_IDLE: Operation[Any] = Operation()


class OperationTracker(Generic[T]):
    """Map of key -> latest :class:`Operation`, owned by one session."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._operations: dict[Hashable, Operation[T]] = {}

    def begin(self, key: Hashable) -> Ticket:
        """Mark ``key`` in flight and supersede any earlier ticket for it."""

        ticket = Ticket(key=key, seq=next(self._counter))
        self._operations[key] = Operation(
            state=OperationState.IN_FLIGHT, seq=ticket.seq
        )
        return ticket

    def complete(self, ticket: Ticket, result: T) -> bool:
        if not self.is_current(ticket):
            return False
        self._operations[ticket.key] = Operation(
            state=OperationState.DONE, result=result, seq=ticket.seq
        )
        return True

    def fail(self, ticket: Ticket, error: str) -> bool:
        if not self.is_current(ticket):
            return False
        self._operations[ticket.key] = Operation(
            state=OperationState.FAILED, error=error, seq=ticket.seq
        )
        return True

    def is_current(self, ticket: Ticket) -> bool:
        current = self._operations.get(ticket.key)
        return current is not None and current.seq == ticket.seq

    def get(self, key: Hashable) -> Operation[T]:
        return self._operations.get(key, _IDLE)

    def state(self, key: Hashable) -> OperationState:
        return self.get(key).state

    def reset(self) -> None:
        """Forget every key; outstanding tickets become stale."""

        self._operations.clear()

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._operations)

    def __len__(self) -> int:
        return len(self._operations)
