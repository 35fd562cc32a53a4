# gotflow/core/operations.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum, auto
from typing import Any, Dict, Iterator, List, Optional


def _now() -> datetime:
    return datetime.now(timezone.utc)


class OperationState(Enum):
    """Lifecycle of a unit of work."""

    NOT_STARTED = auto()
    RUNNING = auto()
    COMPLETED = auto()
    FAULTED = auto()
    CANCELED = auto()


@dataclass(frozen=True)
class OperationMessage:
    """A diagnostic or progress message attached to an operation."""

    message: str
    level: int = logging.INFO
    timestamp: datetime = field(default_factory=_now)
    exception: Optional[BaseException] = None

    def to_data(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "level": logging.getLevelName(self.level),
            "timestamp": self.timestamp.isoformat(),
        }


class MessageCollection:
    """
    Append-only, thread-safe list of operation messages. Iteration works on a
    snapshot so concurrent appends never invalidate it.
    """

    def __init__(self) -> None:
        self._items: List[OperationMessage] = []
        self._lock = threading.Lock()

    def append(self, message: OperationMessage) -> None:
        with self._lock:
            self._items.append(message)

    def snapshot(self) -> List[OperationMessage]:
        with self._lock:
            return list(self._items)

    def __iter__(self) -> Iterator[OperationMessage]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __getitem__(self, index: int) -> OperationMessage:
        with self._lock:
            return self._items[index]


class OperationResult:
    """
    Bookkeeping for one unit of work: produced value, state, progress and timing.

    `elapsed` is computed from `started_at` until it is frozen by assignment,
    which the owning execution does when the operation ends.
    """

    def __init__(self, value: Any = None) -> None:
        self._value = value
        self.state = OperationState.NOT_STARTED
        self.percent_completed: float = 0.0
        self.started_at: Optional[datetime] = None
        self.ended_at: Optional[datetime] = None
        self._elapsed: Optional[timedelta] = None
        self.messages = MessageCollection()

    @property
    def value(self) -> Any:
        """The produced result. Only meaningful once the state is COMPLETED."""
        return self._value

    @value.setter
    def value(self, value: Any) -> None:
        self._value = value

    @property
    def elapsed(self) -> timedelta:
        if self._elapsed is not None:
            return self._elapsed
        if self.started_at is None:
            return timedelta(0)
        return _now() - self.started_at

    @elapsed.setter
    def elapsed(self, value: Optional[timedelta]) -> None:
        self._elapsed = value

    def add_message(
        self, message: str, level: int = logging.INFO, exception: Optional[BaseException] = None
    ) -> OperationMessage:
        msg = OperationMessage(message=message, level=level, exception=exception)
        self.messages.append(msg)
        return msg

    def start(self) -> None:
        """Mark the operation as running and reset its timing."""
        self.state = OperationState.RUNNING
        self.started_at = _now()
        self.ended_at = None
        self._elapsed = None

    def complete(self, value: Any = None) -> None:
        self._value = value
        self.percent_completed = 1.0
        self._end(OperationState.COMPLETED)

    def fail(self, exception: BaseException) -> None:
        self.add_message(str(exception) or type(exception).__name__, logging.ERROR, exception)
        self._end(OperationState.FAULTED)

    def cancel(self, reason: Optional[str] = None) -> None:
        if reason:
            self.add_message(reason, logging.WARNING)
        self._end(OperationState.CANCELED)

    def _end(self, state: OperationState) -> None:
        self.state = state
        self.ended_at = _now()
        if self.started_at is not None:
            self._elapsed = self.ended_at - self.started_at

    def to_data(self) -> Dict[str, Any]:
        """Return a plain dictionary snapshot of the operation."""
        messages = self.messages.snapshot()
        return {
            "state": self.state.name,
            "elapsed": self.elapsed.total_seconds(),
            "percent_completed": self.percent_completed,
            "messages": [m.to_data() for m in messages] if messages else None,
            "value": self._value if self.state is OperationState.COMPLETED else None,
        }

    def __str__(self) -> str:
        return f"{self.state.name} ({self.percent_completed:.1%})"
