# gotflow/runtime/context.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any, Optional

from gotflow.core.arguments import Arguments
from gotflow.interfaces.types import ArgumentsLike, Timeout

if TYPE_CHECKING:
    from gotflow.core.activities import Activity, ActivityInfo
    from gotflow.core.state_machine import StateMachine
    from gotflow.core.transitions import TransitionInfo


class Context:
    """
    Scoped carrier for one operation. Released through `dispose()`, or by leaving a
    `with`/`async with` block, whatever the outcome of the operation.
    """

    def __init__(self) -> None:
        self.items = Arguments()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._release()

    def _release(self) -> None:
        """Drop the references held for the operation."""
        self.items.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.dispose()


class ActivityContext(Context):
    """
    Execution state of one activity run: its inputs, the effective arguments, the
    timeout and the outcome.

    `result` and `exception` are set independently; after-behaviors may observe a
    partial result alongside an exception.
    """

    def __init__(
        self,
        activity: "Activity",
        target: Any = None,
        arguments: ArgumentsLike = None,
        timeout: Timeout = None,
    ) -> None:
        super().__init__()
        self.activity = activity
        self.target = target
        self.arguments = Arguments.of(arguments)
        self.timeout = timeout
        self.activity_info: Optional["ActivityInfo"] = None
        self.result: Any = None
        self.exception: Optional[BaseException] = None

    @property
    def timeout_seconds(self) -> Optional[float]:
        """The timeout in seconds, None when no positive timeout is configured."""
        timeout = self.timeout
        if isinstance(timeout, timedelta):
            timeout = timeout.total_seconds()
        if timeout is None or timeout <= 0:
            return None
        return float(timeout)

    def _release(self) -> None:
        super()._release()
        self.target = None

    def __repr__(self) -> str:
        return f"ActivityContext(activity={type(self.activity).__name__}, timeout={self.timeout!r})"


class TransitionContext(Context):
    """
    Input of one state machine transition: the machine, the requested destination
    or an explicit transition, and the arguments for the transition method.
    """

    def __init__(
        self,
        state_machine: "StateMachine",
        to: Any = None,
        arguments: ArgumentsLike = None,
        transition_info: Optional["TransitionInfo"] = None,
    ) -> None:
        super().__init__()
        self.state_machine = state_machine
        self.to = to
        self.arguments = Arguments.of(arguments)
        self.transition_info = transition_info

    def __repr__(self) -> str:
        name = self.transition_info.name if self.transition_info else None
        return f"TransitionContext(to={self.to!r}, transition={name!r})"
