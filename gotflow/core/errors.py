# gotflow/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Any, Iterable, List, Optional


class WorkflowError(Exception):
    """
    Base exception class for errors raised by the workflow engine.
    """


class ValidationError(WorkflowError):
    """
    Raised when activity or state machine metadata violates its declared constraints.
    """


class ActivityNotImplementedError(WorkflowError, NotImplementedError):
    """
    Raised when an activity is executed but provides no body.
    """


class ActivityTimeoutError(WorkflowError, TimeoutError):
    """
    Raised when the configured timeout elapses before the activity body completes.
    """

    def __init__(self, message: str, timeout: Optional[float] = None) -> None:
        super().__init__(message)
        self.timeout = timeout


class TransitionError(WorkflowError):
    """
    Base class for errors raised while resolving a state machine transition.
    """


class InvalidTransitionError(TransitionError):
    """
    Raised when no declared transition applies, or an explicit transition
    contradicts the requested destination or the current state.
    """

    def __init__(self, message: str, to: Any = None, current_state: Any = None) -> None:
        super().__init__(message)
        self.to = to
        self.current_state = current_state


class AmbiguousTransitionError(TransitionError):
    """
    Raised when more than one declared transition matches the current state and
    the requested destination.
    """

    def __init__(self, message: str, candidates: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.candidates: List[str] = list(candidates)
