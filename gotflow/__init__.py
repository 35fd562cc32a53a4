"""gotflow: activity execution and state transition engine

This package runs units of work ("activities") through an ordered pipeline of
interceptors with optional timeout enforcement, and performs declared state
transitions on target objects.

Responsibilities:
    - Activity execution with before/after behaviors
    - Timeout racing and cooperative cancellation
    - Transition resolution and ambiguity detection
    - Normalization of synchronous and asynchronous transition results

Interactions:
    - Client code through the public API
    - asyncio for scheduling and timers
    - Logging system for diagnostics

Cross-cutting Concerns:
    Concurrency:
        - Single logical flow of control per call
        - Behaviors are awaited sequentially, never concurrently
        - Activity messages are safe for concurrent append

    Error Handling:
        - Structured error hierarchy rooted at WorkflowError
        - Body failures surface with their original type
        - Failed transitions never change the target's state
"""

from gotflow.core import (
    Activity,
    ActivityBehavior,
    ActivityInfo,
    ActivityTypeRegistry,
    AmbiguousTransitionError,
    Arguments,
    BehaviorRegistry,
    InvalidTransitionError,
    ActivityTimeoutError,
    OperationState,
    ParameterInfo,
    StateMachine,
    StateMachineInfo,
    TransitionInfo,
    ValidationError,
    WorkflowError,
    transition,
)
from gotflow.runtime.cancellation import CancellationToken, CancellationTokenSource
from gotflow.runtime.context import ActivityContext, TransitionContext
from gotflow.runtime.processor import ActivityProcessor

__version__ = "0.1.0"

__all__ = [
    "Activity",
    "ActivityBehavior",
    "ActivityContext",
    "ActivityInfo",
    "ActivityProcessor",
    "ActivityTimeoutError",
    "ActivityTypeRegistry",
    "AmbiguousTransitionError",
    "Arguments",
    "BehaviorRegistry",
    "CancellationToken",
    "CancellationTokenSource",
    "InvalidTransitionError",
    "OperationState",
    "ParameterInfo",
    "StateMachine",
    "StateMachineInfo",
    "TransitionContext",
    "TransitionInfo",
    "ValidationError",
    "WorkflowError",
    "transition",
]
