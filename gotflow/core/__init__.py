"""
Core package providing the activity data model, metadata and the state machine.

Architecture:
- Activities and their declared parameters
- Behaviors and their registry
- Transition metadata and the state machine resolving it

Cross-cutting:
- Errors propagate with their original type
- Metadata is validated at construction
"""

# Import order matters to avoid circular dependencies
from .errors import (
    ActivityNotImplementedError,
    ActivityTimeoutError,
    AmbiguousTransitionError,
    InvalidTransitionError,
    TransitionError,
    ValidationError,
    WorkflowError,
)
from .arguments import Arguments
from .operations import OperationMessage, OperationResult, OperationState
from .parameters import MISSING, ParameterInfo
from .activities import Activity, ActivityInfo, ActivityTypeRegistry
from .behaviors import ActivityBehavior, BehaviorRegistration, BehaviorRegistry
from .transitions import EMPTY, StateMachineInfo, StatePropertyInfo, TransitionInfo, TransitionResult, transition
from .state_machine import StateMachine

__all__ = [
    # Errors
    "ActivityNotImplementedError",
    "ActivityTimeoutError",
    "AmbiguousTransitionError",
    "InvalidTransitionError",
    "TransitionError",
    "ValidationError",
    "WorkflowError",
    # Activities
    "Activity",
    "ActivityInfo",
    "ActivityTypeRegistry",
    "Arguments",
    "MISSING",
    "OperationMessage",
    "OperationResult",
    "OperationState",
    "ParameterInfo",
    # Behaviors
    "ActivityBehavior",
    "BehaviorRegistration",
    "BehaviorRegistry",
    # State machines
    "EMPTY",
    "StateMachine",
    "StateMachineInfo",
    "StatePropertyInfo",
    "TransitionInfo",
    "TransitionResult",
    "transition",
]
