# gotflow/interfaces/protocols.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gotflow.core.activities import Activity, ActivityInfo
    from gotflow.runtime.cancellation import CancellationToken
    from gotflow.runtime.context import ActivityContext


@runtime_checkable
class Behavior(Protocol):
    """
    Activity behavior protocol for type checking.

    Methods:
        before_execute_async(): Runs before the activity body.
        after_execute_async(): Runs after the activity body, whatever its outcome.

    Runtime Invariants:
    - Either method may be a coroutine or return a plain value, which is ignored.
    - Exceptions raised before execution propagate to the caller unchanged.
    """

    def before_execute_async(
        self, context: "ActivityContext", cancellation_token: Optional["CancellationToken"] = None
    ) -> Any:
        ...

    def after_execute_async(
        self, context: "ActivityContext", cancellation_token: Optional["CancellationToken"] = None
    ) -> Any:
        ...


@runtime_checkable
class BehaviorProvider(Protocol):
    """
    Source of activity behaviors.

    Methods:
        get_behaviors(): Returns the behaviors applying to an activity type or to
            one of its behavior filters, in ascending priority.
    """

    def get_behaviors(self, activity_type: type, behavior_filters: Optional[Iterable[type]] = None) -> List[Behavior]:
        ...


@runtime_checkable
class ActivityInfoProvider(Protocol):
    """
    Source of activity metadata.

    Methods:
        get_activity_info(): Returns the metadata of an activity or activity type:
            its declared parameters with their defaults and how to run its body.
    """

    def get_activity_info(self, activity: "Activity") -> "ActivityInfo":
        ...
