# gotflow/core/behaviors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable, List, Optional

from gotflow.core.validations import Validator

if TYPE_CHECKING:
    from gotflow.runtime.cancellation import CancellationToken
    from gotflow.runtime.context import ActivityContext


class ActivityBehavior:
    """
    Intercepts activity execution. `before_execute_async` runs before the body
    and `after_execute_async` runs afterwards, whether the body succeeded or not.
    Overrides may be coroutines or plain methods.
    """

    def before_execute_async(
        self, context: "ActivityContext", cancellation_token: Optional["CancellationToken"] = None
    ) -> Any:
        return None

    def after_execute_async(
        self, context: "ActivityContext", cancellation_token: Optional["CancellationToken"] = None
    ) -> Any:
        return None


@dataclass(frozen=True)
class BehaviorRegistration:
    """
    A behavior together with its applicability filter and ordering key.

    :param behavior: The behavior instance.
    :param activity_type: Activity type the behavior applies to; None applies to all.
    :param priority: Lower priorities run first before execution and last after it.
    """

    behavior: ActivityBehavior
    activity_type: Optional[type] = None
    priority: int = 0

    def applies_to(self, *activity_types: type) -> bool:
        return self.activity_type is None or self.activity_type in activity_types


class BehaviorRegistry:
    """
    Source of activity behaviors, filterable by activity type and ordered by priority.
    """

    def __init__(self, validator: Optional[Validator] = None) -> None:
        self._validator = validator or Validator()
        self._registrations: List[BehaviorRegistration] = []
        self._lock = threading.Lock()

    def register(
        self, behavior: ActivityBehavior, activity_type: Optional[type] = None, priority: int = 0
    ) -> BehaviorRegistration:
        registration = BehaviorRegistration(behavior=behavior, activity_type=activity_type, priority=priority)
        self._validator.validate_behavior_registration(registration)
        with self._lock:
            self._registrations.append(registration)
        return registration

    def unregister(self, registration: BehaviorRegistration) -> None:
        with self._lock:
            self._registrations.remove(registration)

    @property
    def registrations(self) -> List[BehaviorRegistration]:
        with self._lock:
            return list(self._registrations)

    def get_behaviors(
        self, activity_type: type, behavior_filters: Optional[Iterable[type]] = None
    ) -> List[ActivityBehavior]:
        """
        Return the behaviors applicable to `activity_type` in ascending priority.
        Registrations with equal priority keep their registration order.

        :param activity_type: The type of the executed activity.
        :param behavior_filters: Additional activity types whose behaviors apply.
        """
        filters = (activity_type, *(behavior_filters or ()))
        matching = [r for r in self.registrations if r.applies_to(*filters)]
        return [r.behavior for r in sorted(matching, key=lambda r: r.priority)]
