# gotflow/core/activities.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import inspect
import logging
import threading
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Iterable, List, Optional, Sequence, Tuple, Type, Union

from gotflow.core.arguments import Arguments
from gotflow.core.errors import ActivityNotImplementedError
from gotflow.core.operations import OperationResult
from gotflow.core.parameters import ParameterInfo

if TYPE_CHECKING:
    from gotflow.runtime.cancellation import CancellationToken
    from gotflow.runtime.context import ActivityContext

logger = logging.getLogger(__name__)


class Activity(OperationResult):
    """
    A unit of work executed once against a target with a bag of arguments.

    Subclasses declare their parameters, return type and behavior filters as
    class attributes and override `execute_async`, either as a coroutine or as a
    plain method:

        class Greet(Activity):
            parameters = [ParameterInfo("name", str, default="world")]

            async def execute_async(self, context, cancellation_token=None):
                return f"hello {context.arguments['name']}"

    The target is borrowed, never owned, by the activity.
    """

    parameters: ClassVar[Sequence[ParameterInfo]] = ()
    return_type: ClassVar[Any] = None
    behavior_filters: ClassVar[Sequence[type]] = ()

    def __init__(self) -> None:
        super().__init__()
        self.target: Any = None
        self.arguments: Optional[Arguments] = None
        self.context: Optional["ActivityContext"] = None

    def execute_async(self, context: "ActivityContext", cancellation_token: Optional["CancellationToken"] = None) -> Any:
        """
        Run the activity body. May return a value or an awaitable yielding one.

        :raises ActivityNotImplementedError: If the activity type provides no body.
        """
        raise ActivityNotImplementedError(
            f"Override execute_async in the activity of type '{type(self).__qualname__}', "
            "or register a specialized activity info."
        )


class ActivityInfo:
    """
    Describes an activity type: its parameters, return type, how to run its body
    and the activity types whose registered behaviors apply to it.
    """

    def __init__(
        self,
        activity_type: Type[Activity],
        parameters: Optional[Iterable[ParameterInfo]] = None,
        return_type: Any = None,
        behavior_filters: Optional[Iterable[type]] = None,
    ) -> None:
        self.activity_type = activity_type
        self.parameters: List[ParameterInfo] = list(
            parameters if parameters is not None else getattr(activity_type, "parameters", ())
        )
        self.return_type = return_type if return_type is not None else getattr(activity_type, "return_type", None)
        if behavior_filters is None:
            behavior_filters = getattr(activity_type, "behavior_filters", ())
        # The activity type itself always selects the behaviors registered for it.
        self.behavior_filters: Tuple[type, ...] = tuple(dict.fromkeys((activity_type, *behavior_filters)))

    @property
    def name(self) -> str:
        return self.activity_type.__name__

    @property
    def full_name(self) -> str:
        return f"{self.activity_type.__module__}.{self.activity_type.__qualname__}"

    def get_parameter(self, name: str) -> Optional[ParameterInfo]:
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter
        return None

    def get_defaults(self) -> Arguments:
        """
        Return the declared defaults of the optional input parameters.
        """
        return Arguments(
            {p.name: p.default for p in self.parameters if p.is_in and p.is_optional and p.has_default}
        )

    async def execute_async(
        self,
        activity: Activity,
        target: Any,
        arguments: Optional[Arguments],
        context: "ActivityContext",
        cancellation_token: Optional["CancellationToken"] = None,
    ) -> Any:
        """
        Bind the execution inputs onto the activity and run its body.

        :param activity: The activity to execute.
        :param target: The activity target.
        :param arguments: The effective execution arguments.
        :param context: The execution context.
        :param cancellation_token: Token forwarded to the body.
        :return: The value produced by the body.
        """
        activity.target = target
        activity.arguments = arguments
        activity.context = context

        result = activity.execute_async(context, cancellation_token)
        if inspect.isawaitable(result):
            result = await result
        return result

    def __repr__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"ActivityInfo({self.name}({params}))"


class ActivityTypeRegistry:
    """
    Explicit registry of activity metadata. Types that were never registered get
    an ActivityInfo built from their declared class attributes, cached on first use.
    """

    def __init__(self, infos: Optional[Iterable[ActivityInfo]] = None) -> None:
        self._infos: Dict[type, ActivityInfo] = {}
        self._lock = threading.Lock()
        for info in infos or []:
            self.register(info)

    def register(self, info: ActivityInfo) -> None:
        with self._lock:
            self._infos[info.activity_type] = info

    def get_activity_info(self, activity: Union[Activity, Type[Activity]]) -> ActivityInfo:
        """
        Return the metadata registered for the activity's type, or for the closest
        registered base class, or a default built from the type's declarations.
        """
        activity_type = activity if isinstance(activity, type) else type(activity)
        with self._lock:
            info = self._infos.get(activity_type)
            if info is not None:
                return info
            for base in activity_type.__mro__[1:]:
                base_info = self._infos.get(base)
                if base_info is not None and type(base_info) is not ActivityInfo:
                    # Specialized infos are inherited by subclasses.
                    info = type(base_info)(activity_type)
                    break
            else:
                info = ActivityInfo(activity_type)
            self._infos[activity_type] = info
            logger.debug("Created activity info %r", info)
            return info

    def __contains__(self, activity_type: type) -> bool:
        return activity_type in self._infos
