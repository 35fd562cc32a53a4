# gotflow/runtime/processor.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, List, Optional

from gotflow.core.activities import Activity, ActivityInfo, ActivityTypeRegistry
from gotflow.core.arguments import Arguments
from gotflow.core.behaviors import BehaviorRegistry
from gotflow.core.errors import ActivityTimeoutError
from gotflow.interfaces.protocols import ActivityInfoProvider, Behavior, BehaviorProvider
from gotflow.interfaces.types import ArgumentsLike, OptionsConfig
from gotflow.runtime.cancellation import CancellationToken, CancellationTokenSource
from gotflow.runtime.context import ActivityContext

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_GRACE = 0.1


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _observe(task: "asyncio.Future[Any]") -> None:
    # Retrieve the outcome of an abandoned task so it is not reported as unhandled.
    if not task.cancelled():
        task.exception()


class ActivityProcessor:
    """
    Executes activities through an ordered behavior pipeline, optionally racing
    the activity body against a timeout.

    Before-behaviors run in ascending priority, after-behaviors in the exact
    reverse of that order, so the behavior running last before the body is the
    first to run after it.
    """

    def __init__(
        self,
        behavior_registry: Optional[BehaviorProvider] = None,
        type_registry: Optional[ActivityInfoProvider] = None,
        timeout_grace: float = DEFAULT_TIMEOUT_GRACE,
    ) -> None:
        """
        :param behavior_registry: Source of the activity behaviors.
        :param type_registry: Source of the activity metadata.
        :param timeout_grace: Seconds after the timeout at which the body's token is cancelled.
        """
        self.behavior_registry = behavior_registry or BehaviorRegistry()
        self.type_registry = type_registry or ActivityTypeRegistry()
        self.timeout_grace = timeout_grace

    async def execute_async(
        self,
        activity: Activity,
        target: Any = None,
        arguments: ArgumentsLike = None,
        options_config: Optional[OptionsConfig] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Any:
        """
        Execute an activity against a target.

        :param activity: The activity to execute.
        :param target: The object the activity operates on.
        :param arguments: Explicit arguments, merged over the declared defaults.
        :param options_config: Callback configuring the context, e.g. its timeout.
        :param cancellation_token: Checked before each execution phase.
        :return: The value produced by the activity body.
        :raises ValueError: If no activity is given.
        :raises ActivityTimeoutError: If the configured timeout elapsed first.
        :raises asyncio.CancelledError: If cancellation was requested.
        """
        if activity is None:
            raise ValueError("The activity to execute must be provided.")

        token = cancellation_token or CancellationToken.none()
        with ActivityContext(activity, target, arguments) as context:
            if options_config is not None:
                options_config(context)

            token.raise_if_cancelled()
            activity_info = self.type_registry.get_activity_info(activity)
            context.activity_info = activity_info

            token.raise_if_cancelled()
            context.arguments = self.get_execution_arguments(activity_info, arguments)

            token.raise_if_cancelled()
            behaviors = self.get_ordered_behaviors(activity_info)

            for behavior in behaviors:
                await _maybe_await(behavior.before_execute_async(context, token))

            token.raise_if_cancelled()
            await self._execute_core_async(activity_info, context, token)

            for behavior in reversed(behaviors):
                await _maybe_await(behavior.after_execute_async(context, token))

            if context.exception is not None:
                raise context.exception
            return context.result

    def get_execution_arguments(
        self, activity_info: ActivityInfo, arguments: ArgumentsLike
    ) -> Arguments:
        """
        Merge the explicit arguments over the declared defaults. Never returns None.
        """
        return activity_info.get_defaults().merge(arguments)

    def get_ordered_behaviors(self, activity_info: ActivityInfo) -> List[Behavior]:
        """
        Return the behaviors applicable to the activity type or its behavior
        filters, in ascending priority.
        """
        return self.behavior_registry.get_behaviors(activity_info.activity_type, activity_info.behavior_filters)

    async def _execute_core_async(
        self, activity_info: ActivityInfo, context: ActivityContext, token: CancellationToken
    ) -> None:
        activity = context.activity
        timeout = context.timeout_seconds
        activity.start()
        logger.debug("Executing activity %s (timeout=%s)", activity_info.name, timeout)
        try:
            if timeout is None:
                context.result = await activity_info.execute_async(
                    activity, context.target, context.arguments, context, token
                )
            else:
                context.result = await self._execute_with_timeout_async(activity_info, context, token, timeout)
        except asyncio.CancelledError as exc:
            activity.cancel("The activity was cancelled.")
            context.exception = exc
        except ActivityTimeoutError as exc:
            activity.cancel(str(exc))
            context.exception = exc
        except Exception as exc:
            logger.debug("Activity %s failed: %r", activity_info.name, exc)
            activity.fail(exc)
            context.exception = exc
        else:
            activity.complete(context.result)

    async def _execute_with_timeout_async(
        self, activity_info: ActivityInfo, context: ActivityContext, token: CancellationToken, timeout: float
    ) -> Any:
        """
        Race the activity body against the timeout. The body gets a token that is
        cancelled shortly after the timeout or when the caller cancels; a body that
        loses the race is not awaited.
        """
        source = CancellationTokenSource.linked(token)
        source.cancel_after(timeout + self.timeout_grace)
        linked_token = source.token

        body = asyncio.ensure_future(
            activity_info.execute_async(context.activity, context.target, context.arguments, context, linked_token)
        )
        delay = asyncio.ensure_future(self._delay_async(timeout, linked_token))
        linked_token.register(lambda: body.done() or body.cancel())

        try:
            done, _ = await asyncio.wait({body, delay}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            body.cancel()
            delay.cancel()
            source.dispose()
            raise

        if body in done:
            delay.cancel()
            source.dispose()
            return body.result()

        # The body keeps running until the grace timer fires; the caller no longer reaches it.
        source.unlink()
        body.add_done_callback(_observe)
        token.raise_if_cancelled()
        raise ActivityTimeoutError(
            f"The activity {activity_info.name} did not complete within {timeout} seconds.", timeout=timeout
        )

    @staticmethod
    async def _delay_async(timeout: float, token: CancellationToken) -> None:
        waiter = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({waiter}, timeout=timeout)
        finally:
            waiter.cancel()
