# gotflow/core/state_machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import logging
from typing import Any, ClassVar, List, Optional, Union

from gotflow.core.errors import AmbiguousTransitionError, InvalidTransitionError
from gotflow.core.transitions import StateMachineInfo, StatePropertyInfo, TransitionInfo
from gotflow.core.validations import Validator
from gotflow.runtime.cancellation import CancellationToken
from gotflow.runtime.context import TransitionContext

logger = logging.getLogger(__name__)


class StateMachine:
    """
    Validates and performs declared transitions on a target object.

    Transitions are methods decorated with @transition; the target's state lives
    in the property named by `state_property`:

        class DocumentMachine(StateMachine):
            state_property = "status"

            @transition(from_="draft", to="published")
            async def publish_async(self, editor, cancellation_token: CancellationToken = None):
                ...

    The machine holds no state of its own; each call reads the target's state
    once and writes it at most once, after the transition method succeeded.
    Concurrent calls against one target must be serialized by the caller.
    """

    state_property: ClassVar[Union[str, StatePropertyInfo]] = "state"

    def __init__(
        self,
        target: Any,
        info: Optional[StateMachineInfo] = None,
        validator: Optional[Validator] = None,
    ) -> None:
        """
        :param target: The object whose state is read and changed.
        :param info: Explicit metadata; defaults to the metadata declared on the class.
        :param validator: Validator applied to the metadata.
        """
        self.target = target
        self._info = info or StateMachineInfo.for_type(type(self))
        self._validator = validator or Validator()
        self._validator.validate_state_machine_info(self._info)

    @property
    def info(self) -> StateMachineInfo:
        return self._info

    @property
    def transitions(self) -> List[TransitionInfo]:
        return list(self._info.transitions)

    @property
    def current_state(self) -> Any:
        """The state read from the target. Never cached."""
        return self._info.state_property.get_value(self.target)

    def available_transitions(self) -> List[TransitionInfo]:
        """Return the transitions that start from the current state."""
        state = self.current_state
        return [t for t in self._info.transitions if t.applies_from(state)]

    def can_transition(self, to: Any) -> bool:
        """Return True if exactly one declared transition leads from the current state to `to`."""
        return len([t for t in self.available_transitions() if t.to == to]) == 1

    def resolve_transition(self, context: TransitionContext) -> Optional[TransitionInfo]:
        """
        Determine the transition to apply. An explicit transition in the context
        takes precedence over resolution by destination.

        :return: The transition, or None when the context requests nothing.
        :raises InvalidTransitionError: If the explicit transition contradicts the
            destination or the current state.
        :raises AmbiguousTransitionError: If several transitions match.
        """
        state = self.current_state
        explicit = context.transition_info
        if explicit is not None:
            if context.to is not None and context.to != explicit.to:
                raise InvalidTransitionError(
                    f"The transition '{explicit.name}' leads to '{explicit.to}', "
                    f"but '{context.to}' was requested.",
                    to=context.to,
                    current_state=state,
                )
            if not explicit.applies_from(state):
                raise InvalidTransitionError(
                    f"The transition '{explicit.name}' cannot start from the current state '{state}'.",
                    to=explicit.to,
                    current_state=state,
                )
            return explicit

        if context.to is None:
            return None

        candidates = [t for t in self._info.transitions if t.to == context.to and t.applies_from(state)]
        if len(candidates) > 1:
            names = [t.name for t in candidates]
            raise AmbiguousTransitionError(
                f"Multiple transitions lead from '{state}' to '{context.to}': {', '.join(names)}. "
                "Provide the transition to apply explicitly.",
                candidates=names,
            )
        return candidates[0] if candidates else None

    async def transition_async(
        self, context: TransitionContext, cancellation_token: Optional[CancellationToken] = None
    ) -> Any:
        """
        Resolve and invoke one transition, then commit its destination onto the target.

        :param context: The transition request.
        :param cancellation_token: Forwarded to token-typed transition parameters.
        :return: The value produced by the transition method, None if it produced none.
        :raises InvalidTransitionError: If no transition applies.
        :raises AmbiguousTransitionError: If several transitions apply.
        """
        transition_info = self.resolve_transition(context)
        if transition_info is None:
            raise InvalidTransitionError(
                f"No transition found from '{self.current_state}' to '{context.to}'.",
                to=context.to,
                current_state=self.current_state,
            )

        logger.debug("Transitioning %r to '%s' with '%s'", self.target, transition_info.to, transition_info.name)
        try:
            result = await transition_info.invoke_async(self, context.arguments, cancellation_token)
        except (Exception, asyncio.CancelledError) as exc:
            logger.error(
                "Error while transitioning %r to '%s' with '%s'.",
                self.target,
                transition_info.to,
                transition_info.name,
                exc_info=exc,
                extra={"target": self.target, "to": transition_info.to, "transition": transition_info.name},
            )
            raise

        self._info.state_property.set_value(self.target, transition_info.to)
        return result.unwrap()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(target={self.target!r}, state={self.current_state!r})"
