# gotflow/core/validations.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import TYPE_CHECKING

from gotflow.core.errors import ValidationError

if TYPE_CHECKING:
    from gotflow.core.behaviors import BehaviorRegistration
    from gotflow.core.transitions import StateMachineInfo, TransitionInfo


class Validator:
    """
    Performs construction-time validation of state machine metadata and behavior
    registrations, ensuring they conform to the engine's rules.
    """

    def __init__(self) -> None:
        self._rules_engine = _ValidationRulesEngine()

    def validate_state_machine_info(self, info: "StateMachineInfo") -> None:
        """
        Check the declared transitions and state property for consistency.

        :param info: The state machine metadata to validate.
        :raises ValidationError: If validation fails.
        """
        self._rules_engine.validate_state_machine_info(info)

    def validate_transition(self, transition: "TransitionInfo") -> None:
        """
        Check that a transition descriptor is well-formed.

        :param transition: The transition to validate.
        :raises ValidationError: If validation fails.
        """
        self._rules_engine.validate_transition(transition)

    def validate_behavior_registration(self, registration: "BehaviorRegistration") -> None:
        """
        Check that a behavior registration can be used by the activity processor.

        :param registration: The registration to validate.
        :raises ValidationError: If validation fails.
        """
        self._rules_engine.validate_behavior_registration(registration)


class _ValidationRulesEngine:
    """
    Internal engine applying the validation rules. Centralizes validation logic
    for easier maintenance.
    """

    def __init__(self) -> None:
        self._default_rules = _DefaultValidationRules

    def validate_state_machine_info(self, info: "StateMachineInfo") -> None:
        self._default_rules.validate_state_machine_info(info)

    def validate_transition(self, transition: "TransitionInfo") -> None:
        self._default_rules.validate_transition(transition)

    def validate_behavior_registration(self, registration: "BehaviorRegistration") -> None:
        self._default_rules.validate_behavior_registration(registration)


class _DefaultValidationRules:
    """
    Built-in rules ensuring basic correctness of metadata out of the box.
    """

    @staticmethod
    def validate_state_machine_info(info: "StateMachineInfo") -> None:
        """
        - The state property must be named.
        - Transition names must be unique.
        - Every transition must be well-formed.
        """
        if not info.state_property or not info.state_property.name:
            raise ValidationError("State machine must declare the property holding the target state.")

        seen = set()
        for t in info.transitions:
            if t.name in seen:
                raise ValidationError(f"Transition '{t.name}' is declared more than once.")
            seen.add(t.name)
            _DefaultValidationRules.validate_transition(t)

    @staticmethod
    def validate_transition(transition: "TransitionInfo") -> None:
        """
        Check that the transition has a name, at least one source state and a callable body.
        """
        if not transition.name:
            raise ValidationError("Transition must have a name.")
        if not transition.from_states:
            raise ValidationError(f"Transition '{transition.name}' must start from at least one state.")
        if not callable(transition.method):
            raise ValidationError(f"Transition '{transition.name}' must be callable.")

    @staticmethod
    def validate_behavior_registration(registration: "BehaviorRegistration") -> None:
        behavior = registration.behavior
        if behavior is None:
            raise ValidationError("Behavior registration requires a behavior.")
        for method in ("before_execute_async", "after_execute_async"):
            if not callable(getattr(behavior, method, None)):
                raise ValidationError(f"Behavior {behavior!r} must provide a callable '{method}'.")
        if registration.activity_type is not None and not isinstance(registration.activity_type, type):
            raise ValidationError("Behavior activity filter must be a type or None.")
        if not isinstance(registration.priority, int):
            raise ValidationError("Behavior priority must be an integer.")
