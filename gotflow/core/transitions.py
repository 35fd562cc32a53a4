# gotflow/core/transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import inspect
import re
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from gotflow.core.arguments import Arguments
from gotflow.core.parameters import ParameterInfo, parameters_of
from gotflow.interfaces.types import StateGetter, StateSetter
from gotflow.runtime.cancellation import CancellationToken

_ASYNC_SUFFIX = "_async"
_TRANSITION_ATTR = "__transition__"
_DEFAULT_STATE_PROPERTY = "state"


def transition(from_: Any, to: Any) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Declare a state machine method as a transition from one or more states to `to`.

    The method may be synchronous or a coroutine; its parameters are bound by name
    from the transition arguments when invoked.

    :param from_: A state or an iterable of states the transition starts from.
    :param to: The state the target is in after the transition.
    """
    from_states = _as_states(from_)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        setattr(func, _TRANSITION_ATTR, (from_states, to))
        return func

    return decorator


def _as_states(value: Any) -> Tuple[Any, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return (value,)
    return tuple(value)


def _is_cancellation_token_type(value_type: Any) -> bool:
    if isinstance(value_type, str):
        # Unresolved forward reference.
        return re.search(r"\bCancellationToken\b", value_type) is not None
    if value_type is CancellationToken:
        return True
    return CancellationToken in getattr(value_type, "__args__", ())


class TransitionResult:
    """
    Normalized outcome of a transition invocation: either EMPTY or a single value.
    """

    __slots__ = ("_has_value", "_value")

    def __init__(self, has_value: bool, value: Any = None) -> None:
        self._has_value = has_value
        self._value = value

    @classmethod
    def of(cls, value: Any) -> "TransitionResult":
        return cls(True, value)

    @property
    def has_value(self) -> bool:
        return self._has_value

    @property
    def value(self) -> Any:
        return self._value

    def unwrap(self) -> Any:
        """Return the produced value, or None when the result is empty."""
        return self._value if self._has_value else None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TransitionResult):
            return NotImplemented
        return self._has_value == other._has_value and self._value == other._value

    def __repr__(self) -> str:
        return f"TransitionResult.of({self._value!r})" if self._has_value else "EMPTY"


EMPTY = TransitionResult(False)


class TransitionInfo:
    """
    Declared metadata for one legal state change: the states it starts from, the
    state it leads to, and the method that performs it.

    The method is either a function receiving the state machine as its first
    positional parameter, whatever its name, or a bound method.
    """

    def __init__(
        self,
        method: Callable[..., Any],
        from_states: Iterable[Any],
        to: Any,
        name: Optional[str] = None,
        parameters: Optional[Iterable[ParameterInfo]] = None,
    ) -> None:
        self.method = method
        self.from_states: Tuple[Any, ...] = tuple(from_states)
        self.to = to
        self.name = name or self._name_of(method)
        # Bound methods already carry their owner; plain functions receive the machine first.
        self.is_bound = inspect.ismethod(method)
        self.parameters: List[ParameterInfo] = (
            list(parameters) if parameters is not None else parameters_of(method, skip_first=not self.is_bound)
        )
        self.is_async = inspect.iscoroutinefunction(method)

    @classmethod
    def from_method(cls, method: Callable[..., Any]) -> "TransitionInfo":
        """Build the info of a method decorated with @transition."""
        declared = getattr(method, _TRANSITION_ATTR, None)
        if declared is None:
            raise ValueError(f"Method '{method.__qualname__}' is not declared as a transition.")
        from_states, to = declared
        return cls(method, from_states, to)

    @staticmethod
    def _name_of(method: Callable[..., Any]) -> str:
        name = method.__name__
        return name[: -len(_ASYNC_SUFFIX)] if name.endswith(_ASYNC_SUFFIX) else name

    @property
    def full_name(self) -> str:
        qualname = getattr(self.method, "__qualname__", self.name)
        owner = qualname.rsplit(".", 1)[0] if "." in qualname else getattr(self.method, "__module__", "")
        return f"{owner}.{self.name}"

    def applies_from(self, state: Any) -> bool:
        return state in self.from_states

    def bind_arguments(
        self, arguments: Optional[Arguments], cancellation_token: Optional[CancellationToken] = None
    ) -> Dict[str, Any]:
        """
        Bind a value to each declared parameter, in declaration order: the same
        named argument if present, else the cancellation token for token-typed
        parameters, else the declared default or None.
        """
        arguments = Arguments.of(arguments)
        bound: Dict[str, Any] = {}
        for parameter in self.parameters:
            if arguments.has(parameter.name):
                bound[parameter.name] = arguments[parameter.name]
            elif _is_cancellation_token_type(parameter.value_type):
                bound[parameter.name] = cancellation_token
            else:
                bound[parameter.name] = parameter.default if parameter.has_default else None
        return bound

    async def invoke_async(
        self,
        state_machine: Any,
        arguments: Optional[Arguments] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> TransitionResult:
        """
        Invoke the transition method on the state machine and normalize its outcome.
        """
        kwargs = self.bind_arguments(arguments, cancellation_token)
        result = self.method(**kwargs) if self.is_bound else self.method(state_machine, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, TransitionResult):
            return result
        return EMPTY if result is None else TransitionResult.of(result)

    def __str__(self) -> str:
        from_states = ", ".join(str(s) for s in self.from_states)
        params = ", ".join(str(p) for p in self.parameters)
        return f"{self.name}[({from_states}) -> {self.to}]({params})"

    def __repr__(self) -> str:
        return f"TransitionInfo({self})"


class StatePropertyInfo:
    """
    Accessor for the state-holding property of a state machine target.
    """

    def __init__(
        self,
        name: str = _DEFAULT_STATE_PROPERTY,
        getter: Optional[StateGetter] = None,
        setter: Optional[StateSetter] = None,
    ) -> None:
        self.name = name
        self._getter = getter
        self._setter = setter

    def get_value(self, target: Any) -> Any:
        if self._getter is not None:
            return self._getter(target)
        return getattr(target, self.name)

    def set_value(self, target: Any, value: Any) -> None:
        if self._setter is not None:
            self._setter(target, value)
        else:
            setattr(target, self.name, value)

    def __repr__(self) -> str:
        return f"StatePropertyInfo({self.name!r})"


class StateMachineInfo:
    """
    Declared metadata of a state machine type: its transitions and the property
    of the target holding the current state.
    """

    _cache: Dict[type, "StateMachineInfo"] = {}
    _cache_lock = threading.Lock()

    def __init__(
        self,
        machine_type: Optional[type],
        transitions: Iterable[TransitionInfo],
        state_property: Union[str, StatePropertyInfo, None] = None,
    ) -> None:
        self.machine_type = machine_type
        self.transitions: List[TransitionInfo] = list(transitions)
        if state_property is None:
            state_property = _DEFAULT_STATE_PROPERTY
        self.state_property = (
            state_property if isinstance(state_property, StatePropertyInfo) else StatePropertyInfo(state_property)
        )

    @classmethod
    def from_type(cls, machine_type: type) -> "StateMachineInfo":
        """
        Build the info of a state machine class from its @transition methods and
        its `state_property` class attribute. Overridden methods replace inherited ones.
        """
        methods: Dict[str, Callable[..., Any]] = {}
        for klass in reversed(machine_type.__mro__):
            for attr_name, member in vars(klass).items():
                if callable(member) and hasattr(member, _TRANSITION_ATTR):
                    methods[attr_name] = member
                elif attr_name in methods:
                    del methods[attr_name]
        transitions = [TransitionInfo.from_method(m) for m in methods.values()]
        return cls(machine_type, transitions, getattr(machine_type, "state_property", None))

    @classmethod
    def for_type(cls, machine_type: type) -> "StateMachineInfo":
        """Return the cached info of a state machine class, building it on first use."""
        with cls._cache_lock:
            info = cls._cache.get(machine_type)
            if info is None:
                info = cls._cache[machine_type] = cls.from_type(machine_type)
            return info

    def get_transition(self, name: str) -> Optional[TransitionInfo]:
        for info in self.transitions:
            if info.name == name:
                return info
        return None

    def __repr__(self) -> str:
        owner = self.machine_type.__name__ if self.machine_type else None
        return f"StateMachineInfo({owner}, {len(self.transitions)} transitions, {self.state_property!r})"
