# gotflow/core/parameters.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable, List, get_type_hints


class _Missing:
    """Sentinel type marking a parameter without a declared default."""

    _instance = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass(frozen=True)
class ParameterInfo:
    """
    Declared parameter of an activity or a transition.

    :param name: Name used to look the value up in an argument bag.
    :param value_type: Declared type of the value, `Any` when undeclared.
    :param default: Declared default, MISSING when there is none.
    :param required: Required parameters never contribute a default.
    :param direction: "in", "out" or "inout".
    """

    name: str
    value_type: Any = Any
    default: Any = MISSING
    required: bool = False
    direction: str = "in"

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    @property
    def is_optional(self) -> bool:
        return not self.required

    @property
    def is_in(self) -> bool:
        return self.direction in ("in", "inout")

    @property
    def is_out(self) -> bool:
        return self.direction in ("out", "inout")

    def __str__(self) -> str:
        type_name = "Any" if self.value_type is Any else getattr(self.value_type, "__name__", str(self.value_type))
        return f"{self.name}: {type_name}"


def parameters_of(func: Callable[..., Any], skip_first: bool = False) -> List[ParameterInfo]:
    """
    Build the parameter list of a callable from its signature, skipping variadic
    parameters.

    :param func: The callable to inspect.
    :param skip_first: Skip the first positional parameter, whatever its name.
        Used for unbound methods receiving their owner positionally.
    """
    try:
        hints = get_type_hints(func)
    except Exception:
        hints = {}
    params = list(inspect.signature(func).parameters.values())
    if skip_first and params and params[0].kind in (params[0].POSITIONAL_ONLY, params[0].POSITIONAL_OR_KEYWORD):
        params = params[1:]
    result = []
    for param in params:
        name = param.name
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        value_type = hints.get(name, Any if param.annotation is param.empty else param.annotation)
        default = MISSING if param.default is param.empty else param.default
        result.append(ParameterInfo(name=name, value_type=value_type, default=default))
    return result

