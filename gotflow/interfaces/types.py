# gotflow/interfaces/types.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Callable, Mapping, Union

if TYPE_CHECKING:
    from gotflow.core.arguments import Arguments
    from gotflow.runtime.context import ActivityContext

StateValue = Any
Priority = int
Timeout = Union[float, timedelta, None]
ArgumentsLike = Union["Arguments", Mapping[str, Any], None]

# Callback Types
OptionsConfig = Callable[["ActivityContext"], None]
StateGetter = Callable[[Any], StateValue]
StateSetter = Callable[[Any, StateValue], None]
