# gotflow/core/arguments.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional, Union


class Arguments(MutableMapping[str, Any]):
    """
    A string-keyed bag of named arguments. Order is irrelevant; missing names
    fall back to a caller supplied default.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> None:
        self._values: Dict[str, Any] = {}
        if values:
            self._values.update(values)
        self._values.update(kwargs)

    @classmethod
    def of(cls, values: Union["Arguments", Mapping[str, Any], None]) -> "Arguments":
        """
        Normalize None, a plain mapping or an existing bag into an Arguments instance.
        Existing instances are returned as-is.
        """
        if isinstance(values, Arguments):
            return values
        return cls(values)

    def has(self, name: str) -> bool:
        """Return True if an entry with this name is present, even if its value is None."""
        return name in self._values

    def get(self, name: str, default: Any = None) -> Any:
        return self._values.get(name, default)

    def merge(self, other: Union["Arguments", Mapping[str, Any], None]) -> "Arguments":
        """
        Return a new bag holding these entries overridden by the entries of `other`.
        """
        merged = Arguments(self._values)
        if other:
            merged.update(other)
        return merged

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._values[name]
        except KeyError:
            raise AttributeError(name) from None

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._values[name] = value

    def __delitem__(self, name: str) -> None:
        del self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Arguments):
            return self._values == other._values
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Arguments({self._values!r})"
