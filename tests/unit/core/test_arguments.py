# tests/unit/core/test_arguments.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from gotflow.core.arguments import Arguments


def test_get_set_and_has():
    args = Arguments({"a": 1}, b=None)
    assert args["a"] == 1
    assert args.has("b")
    assert args.get("b", "default") is None
    assert not args.has("c")
    assert args.get("c", "default") == "default"
    args["c"] = 3
    assert args.c == 3
    del args["c"]
    assert "c" not in args


def test_attribute_access_of_missing_name_raises():
    with pytest.raises(AttributeError):
        Arguments().missing


def test_of_normalizes_inputs():
    existing = Arguments(x=1)
    assert Arguments.of(existing) is existing
    assert Arguments.of(None) == {}
    assert Arguments.of({"y": 2}) == Arguments(y=2)


def test_merge_overrides_without_mutating():
    defaults = Arguments(a=1, b=2)
    merged = defaults.merge({"b": 3, "c": 4})
    assert merged == {"a": 1, "b": 3, "c": 4}
    assert defaults == {"a": 1, "b": 2}
    assert defaults.merge(None) == defaults
    assert defaults.merge(None) is not defaults


def test_len_iter_and_to_dict():
    args = Arguments(a=1, b=2)
    assert len(args) == 2
    assert sorted(args) == ["a", "b"]
    assert args.to_dict() == {"a": 1, "b": 2}
