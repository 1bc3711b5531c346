from __future__ import annotations

from typing import Any, Union

import pytest
from hypothesis import given
from hypothesis import strategies as st

from statetrail.core.binding.binder import bind, is_resolvable
from statetrail.core.domain.errors import MissingRequiredParameterError
from statetrail.core.domain.params import IntersectionType, NamedType, NoType, ParamSpec, UnionType


class ClassX:
    pass


class RecordingResolver:
    def __init__(self, values: dict[Any, Any] | None = None, raises: bool = False) -> None:
        self.values = values or {}
        self.raises = raises
        self.calls: list[Union[type, str]] = []

    def resolve(self, type_ref: Union[type, str]) -> tuple[Any, bool]:
        self.calls.append(type_ref)
        if self.raises:
            raise RuntimeError("container exploded")
        if type_ref in self.values:
            return self.values[type_ref], True
        return None, False


def _class_x_spec(**kwargs: Any) -> ParamSpec:
    return ParamSpec(name="b", position=1, type_spec=NamedType("ClassX", target=ClassX), **kwargs)


def test_missing_class_parameter_without_default_fails_naming_it() -> None:
    specs = [ParamSpec(name="a", position=0), _class_x_spec()]
    resolver = RecordingResolver()

    with pytest.raises(MissingRequiredParameterError) as excinfo:
        bind(specs, {"a": "v"}, resolver)

    assert excinfo.value.parameter == "b"
    assert "Missing required parameter: b" in str(excinfo.value)
    assert resolver.calls == [ClassX]


def test_missing_class_parameter_with_default_falls_back() -> None:
    marker = object()
    specs = [ParamSpec(name="a", position=0), _class_x_spec(has_default=True, default=marker)]

    bound = bind(specs, {"a": "v"}, RecordingResolver())

    assert bound.values == ("v", marker)


def test_resolver_exception_is_treated_as_not_found() -> None:
    specs = [_class_x_spec(has_default=True, default="fallback")]
    resolver = RecordingResolver(raises=True)

    assert bind(specs, {}, resolver).values == ("fallback",)
    assert len(resolver.calls) == 1


def test_resolver_instance_used_when_found() -> None:
    instance = ClassX()
    specs = [_class_x_spec()]

    assert bind(specs, {}, RecordingResolver({ClassX: instance})).values == (instance,)


def test_explicit_none_in_bag_wins() -> None:
    specs = [ParamSpec(name="a", position=0, has_default=True, default="d")]

    assert bind(specs, {"a": None, 0: "positional"}).values == (None,)


def test_extra_bag_entries_ignored_and_order_follows_declaration() -> None:
    specs = [ParamSpec(name="first", position=0), ParamSpec(name="second", position=1)]
    bag = {"unused": 1, "second": "s", "first": "f", 7: "x"}

    assert bind(specs, bag).values == ("f", "s")


def test_bool_keys_are_not_positions() -> None:
    specs = [ParamSpec(name="a", position=1, has_default=True, default="d")]

    assert bind(specs, {True: "not me"}).values == ("d",)


@pytest.mark.parametrize(
    "type_spec",
    [
        NamedType("str", builtin=True, target=str),
        NamedType("int", builtin=True, target=int),
        NamedType("bool", builtin=True, target=bool),
        NamedType("ClassX", nullable=True, target=ClassX),
        UnionType(members=(NamedType("ClassX", target=ClassX), NamedType("int", builtin=True))),
        IntersectionType(members=(NamedType("ClassX", target=ClassX),)),
        NoType(),
    ],
)
def test_non_resolvable_types_never_reach_resolver(type_spec: Any) -> None:
    resolver = RecordingResolver({ClassX: ClassX()})
    specs = [ParamSpec(name="p", position=0, type_spec=type_spec)]

    assert is_resolvable(type_spec) is False
    with pytest.raises(MissingRequiredParameterError):
        bind(specs, {}, resolver)
    assert resolver.calls == []


def test_keyword_only_values_returned_as_kwargs() -> None:
    specs = [ParamSpec(name="a", position=0), ParamSpec(name="k", position=1, keyword_only=True)]

    args, kwargs = bind(specs, {"a": 1, "k": 2}).as_call()

    assert args == [1]
    assert kwargs == {"k": 2}


@given(named=st.integers() | st.none() | st.text(), positional=st.integers() | st.text())
def test_named_entry_always_wins_over_positional(named: Any, positional: Any) -> None:
    specs = [ParamSpec(name="x", position=0), ParamSpec(name="y", position=1)]
    bag = {0: positional, "x": named, 1: "y-value"}

    assert bind(specs, bag).values == (named, "y-value")
