from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sized, Union

import pytest

from statetrail.app_api.context_filter import filter_context, rebuild_context


class Card:
    def __init__(self, number: str, holder: str) -> None:
        self.number = number
        self.holder = holder

    def to_dict(self) -> dict[str, Any]:
        return {"number": self.number, "holder": self.holder}


class FromDictContext:
    def __init__(self, data: dict[str, Any], rebuilt: bool = False) -> None:
        self.data = data
        self.rebuilt = rebuilt

    def to_dict(self) -> dict[str, Any]:
        return dict(self.data)

    @classmethod
    def from_dict(cls, data: Union[Mapping[str, Any], str]) -> "FromDictContext":
        return cls(dict(data), rebuilt=True)


class ConstructorContext:
    def __init__(self, data: dict[str, Any]) -> None:
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        return dict(self.data)

    @staticmethod
    def from_dict(data: str) -> "ConstructorContext":
        raise AssertionError("incompatible from_dict must not be used")


class RigidContext:
    def __init__(self, user: str, secret: str) -> None:
        self.user = user
        self.secret = secret

    def to_dict(self) -> dict[str, Any]:
        return {"user": self.user, "secret": self.secret}


class TwoArgFactory:
    def __init__(self, data: Optional[dict[str, Any]] = None) -> None:
        self.data = data or {}

    def to_dict(self) -> dict[str, Any]:
        return dict(self.data)

    @classmethod
    def from_dict(cls, data: Sized, strict: bool) -> "TwoArgFactory":
        raise AssertionError("two-parameter from_dict must not be used")


def test_filter_removes_dot_paths_and_wildcards() -> None:
    context = {
        "user": "alice",
        "password": "p",
        "profile": {"email": "a@x", "token": "t"},
        "card": Card("4111", "alice"),
    }

    filtered = filter_context(context, ["password", "profile.token", "card.*"])

    assert filtered == {"user": "alice", "profile": {"email": "a@x"}, "card": {}}


def test_filter_without_exclusions_returns_data() -> None:
    assert filter_context({"a": 1}, []) == {"a": 1}
    assert filter_context(None, ["a"]) is None


def test_rebuild_returns_same_object_when_unchanged() -> None:
    context = FromDictContext({"a": 1})
    assert rebuild_context(context, ["missing"]) is context


def test_rebuild_uses_compatible_from_dict() -> None:
    rebuilt = rebuild_context(FromDictContext({"a": 1, "secret": 2}), ["secret"])

    assert isinstance(rebuilt, FromDictContext)
    assert rebuilt.rebuilt is True
    assert rebuilt.data == {"a": 1}


def test_rebuild_falls_back_to_constructor() -> None:
    rebuilt = rebuild_context(ConstructorContext({"a": 1, "secret": 2}), ["secret"])

    assert isinstance(rebuilt, ConstructorContext)
    assert rebuilt.data == {"a": 1}


def test_rebuild_skips_factories_with_wrong_arity() -> None:
    rebuilt = rebuild_context(TwoArgFactory({"a": 1, "secret": 2}), ["secret"])
    assert rebuilt.data == {"a": 1}


def test_rebuild_failure_returns_original_and_warns(caplog: pytest.LogCaptureFixture) -> None:
    context = RigidContext("alice", "s3cret")

    with caplog.at_level(logging.WARNING, logger="statetrail.app_api.context_filter"):
        rebuilt = rebuild_context(context, ["secret"])

    assert rebuilt is context
    assert "could not rebuild RigidContext" in caplog.text


def test_rebuild_mapping_returns_filtered_dict() -> None:
    assert rebuild_context({"a": 1, "b": 2}, ["b"]) == {"a": 1}


class ExplodingFactoryContext:
    def __init__(self, data: dict[str, Any]) -> None:
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        return dict(self.data)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExplodingFactoryContext":
        raise RuntimeError("boom")


def test_rebuild_factory_failure_returns_original_and_warns(caplog: pytest.LogCaptureFixture) -> None:
    context = ExplodingFactoryContext({"a": 1, "secret": 2})

    with caplog.at_level(logging.WARNING, logger="statetrail.app_api.context_filter"):
        rebuilt = rebuild_context(context, ["secret"])

    assert rebuilt is context
    assert "could not rebuild ExplodingFactoryContext" in caplog.text
