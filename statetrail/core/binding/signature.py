"""Signature description for user-supplied callables.

Responsibilities:
  - Capture a callable's declared parameters once as ParamSpec tuples.
  - Classify annotations into the closed TypeSpec shapes.

Inputs/Outputs:
  - Input: any Python callable (function, bound method, class, callable object).
  - Output: tuple[ParamSpec, ...] in declaration order.

Invariants:
  - *args and **kwargs are not described; extra bag entries are ignored anyway.
  - Unresolvable forward references degrade to a NamedType carrying only the name.
"""

from __future__ import annotations

import inspect
import types
import typing
from typing import Any, Callable

from statetrail.core.domain.params import NamedType, NoType, ParamSpec, TypeSpec, UnionType

BUILTIN_TYPES: frozenset[type] = frozenset(
    {str, int, float, bool, bytes, complex, list, dict, tuple, set, frozenset, object, type}
)

BUILTIN_NAMES = frozenset(
    {
        "str",
        "int",
        "float",
        "bool",
        "bytes",
        "complex",
        "list",
        "dict",
        "tuple",
        "set",
        "frozenset",
        "object",
        "type",
        "Any",
        "Callable",
        "None",
        "NoneType",
    }
)

_NONE_TYPE = NamedType(name="None", builtin=True, nullable=True, target=type(None))

_DESCRIBED_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
    inspect.Parameter.KEYWORD_ONLY,
)


def describe_callable(fn: Callable[..., Any]) -> tuple[ParamSpec, ...]:
    signature = inspect.signature(fn)
    hints = _type_hints(fn)
    specs: list[ParamSpec] = []
    position = 0
    for param in signature.parameters.values():
        if param.kind not in _DESCRIBED_KINDS:
            continue
        annotation = hints.get(param.name, param.annotation)
        has_default = param.default is not inspect.Parameter.empty
        specs.append(
            ParamSpec(
                name=param.name,
                position=position,
                type_spec=classify_annotation(annotation),
                has_default=has_default,
                default=param.default if has_default else None,
                keyword_only=param.kind is inspect.Parameter.KEYWORD_ONLY,
            )
        )
        position += 1
    return tuple(specs)


def classify_annotation(annotation: Any) -> TypeSpec:
    if annotation is inspect.Parameter.empty:
        return NoType()
    if isinstance(annotation, str):
        return _classify_name(annotation)
    if annotation is None or annotation is type(None):
        return _NONE_TYPE
    if annotation is typing.Any:
        return NamedType(name="Any", builtin=True, nullable=True)

    origin = typing.get_origin(annotation)
    if origin is typing.Annotated:
        return classify_annotation(typing.get_args(annotation)[0])
    if origin is typing.Union or origin is types.UnionType:
        return _classify_union(typing.get_args(annotation))
    if origin is not None:
        # Parameterized generics classify by their origin (dict[str, int] -> dict).
        return _classify_class(origin)
    if isinstance(annotation, type):
        return _classify_class(annotation)
    return NamedType(name=getattr(annotation, "__name__", repr(annotation)))


def _classify_union(args: tuple[Any, ...]) -> TypeSpec:
    members = [classify_annotation(arg) for arg in args]
    non_null = [member for member in members if member != _NONE_TYPE]
    has_null = len(non_null) != len(members)
    if len(non_null) == 1 and isinstance(non_null[0], NamedType):
        only = non_null[0]
        return NamedType(
            name=only.name,
            builtin=only.builtin,
            nullable=only.nullable or has_null,
            target=only.target,
        )
    return UnionType(members=tuple(members))


def _classify_class(cls: type) -> NamedType:
    name = cls.__name__
    if cls in BUILTIN_TYPES:
        return NamedType(name=name, builtin=True, nullable=False, target=cls)
    if name == "Callable" and cls.__module__ == "collections.abc":
        return NamedType(name=name, builtin=True, nullable=False, target=cls)
    return NamedType(name=name, builtin=False, nullable=False, target=cls)


def _classify_name(text: str) -> TypeSpec:
    parts = [part.strip() for part in _split_top_level(text, "|") if part.strip()]
    if len(parts) > 1:
        return _classify_union(tuple(parts))
    name = parts[0] if parts else text.strip()
    if name.startswith("Optional[") and name.endswith("]"):
        inner = _classify_name(name[len("Optional[") : -1])
        if isinstance(inner, NamedType):
            return NamedType(name=inner.name, builtin=inner.builtin, nullable=True)
        return inner
    if name in ("None", "NoneType"):
        return _NONE_TYPE
    if name == "Any":
        return NamedType(name="Any", builtin=True, nullable=True)
    # Generic text such as "dict[str, Any]" classifies by its head.
    head = name.split("[", 1)[0].rsplit(".", 1)[-1]
    return NamedType(name=head, builtin=head in BUILTIN_NAMES, nullable=False)


def _split_top_level(text: str, separator: str) -> list[str]:
    """Split on separator only outside square brackets."""
    parts: list[str] = []
    depth = 0
    start = 0
    for index, char in enumerate(text):
        if char == "[":
            depth += 1
        elif char == "]":
            depth = max(depth - 1, 0)
        elif char == separator and depth == 0:
            parts.append(text[start:index])
            start = index + 1
    parts.append(text[start:])
    return parts


def _type_hints(fn: Callable[..., Any]) -> dict[str, Any]:
    target: Any = fn
    if inspect.isclass(fn):
        target = fn.__init__
    elif not (inspect.isfunction(fn) or inspect.ismethod(fn)) and hasattr(fn, "__call__"):
        target = type(fn).__call__
    try:
        return typing.get_type_hints(target, include_extras=True)
    except Exception:
        return {}
