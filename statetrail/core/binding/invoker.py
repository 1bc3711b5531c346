"""Uniform invocation of guard/action/callback callables.

Responsibilities:
  - Normalize the four supported callable shapes to one dispatch target.
  - Verify access on object-bound methods before any binding happens.
  - Bind arguments through the single ParameterBinder path and call.

Inputs/Outputs:
  - Inputs: a CallableRef (or a raw value convertible to one) and an argument bag.
  - Outputs: whatever the user callable returns.

Invariants:
  - Every shape binds through binder.bind; behaviour does not differ by shape.
  - Signatures are cached per function, method or class; partials and
    builtins are described on every call.
"""

from __future__ import annotations

import importlib
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from statetrail.core.domain.errors import AccessDeniedError, MethodNotFoundError
from statetrail.core.domain.params import ParamSpec
from statetrail.core.ports.resolver_port import DependencyResolver
from .binder import bind
from .signature import describe_callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundMethod:
    obj: Any
    method: str


@dataclass(frozen=True)
class TypeMethod:
    cls: type
    method: str


@dataclass(frozen=True)
class Invocable:
    fn: Callable[..., Any]


@dataclass(frozen=True)
class StringRef:
    # "package.module.Class@method", or a dotted path to a function / invokable class.
    text: str


CallableRef = Union[BoundMethod, TypeMethod, Invocable, StringRef]


@dataclass(frozen=True)
class Target:
    target: Any
    method: Optional[str]
    is_static: bool

    def resolved(self) -> Callable[..., Any]:
        if self.method is None:
            return self.target
        return getattr(self.target, self.method)


def as_callable_ref(value: Any) -> CallableRef:
    if isinstance(value, (BoundMethod, TypeMethod, Invocable, StringRef)):
        return value
    if isinstance(value, (tuple, list)) and len(value) == 2 and isinstance(value[1], str):
        owner, method = value
        if isinstance(owner, type):
            return TypeMethod(owner, method)
        if isinstance(owner, str):
            return StringRef(f"{owner}@{method}")
        return BoundMethod(owner, method)
    if isinstance(value, str):
        return StringRef(value)
    if callable(value):
        return Invocable(value)
    raise TypeError(f"Unsupported callable type: {type(value).__name__}")


def describe_ref(ref: CallableRef) -> str:
    if isinstance(ref, BoundMethod):
        return f"{type(ref.obj).__name__}::{ref.method}"
    if isinstance(ref, TypeMethod):
        return f"{ref.cls.__name__}::{ref.method}"
    if isinstance(ref, StringRef):
        return ref.text.replace("@", "::")
    fn = ref.fn
    if getattr(fn, "__name__", None) == "<lambda>":
        return "Closure"
    if inspect.isfunction(fn) or inspect.ismethod(fn):
        return fn.__qualname__
    return type(fn).__name__


def method_visibility(name: str) -> str:
    if name.startswith("__") and name.endswith("__"):
        return "public"
    if name.startswith("__"):
        return "private"
    if name.startswith("_"):
        return "protected"
    return "public"


class CallableInvoker:
    def __init__(self, resolver: Optional[DependencyResolver] = None) -> None:
        self._resolver = resolver
        self._signatures: dict[Any, tuple[ParamSpec, ...]] = {}

    def invoke(self, ref: Any, bag: Mapping[Any, Any]) -> Any:
        target = self.normalize(as_callable_ref(ref))
        fn = target.resolved()
        bound = bind(self.signature(fn), bag, self._resolver)
        args, kwargs = bound.as_call()
        return fn(*args, **kwargs)

    def normalize(self, ref: CallableRef) -> Target:
        if isinstance(ref, BoundMethod):
            _check_access(ref.obj, ref.method)
            return Target(ref.obj, ref.method, is_static=False)
        if isinstance(ref, TypeMethod):
            return self._normalize_type_method(ref.cls, ref.method)
        if isinstance(ref, StringRef):
            return self._normalize_string(ref.text)
        return Target(ref.fn, None, is_static=True)

    def signature(self, fn: Callable[..., Any]) -> tuple[ParamSpec, ...]:
        key = _signature_key(fn)
        if key is None:
            return describe_callable(fn)
        specs = self._signatures.get(key)
        if specs is None:
            specs = describe_callable(fn)
            self._signatures[key] = specs
        return specs

    def instantiate(self, cls: type) -> Any:
        if self._resolver is not None:
            try:
                instance, found = self._resolver.resolve(cls)
            except Exception as exc:
                logger.debug("resolver raised for %s, constructing directly: %s", cls.__name__, exc)
                found = False
            if found:
                return instance
        bound = bind(self.signature(cls), {}, self._resolver)
        args, kwargs = bound.as_call()
        return cls(*args, **kwargs)

    def _normalize_type_method(self, cls: type, method: str) -> Target:
        try:
            attr = inspect.getattr_static(cls, method)
        except AttributeError as exc:
            raise MethodNotFoundError(method, cls.__name__) from exc
        if isinstance(attr, (staticmethod, classmethod)):
            return Target(cls, method, is_static=True)
        return Target(self.instantiate(cls), method, is_static=False)

    def _normalize_string(self, text: str) -> Target:
        path, _, method = text.partition("@")
        obj = _import_path(path)
        if method:
            if not isinstance(obj, type):
                raise TypeError(f"'{path}' does not name a class")
            return self._normalize_type_method(obj, method)
        if isinstance(obj, type):
            return Target(self.instantiate(obj), "__call__", is_static=False)
        if callable(obj):
            return Target(obj, None, is_static=True)
        raise TypeError(f"'{path}' is not callable")


def _check_access(obj: Any, method: str) -> None:
    owner = type(obj).__name__
    try:
        inspect.getattr_static(obj, method)
    except AttributeError:
        if not _has_mangled(obj, method):
            raise MethodNotFoundError(method, owner) from None
    visibility = method_visibility(method)
    if visibility != "public":
        raise AccessDeniedError(method, owner, visibility)
    if not callable(getattr(obj, method)):
        raise MethodNotFoundError(method, owner)


def _has_mangled(obj: Any, method: str) -> bool:
    if method_visibility(method) != "private":
        return False
    for klass in type(obj).__mro__:
        mangled = f"_{klass.__name__.lstrip('_')}{method}"
        try:
            inspect.getattr_static(obj, mangled)
        except AttributeError:
            continue
        return True
    return False


def _import_path(path: str) -> Any:
    module_name, _, attr = path.rpartition(".")
    if not module_name:
        raise ValueError(f"Callable path must be dotted: '{path}'")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise ValueError(f"'{attr}' not found in module '{module_name}'") from exc


def _signature_key(fn: Callable[..., Any]) -> Any:
    if inspect.ismethod(fn):
        owner = fn.__self__
        return (owner if inspect.isclass(owner) else type(owner), fn.__func__)
    if inspect.isfunction(fn) or inspect.isclass(fn):
        return fn
    # Instances of one class share a signature only through a __call__ defined
    # in Python; partials and builtins are described per object.
    if inspect.isfunction(getattr(type(fn), "__call__", None)):
        return (type(fn), "__call__")
    return None
