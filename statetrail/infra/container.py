"""Dictionary-backed dependency container used by parameter binding.

Responsibilities:
  - Hold instances or factories keyed by type.
  - Answer resolve() by type object or by class name (string annotations).

Invariants:
  - Unregistered types return (None, False); they are never raised.
  - Factory exceptions propagate to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Union


@dataclass
class _Registration:
    key: type
    instance: Any = None
    factory: Optional[Callable[[], Any]] = None
    shared: bool = True
    built: bool = False

    def value(self) -> Any:
        if self.factory is None:
            return self.instance
        if self.shared and self.built:
            return self.instance
        created = self.factory()
        if self.shared:
            self.instance = created
            self.built = True
        return created


class DependencyContainer:
    def __init__(self) -> None:
        self._by_type: dict[type, _Registration] = {}
        self._by_name: dict[str, _Registration] = {}

    def register_instance(self, key: type, instance: Any) -> None:
        self._add(_Registration(key=key, instance=instance))

    def register_factory(self, key: type, factory: Callable[[], Any], shared: bool = True) -> None:
        self._add(_Registration(key=key, factory=factory, shared=shared))

    def has(self, type_ref: Union[type, str]) -> bool:
        return self._lookup(type_ref) is not None

    def resolve(self, type_ref: Union[type, str]) -> tuple[Any, bool]:
        registration = self._lookup(type_ref)
        if registration is None:
            return None, False
        return registration.value(), True

    def _add(self, registration: _Registration) -> None:
        key = registration.key
        self._by_type[key] = registration
        self._by_name[key.__name__] = registration
        self._by_name[f"{key.__module__}.{key.__qualname__}"] = registration

    def _lookup(self, type_ref: Union[type, str]) -> Optional[_Registration]:
        if isinstance(type_ref, str):
            return self._by_name.get(type_ref)
        return self._by_type.get(type_ref)
