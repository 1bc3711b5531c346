"""Static parameter metadata for user-supplied callables.

Responsibilities:
  - Model a declared parameter type as a closed set of shapes.
  - Model one declared parameter (name, position, type, default).

Invariants:
  - Descriptors are derived from a callable's static signature and never mutated.
  - UnionType/IntersectionType members are themselves TypeSpec values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(frozen=True)
class NoType:
    """Parameter declared without an annotation."""

    @property
    def nullable(self) -> bool:
        return True


@dataclass(frozen=True)
class NamedType:
    name: str
    builtin: bool = False
    nullable: bool = False
    # Concrete class when the annotation resolved; None for bare names.
    target: Optional[type] = None

    @property
    def type_ref(self) -> Union[type, str]:
        return self.target if self.target is not None else self.name


@dataclass(frozen=True)
class UnionType:
    members: tuple["TypeSpec", ...]

    @property
    def nullable(self) -> bool:
        return any(member.nullable for member in self.members)


@dataclass(frozen=True)
class IntersectionType:
    members: tuple["TypeSpec", ...]

    @property
    def nullable(self) -> bool:
        return False


TypeSpec = Union[NoType, NamedType, UnionType, IntersectionType]


@dataclass(frozen=True)
class ParamSpec:
    name: str
    position: int
    type_spec: TypeSpec = NoType()
    has_default: bool = False
    default: Any = None
    keyword_only: bool = False

    @property
    def required(self) -> bool:
        return not self.has_default

    @property
    def nullable(self) -> bool:
        return self.type_spec.nullable
