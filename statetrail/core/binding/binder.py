"""Argument binding for declared parameter lists.

Responsibilities:
  - Merge a caller-supplied argument bag with resolver lookups and defaults.
  - Produce an ordered argument vector or fail naming the missing parameter.

Inputs/Outputs:
  - Inputs: ParamSpec tuple, argument bag keyed by name and/or position,
    DependencyResolver.
  - Outputs: BoundArguments in declaration order.

Invariants:
  - Named entries (including explicit None) win over positional entries.
  - Only single named, non-builtin, non-nullable types reach the resolver.
  - At most one resolver call per parameter; failures are never retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence, cast

from statetrail.core.domain.errors import MissingRequiredParameterError
from statetrail.core.domain.params import NamedType, ParamSpec, TypeSpec
from statetrail.core.ports.resolver_port import DependencyResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundArguments:
    specs: tuple[ParamSpec, ...]
    values: tuple[Any, ...]

    def as_call(self) -> tuple[list[Any], dict[str, Any]]:
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for spec, value in zip(self.specs, self.values):
            if spec.keyword_only:
                kwargs[spec.name] = value
            else:
                args.append(value)
        return args, kwargs


def is_resolvable(type_spec: TypeSpec) -> bool:
    return isinstance(type_spec, NamedType) and not type_spec.builtin and not type_spec.nullable


def bind(
    specs: Sequence[ParamSpec],
    bag: Mapping[Any, Any],
    resolver: Optional[DependencyResolver] = None,
) -> BoundArguments:
    values: list[Any] = []
    for spec in specs:
        values.append(_bind_one(spec, bag, resolver))
    return BoundArguments(specs=tuple(specs), values=tuple(values))


def _bind_one(spec: ParamSpec, bag: Mapping[Any, Any], resolver: Optional[DependencyResolver]) -> Any:
    if spec.name in bag:
        return bag[spec.name]
    if _has_position(bag, spec.position):
        return bag[spec.position]

    if resolver is not None and is_resolvable(spec.type_spec):
        named = cast(NamedType, spec.type_spec)
        try:
            value, found = resolver.resolve(named.type_ref)
        except Exception as exc:
            logger.debug("resolver raised for parameter %s (%s): %s", spec.name, named.name, exc)
            found = False
            value = None
        if found:
            return value
        if spec.has_default:
            return spec.default
        raise MissingRequiredParameterError(spec.name)

    if spec.has_default:
        return spec.default
    raise MissingRequiredParameterError(spec.name)


def _has_position(bag: Mapping[Any, Any], position: int) -> bool:
    for key in bag:
        # bool is an int subclass; True/False are never positions.
        if isinstance(key, int) and not isinstance(key, bool) and key == position:
            return True
    return False
