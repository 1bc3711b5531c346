"""Container-compatibility check for declared parameter types.

Responsibilities:
  - Decide whether a plain dict is an acceptable argument for a TypeSpec.

Inputs/Outputs:
  - Input: TypeSpec describing one declared parameter.
  - Output: bool.

Invariants:
  - Used only when rebuilding filtered logging context; dependency
    resolution never consults this module.
"""

from __future__ import annotations

from statetrail.core.domain.params import (
    IntersectionType,
    NamedType,
    NoType,
    TypeSpec,
    UnionType,
)

# Builtin annotations a dict satisfies: the container itself and "anything".
CONTAINER_BUILTINS = frozenset({"dict", "Any"})

# Capability interfaces a dict satisfies.
CONTAINER_CAPABILITIES = frozenset(
    {
        "Sized",
        "Container",
        "Mapping",
        "MutableMapping",
        "Iterable",
        "Collection",
        "dict",
        "Any",
    }
)


def accepts_container_value(type_spec: TypeSpec | None) -> bool:
    if type_spec is None or isinstance(type_spec, NoType):
        return True

    if isinstance(type_spec, UnionType):
        return any(accepts_container_value(member) for member in type_spec.members)

    if isinstance(type_spec, IntersectionType):
        if not type_spec.members:
            return False
        for member in type_spec.members:
            # Nested unions/intersections inside an intersection are not supported.
            if not isinstance(member, NamedType):
                return False
            if not _named_accepts(member):
                return False
        return True

    if isinstance(type_spec, NamedType):
        return _named_accepts(type_spec)

    return False


def _named_accepts(named: NamedType) -> bool:
    if named.builtin:
        return named.name in CONTAINER_BUILTINS
    return named.name in CONTAINER_CAPABILITIES
