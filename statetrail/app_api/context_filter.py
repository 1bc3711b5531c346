"""Removal of excluded properties from transition contexts before logging.

Responsibilities:
  - Strip dot-notation keys and "prefix.*" wildcards from nested context data.
  - Rebuild the caller's context type from the filtered data when possible.

Invariants:
  - The original context object is returned unchanged when nothing was removed.
  - Rebuild failures never raise; the original context is kept and a warning
    is logged.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Mapping, Optional, Sequence

from statetrail.core.binding.signature import describe_callable
from statetrail.core.binding.type_compat import accepts_container_value

logger = logging.getLogger(__name__)


def context_to_dict(context: Any) -> Optional[dict[str, Any]]:
    if context is None:
        return None
    if isinstance(context, Mapping):
        return dict(context)
    to_dict = getattr(context, "to_dict", None)
    if callable(to_dict):
        return dict(to_dict())
    return dict(vars(context))


def filter_context(context: Any, excluded: Sequence[str]) -> Optional[dict[str, Any]]:
    data = context_to_dict(context)
    if data is None or not excluded:
        return data
    return _remove_keys(data, frozenset(excluded), "")


def rebuild_context(context: Any, excluded: Sequence[str]) -> Any:
    if context is None or not excluded:
        return context
    original = context_to_dict(context)
    filtered = filter_context(context, excluded)
    if filtered == original:
        return context
    if isinstance(context, Mapping):
        return filtered

    cls = type(context)
    factory = _from_dict_factory(cls)
    try:
        if factory is not None:
            return factory(filtered)
        return cls(filtered)
    except Exception as exc:
        logger.warning(
            "context filtering failed: could not rebuild %s, returning original (%s)",
            cls.__name__,
            exc,
        )
        return context


def _remove_keys(data: Mapping[str, Any], excluded: frozenset[str], prefix: str) -> dict[str, Any]:
    if prefix and f"{prefix}.*" in excluded:
        return {}
    result: dict[str, Any] = {}
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if path in excluded:
            continue
        to_dict = getattr(value, "to_dict", None)
        if not isinstance(value, Mapping) and callable(to_dict):
            value = to_dict()
        if isinstance(value, Mapping):
            result[key] = _remove_keys(value, excluded, path)
        else:
            result[key] = value
    return result


def _from_dict_factory(cls: type) -> Optional[Any]:
    try:
        attr = inspect.getattr_static(cls, "from_dict")
    except AttributeError:
        return None
    if not isinstance(attr, (staticmethod, classmethod)):
        return None
    factory = getattr(cls, "from_dict")
    specs = describe_callable(factory)
    if len(specs) != 1:
        return None
    if not accepts_container_value(specs[0].type_spec):
        return None
    return factory
