from __future__ import annotations

from typing import Any, Protocol, Union


class DependencyResolver(Protocol):
    """Container lookup used only for parameter binding.

    Returns (instance, True) when the type is configured and (None, False)
    otherwise. "Not configured" must be signalled, not raised.
    """

    def resolve(self, type_ref: Union[type, str]) -> tuple[Any, bool]:
        ...
