from __future__ import annotations

from typing import Any, Optional, Protocol


class TransitionObserver(Protocol):
    """Receives the outcome of every non-dry-run transition attempt.

    Implementations must not raise; the engine does not guard against it.
    """

    def log_success(
        self,
        entity_type: str,
        entity_id: str,
        attribute: str,
        from_state: Optional[str],
        to_state: str,
        event: Optional[str],
        context: Any,
        duration_ms: int,
    ) -> None:
        ...

    def log_failure(
        self,
        entity_type: str,
        entity_id: str,
        attribute: str,
        from_state: Optional[str],
        to_state: str,
        event: Optional[str],
        context: Any,
        exc: BaseException,
        duration_ms: int,
    ) -> None:
        ...
