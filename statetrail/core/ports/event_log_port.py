from __future__ import annotations

from typing import Protocol, Sequence

from statetrail.core.domain.models import TransitionRecord


class EventLogReader(Protocol):
    """Read side of the transition event log.

    Ordering contract: records ascending by occurred_at.
    Stability contract: repeated calls within one logical operation must not
    reorder or mutate records.
    """

    def read_log(self, entity_type: str, entity_id: str, attribute: str) -> Sequence[TransitionRecord]:
        ...


class EventLogWriter(Protocol):
    """Write side of the transition event log.

    Appends one record atomically; raises on failure. A persisted record must
    be visible to subsequent read_log calls.
    """

    def append_log(self, record: TransitionRecord) -> None:
        ...
