from __future__ import annotations

from typing import List

from statetrail.core.domain.models import TransitionRecord


class InMemoryEventLog:
    """Process-local event log used by tests and embedded setups.

    Ordering contract: read_log sorts by occurred_at; records with equal
    timestamps keep their append order.
    """

    def __init__(self) -> None:
        self._records: List[TransitionRecord] = []

    def append_log(self, record: TransitionRecord) -> None:
        self._records.append(record)

    def read_log(self, entity_type: str, entity_id: str, attribute: str) -> List[TransitionRecord]:
        matching = [
            record
            for record in self._records
            if record.entity_type == entity_type
            and record.entity_id == entity_id
            and record.attribute == attribute
        ]
        return sorted(matching, key=lambda record: record.occurred_at)

    def __len__(self) -> int:
        return len(self._records)
