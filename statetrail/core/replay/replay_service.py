"""Replay, consistency validation and statistics over a transition log.

Responsibilities:
  - Reconstruct initial/final state and the transition list for one
    (entity type, entity id, attribute).
  - Check that consecutive records chain (from_state == previous to_state).
  - Aggregate per-state and per-edge frequencies.

Inputs/Outputs:
  - Inputs: EventLogReader returning records ascending by occurred_at.
  - Outputs: ReplayResult, ValidationResult, TransitionStatistics.

Invariants:
  - Identifiers are validated before any log read.
  - Each operation reads the log once and is otherwise pure.
  - Consistency violations are returned as data, never raised.
  - An absent from_state adds nothing to state_frequency but still keys
    transition_frequency.
"""

from __future__ import annotations

from collections import Counter
from typing import Sequence

from statetrail.core.domain.enums import NULL_STATE_LABEL
from statetrail.core.domain.errors import InvalidArgumentError
from statetrail.core.domain.models import (
    ReplayResult,
    TransitionRecord,
    TransitionStatistics,
    ValidationResult,
)
from statetrail.core.ports.event_log_port import EventLogReader


class ReplayService:
    def __init__(self, reader: EventLogReader) -> None:
        self._reader = reader

    def get_history(self, entity_type: str, entity_id: str, attribute: str) -> tuple[TransitionRecord, ...]:
        _require_identifiers(entity_id, attribute)
        return tuple(self._reader.read_log(entity_type, entity_id, attribute))

    def replay(self, entity_type: str, entity_id: str, attribute: str) -> ReplayResult:
        return replay_records(self.get_history(entity_type, entity_id, attribute))

    def validate(self, entity_type: str, entity_id: str, attribute: str) -> ValidationResult:
        return validate_records(self.get_history(entity_type, entity_id, attribute))

    def statistics(self, entity_type: str, entity_id: str, attribute: str) -> TransitionStatistics:
        return aggregate_statistics(self.get_history(entity_type, entity_id, attribute))


def replay_records(records: Sequence[TransitionRecord]) -> ReplayResult:
    if not records:
        return ReplayResult(initial_state=None, final_state=None, transition_count=0, transitions=())
    return ReplayResult(
        initial_state=records[0].from_state,
        final_state=records[-1].to_state,
        transition_count=len(records),
        transitions=tuple(record.to_replay_data() for record in records),
    )


def validate_records(records: Sequence[TransitionRecord]) -> ValidationResult:
    errors: list[str] = []
    previous_to_state: str | None = None
    for index, record in enumerate(records):
        if index > 0 and record.from_state != previous_to_state:
            errors.append(
                f"Transition {index}: from_state '{_text(record.from_state)}' "
                f"doesn't match previous to_state '{_text(previous_to_state)}'"
            )
        previous_to_state = record.to_state
    return ValidationResult(valid=not errors, errors=tuple(errors))


def aggregate_statistics(records: Sequence[TransitionRecord]) -> TransitionStatistics:
    state_frequency: Counter[str] = Counter()
    transition_frequency: Counter[str] = Counter()
    for record in records:
        if record.from_state is not None:
            state_frequency[record.from_state] += 1
        state_frequency[record.to_state] += 1
        transition_frequency[transition_key(record.from_state, record.to_state)] += 1
    return TransitionStatistics(
        total_transitions=len(records),
        unique_states=len(state_frequency),
        state_frequency=dict(state_frequency),
        transition_frequency=dict(transition_frequency),
    )


def transition_key(from_state: str | None, to_state: str) -> str:
    label = NULL_STATE_LABEL if from_state is None else from_state
    return f"{label}→{to_state}"


def _require_identifiers(entity_id: str, attribute: str) -> None:
    if not entity_id or not entity_id.strip():
        raise InvalidArgumentError("entity_id")
    if not attribute or not attribute.strip():
        raise InvalidArgumentError("attribute")


def _text(state: str | None) -> str:
    return "" if state is None else state
