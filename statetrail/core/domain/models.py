"""Domain models for recorded transitions and derived history views.

Responsibilities:
  - Define the immutable TransitionRecord persisted by the event log.
  - Define derived, non-persisted replay/validation/statistics payloads.

Inputs/Outputs:
  - TransitionRecord is written once by the engine and read back by replay.
  - Derived payloads are recomputed on every request and never cached.

Invariants:
  - to_state is never empty.
  - occurred_at is timezone-aware; ordering is defined by it alone.
"""

from __future__ import annotations

import datetime
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional


def _new_record_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class TransitionRecord:
    entity_type: str
    entity_id: str
    attribute: str
    from_state: Optional[str]
    to_state: str
    occurred_at: datetime.datetime
    transition_name: Optional[str] = None
    context: Optional[dict[str, Any]] = None
    metadata: Optional[dict[str, Any]] = None
    record_id: str = field(default_factory=_new_record_id)

    def __post_init__(self) -> None:
        if not isinstance(self.to_state, str) or not self.to_state:
            raise ValueError("to_state must be a non-empty string")
        if self.occurred_at.tzinfo is None:
            object.__setattr__(
                self, "occurred_at", self.occurred_at.replace(tzinfo=datetime.timezone.utc)
            )

    def to_replay_data(self) -> dict[str, Any]:
        return {
            "from_state": self.from_state,
            "to_state": self.to_state,
            "transition_name": self.transition_name,
            "occurred_at": self.occurred_at.isoformat(),
            "context": self.context,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class ReplayResult:
    initial_state: Optional[str]
    final_state: Optional[str]
    transition_count: int
    transitions: tuple[dict[str, Any], ...]


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: tuple[str, ...]


@dataclass(frozen=True)
class TransitionStatistics:
    total_transitions: int
    unique_states: int
    state_frequency: dict[str, int]
    transition_frequency: dict[str, int]


@dataclass(frozen=True)
class StateTimelineEntry:
    record_id: str
    from_state: Optional[str]
    to_state: str
    transition_name: Optional[str]
    occurred_at: datetime.datetime
    context: Optional[dict[str, Any]]
    duration_ms: Optional[int]


@dataclass(frozen=True)
class StateTimeAnalysis:
    state: str
    total_duration_ms: int
    occurrence_count: int
    average_duration_ms: float
    min_duration_ms: Optional[int]
    max_duration_ms: Optional[int]
