"""Time-window timeline and per-state dwell time analysis.

Durations are measured between consecutive records: the time spent in a
record's from_state is its occurred_at minus the previous record's occurred_at.
The final to_state has no end time, so it only counts as an occurrence.
"""

from __future__ import annotations

import datetime
from typing import Optional, Sequence

from statetrail.core.domain.models import StateTimeAnalysis, StateTimelineEntry, TransitionRecord


def state_timeline(
    records: Sequence[TransitionRecord],
    since: Optional[datetime.datetime] = None,
    until: Optional[datetime.datetime] = None,
) -> tuple[StateTimelineEntry, ...]:
    entries: list[StateTimelineEntry] = []
    for record in records:
        if since is not None and record.occurred_at < _aware(since):
            continue
        if until is not None and record.occurred_at > _aware(until):
            continue
        entries.append(
            StateTimelineEntry(
                record_id=record.record_id,
                from_state=record.from_state,
                to_state=record.to_state,
                transition_name=record.transition_name,
                occurred_at=record.occurred_at,
                context=record.context,
                duration_ms=_duration_of(record),
            )
        )
    return tuple(entries)


def state_time_analysis(records: Sequence[TransitionRecord]) -> tuple[StateTimeAnalysis, ...]:
    durations: dict[str, list[int]] = {}
    counts: dict[str, int] = {}
    for index, record in enumerate(records):
        if index > 0 and record.from_state is not None:
            elapsed = record.occurred_at - records[index - 1].occurred_at
            durations.setdefault(record.from_state, []).append(_millis(elapsed))
            counts[record.from_state] = counts.get(record.from_state, 0) + 1
        if index == len(records) - 1:
            durations.setdefault(record.to_state, [])
            counts[record.to_state] = counts.get(record.to_state, 0) + 1

    analyses: list[StateTimeAnalysis] = []
    for state, values in durations.items():
        total = sum(values)
        analyses.append(
            StateTimeAnalysis(
                state=state,
                total_duration_ms=total,
                occurrence_count=max(counts.get(state, 0), len(values)),
                average_duration_ms=total / len(values) if values else 0.0,
                min_duration_ms=min(values) if values else None,
                max_duration_ms=max(values) if values else None,
            )
        )
    return tuple(analyses)


def _duration_of(record: TransitionRecord) -> Optional[int]:
    if not record.metadata:
        return None
    value = record.metadata.get("duration_ms")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return int(value)


def _millis(delta: datetime.timedelta) -> int:
    return abs(int(delta.total_seconds() * 1000))


def _aware(moment: datetime.datetime) -> datetime.datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=datetime.timezone.utc)
    return moment
