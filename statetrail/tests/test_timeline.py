from __future__ import annotations

import datetime

from statetrail.core.domain.models import TransitionRecord
from statetrail.core.replay.timeline import state_time_analysis, state_timeline

T0 = datetime.datetime(2024, 3, 1, 8, 0, tzinfo=datetime.timezone.utc)


def _record(from_state: str | None, to_state: str, seconds: int, duration_ms: int | None = None) -> TransitionRecord:
    metadata = {"duration_ms": duration_ms, "source": "fsm_engine"} if duration_ms is not None else None
    return TransitionRecord(
        entity_type="Ticket",
        entity_id="7",
        attribute="state",
        from_state=from_state,
        to_state=to_state,
        occurred_at=T0 + datetime.timedelta(seconds=seconds),
        metadata=metadata,
    )


def test_timeline_filters_window_inclusive() -> None:
    records = [_record(None, "open", 0), _record("open", "review", 60), _record("review", "done", 120)]

    entries = state_timeline(
        records,
        since=T0 + datetime.timedelta(seconds=60),
        until=T0 + datetime.timedelta(seconds=120),
    )

    assert [entry.to_state for entry in entries] == ["review", "done"]


def test_timeline_carries_duration_from_metadata() -> None:
    entries = state_timeline([_record(None, "open", 0, duration_ms=12), _record("open", "done", 5)])

    assert entries[0].duration_ms == 12
    assert entries[1].duration_ms is None


def test_timeline_accepts_naive_bounds_as_utc() -> None:
    naive = datetime.datetime(2024, 3, 1, 8, 0, 30)
    entries = state_timeline([_record(None, "open", 0), _record("open", "done", 60)], since=naive)
    assert [entry.to_state for entry in entries] == ["done"]


def test_time_analysis_pairs_consecutive_records() -> None:
    records = [
        _record(None, "open", 0),
        _record("open", "review", 10),
        _record("review", "open", 40),
        _record("open", "done", 45),
    ]

    analysis = {item.state: item for item in state_time_analysis(records)}

    assert analysis["open"].total_duration_ms == 15_000
    assert analysis["open"].occurrence_count == 2
    assert analysis["open"].average_duration_ms == 7_500
    assert analysis["open"].min_duration_ms == 5_000
    assert analysis["open"].max_duration_ms == 10_000
    assert analysis["review"].total_duration_ms == 30_000

    done = analysis["done"]
    assert done.occurrence_count == 1
    assert done.total_duration_ms == 0
    assert done.average_duration_ms == 0.0
    assert done.min_duration_ms is None and done.max_duration_ms is None


def test_time_analysis_empty() -> None:
    assert state_time_analysis([]) == ()
