from __future__ import annotations

import datetime

import pytest
from hypothesis import given
from hypothesis import strategies as st

from statetrail.core.domain.errors import InvalidArgumentError
from statetrail.core.domain.models import TransitionRecord
from statetrail.core.replay.replay_service import ReplayService, transition_key
from statetrail.infra.memory.in_memory_event_log import InMemoryEventLog

T0 = datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)


def _record(from_state: str | None, to_state: str, minutes: int, entity_id: str = "1") -> TransitionRecord:
    return TransitionRecord(
        entity_type="Order",
        entity_id=entity_id,
        attribute="status",
        from_state=from_state,
        to_state=to_state,
        occurred_at=T0 + datetime.timedelta(minutes=minutes),
        transition_name=f"to_{to_state}",
    )


def _service(*records: TransitionRecord) -> ReplayService:
    log = InMemoryEventLog()
    for record in records:
        log.append_log(record)
    return ReplayService(log)


class CountingReader:
    def __init__(self) -> None:
        self.calls = 0

    def read_log(self, entity_type: str, entity_id: str, attribute: str) -> list[TransitionRecord]:
        self.calls += 1
        return []


def test_happy_path_replay_and_statistics() -> None:
    service = _service(
        _record(None, "pending", 0),
        _record("pending", "processing", 1),
        _record("processing", "completed", 2),
    )

    replay = service.replay("Order", "1", "status")
    assert replay.initial_state is None
    assert replay.final_state == "completed"
    assert replay.transition_count == 3
    assert [item["to_state"] for item in replay.transitions] == ["pending", "processing", "completed"]
    assert replay.transitions[0]["occurred_at"] == T0.isoformat()

    stats = service.statistics("Order", "1", "status")
    assert stats.total_transitions == 3
    assert stats.unique_states == 3
    assert stats.state_frequency == {"pending": 2, "processing": 2, "completed": 1}
    assert stats.transition_frequency == {
        "∅→pending": 1,
        "pending→processing": 1,
        "processing→completed": 1,
    }

    assert service.validate("Order", "1", "status").valid is True


def test_broken_chain_reports_single_error() -> None:
    service = _service(_record(None, "pending", 0), _record("completed", "failed", 1))

    result = service.validate("Order", "1", "status")

    assert result.valid is False
    assert result.errors == (
        "Transition 1: from_state 'completed' doesn't match previous to_state 'pending'",
    )


def test_validation_continues_after_first_mismatch() -> None:
    service = _service(
        _record(None, "a", 0),
        _record("x", "b", 1),
        _record("b", "c", 2),
        _record("y", "d", 3),
    )

    errors = service.validate("Order", "1", "status").errors

    assert len(errors) == 2
    assert errors[0].startswith("Transition 1:")
    assert errors[1].startswith("Transition 3:")


def test_first_record_is_never_checked() -> None:
    service = _service(_record("whatever", "pending", 0))
    assert service.validate("Order", "1", "status").valid is True


def test_empty_history() -> None:
    service = _service()

    replay = service.replay("Order", "1", "status")
    assert (replay.initial_state, replay.final_state, replay.transition_count, replay.transitions) == (
        None,
        None,
        0,
        (),
    )
    validation = service.validate("Order", "1", "status")
    assert validation.valid is True and validation.errors == ()
    stats = service.statistics("Order", "1", "status")
    assert stats.total_transitions == 0
    assert stats.unique_states == 0
    assert stats.state_frequency == {}
    assert stats.transition_frequency == {}


def test_self_transition_counted_as_pair() -> None:
    service = _service(_record(None, "open", 0), _record("open", "open", 1))

    stats = service.statistics("Order", "1", "status")

    assert stats.transition_frequency["open→open"] == 1
    assert stats.state_frequency == {"open": 3}


def test_history_is_scoped_and_ordered_by_time() -> None:
    service = _service(
        _record("pending", "processing", 5),
        _record(None, "pending", 0),
        _record(None, "other", 1, entity_id="2"),
    )

    history = service.get_history("Order", "1", "status")

    assert [record.to_state for record in history] == ["pending", "processing"]


@pytest.mark.parametrize(
    "entity_id, attribute, blank",
    [("", "status", "entity_id"), ("   ", "status", "entity_id"), ("1", "", "attribute"), ("1", "\t", "attribute")],
)
def test_blank_identifiers_rejected_before_reading(entity_id: str, attribute: str, blank: str) -> None:
    reader = CountingReader()
    service = ReplayService(reader)

    for operation in (service.get_history, service.replay, service.validate, service.statistics):
        with pytest.raises(InvalidArgumentError) as excinfo:
            operation("Order", entity_id, attribute)
        assert excinfo.value.argument == blank
        assert str(excinfo.value) == f"The {blank} cannot be an empty string."
    assert reader.calls == 0


def test_transition_key_placeholder() -> None:
    assert transition_key(None, "a") == "∅→a"
    assert transition_key("a", "b") == "a→b"


states = st.sampled_from(["a", "b", "c", "d"])


@given(st.lists(st.tuples(st.none() | states, states), max_size=12))
def test_operations_are_idempotent(pairs: list[tuple[str | None, str]]) -> None:
    service = _service(*[_record(src, dst, index) for index, (src, dst) in enumerate(pairs)])

    for operation in (service.replay, service.validate, service.statistics):
        assert operation("Order", "1", "status") == operation("Order", "1", "status")


@given(st.lists(states, min_size=1, max_size=12), st.none() | states)
def test_chained_histories_validate_and_count(targets: list[str], first_from: str | None) -> None:
    records = []
    previous = first_from
    for index, target in enumerate(targets):
        records.append(_record(previous, target, index))
        previous = target
    service = _service(*records)

    assert service.validate("Order", "1", "status").valid is True
    stats = service.statistics("Order", "1", "status")
    assert stats.total_transitions == len(targets)
    assert sum(stats.transition_frequency.values()) == len(targets)
    assert stats.unique_states == len(stats.state_frequency)
