from __future__ import annotations

import datetime
import json
import sqlite3
from typing import Any, List, Optional

from statetrail.core.domain.models import TransitionRecord


class EventLogSqlite:
    """SQLite-backed transition event log (reader and writer).

    Ordering contract: read_log returns records ordered by occurred_at, ties
    broken by insertion order.
    Timestamps are stored as fixed-width ISO-8601 UTC text so that text order
    equals chronological order.
    """

    def __init__(self, conn: sqlite3.Connection, table_name: str = "fsm_event_logs") -> None:
        self._conn = conn
        self._table = table_name

    def append_log(self, record: TransitionRecord) -> None:
        self._conn.execute(
            f"""
            INSERT INTO {self._table} (
                record_id, entity_type, entity_id, attribute, from_state, to_state,
                transition_name, occurred_at, context_json, metadata_json
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.record_id,
                record.entity_type,
                record.entity_id,
                record.attribute,
                record.from_state,
                record.to_state,
                record.transition_name,
                format_timestamp(record.occurred_at),
                _dump_json(record.context),
                _dump_json(record.metadata),
            ),
        )
        self._conn.commit()

    def read_log(self, entity_type: str, entity_id: str, attribute: str) -> List[TransitionRecord]:
        rows = self._conn.execute(
            f"""
            SELECT record_id, from_state, to_state, transition_name, occurred_at,
                   context_json, metadata_json
            FROM {self._table}
            WHERE entity_type=? AND entity_id=? AND attribute=?
            ORDER BY occurred_at ASC, seq ASC
            """,
            (entity_type, entity_id, attribute),
        ).fetchall()

        records: List[TransitionRecord] = []
        for row in rows:
            records.append(
                TransitionRecord(
                    entity_type=entity_type,
                    entity_id=entity_id,
                    attribute=attribute,
                    from_state=row[1],
                    to_state=row[2],
                    transition_name=row[3],
                    occurred_at=parse_timestamp(row[4]),
                    context=_load_json(row[5]),
                    metadata=_load_json(row[6]),
                    record_id=row[0],
                )
            )
        return records


def format_timestamp(moment: datetime.datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=datetime.timezone.utc)
    return moment.astimezone(datetime.timezone.utc).isoformat(timespec="microseconds")


def parse_timestamp(text: str) -> datetime.datetime:
    return datetime.datetime.fromisoformat(text)


def _dump_json(value: Optional[dict[str, Any]]) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, sort_keys=True, default=str)


def _load_json(raw: Optional[str]) -> Optional[dict[str, Any]]:
    if raw is None:
        return None
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError(f"Stored JSON payload is not an object: {raw!r}")
    return parsed
