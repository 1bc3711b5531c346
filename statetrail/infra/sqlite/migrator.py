"""SQLite schema migration helpers for the transition event log.

Responsibilities:
  - Create the fsm_event_logs table and its indexes deterministically.
Must not:
  - Embed transition logic; migrations only.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)


def apply_migrations(conn: sqlite3.Connection) -> None:
    migrations_dir = Path(__file__).resolve().parent / "migrations"
    for migration in sorted(migrations_dir.glob("*.sql")):
        logger.debug("applying migration %s", migration.name)
        conn.executescript(migration.read_text())
