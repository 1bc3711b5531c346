"""Construct a fully wired FsmApplication.

Responsibilities:
  - Pick the event log adapter, dependency container and transition logger
    based on config.
Must not:
  - Implement transition or replay logic; composition only.
"""

from __future__ import annotations

import sqlite3
from typing import Iterable, Optional

from statetrail.app_api.config import FsmConfig
from statetrail.app_api.facade import FsmApplication
from statetrail.app_api.transition_logger import TransitionLogger
from statetrail.core.binding.invoker import CallableInvoker
from statetrail.core.domain.definition import FsmDefinition
from statetrail.infra.container import DependencyContainer
from statetrail.infra.memory.in_memory_event_log import InMemoryEventLog
from statetrail.infra.sqlite.db import get_connection
from statetrail.infra.sqlite.event_log_sqlite import EventLogSqlite
from statetrail.infra.sqlite.migrator import apply_migrations


def build_statetrail_app(
    conn: Optional[sqlite3.Connection] = None,
    config: Optional[FsmConfig] = None,
    container: Optional[DependencyContainer] = None,
    definitions: Iterable[FsmDefinition] = (),
    migrate: bool = True,
    db_path: Optional[str] = None,
) -> FsmApplication:
    """
    Composition root: SQLite event log when a connection or db_path is given, in-memory
    otherwise. Definitions are registered in the order supplied.
    """
    config = config if config is not None else FsmConfig()
    container = container if container is not None else DependencyContainer()
    if conn is None and db_path is not None:
        conn = get_connection(db_path)

    if conn is not None:
        if migrate:
            apply_migrations(conn)
        event_log = EventLogSqlite(conn)
    else:
        event_log = InMemoryEventLog()

    transition_logger = TransitionLogger(config) if config.logging_enabled else None
    app = FsmApplication(
        config=config,
        reader=event_log,
        writer=event_log,
        invoker=CallableInvoker(container),
        transition_logger=transition_logger,
    )
    for definition in definitions:
        app.register(definition)
    return app
