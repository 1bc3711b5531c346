from __future__ import annotations

import datetime
from typing import Any, Optional

from statetrail.core.binding.invoker import CallableInvoker
from statetrail.core.domain.definition import FsmDefinition
from statetrail.core.domain.models import (
    ReplayResult,
    StateTimeAnalysis,
    StateTimelineEntry,
    TransitionRecord,
    TransitionStatistics,
    ValidationResult,
)
from statetrail.core.engine import DryRunResult, TransitionEngine, TransitionOutcome
from statetrail.core.ports.event_log_port import EventLogReader, EventLogWriter
from statetrail.core.replay.replay_service import ReplayService
from statetrail.core.replay.timeline import state_time_analysis, state_timeline
from .config import FsmConfig
from .transition_logger import TransitionLogger


class FsmApplication:
    def __init__(
        self,
        config: FsmConfig,
        reader: EventLogReader,
        writer: EventLogWriter,
        invoker: CallableInvoker,
        transition_logger: Optional[TransitionLogger] = None,
    ) -> None:
        self._config = config
        self._writer = writer
        self._invoker = invoker
        self._transition_logger = transition_logger
        self._replay = ReplayService(reader)
        self._engines: dict[tuple[str, str], TransitionEngine] = {}

    @property
    def config(self) -> FsmConfig:
        return self._config

    @property
    def replay_service(self) -> ReplayService:
        return self._replay

    def register(self, definition: FsmDefinition) -> TransitionEngine:
        key = (definition.entity_type, definition.attribute)
        if key in self._engines:
            raise ValueError(f"FSM already registered for {definition.entity_type}::{definition.attribute}")
        engine = TransitionEngine(
            definition,
            invoker=self._invoker,
            writer=self._writer if self._config.event_logging_enabled else None,
            observer=self._transition_logger,
            debug=self._config.debug,
        )
        self._engines[key] = engine
        return engine

    def engine(self, entity: Any, attribute: str, entity_type: Optional[str] = None) -> TransitionEngine:
        key = (entity_type or type(entity).__name__, attribute)
        engine = self._engines.get(key)
        if engine is None:
            raise ValueError(f"No FSM registered for {key[0]}::{attribute}")
        return engine

    def current_state(self, entity: Any, attribute: str, entity_type: Optional[str] = None) -> Optional[str]:
        return self.engine(entity, attribute, entity_type).current_state(entity)

    def allowed_targets(self, entity: Any, attribute: str, entity_type: Optional[str] = None) -> set[str]:
        engine = self.engine(entity, attribute, entity_type)
        return engine.definition.allowed_targets(engine.current_state(entity))

    def perform_transition(
        self,
        entity: Any,
        attribute: str,
        to_state: str,
        context: Any = None,
        entity_type: Optional[str] = None,
    ) -> TransitionOutcome:
        return self.engine(entity, attribute, entity_type).perform_transition(entity, to_state, context)

    def can_transition(
        self,
        entity: Any,
        attribute: str,
        to_state: str,
        context: Any = None,
        entity_type: Optional[str] = None,
    ) -> bool:
        return self.engine(entity, attribute, entity_type).can_transition(entity, to_state, context)

    def dry_run(
        self,
        entity: Any,
        attribute: str,
        to_state: str,
        context: Any = None,
        entity_type: Optional[str] = None,
    ) -> DryRunResult:
        return self.engine(entity, attribute, entity_type).dry_run(entity, to_state, context)

    def history(self, entity_type: str, entity_id: str, attribute: str) -> tuple[TransitionRecord, ...]:
        return self._replay.get_history(entity_type, entity_id, attribute)

    def replay(self, entity_type: str, entity_id: str, attribute: str) -> ReplayResult:
        return self._replay.replay(entity_type, entity_id, attribute)

    def validate(self, entity_type: str, entity_id: str, attribute: str) -> ValidationResult:
        return self._replay.validate(entity_type, entity_id, attribute)

    def statistics(self, entity_type: str, entity_id: str, attribute: str) -> TransitionStatistics:
        return self._replay.statistics(entity_type, entity_id, attribute)

    def timeline(
        self,
        entity_type: str,
        entity_id: str,
        attribute: str,
        since: Optional[datetime.datetime] = None,
        until: Optional[datetime.datetime] = None,
    ) -> tuple[StateTimelineEntry, ...]:
        return state_timeline(self.history(entity_type, entity_id, attribute), since, until)

    def time_analysis(self, entity_type: str, entity_id: str, attribute: str) -> tuple[StateTimeAnalysis, ...]:
        return state_time_analysis(self.history(entity_type, entity_id, attribute))
