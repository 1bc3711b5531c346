"""Declarative FSM definition for one entity attribute.

Responsibilities:
  - Describe states, allowed transitions and the hooks attached to them.
  - Look up transitions by (from, to), honouring the wildcard from-state.

Invariants:
  - Definitions are immutable once built; the engine only reads them.
  - Hook callables are stored as supplied and normalized at invocation time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from .enums import PRIORITY_NORMAL, STATE_WILDCARD


@dataclass(frozen=True)
class TransitionGuard:
    callable: Any
    parameters: Mapping[str, Any] = field(default_factory=dict)
    description: Optional[str] = None
    priority: int = PRIORITY_NORMAL
    stop_on_failure: bool = False
    name: Optional[str] = None


@dataclass(frozen=True)
class TransitionCallback:
    callable: Any
    parameters: Mapping[str, Any] = field(default_factory=dict)
    run_after_transition: bool = False


@dataclass(frozen=True)
class TransitionAction:
    callable: Any
    parameters: Mapping[str, Any] = field(default_factory=dict)
    run_after_transition: bool = True


@dataclass(frozen=True)
class StateDefinition:
    name: str
    on_entry: tuple[TransitionCallback, ...] = ()
    on_exit: tuple[TransitionCallback, ...] = ()
    description: Optional[str] = None


@dataclass(frozen=True)
class TransitionDefinition:
    from_state: Optional[str]
    to_state: str
    event: Optional[str] = None
    guards: tuple[TransitionGuard, ...] = ()
    actions: tuple[TransitionAction, ...] = ()
    callbacks: tuple[TransitionCallback, ...] = ()

    @property
    def is_wildcard(self) -> bool:
        return self.from_state == STATE_WILDCARD


@dataclass(frozen=True)
class FsmDefinition:
    entity_type: str
    attribute: str
    initial_state: Optional[str]
    states: tuple[StateDefinition, ...] = ()
    transitions: tuple[TransitionDefinition, ...] = ()

    def state(self, name: Optional[str]) -> Optional[StateDefinition]:
        if name is None:
            return None
        for state in self.states:
            if state.name == name:
                return state
        return None

    def find_transition(
        self, from_state: Optional[str], to_state: str
    ) -> Optional[TransitionDefinition]:
        for transition in self.transitions:
            if transition.from_state == from_state and transition.to_state == to_state:
                return transition
        for transition in self.transitions:
            if transition.is_wildcard and transition.to_state == to_state:
                return transition
        return None

    def allowed_targets(self, from_state: Optional[str]) -> set[str]:
        return {
            transition.to_state
            for transition in self.transitions
            if transition.from_state == from_state or transition.is_wildcard
        }
