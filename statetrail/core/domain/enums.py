"""Domain enums and constants for transition execution and auditing.

Responsibilities:
  - Define stable identifiers for hook phases and state placeholders.
  - Provide audit labels used in failure messages and log lines.

Invariants:
  - Constant values must remain stable; they are persisted in the event log.
  - PHASE_LABELS must cover every CallbackPhase.
"""

from __future__ import annotations

from enum import Enum

# Matches any current state when used as a transition's from_state.
STATE_WILDCARD = "__STATE_WILDCARD__"

# Rendered in transition-frequency keys when a record has no from_state.
NULL_STATE_LABEL = "∅"

# Rendered in messages when a state is absent.
NULL_STATE_DISPLAY = "(null)"

PRIORITY_CRITICAL = 100
PRIORITY_HIGH = 75
PRIORITY_NORMAL = 50
PRIORITY_LOW = 25

ENGINE_SOURCE = "fsm_engine"


class CallbackPhase(Enum):
    ON_EXIT = "ON_EXIT"
    TRANSITION_BEFORE = "TRANSITION_BEFORE"
    ACTION_BEFORE = "ACTION_BEFORE"
    TRANSITION_AFTER = "TRANSITION_AFTER"
    ACTION_AFTER = "ACTION_AFTER"
    ON_ENTRY = "ON_ENTRY"


# Human-readable phase names used in failure reasons.
PHASE_LABELS: dict[CallbackPhase, str] = {
    CallbackPhase.ON_EXIT: "onExit",
    CallbackPhase.TRANSITION_BEFORE: "onTransition (before)",
    CallbackPhase.ACTION_BEFORE: "action (before)",
    CallbackPhase.TRANSITION_AFTER: "onTransition (after)",
    CallbackPhase.ACTION_AFTER: "action (after)",
    CallbackPhase.ON_ENTRY: "onEntry",
}


def state_display(state: str | None) -> str:
    if state is None:
        return NULL_STATE_DISPLAY
    return state


_missing = [phase for phase in CallbackPhase if phase not in PHASE_LABELS]
if _missing:
    raise RuntimeError(f"Missing PHASE_LABELS for: {[m.value for m in _missing]}")
