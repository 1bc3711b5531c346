"""Payloads passed to user callables and returned by the transition engine.

Responsibilities:
  - Carry the transition being attempted to guards, actions and callbacks.
  - Report the outcome of perform_transition and dry_run.

Inputs/Outputs:
  - Inputs: produced by engine.TransitionEngine.
  - Outputs: immutable dataclasses consumed by callers and app_api.
"""

from __future__ import annotations

import copy
import dataclasses
import datetime
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..domain.models import TransitionRecord, utc_now


@dataclass(frozen=True)
class TransitionInput:
    entity: Any
    entity_type: str
    entity_id: str
    attribute: str
    from_state: Optional[str]
    to_state: str
    context: Any = None
    event: Optional[str] = None
    is_dry_run: bool = False
    timestamp: datetime.datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class TransitionOutcome:
    from_state: Optional[str]
    to_state: str
    changed: bool
    record: Optional[TransitionRecord] = None


@dataclass(frozen=True)
class DryRunResult:
    can_transition: bool
    from_state: Optional[str]
    to_state: str
    message: str
    reason: Optional[str] = None


def context_payload(context: Any) -> Optional[dict[str, Any]]:
    """Detached dict snapshot of a transition context.

    Accepts mappings, objects exposing to_dict(), dataclass instances and plain
    objects with a __dict__. The result is deep-copied so later mutation of the
    caller's context never reaches a stored record.
    """
    if context is None:
        return None
    if isinstance(context, Mapping):
        return copy.deepcopy(dict(context))
    to_dict = getattr(context, "to_dict", None)
    if callable(to_dict):
        payload = to_dict()
        if isinstance(payload, Mapping):
            return copy.deepcopy(dict(payload))
    if dataclasses.is_dataclass(context) and not isinstance(context, type):
        return dataclasses.asdict(context)
    if hasattr(context, "__dict__"):
        return copy.deepcopy(dict(vars(context)))
    raise TypeError(
        f"Transition context must be a mapping, a dataclass or an object with attributes: {type(context).__name__}"
    )
