"""Log-channel mirror of transition outcomes.

Responsibilities:
  - Emit one INFO line per successful transition and one ERROR line per failure.
  - Apply excluded_context_properties before any context reaches a log record.

Inputs/Outputs:
  - Inputs: outcome fields from core.engine.TransitionEngine plus FsmConfig.
  - Outputs: records on the "statetrail.transitions" logger, either structured
    (fields in extra=) or flattened "key=value | ..." text.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from statetrail.core.domain.models import utc_now
from .config import FsmConfig
from .context_filter import filter_context, rebuild_context

logger = logging.getLogger(__name__)

TRANSITION_LOGGER_NAME = "statetrail.transitions"

SUCCESS_MESSAGE = "FSM transition succeeded"
FAILURE_MESSAGE = "FSM transition failed"

_FLAT_FIELDS = (
    "entity_type",
    "entity_id",
    "attribute",
    "from_state",
    "to_state",
    "transition_event",
    "duration_ms",
    "occurred_at",
    "exception_details",
)


class TransitionLogger:
    def __init__(self, config: FsmConfig, logger: Optional[logging.Logger] = None) -> None:
        self._config = config
        self._logger = logger if logger is not None else logging.getLogger(TRANSITION_LOGGER_NAME)

    def log_success(
        self,
        entity_type: str,
        entity_id: str,
        attribute: str,
        from_state: Optional[str],
        to_state: str,
        event: Optional[str],
        context: Any,
        duration_ms: int,
    ) -> None:
        if not self._config.logging_enabled:
            return
        data = self._payload(entity_type, entity_id, attribute, from_state, to_state, event, context, duration_ms)
        self._emit(data, is_failure=False)

    def log_failure(
        self,
        entity_type: str,
        entity_id: str,
        attribute: str,
        from_state: Optional[str],
        to_state: str,
        event: Optional[str],
        context: Any,
        exc: BaseException,
        duration_ms: int,
    ) -> None:
        if not (self._config.logging_enabled and self._config.log_failures):
            return
        data = self._payload(entity_type, entity_id, attribute, from_state, to_state, event, context, duration_ms)
        data["exception_details"] = truncate(
            f"{type(exc).__name__}: {exc}", self._config.exception_character_limit
        )
        self._emit(data, is_failure=True)

    def _payload(
        self,
        entity_type: str,
        entity_id: str,
        attribute: str,
        from_state: Optional[str],
        to_state: str,
        event: Optional[str],
        context: Any,
        duration_ms: int,
    ) -> dict[str, Any]:
        return {
            "entity_type": entity_type,
            "entity_id": entity_id,
            "attribute": attribute,
            "from_state": from_state,
            "to_state": to_state,
            "transition_event": event,
            "context_snapshot": self._snapshot(context),
            "duration_ms": duration_ms,
            "occurred_at": utc_now().isoformat(),
        }

    def _snapshot(self, context: Any) -> Optional[dict[str, Any]]:
        excluded = self._config.excluded_context_properties
        try:
            # Filter again after rebuilding: a rebuilt object may re-derive keys.
            return filter_context(rebuild_context(context, excluded), excluded)
        except TypeError as exc:
            logger.warning("context of type %s cannot be logged: %s", type(context).__name__, exc)
            return None

    def _emit(self, data: dict[str, Any], is_failure: bool) -> None:
        level = logging.ERROR if is_failure else logging.INFO
        message = FAILURE_MESSAGE if is_failure else SUCCESS_MESSAGE
        if self._config.structured_logging:
            self._logger.log(level, message, extra={"fsm": data})
        else:
            self._logger.log(level, "%s: %s", message, flatten(data))


def flatten(data: dict[str, Any]) -> str:
    parts: list[str] = []
    for key in _FLAT_FIELDS:
        value = data.get(key)
        if value is None:
            continue
        parts.append(f"{key}={_scalar(value)}")
    if data.get("context_snapshot") is not None:
        parts.append(f"context_snapshot={json.dumps(data['context_snapshot'], default=str)}")
    return " | ".join(parts)


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def _scalar(value: Any) -> str:
    if isinstance(value, (str, int, float, bool)):
        return str(value)
    return json.dumps(value, default=str)
