from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Union


@dataclass(frozen=True)
class FsmConfig:
    logging_enabled: bool = True
    log_failures: bool = True
    structured_logging: bool = False
    excluded_context_properties: tuple[str, ...] = ()
    exception_character_limit: int = 65535
    event_logging_enabled: bool = True
    debug: bool = False


_KNOWN_KEYS = frozenset(item.name for item in fields(FsmConfig))


def _optional(payload: dict[str, Any], key: str, expected_type: type, default: Any) -> Any:
    if key not in payload:
        return default
    value = payload[key]
    if expected_type is int:
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"Field '{key}' must be int")
        return value
    if not isinstance(value, expected_type):
        raise ValueError(f"Field '{key}' must be {expected_type.__name__}")
    return value


def config_from_dict(payload: dict[str, Any]) -> FsmConfig:
    if not isinstance(payload, dict):
        raise ValueError("FSM config must be a JSON object")
    unknown = sorted(set(payload) - _KNOWN_KEYS)
    if unknown:
        raise ValueError(f"Unknown FSM config field(s): {', '.join(unknown)}")

    defaults = FsmConfig()
    excluded = _optional(payload, "excluded_context_properties", list, list(defaults.excluded_context_properties))
    for item in excluded:
        if not isinstance(item, str) or not item:
            raise ValueError("Field 'excluded_context_properties' must contain non-empty strings")

    limit = _optional(payload, "exception_character_limit", int, defaults.exception_character_limit)
    if limit <= 0:
        raise ValueError("Field 'exception_character_limit' must be positive")

    return FsmConfig(
        logging_enabled=_optional(payload, "logging_enabled", bool, defaults.logging_enabled),
        log_failures=_optional(payload, "log_failures", bool, defaults.log_failures),
        structured_logging=_optional(payload, "structured_logging", bool, defaults.structured_logging),
        excluded_context_properties=tuple(excluded),
        exception_character_limit=limit,
        event_logging_enabled=_optional(payload, "event_logging_enabled", bool, defaults.event_logging_enabled),
        debug=_optional(payload, "debug", bool, defaults.debug),
    )


def load_config(path: Union[str, Path]) -> FsmConfig:
    config_path = Path(path)
    if not config_path.exists():
        raise ValueError(f"FSM config file not found: {config_path}")
    payload = json.loads(config_path.read_text(encoding="utf-8"))
    return config_from_dict(payload)
