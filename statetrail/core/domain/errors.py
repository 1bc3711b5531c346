"""Exception taxonomy for binding, invocation, replay and transitions.

Responsibilities:
  - Give each failure class a distinct type callers can catch.
  - Build transition failure messages in one place.

Invariants:
  - Consistency violations are never raised; they are returned as data.
"""

from __future__ import annotations

from typing import Optional

from .enums import state_display


class BindingError(Exception):
    pass


class MissingRequiredParameterError(BindingError, TypeError):
    def __init__(self, parameter: str) -> None:
        super().__init__(f"Missing required parameter: {parameter}")
        self.parameter = parameter


class AccessDeniedError(BindingError):
    def __init__(self, method: str, owner: str, visibility: str, message: str | None = None) -> None:
        if message is None:
            message = f"Cannot access {visibility} method '{method}' on class '{owner}'"
        super().__init__(message)
        self.method = method
        self.owner = owner
        self.visibility = visibility


class MethodNotFoundError(AccessDeniedError):
    def __init__(self, method: str, owner: str) -> None:
        super().__init__(
            method,
            owner,
            visibility="missing",
            message=(
                f"Failed to create reflection for method '{method}' on class '{owner}': "
                f"method does not exist"
            ),
        )


class InvalidArgumentError(ValueError):
    def __init__(self, argument: str) -> None:
        super().__init__(f"The {argument} cannot be an empty string.")
        self.argument = argument


class TransitionFailedError(RuntimeError):
    def __init__(
        self,
        from_state: Optional[str],
        to_state: str,
        reason: str,
        message: str = "",
        original: Optional[BaseException] = None,
    ) -> None:
        if not message:
            message = (
                f"Transition from '{state_display(from_state)}' to '{state_display(to_state)}' "
                f"failed: {reason}"
            )
        super().__init__(message)
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason
        self.original = original

    @classmethod
    def for_invalid_transition(
        cls, from_state: Optional[str], to_state: str, entity_type: str, attribute: str
    ) -> "TransitionFailedError":
        reason = (
            f"No defined transition from '{state_display(from_state)}' to "
            f"'{state_display(to_state)}' for {entity_type}::{attribute}."
        )
        return cls(from_state, to_state, reason, reason)

    @classmethod
    def for_guard_failure(
        cls,
        from_state: Optional[str],
        to_state: str,
        guard_description: str,
        entity_type: str,
        attribute: str,
    ) -> "TransitionFailedError":
        reason = (
            f"{guard_description} failed for transition from '{state_display(from_state)}' "
            f"to '{state_display(to_state)}' on {entity_type}::{attribute}."
        )
        return cls(from_state, to_state, reason, reason)

    @classmethod
    def for_callback_exception(
        cls,
        from_state: Optional[str],
        to_state: str,
        phase_label: str,
        exc: BaseException,
        entity_type: str,
        attribute: str,
    ) -> "TransitionFailedError":
        reason = (
            f"Exception during '{phase_label}' for transition from "
            f"'{state_display(from_state)}' to '{state_display(to_state)}' on "
            f"{entity_type}::{attribute}: {exc}"
        )
        return cls(from_state, to_state, reason, reason, original=exc)

    @classmethod
    def for_log_failure(
        cls,
        from_state: Optional[str],
        to_state: str,
        exc: BaseException,
        entity_type: str,
        attribute: str,
    ) -> "TransitionFailedError":
        reason = (
            f"Event log append failed after transition from '{state_display(from_state)}' "
            f"to '{state_display(to_state)}' on {entity_type}::{attribute}: {exc}"
        )
        return cls(from_state, to_state, reason, reason, original=exc)
