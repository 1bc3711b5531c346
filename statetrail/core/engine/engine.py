"""Transition execution for one FSM definition.

Responsibilities:
  - Resolve the current state of an entity attribute and the matching transition.
  - Evaluate guards by priority and run hooks in a fixed phase order.
  - Mutate the attribute, append a TransitionRecord and report the outcome.

Inputs/Outputs:
  - Inputs: FsmDefinition, CallableInvoker, optional EventLogWriter and
    TransitionObserver, any entity object exposing the attribute.
  - Outputs: TransitionOutcome / DryRunResult, or TransitionFailedError.

Invariants:
  - A guard passes only when it returns exactly True.
  - The context snapshot and guards run before any side effect; dry runs
    stop after guards.
  - Hook exceptions are wrapped in TransitionFailedError naming the phase.
  - Nothing is rolled back once the attribute has been mutated.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Iterable, Mapping, Optional

from ..binding.invoker import CallableInvoker, as_callable_ref, describe_ref
from ..domain.definition import (
    FsmDefinition,
    TransitionAction,
    TransitionCallback,
    TransitionDefinition,
    TransitionGuard,
)
from ..domain.enums import (
    ENGINE_SOURCE,
    PHASE_LABELS,
    CallbackPhase,
    state_display,
)
from ..domain.errors import TransitionFailedError
from ..domain.models import TransitionRecord
from ..ports.event_log_port import EventLogWriter
from ..ports.observer_port import TransitionObserver
from .result import DryRunResult, TransitionInput, TransitionOutcome, context_payload

logger = logging.getLogger(__name__)

UNKNOWN_STEP = "unknown processing step"


class TransitionEngine:
    def __init__(
        self,
        definition: FsmDefinition,
        invoker: Optional[CallableInvoker] = None,
        writer: Optional[EventLogWriter] = None,
        observer: Optional[TransitionObserver] = None,
        id_attribute: str = "id",
        debug: bool = False,
    ) -> None:
        self._definition = definition
        self._invoker = invoker if invoker is not None else CallableInvoker()
        self._writer = writer
        self._observer = observer
        self._id_attribute = id_attribute
        self._debug = debug

    @property
    def definition(self) -> FsmDefinition:
        return self._definition

    def current_state(self, entity: Any) -> Optional[str]:
        value = getattr(entity, self._definition.attribute, None)
        if value is None:
            return self._definition.initial_state
        return _state_value(value)

    def entity_id(self, entity: Any) -> str:
        value = getattr(entity, self._id_attribute, None)
        return "" if value is None else str(value)

    def find_transition(self, from_state: Optional[str], to_state: str) -> Optional[TransitionDefinition]:
        return self._definition.find_transition(from_state, to_state)

    def perform_transition(self, entity: Any, to_state: str, context: Any = None) -> TransitionOutcome:
        start = time.perf_counter()
        from_state = self.current_state(entity)
        try:
            return self._process(entity, to_state, context, dry_run=False, start=start)
        except TransitionFailedError as exc:
            self._report_failure(entity, from_state, to_state, context, exc, start)
            raise
        except Exception as exc:
            wrapped = TransitionFailedError.for_callback_exception(
                from_state,
                to_state,
                UNKNOWN_STEP,
                exc,
                self._definition.entity_type,
                self._definition.attribute,
            )
            self._report_failure(entity, from_state, to_state, context, wrapped, start)
            raise wrapped from exc

    def can_transition(self, entity: Any, to_state: str, context: Any = None) -> bool:
        try:
            self._process(entity, to_state, context, dry_run=True, start=time.perf_counter())
        except TransitionFailedError:
            return False
        except Exception:
            logger.exception("unexpected error while checking transition to %s", to_state)
            return False
        return True

    def dry_run(self, entity: Any, to_state: str, context: Any = None) -> DryRunResult:
        from_state = self.current_state(entity)
        try:
            self._process(entity, to_state, context, dry_run=True, start=time.perf_counter())
        except TransitionFailedError as exc:
            return DryRunResult(False, from_state, to_state, str(exc), exc.reason)
        except Exception as exc:
            logger.exception("unexpected error during dry run to %s", to_state)
            return DryRunResult(False, from_state, to_state, str(exc), "Unexpected error during dry run")
        message = (
            f"Dry run: Transition from {state_display(from_state)} to {to_state} is possible."
        )
        return DryRunResult(True, from_state, to_state, message)

    def _process(
        self, entity: Any, to_state: str, context: Any, dry_run: bool, start: float
    ) -> TransitionOutcome:
        definition = self._definition
        from_state = self.current_state(entity)
        transition = self.find_transition(from_state, to_state)

        if from_state == to_state and transition is None:
            return TransitionOutcome(from_state, to_state, changed=False)
        if transition is None:
            raise TransitionFailedError.for_invalid_transition(
                from_state, to_state, definition.entity_type, definition.attribute
            )

        transition_input = TransitionInput(
            entity=entity,
            entity_type=definition.entity_type,
            entity_id=self.entity_id(entity),
            attribute=definition.attribute,
            from_state=from_state,
            to_state=to_state,
            context=context,
            event=transition.event,
            is_dry_run=dry_run,
        )
        payload = None if dry_run else context_payload(context)

        self._run_guards(transition.guards, transition_input)
        if dry_run:
            return TransitionOutcome(from_state, to_state, changed=False)

        from_def = definition.state(from_state)
        to_def = definition.state(to_state)

        if from_def is not None:
            self._run_hooks(from_def.on_exit, transition_input, CallbackPhase.ON_EXIT)
        self._run_hooks(_before(transition.callbacks), transition_input, CallbackPhase.TRANSITION_BEFORE)
        self._run_hooks(_before(transition.actions), transition_input, CallbackPhase.ACTION_BEFORE)

        setattr(entity, definition.attribute, to_state)

        self._run_hooks(_after(transition.callbacks), transition_input, CallbackPhase.TRANSITION_AFTER)
        self._run_hooks(_after(transition.actions), transition_input, CallbackPhase.ACTION_AFTER)
        if to_def is not None:
            self._run_hooks(to_def.on_entry, transition_input, CallbackPhase.ON_ENTRY)

        record = TransitionRecord(
            entity_type=definition.entity_type,
            entity_id=transition_input.entity_id,
            attribute=definition.attribute,
            from_state=from_state,
            to_state=to_state,
            occurred_at=transition_input.timestamp,
            transition_name=transition.event or "unknown",
            context=payload,
            metadata={"duration_ms": _elapsed_ms(start), "source": ENGINE_SOURCE},
        )
        if self._writer is not None:
            try:
                self._writer.append_log(record)
            except Exception as exc:
                raise TransitionFailedError.for_log_failure(
                    from_state, to_state, exc, definition.entity_type, definition.attribute
                ) from exc

        if self._observer is not None:
            self._observer.log_success(
                definition.entity_type,
                transition_input.entity_id,
                definition.attribute,
                from_state,
                to_state,
                transition.event,
                context,
                _elapsed_ms(start),
            )
        return TransitionOutcome(from_state, to_state, changed=True, record=record)

    def _run_guards(self, guards: Iterable[TransitionGuard], transition_input: TransitionInput) -> None:
        ordered = sorted(guards, key=lambda guard: guard.priority, reverse=True)
        failures: list[tuple[TransitionGuard, str]] = []
        for guard in ordered:
            description = guard_description(guard)
            if self._debug:
                logger.debug(
                    "executing guard %s priority=%s stop_on_failure=%s",
                    description,
                    guard.priority,
                    guard.stop_on_failure,
                )
            try:
                result = self._invoke(guard.callable, guard.parameters, transition_input)
            except TransitionFailedError:
                raise
            except Exception as exc:
                if self._debug:
                    logger.debug("guard %s raised %s: %s", description, type(exc).__name__, exc)
                if guard.stop_on_failure:
                    raise TransitionFailedError.for_callback_exception(
                        transition_input.from_state,
                        transition_input.to_state,
                        f"guard {description}",
                        exc,
                        transition_input.entity_type,
                        transition_input.attribute,
                    ) from exc
                failures.append((guard, str(exc)))
                continue

            if result is not True:
                if self._debug:
                    logger.debug("guard %s failed with result %r", description, result)
                if guard.stop_on_failure:
                    raise TransitionFailedError.for_guard_failure(
                        transition_input.from_state,
                        transition_input.to_state,
                        description,
                        transition_input.entity_type,
                        transition_input.attribute,
                    )
                failures.append((guard, "Guard returned false"))

        if not failures:
            return
        if len(failures) == 1:
            summary = guard_description(failures[0][0])
        else:
            joined = ", ".join(f"{guard_description(guard)}: {reason}" for guard, reason in failures)
            summary = f"Multiple guards failed: {joined}"
        raise TransitionFailedError.for_guard_failure(
            transition_input.from_state,
            transition_input.to_state,
            summary,
            transition_input.entity_type,
            transition_input.attribute,
        )

    def _run_hooks(self, hooks: Iterable[Any], transition_input: TransitionInput, phase: CallbackPhase) -> None:
        for hook in hooks:
            try:
                self._invoke(hook.callable, hook.parameters, transition_input)
            except Exception as exc:
                raise TransitionFailedError.for_callback_exception(
                    transition_input.from_state,
                    transition_input.to_state,
                    PHASE_LABELS[phase],
                    exc,
                    transition_input.entity_type,
                    transition_input.attribute,
                ) from exc

    def _invoke(self, callable_value: Any, parameters: Mapping[str, Any], transition_input: TransitionInput) -> Any:
        bag = {**parameters, "input": transition_input}
        return self._invoker.invoke(callable_value, bag)

    def _report_failure(
        self,
        entity: Any,
        from_state: Optional[str],
        to_state: str,
        context: Any,
        exc: TransitionFailedError,
        start: float,
    ) -> None:
        if self._observer is None:
            return
        transition = self.find_transition(from_state, to_state)
        self._observer.log_failure(
            self._definition.entity_type,
            self.entity_id(entity),
            self._definition.attribute,
            from_state,
            to_state,
            transition.event if transition is not None else None,
            context,
            exc,
            _elapsed_ms(start),
        )


def guard_description(guard: TransitionGuard) -> str:
    if guard.description:
        return f"Guard [{guard.description}]"
    if guard.name:
        return f"Guard [{guard.name}]"
    try:
        label = describe_ref(as_callable_ref(guard.callable))
    except TypeError:
        label = type(guard.callable).__name__
    return f"Guard [{label}]"


def _before(hooks: Iterable[TransitionCallback | TransitionAction]) -> list[Any]:
    return [hook for hook in hooks if not hook.run_after_transition]


def _after(hooks: Iterable[TransitionCallback | TransitionAction]) -> list[Any]:
    return [hook for hook in hooks if hook.run_after_transition]


def _state_value(value: Any) -> str:
    enum_value = getattr(value, "value", None)
    if isinstance(enum_value, str):
        return enum_value
    return str(value)


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
