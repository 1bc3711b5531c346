"""Transition execution for declarative per-attribute state machines.

Responsibilities:
  - Provide the engine and result types used by app_api.
  - Must not perform I/O other than through the injected event log writer.
"""
from .engine import TransitionEngine, guard_description
from .result import DryRunResult, TransitionInput, TransitionOutcome

__all__ = [
    "DryRunResult",
    "TransitionEngine",
    "TransitionInput",
    "TransitionOutcome",
    "guard_description",
]
