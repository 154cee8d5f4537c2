"""Presence checks for pipeline variables.

A variable is classified once, at the boundary where it enters the run, and
required variables that are absent or empty stop the run with a validation
error.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum

from .errors import ValidationError


class VariableState(Enum):
    ABSENT = "absent"
    EMPTY_STRING = "empty-string"
    EMPTY_MAP = "empty-map"
    PRESENT = "present"


def classify(value: object) -> VariableState:
    if value is None:
        return VariableState.ABSENT
    if isinstance(value, str):
        return VariableState.EMPTY_STRING if not value.strip() else VariableState.PRESENT
    if isinstance(value, Mapping):
        return VariableState.EMPTY_MAP if not value else VariableState.PRESENT
    return VariableState.PRESENT


def require_variables(**values: object) -> None:
    missing = {name: classify(value) for name, value in values.items()}
    missing = {name: state for name, state in missing.items() if state is not VariableState.PRESENT}
    if missing:
        detail = ", ".join(f"{name} ({state.value})" for name, state in sorted(missing.items()))
        raise ValidationError(f"required variables missing: {detail}", kind="missing_variable")
