from __future__ import annotations

from dataclasses import dataclass, field

from .exit_codes import ERR_VALIDATION


@dataclass
class ScriptError(Exception):
    message: str
    code: int
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message


@dataclass
class ValidationError(ScriptError):
    code: int = ERR_VALIDATION
    kind: str = "validation_error"


@dataclass
class SubprocessFailure(ScriptError):
    kind: str = "subprocess_failure"
    exit_code: int = 0
    output: list[str] | None = field(default=None, repr=False)
