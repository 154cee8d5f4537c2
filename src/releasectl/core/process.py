from __future__ import annotations

import subprocess
import sys
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .errors import SubprocessFailure
from .exit_codes import ERR_NOT_FOUND, ERR_SILENT_SUCCESS
from .logging import log_event

if TYPE_CHECKING:
    from .context import RunContext


@dataclass(frozen=True)
class CommandResult:
    code: int
    stdout: str
    stderr: str
    duration_ms: int

    @property
    def combined_output(self) -> str:
        return (self.stdout + self.stderr).strip()


@dataclass(frozen=True)
class ExecutionResult:
    command: tuple[str, ...]
    exit_code: int
    output: list[str] | None
    duration_ms: int | None

    @property
    def text(self) -> str:
        return "\n".join(self.output or [])


def run_command(cmd: list[str], cwd: Path, ctx: RunContext | None = None) -> CommandResult:
    """Run a read-only probe and capture its output. Never raises on a non-zero exit."""
    started = time.monotonic()
    try:
        proc = subprocess.run(cmd, cwd=cwd, text=True, capture_output=True, check=False)
        result = CommandResult(
            code=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    except OSError as exc:
        result = CommandResult(
            code=ERR_NOT_FOUND,
            stdout="",
            stderr=str(exc),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
    log_event(
        ctx,
        "debug",
        "process",
        "run-command",
        command=" ".join(cmd),
        cwd=str(cwd),
        code=result.code,
        duration_ms=result.duration_ms,
    )
    return result


def invoke_exec(
    executable: str,
    args: Sequence[str] = (),
    common_args: Sequence[str] | None = None,
    measure_time: bool = True,
    capture_output: bool = True,
    allowed_exit_codes: Iterable[int] = (0,),
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    ctx: RunContext | None = None,
) -> ExecutionResult:
    """Run an external tool and fail fast on any exit code outside ``allowed_exit_codes``.

    Arguments are passed as ``[executable, *args, *common_args]``. With
    ``capture_output`` the merged stdout/stderr lines are buffered and returned;
    otherwise the child writes straight to this process's streams and the
    result carries no output.

    An exit code of 0 that the caller did not allow raises ``SubprocessFailure``
    with ``ERR_SILENT_SUCCESS`` (99) instead of 0. Any other disallowed code is
    propagated unchanged as the failure's ``code``.
    """
    allowed = frozenset(int(code) for code in allowed_exit_codes)
    command = (executable, *args, *(common_args or ()))
    log_event(ctx, "info", "process", "exec-start", command=" ".join(command), allowed=sorted(allowed))
    started = time.monotonic()
    try:
        if capture_output:
            proc = subprocess.run(
                command,
                cwd=cwd,
                env=dict(env) if env is not None else None,
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
            )
            output: list[str] | None = (proc.stdout or "").splitlines()
        else:
            proc = subprocess.run(
                command,
                cwd=cwd,
                env=dict(env) if env is not None else None,
                check=False,
            )
            output = None
    except OSError as exc:
        log_event(ctx, "error", "process", "exec-not-started", command=" ".join(command), error=str(exc))
        raise SubprocessFailure(
            f"unable to start `{executable}`: {exc}",
            ERR_NOT_FOUND,
            exit_code=ERR_NOT_FOUND,
        ) from exc
    duration_ms = int((time.monotonic() - started) * 1000) if measure_time else None
    result = ExecutionResult(command=command, exit_code=proc.returncode, output=output, duration_ms=duration_ms)
    if result.exit_code in allowed:
        log_event(
            ctx,
            "info",
            "process",
            "exec-done",
            command=executable,
            code=result.exit_code,
            duration_ms=duration_ms if duration_ms is not None else "-",
        )
        return result

    if output:
        for line in output:
            sys.stderr.write(line + "\n")
    if result.exit_code == 0:
        log_event(ctx, "error", "process", "exec-disallowed-zero", command=" ".join(command), allowed=sorted(allowed))
        raise SubprocessFailure(
            f"disallowed exit code 0 from `{executable}` (allowed: {sorted(allowed)})",
            ERR_SILENT_SUCCESS,
            exit_code=0,
            output=output,
        )
    log_event(ctx, "error", "process", "exec-failed", command=" ".join(command), code=result.exit_code)
    raise SubprocessFailure(
        f"`{executable}` exited with code {result.exit_code} (allowed: {sorted(allowed)})",
        result.exit_code,
        exit_code=result.exit_code,
        output=output,
    )
