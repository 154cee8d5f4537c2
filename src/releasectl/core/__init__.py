"""releasectl core package."""
from .context import RunContext
from .errors import ScriptError, SubprocessFailure, ValidationError
from .logging import log_event, utc_now_iso
from .process import CommandResult, ExecutionResult, invoke_exec, run_command
from .repo_root import find_repo_root, try_find_repo_root
from .serialize import dumps_json

__all__ = [
    "CommandResult",
    "ExecutionResult",
    "RunContext",
    "ScriptError",
    "SubprocessFailure",
    "ValidationError",
    "dumps_json",
    "find_repo_root",
    "invoke_exec",
    "log_event",
    "run_command",
    "try_find_repo_root",
    "utc_now_iso",
]
