from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .context import RunContext

_QUIET_LEVELS = {"debug", "info"}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_event(ctx: RunContext | None, level: str, component: str, action: str, **fields: object) -> None:
    if ctx is not None and ctx.quiet and level in _QUIET_LEVELS:
        return
    if level == "debug" and (ctx is None or not ctx.verbose):
        return
    run_id = ctx.run_id if ctx is not None else "-"
    payload = {
        "ts": utc_now_iso(),
        "level": level,
        "run_id": run_id,
        "component": component,
        "action": action,
        **fields,
    }
    if ctx is not None and ctx.log_json:
        sys.stderr.write(json.dumps(payload, sort_keys=True, default=str) + "\n")
        return
    core = f"ts={payload['ts']} level={level} run_id={run_id} component={component} action={action}"
    extras = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
    sys.stderr.write((core if not extras else f"{core} {extras}") + "\n")
