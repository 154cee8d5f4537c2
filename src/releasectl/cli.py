from __future__ import annotations

import argparse
import os
import sys

from . import __version__
from .channels.resolver import resolve_channel
from .channels.segments import (
    DEFAULT_FORBIDDEN,
    DEFAULT_MAX_SEGMENTS,
    DEFAULT_TRANSLATION,
    compose_segments,
    join_segments,
    split_segments,
    translate_first_segment,
)
from .config import load_pipeline_config
from .config.model import PipelineConfig
from .core.context import RunContext
from .core.errors import ScriptError, ValidationError
from .core.exit_codes import ERR_INTERNAL, ERR_USAGE
from .core.logging import log_event
from .core.process import invoke_exec
from .core.serialize import dumps_json
from .core.variables import require_variables
from .pipeline.steps import plan_steps, run_steps


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="releasectl")
    p.add_argument("--version", action="version", version=f"releasectl {__version__}")
    p.add_argument("--json", action="store_true", help="emit JSON output")
    p.add_argument("--run-id", help="run identifier for log events")
    p.add_argument("--profile", help="environment profile; selects releasectl.<profile>.yaml")
    p.add_argument("--repo-root", help="run against an explicit repository root")
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--log-json", action="store_true", help="emit log events as JSON lines on stderr")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("version", help="print version and git context")

    seg_p = sub.add_parser("segments", help="split, translate and join branch segments")
    seg_sub = seg_p.add_subparsers(dest="segments_cmd", required=True)
    split_p = seg_sub.add_parser("split", help="split a branch name into normalized segments")
    split_p.add_argument("value")
    split_p.add_argument("--max-segments", type=int, default=DEFAULT_MAX_SEGMENTS)
    split_p.add_argument("--forbidden", nargs="*", default=list(DEFAULT_FORBIDDEN))
    tr_p = seg_sub.add_parser("translate", help="map the first segment through a table")
    tr_p.add_argument("segments", nargs="+")
    tr_p.add_argument("--map", dest="mapping", action="append", default=[], metavar="KEY=VALUE")
    tr_p.add_argument("--default", default=DEFAULT_TRANSLATION)
    join_p = seg_sub.add_parser("join", help="join segments with positional overrides")
    join_p.add_argument("segments", nargs="+")
    join_p.add_argument("--override", action="append", default=[], help="positional override; empty string keeps the segment")
    join_p.add_argument("--append", action="append", default=[])

    ch_p = sub.add_parser("channel", help="branch to release channel mapping")
    ch_sub = ch_p.add_subparsers(dest="channel_cmd", required=True)
    resolve_p = ch_sub.add_parser("resolve", help="resolve channel, version suffix and folders")
    resolve_p.add_argument("--branch", help="branch name; defaults to the current git branch")
    resolve_p.add_argument("--version", dest="package_version", help="package version to append to folders")
    resolve_p.add_argument("--set", dest="overrides", action="append", default=[], metavar="KEY=VALUE")

    cfg_p = sub.add_parser("config", help="configuration commands")
    cfg_sub = cfg_p.add_subparsers(dest="config_cmd", required=True)
    show_p = cfg_sub.add_parser("show", help="print the merged configuration")
    show_p.add_argument("--set", dest="overrides", action="append", default=[], metavar="KEY=VALUE")

    exec_p = sub.add_parser("exec", help="run a command and classify its exit code")
    exec_p.add_argument("--allow-exit-code", dest="allowed", type=int, action="append", default=None)
    exec_p.add_argument("--no-capture", action="store_true", help="stream output instead of buffering it")
    exec_p.add_argument("--no-timing", action="store_true", help="skip duration measurement")
    exec_p.add_argument("command", nargs=argparse.REMAINDER)

    plan_p = sub.add_parser("plan", help="print (or run) the build steps for the current branch")
    plan_p.add_argument("--branch", help="branch name; defaults to the current git branch")
    plan_p.add_argument("--step", dest="steps", action="append", default=None)
    plan_p.add_argument("--execute", action="store_true", help="run the planned steps")
    plan_p.add_argument("--set", dest="overrides", action="append", default=[], metavar="KEY=VALUE")
    return p


def _emit(payload: dict[str, object], as_json: bool) -> None:
    print(dumps_json(payload, pretty=not as_json))


def _base_payload(ctx: RunContext, status: str = "ok") -> dict[str, object]:
    return {
        "schema_version": 1,
        "tool": "releasectl",
        "status": status,
        "run_id": ctx.run_id,
        "profile": ctx.profile,
    }


def _parse_mapping(items: list[str]) -> dict[str, str]:
    out: dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ScriptError(f"invalid mapping `{item}`; expected KEY=VALUE", ERR_USAGE, kind="usage_error")
        out[key] = value
    return out


def _load_config(ctx: RunContext, overrides: list[str]) -> PipelineConfig:
    return load_pipeline_config(ctx.repo_root, ctx.profile, overrides, require_base=False)


def _branch(ctx: RunContext, explicit: str | None) -> str:
    branch = explicit if explicit is not None else ctx.git_branch
    require_variables(branch=branch)
    return branch


def _run_segments(ns: argparse.Namespace, as_json: bool, ctx: RunContext) -> int:
    if ns.segments_cmd == "split":
        segments = split_segments(ns.value, max_segments=ns.max_segments, forbidden=ns.forbidden)
        if as_json:
            _emit({**_base_payload(ctx), "segments": segments}, True)
        else:
            print("\n".join(segments))
        return 0
    if ns.segments_cmd == "translate":
        table = _parse_mapping(ns.mapping)
        segments = translate_first_segment(ns.segments, table, default=ns.default, ctx=ctx)
        if as_json:
            _emit({**_base_payload(ctx), "segments": segments}, True)
        else:
            print("\n".join(segments))
        return 0
    overrides = [item or None for item in ns.override]
    components = compose_segments(ns.segments, overrides, ns.append)
    path = join_segments(ns.segments, overrides, ns.append)
    if as_json:
        _emit({**_base_payload(ctx), "components": components, "path": path}, True)
    else:
        print(path)
    return 0


def _run_channel(ns: argparse.Namespace, as_json: bool, ctx: RunContext) -> int:
    config = _load_config(ctx, ns.overrides)
    resolution = resolve_channel(
        _branch(ctx, ns.branch),
        channels=config.channels,
        suffixes=config.suffixes,
        fallback=config.fallback,
        max_segments=config.max_segments,
        forbidden=config.forbidden,
        ctx=ctx,
    )
    payload = {**_base_payload(ctx), **resolution.to_payload(ns.package_version or config.version)}
    if as_json:
        _emit(payload, True)
    else:
        for key in ("branch", "channel", "version_suffix", "deployable", "branch_folder", "channel_folder", "package_version"):
            if key in payload:
                print(f"{key}={payload[key]}")
    return 0


def _run_exec(ns: argparse.Namespace, as_json: bool, ctx: RunContext) -> int:
    command = list(ns.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        raise ValidationError("exec requires a command after `--`", kind="missing_command")
    result = invoke_exec(
        command[0],
        command[1:],
        measure_time=not ns.no_timing,
        capture_output=not ns.no_capture,
        allowed_exit_codes=ns.allowed if ns.allowed else (0,),
        cwd=ctx.repo_root,
        ctx=ctx,
    )
    if as_json:
        _emit(
            {
                **_base_payload(ctx),
                "command": list(result.command),
                "exit_code": result.exit_code,
                "duration_ms": result.duration_ms,
                "output": result.output,
            },
            True,
        )
    elif result.output:
        print(result.text)
    return 0


def _run_plan(ns: argparse.Namespace, as_json: bool, ctx: RunContext) -> int:
    config = _load_config(ctx, ns.overrides)
    resolution = resolve_channel(
        _branch(ctx, ns.branch),
        channels=config.channels,
        suffixes=config.suffixes,
        fallback=config.fallback,
        max_segments=config.max_segments,
        forbidden=config.forbidden,
        ctx=ctx,
    )
    planned = plan_steps(resolution, config, ns.steps) if ns.steps else plan_steps(resolution, config)
    if ns.execute:
        run_steps(ctx, planned)
    payload = {
        **_base_payload(ctx),
        "plan": not ns.execute,
        "channel": resolution.channel,
        "deployable": resolution.deployable,
        "steps": [step.to_payload() for step in planned],
    }
    if as_json:
        _emit(payload, True)
    else:
        print(f"channel={resolution.channel} deployable={resolution.deployable}")
        for step in planned:
            print(f"- {step.name}: {' '.join(step.command)}")
    return 0


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    ns = p.parse_args(argv)
    fmt = "json" if ns.json else (ns.format or ("json" if "CI" in os.environ else "text"))
    ctx: RunContext | None = None
    try:
        ctx = RunContext.from_args(
            ns.run_id,
            ns.profile,
            ns.repo_root,
            fmt,
            ns.verbose,
            ns.quiet,
            ns.log_json,
        )
        as_json = ctx.output_format == "json"
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        if ns.cmd == "version":
            _emit(
                {
                    **_base_payload(ctx),
                    "version": __version__,
                    "git_sha": ctx.git_sha,
                    "git_dirty": ctx.git_dirty,
                    "git_branch": ctx.git_branch,
                },
                as_json,
            )
            return 0
        if ns.cmd == "segments":
            return _run_segments(ns, as_json, ctx)
        if ns.cmd == "channel":
            return _run_channel(ns, as_json, ctx)
        if ns.cmd == "config":
            config = _load_config(ctx, ns.overrides)
            _emit({**_base_payload(ctx), "config": config.to_payload()}, as_json)
            return 0
        if ns.cmd == "exec":
            return _run_exec(ns, as_json, ctx)
        if ns.cmd == "plan":
            return _run_plan(ns, as_json, ctx)
        return ERR_USAGE
    except ScriptError as exc:
        if fmt == "json":
            print(
                dumps_json(
                    {
                        "schema_version": 1,
                        "tool": "releasectl",
                        "status": "fail",
                        "error": {"message": str(exc), "code": exc.code, "kind": exc.kind},
                    }
                ),
                file=sys.stderr,
            )
        else:
            print(str(exc), file=sys.stderr)
        return exc.code
    except Exception as exc:  # pragma: no cover
        log_event(ctx, "error", "cli", "internal-error", error=repr(exc))
        print(f"internal error: {exc}", file=sys.stderr)
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
