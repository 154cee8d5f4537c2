from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

import jsonschema
import pytest

from releasectl.cli import build_parser, main

ROOT = Path(__file__).resolve().parents[1]

RESOLVE_SCHEMA = {
    "type": "object",
    "required": ["schema_version", "tool", "status", "run_id", "branch", "channel", "version_suffix", "deployable"],
    "properties": {
        "schema_version": {"const": 1},
        "tool": {"const": "releasectl"},
        "status": {"const": "ok"},
        "channel": {"type": "string"},
        "version_suffix": {"type": "string"},
        "deployable": {"type": "boolean"},
        "segments": {"type": "array", "items": {"type": "string"}},
    },
}


def _run(tmp_path: Path, *args: str) -> int:
    return main(["--run-id", "t-cli", "--profile", "test", "--repo-root", str(tmp_path), "--format", "text", "--quiet", *args])


def test_parser_exec_subcommand() -> None:
    ns = build_parser().parse_args(["exec", "--allow-exit-code", "1", "--", "git", "status"])
    assert ns.cmd == "exec"
    assert ns.allowed == [1]
    assert ns.command[-2:] == ["git", "status"]


def test_segments_split_text(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "segments", "split", "Bar/Baz") == 0
    assert capsys.readouterr().out.splitlines() == ["bar", "BAZ"]


def test_segments_split_forbidden_exits_1(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "segments", "split", "latest/bar") == 1
    assert "forbidden segment" in capsys.readouterr().err


def test_segments_split_too_many_json_error(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "--json", "segments", "split", "a/b/c") == 1
    payload = json.loads(capsys.readouterr().err)
    assert payload["status"] == "fail"
    assert payload["error"]["kind"] == "too_many_segments"


def test_segments_translate(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = _run(tmp_path, "--json", "segments", "translate", "nonexistent", "BAZ", "--map", "testing=tofooo", "--default", "defaultValue")
    assert code == 0
    assert json.loads(capsys.readouterr().out)["segments"] == ["defaultValue", "BAZ"]


def test_segments_join_with_holes(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = _run(
        tmp_path,
        "--json",
        "segments",
        "join",
        "testing",
        "--override=",
        "--override=hello",
        "--override=",
        "--override=",
        "--override=abc",
        "--append=final",
        "--append=segment",
    )
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["components"] == ["testing", "hello", "", "", "abc", "final", "segment"]
    assert payload["path"] == os.path.join("testing", "hello", "abc", "final", "segment")


def test_channel_resolve_json(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "--json", "channel", "resolve", "--branch", "feature/login", "--version", "1.0.0") == 0
    payload = json.loads(capsys.readouterr().out)
    jsonschema.validate(payload, RESOLVE_SCHEMA)
    assert payload["channel"] == "development"
    assert payload["package_version"] == "1.0.0-development"


def test_channel_resolve_uses_config_file(config_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(config_root, "--json", "channel", "resolve", "--branch", "main") == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["package_version"] == "1.4.0"


def test_channel_resolve_numeric_version_override(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "--json", "channel", "resolve", "--branch", "feature/x", "--set", "version=2.0") == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["package_version"] == "2.0-development"


def test_channel_resolve_partial_table_override(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "--json", "channel", "resolve", "--branch", "main", "--set", "channels.feature=dev") == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["channel"] == "production"
    assert payload["deployable"] is True


def test_channel_resolve_requires_branch(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "channel", "resolve", "--branch", "") == 1
    assert "branch (empty-string)" in capsys.readouterr().err


def test_exec_allowed(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(tmp_path, "exec", "--", sys.executable, "-c", "print('hi')") == 0
    assert capsys.readouterr().out.strip() == "hi"


def test_exec_propagates_exit_code(tmp_path: Path) -> None:
    assert _run(tmp_path, "exec", "--", sys.executable, "-c", "raise SystemExit(2)") == 2


def test_exec_disallowed_zero_returns_sentinel(tmp_path: Path) -> None:
    assert _run(tmp_path, "exec", "--allow-exit-code", "1", "--", sys.executable, "-c", "pass") == 99


def test_plan_dry_run(config_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(config_root, "--json", "plan", "--branch", "release/2.0") == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["plan"] is True
    assert payload["channel"] == "staging"
    assert payload["steps"][-1]["step"] == "publish"


def test_config_show(config_root: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(config_root, "--json", "config", "show", "--set", "fallback=none") == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["config"]["fallback"] == "none"
    assert payload["config"]["version"] == "1.4.0"


@pytest.mark.integration
def test_module_entrypoint_exit_code(tmp_path: Path) -> None:
    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), env.get("PYTHONPATH", "")])
    proc = subprocess.run(
        [sys.executable, "-m", "releasectl.cli", "--repo-root", str(tmp_path), "segments", "split", "a/b/c"],
        cwd=tmp_path,
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )
    assert proc.returncode == 1
    assert "too many segments" in proc.stderr
