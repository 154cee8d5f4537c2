from __future__ import annotations

import os
import sys

import pytest

from releasectl.channels.resolver import resolve_channel
from releasectl.config.model import BuildConfig, PipelineConfig
from releasectl.core.context import RunContext
from releasectl.core.errors import SubprocessFailure, ValidationError
from releasectl.pipeline.steps import PlannedStep, plan_steps, property_args, run_steps


def _config(**build: object) -> PipelineConfig:
    fields = {"projects": ("App.csproj",), **build}
    return PipelineConfig(version="1.2.3", build=BuildConfig(**fields))


def _ctx(tmp_path) -> RunContext:
    return RunContext.from_args("t-steps", "test", str(tmp_path), quiet=True)


def test_plan_for_deployable_branch_includes_publish() -> None:
    planned = plan_steps(resolve_channel("feature/x"), _config())
    assert [step.name for step in planned] == ["clean", "restore", "build", "test", "pack", "publish"]
    pack = planned[4]
    assert pack.args[-1] == os.path.join("artifacts", "branches", "feature", "X", "1.2.3")
    publish = planned[5]
    assert publish.args[-1] == os.path.join("artifacts", "channels", "development", "X", "1.2.3")


def test_plan_for_unmapped_branch_skips_publish() -> None:
    planned = plan_steps(resolve_channel("spike/x"), _config())
    assert "publish" not in {step.name for step in planned}


def test_property_args_only_on_build_pack_publish() -> None:
    planned = {step.name: step for step in plan_steps(resolve_channel("feature/x"), _config(common_args=("-v", "q")))}
    assert planned["restore"].common_args == ("-v", "q")
    assert "-p:Version=1.2.3-development" in planned["build"].common_args
    assert planned["build"].command[:2] == ["dotnet", "build"]


def test_property_args_for_production() -> None:
    args = property_args(resolve_channel("main"), "2.0.0")
    assert "-p:Version=2.0.0" in args
    assert not any(arg.startswith("-p:VersionSuffix") for arg in args)


def test_plan_requires_projects() -> None:
    with pytest.raises(ValidationError):
        plan_steps(resolve_channel("main"), PipelineConfig())


def test_plan_rejects_unknown_step() -> None:
    with pytest.raises(ValidationError):
        plan_steps(resolve_channel("main"), _config(), steps=["deploy-to-moon"])


def test_run_steps_stops_at_first_failure(tmp_path) -> None:
    ok = PlannedStep("one", "p", sys.executable, ("-c", "pass"))
    bad = PlannedStep("two", "p", sys.executable, ("-c", "raise SystemExit(4)"))
    never = PlannedStep("three", "p", sys.executable, ("-c", "raise SystemExit(5)"))
    with pytest.raises(SubprocessFailure) as exc:
        run_steps(_ctx(tmp_path), [ok, bad, never])
    assert exc.value.code == 4


def test_run_steps_returns_outcomes(tmp_path) -> None:
    step = PlannedStep("one", "p", sys.executable, ("-c", "print('built')"))
    outcomes = run_steps(_ctx(tmp_path), [step])
    assert outcomes[0].result.output == ["built"]
