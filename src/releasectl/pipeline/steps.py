from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..core.errors import ValidationError
from ..core.logging import log_event
from ..core.process import ExecutionResult, invoke_exec
from ..core.variables import require_variables

if TYPE_CHECKING:
    from ..channels.resolver import ChannelResolution
    from ..config.model import PipelineConfig
    from ..core.context import RunContext

DEFAULT_STEPS = ("clean", "restore", "build", "test", "pack", "publish")
_PROPERTY_STEPS = {"build", "pack", "publish"}


@dataclass(frozen=True)
class PlannedStep:
    name: str
    project: str
    executable: str
    args: tuple[str, ...]
    common_args: tuple[str, ...] = ()
    allowed_exit_codes: tuple[int, ...] = (0,)

    @property
    def command(self) -> list[str]:
        return [self.executable, *self.args, *self.common_args]

    def to_payload(self) -> dict[str, object]:
        return {
            "step": self.name,
            "project": self.project,
            "command": self.command,
            "allowed_exit_codes": list(self.allowed_exit_codes),
        }


@dataclass(frozen=True)
class StepOutcome:
    step: PlannedStep
    result: ExecutionResult


def property_args(resolution: ChannelResolution, version: str | None) -> list[str]:
    args = [f"-p:Channel={resolution.channel}", f"-p:BranchFolder={resolution.branch_folder}"]
    if version:
        args.append(f"-p:Version={resolution.package_version(version)}")
    if resolution.version_suffix:
        args.append(f"-p:VersionSuffix={resolution.version_suffix.lstrip('-')}")
    return args


def _step_args(name: str, project: str, config: PipelineConfig, output: str) -> list[str]:
    cfg = config.build.configuration
    if name == "clean":
        return ["clean", project, "-c", cfg]
    if name == "restore":
        return ["restore", project]
    if name == "build":
        return ["build", project, "-c", cfg, "--no-restore"]
    if name == "test":
        return ["test", project, "-c", cfg, "--no-build"]
    if name == "pack":
        return ["pack", project, "-c", cfg, "--no-build", "-o", output]
    if name == "publish":
        return ["publish", project, "-c", cfg, "--no-build", "-o", output]
    raise ValidationError(f"unknown build step `{name}`", kind="unknown_step")


def plan_steps(
    resolution: ChannelResolution,
    config: PipelineConfig,
    steps: Sequence[str] = DEFAULT_STEPS,
) -> list[PlannedStep]:
    require_variables(projects=" ".join(config.build.projects), build_tool=config.build.tool)
    version = config.version
    branch_out = os.path.join(
        config.build.output_root,
        "branches",
        resolution.versioned_folder(version) if version else resolution.branch_folder,
    )
    channel_out = os.path.join(
        config.build.output_root,
        "channels",
        resolution.versioned_folder(version, base="channel") if version else resolution.channel_folder,
    )
    props = property_args(resolution, version)
    planned: list[PlannedStep] = []
    for project in config.build.projects:
        for name in steps:
            if name == "publish" and not resolution.deployable:
                continue
            output = channel_out if name == "publish" else branch_out
            common = [*config.build.common_args, *(props if name in _PROPERTY_STEPS else [])]
            planned.append(
                PlannedStep(
                    name=name,
                    project=project,
                    executable=config.build.tool,
                    args=tuple(_step_args(name, project, config, output)),
                    common_args=tuple(common),
                )
            )
    return planned


def run_steps(ctx: RunContext, planned: Sequence[PlannedStep]) -> list[StepOutcome]:
    """Run the planned steps in order; the first disallowed exit code stops the run."""
    outcomes: list[StepOutcome] = []
    for step in planned:
        log_event(ctx, "info", "pipeline", "step-start", step=step.name, project=step.project)
        result = invoke_exec(
            step.executable,
            step.args,
            common_args=step.common_args,
            allowed_exit_codes=step.allowed_exit_codes,
            cwd=ctx.repo_root,
            ctx=ctx,
        )
        outcomes.append(StepOutcome(step=step, result=result))
    return outcomes
