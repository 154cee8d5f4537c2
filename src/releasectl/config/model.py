from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..channels.resolver import DEFAULT_CHANNELS, DEFAULT_SUFFIXES, NO_DEPLOY
from ..channels.segments import DEFAULT_FORBIDDEN, DEFAULT_MAX_SEGMENTS


def _over_defaults(defaults: Mapping[str, str], overrides: Mapping[str, str] | None) -> dict[str, str]:
    """Layer table entries over the defaults; keys compare case-insensitively."""
    overrides = overrides or {}
    taken = {key.casefold() for key in overrides}
    out = {key: value for key, value in defaults.items() if key.casefold() not in taken}
    out.update(overrides)
    return out


@dataclass(frozen=True)
class BuildConfig:
    tool: str = "dotnet"
    configuration: str = "Release"
    projects: tuple[str, ...] = ()
    common_args: tuple[str, ...] = ()
    output_root: str = "artifacts"


@dataclass(frozen=True)
class PipelineConfig:
    version: str | None = None
    fallback: str = NO_DEPLOY
    max_segments: int = DEFAULT_MAX_SEGMENTS
    forbidden: tuple[str, ...] = DEFAULT_FORBIDDEN
    channels: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_CHANNELS))
    suffixes: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_SUFFIXES))
    build: BuildConfig = field(default_factory=BuildConfig)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PipelineConfig":
        branch = data.get("branch") or {}
        build = data.get("build") or {}
        defaults = BuildConfig()
        return cls(
            version=data.get("version"),
            fallback=data.get("fallback", NO_DEPLOY),
            max_segments=int(branch.get("max_segments", DEFAULT_MAX_SEGMENTS)),
            forbidden=tuple(branch.get("forbidden", DEFAULT_FORBIDDEN)),
            channels=_over_defaults(DEFAULT_CHANNELS, data.get("channels")),
            suffixes=_over_defaults(DEFAULT_SUFFIXES, data.get("suffixes")),
            build=BuildConfig(
                tool=build.get("tool", defaults.tool),
                configuration=build.get("configuration", defaults.configuration),
                projects=tuple(build.get("projects", ())),
                common_args=tuple(build.get("common_args", ())),
                output_root=build.get("output_root", defaults.output_root),
            ),
        )

    def to_payload(self) -> dict[str, object]:
        return {
            "version": self.version,
            "fallback": self.fallback,
            "branch": {"max_segments": self.max_segments, "forbidden": list(self.forbidden)},
            "channels": dict(self.channels),
            "suffixes": dict(self.suffixes),
            "build": {
                "tool": self.build.tool,
                "configuration": self.build.configuration,
                "projects": list(self.build.projects),
                "common_args": list(self.build.common_args),
                "output_root": self.build.output_root,
            },
        }
