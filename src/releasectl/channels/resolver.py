from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from ..core.logging import log_event
from .segments import (
    DEFAULT_FORBIDDEN,
    DEFAULT_MAX_SEGMENTS,
    join_segments,
    lookup_translation,
    split_segments,
    translate_first_segment,
)

if TYPE_CHECKING:
    from ..core.context import RunContext

NO_DEPLOY = "{nodeploy}"

DEFAULT_CHANNELS: dict[str, str] = {
    "feature": "development",
    "develop": "quality",
    "bugfix": "quality",
    "release": "staging",
    "main": "production",
    "master": "production",
    "hotfix": "production",
}

DEFAULT_SUFFIXES: dict[str, str] = {
    "feature": "-development",
    "develop": "-quality",
    "bugfix": "-quality",
    "release": "-staging",
    "main": "",
    "master": "",
    "hotfix": "",
}


@dataclass(frozen=True)
class ChannelResolution:
    branch: str
    segments: tuple[str, ...]
    channel_segments: tuple[str, ...]
    suffix_segments: tuple[str, ...]
    fallback: str = NO_DEPLOY
    channel_matched: bool = True
    suffix_matched: bool = True

    @property
    def channel(self) -> str:
        return self.channel_segments[0] if self.channel_segments else self.fallback

    @property
    def version_suffix(self) -> str:
        if not self.suffix_matched or not self.suffix_segments:
            return ""
        return self.suffix_segments[0]

    @property
    def deployable(self) -> bool:
        return self.channel_matched and bool(self.channel_segments)

    @property
    def branch_folder(self) -> str:
        return join_segments(self.segments)

    @property
    def channel_folder(self) -> str:
        return join_segments(self.channel_segments)

    def package_version(self, version: str) -> str:
        return f"{version}{self.version_suffix}"

    def versioned_folder(self, version: str, base: Literal["branch", "channel"] = "branch") -> str:
        segments = self.segments if base == "branch" else self.channel_segments
        return join_segments(segments, append=[version])

    def to_payload(self, version: str | None = None) -> dict[str, object]:
        payload: dict[str, object] = {
            "branch": self.branch,
            "segments": list(self.segments),
            "channel": self.channel,
            "version_suffix": self.version_suffix,
            "deployable": self.deployable,
            "branch_folder": self.branch_folder,
            "channel_folder": self.channel_folder,
        }
        if version:
            payload["package_version"] = self.package_version(version)
            payload["branch_version_folder"] = self.versioned_folder(version)
            payload["channel_version_folder"] = self.versioned_folder(version, base="channel")
        return payload


def resolve_channel(
    branch: str,
    channels: Mapping[str, str] = DEFAULT_CHANNELS,
    suffixes: Mapping[str, str] = DEFAULT_SUFFIXES,
    fallback: str = NO_DEPLOY,
    max_segments: int = DEFAULT_MAX_SEGMENTS,
    forbidden: Iterable[str] = DEFAULT_FORBIDDEN,
    ctx: RunContext | None = None,
) -> ChannelResolution:
    segments = split_segments(branch, max_segments=max_segments, forbidden=forbidden)
    suffix_segments = translate_first_segment(segments, suffixes, default=fallback, ctx=ctx)
    channel_segments = translate_first_segment(segments, channels, default=fallback, ctx=ctx)
    resolution = ChannelResolution(
        branch=branch,
        segments=tuple(segments),
        channel_segments=tuple(channel_segments),
        suffix_segments=tuple(suffix_segments),
        fallback=fallback,
        channel_matched=bool(segments) and lookup_translation(segments[0], channels) is not None,
        suffix_matched=bool(segments) and lookup_translation(segments[0], suffixes) is not None,
    )
    log_event(
        ctx,
        "info",
        "channels",
        "resolve",
        branch=branch,
        channel=resolution.channel,
        suffix=resolution.version_suffix or "-",
        deployable=resolution.deployable,
    )
    return resolution
