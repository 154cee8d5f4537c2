"""Configuration source lists.

Sources are applied in list order and later sources override earlier ones.
"""

from __future__ import annotations

from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass
from typing import Literal

SourceKind = Literal["file", "env", "args"]

BASE_FILE = "releasectl.yaml"
ENV_PREFIX = "RELEASECTL_"


@dataclass(frozen=True)
class ConfigSource:
    kind: SourceKind
    location: str
    optional: bool = False
    values: tuple[str, ...] = ()


def environment_file(environment: str) -> str:
    return f"releasectl.{environment.lower()}.yaml"


def clear_sources(sources: MutableSequence[ConfigSource]) -> MutableSequence[ConfigSource]:
    sources.clear()
    return sources


def reset_to_standard(
    sources: MutableSequence[ConfigSource],
    environment: str,
    args: Sequence[str] | None = None,
) -> MutableSequence[ConfigSource]:
    out = clear_sources(sources)
    out.append(ConfigSource("file", BASE_FILE))
    if environment:
        out.append(ConfigSource("file", environment_file(environment), optional=True))
    out.append(ConfigSource("env", ENV_PREFIX))
    if args is not None:
        out.append(ConfigSource("args", "--set", values=tuple(args)))
    return out
