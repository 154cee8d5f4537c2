from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from pathlib import Path

from .loader import build_config, deep_merge, validate_config
from .model import BuildConfig, PipelineConfig
from .sources import BASE_FILE, ConfigSource, clear_sources, reset_to_standard


def load_pipeline_config(
    root: Path,
    environment: str,
    args: Sequence[str] | None = None,
    environ: Mapping[str, str] | None = None,
    require_base: bool = True,
) -> PipelineConfig:
    sources = reset_to_standard([], environment, args)
    if not require_base:
        sources = [replace(s, optional=True) if s.location == BASE_FILE else s for s in sources]
    return PipelineConfig.from_mapping(build_config(sources, root, environ))


__all__ = [
    "BuildConfig",
    "ConfigSource",
    "PipelineConfig",
    "build_config",
    "clear_sources",
    "deep_merge",
    "load_pipeline_config",
    "reset_to_standard",
    "validate_config",
]
