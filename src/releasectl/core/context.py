from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from .git import read_git_context
from .repo_root import resolve_repo_root

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    profile: str
    repo_root: Path
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool
    git_sha: str
    git_dirty: bool
    git_branch: str

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        profile: str | None,
        repo_root: str | None = None,
        output_format: OutputFormat = "text",
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
    ) -> "RunContext":
        root = resolve_repo_root(repo_root)
        git_ctx = read_git_context(root)
        default_run = f"release-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}-{git_ctx.sha}"
        return cls(
            run_id=run_id or os.environ.get("RUN_ID", default_run),
            profile=profile or os.environ.get("PROFILE", "local"),
            repo_root=root,
            output_format=output_format,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json,
            git_sha=git_ctx.sha,
            git_dirty=git_ctx.is_dirty,
            git_branch=git_ctx.branch,
        )
