from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Mapping

from .clock import utc_now
from .git import read_git_context

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    environment: str
    work_dir: Path
    output_format: OutputFormat
    log_json: bool
    verbose: bool
    quiet: bool
    git_sha: str
    git_dirty: bool

    @classmethod
    def from_args(
        cls,
        run_id: str | None,
        environment: str | None,
        output_format: OutputFormat = "text",
        log_json: bool = False,
        verbose: bool = False,
        quiet: bool = False,
        work_dir: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "RunContext":
        env = os.environ if environ is None else environ
        root = (work_dir or Path.cwd()).resolve()
        git_ctx = read_git_context(root)
        short_sha = git_ctx.sha[:7] if git_ctx.sha != "unknown" else "unknown"
        default_run = f"perfgate-{utc_now().strftime('%Y%m%d-%H%M%S')}-{short_sha}"
        return cls(
            run_id=run_id or env.get("RUN_ID", default_run),
            environment=environment or env.get("TEST_ENVIRONMENT", "staging"),
            work_dir=root,
            output_format=output_format,
            log_json=log_json or env.get("PERFGATE_LOG_JSON", "") in {"1", "true"},
            verbose=verbose,
            quiet=quiet,
            git_sha=git_ctx.sha,
            git_dirty=git_ctx.is_dirty,
        )

    def resolve(self, raw: str | Path) -> Path:
        path = Path(raw)
        return path.resolve() if path.is_absolute() else (self.work_dir / path).resolve()
