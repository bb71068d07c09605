from __future__ import annotations

import re

import pytest

from perfgate.cli.main import build_parser
from perfgate.core.config import DEFAULT_BUDGETS_FILE, GateConfig
from perfgate.core.context import RunContext
from perfgate.errors import ConfigInvalid


def test_flags_win_over_environment(ctx: RunContext) -> None:
    ns = build_parser().parse_args(["run", "--url", "https://flag.example.test", "--endpoint", "https://a.test"])
    config = GateConfig.from_args(ctx, ns, environ={"BASE_URL": "https://env.example.test", "PERF_ENDPOINTS": "https://b.test"})
    assert config.url == "https://flag.example.test"
    assert config.endpoints == ("https://a.test",)


def test_environment_fills_missing_flags(ctx: RunContext) -> None:
    ns = build_parser().parse_args(["run"])
    config = GateConfig.from_args(
        ctx,
        ns,
        environ={
            "PERF_ENDPOINTS": "https://a.test, https://b.test,",
            "PERF_FUNCTIONS": "resize",
            "FUNCTIONS_URL": "https://fn.test",
            "PERF_BUILD_DIR": "dist",
            "PERF_REPORT_DIR": "out/perf",
        },
    )
    assert config.endpoints == ("https://a.test", "https://b.test")
    assert config.functions == ("resize",)
    assert config.functions_url == "https://fn.test"
    assert config.build_dir == ctx.work_dir / "dist"
    assert config.report_dir == ctx.work_dir / "out" / "perf"
    assert config.budgets_path == ctx.work_dir / DEFAULT_BUDGETS_FILE
    assert config.idle_seconds == 2.0
    assert config.url is None


def test_context_defaults_from_environment(tmp_path) -> None:
    ctx = RunContext.from_args(None, None, work_dir=tmp_path, environ={"TEST_ENVIRONMENT": "production"})
    assert ctx.environment == "production"
    assert re.fullmatch(r"perfgate-\d{8}-\d{6}-([0-9a-f]{7}|unknown)", ctx.run_id)
    pinned = RunContext.from_args(None, None, work_dir=tmp_path, environ={"RUN_ID": "ci-42"})
    assert pinned.run_id == "ci-42"
    assert pinned.environment == "staging"


@pytest.mark.parametrize("raw", ["-5", "nan", "inf"])
def test_regression_tolerance_must_be_a_finite_non_negative_percentage(ctx: RunContext, raw: str) -> None:
    ns = build_parser().parse_args(["run", "--regression-tolerance", raw])
    with pytest.raises(ConfigInvalid):
        GateConfig.from_args(ctx, ns, environ={})


def test_regression_tolerance_flag_is_kept(ctx: RunContext) -> None:
    ns = build_parser().parse_args(["run", "--regression-tolerance", "12.5"])
    assert GateConfig.from_args(ctx, ns, environ={}).regression_tolerance == 12.5
