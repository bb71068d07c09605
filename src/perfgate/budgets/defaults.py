"""Built-in budgets so a first run never fails purely on missing config."""

from __future__ import annotations

from ..models import Budget

DEFAULT_REGRESSION_TOLERANCE_PCT = 10.0

DEFAULT_BUDGETS: tuple[Budget, ...] = (
    Budget("largest-contentful-paint", "ms", 2500, 2000),
    Budget("interaction-latency", "ms", 100, 80),
    Budget("cumulative-layout-shift", "score", 0.1, 0.08),
    Budget("first-contentful-paint", "ms", 1800, 1500),
    Budget("time-to-interactive", "ms", 3800, 3000),
    Budget("artifact-size-main", "KB", 500, 400),
    Budget("artifact-size-vendor", "KB", 800, 600),
    Budget("artifact-size-total", "KB", 1200, 1000),
    Budget("endpoint-response-time", "ms", 1000, 800),
    Budget("endpoint-error-rate", "%", 1.0, 0.5),
    Budget("function-cold-start", "ms", 3000, 2000),
    Budget("function-execution-time", "ms", 30000, 20000),
)

# Matched against file names; "total" sums every script artifact.
DEFAULT_ARTIFACT_GROUPS: dict[str, tuple[str, ...]] = {
    "main": ("main*.js", "index*.js"),
    "vendor": ("vendor*.js",),
    "total": ("*.js",),
}
