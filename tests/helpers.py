from __future__ import annotations

from typing import Any

from perfgate.models import Budget, MetricSample

FIXED_TS = "2026-01-01T00:00:00.000Z"


def make_sample(
    metric: str,
    value: float,
    unit: str = "ms",
    collector: str = "web-vitals",
    target: str = "https://app.example.test",
    **metadata: Any,
) -> MetricSample:
    return MetricSample(
        metric=metric,
        value=value,
        unit=unit,
        collector=collector,
        timestamp=FIXED_TS,
        target=target,
        metadata=metadata,
    )


def budgets(*rows: Budget) -> dict[str, Budget]:
    return {b.metric: b for b in rows}
