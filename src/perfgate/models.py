"""Records passed between the gate phases.

Every record is frozen: collectors emit samples once, the evaluator derives
violations from them, and the report generator freezes everything into a
`GateReport`. Nothing downstream mutates what an upstream phase produced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class Severity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class Category(str, Enum):
    WEB_VITALS = "web-vitals"
    ARTIFACT_SIZE = "artifact-size"
    ENDPOINT_LATENCY = "endpoint-latency"
    COLD_START = "cold-start"

    @property
    def title(self) -> str:
        return _CATEGORY_TITLES[self]


_CATEGORY_TITLES = {
    Category.WEB_VITALS: "Web Vitals",
    Category.ARTIFACT_SIZE: "Artifact Size",
    Category.ENDPOINT_LATENCY: "Endpoint Latency",
    Category.COLD_START: "Cold Start",
}

CATEGORY_ORDER: tuple[Category, ...] = (
    Category.WEB_VITALS,
    Category.ARTIFACT_SIZE,
    Category.ENDPOINT_LATENCY,
    Category.COLD_START,
)


def category_rank(category: str) -> int:
    for idx, item in enumerate(CATEGORY_ORDER):
        if item.value == category:
            return idx
    return len(CATEGORY_ORDER)


def sample_key(metric: str, target: str) -> str:
    return f"{metric}::{target}"


@dataclass(frozen=True)
class Budget:
    metric: str
    unit: str
    budget: float
    warning: float
    regression_tolerance_pct: float | None = None

    def to_json(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"unit": self.unit, "budget": self.budget, "warning": self.warning}
        if self.regression_tolerance_pct is not None:
            payload["regression_tolerance_pct"] = self.regression_tolerance_pct
        return payload

    @classmethod
    def from_json(cls, metric: str, payload: Mapping[str, Any]) -> "Budget":
        tolerance = payload.get("regression_tolerance_pct")
        return cls(
            metric=metric,
            unit=str(payload["unit"]),
            budget=float(payload["budget"]),
            warning=float(payload["warning"]),
            regression_tolerance_pct=None if tolerance is None else float(tolerance),
        )


@dataclass(frozen=True)
class MetricSample:
    metric: str
    value: float
    unit: str
    collector: str
    timestamp: str
    target: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def key(self) -> str:
        return sample_key(self.metric, self.target)

    def to_json(self) -> dict[str, Any]:
        return {
            "metric": self.metric,
            "value": self.value,
            "unit": self.unit,
            "collector": self.collector,
            "timestamp": self.timestamp,
            "target": self.target,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "MetricSample":
        return cls(
            metric=str(payload["metric"]),
            value=float(payload["value"]),
            unit=str(payload["unit"]),
            collector=str(payload["collector"]),
            timestamp=str(payload["timestamp"]),
            target=str(payload["target"]),
            metadata=dict(payload.get("metadata", {})),
        )


@dataclass(frozen=True)
class Violation:
    metric: str
    target: str
    category: str
    measured: float | None
    budget: float | None
    severity: Severity
    unit: str = ""
    reason: str = ""
    warning: float | None = None

    @property
    def is_critical(self) -> bool:
        return self.severity is Severity.CRITICAL

    def to_json(self) -> dict[str, Any]:
        return {
            "metric": self.metric,
            "target": self.target,
            "category": self.category,
            "measured": self.measured,
            "budget": self.budget,
            "warning": self.warning,
            "severity": self.severity.value,
            "unit": self.unit,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class RegressionDelta:
    metric: str
    target: str
    category: str
    unit: str
    baseline: float
    current: float
    delta: float
    relative_change_pct: float | None
    tolerance_pct: float

    def to_json(self) -> dict[str, Any]:
        return {
            "metric": self.metric,
            "target": self.target,
            "category": self.category,
            "unit": self.unit,
            "baseline": self.baseline,
            "current": self.current,
            "delta": self.delta,
            "relative_change_pct": self.relative_change_pct,
            "tolerance_pct": self.tolerance_pct,
        }


@dataclass(frozen=True)
class Baseline:
    created_at: str
    source_revision: str
    environment: str
    samples: Mapping[str, MetricSample]
    schema_version: int = 1

    def to_json(self) -> dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "created_at": self.created_at,
            "source_revision": self.source_revision,
            "environment": self.environment,
            "samples": {key: self.samples[key].to_json() for key in sorted(self.samples)},
        }

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "Baseline":
        samples = {str(k): MetricSample.from_json(v) for k, v in dict(payload.get("samples", {})).items()}
        return cls(
            created_at=str(payload["created_at"]),
            source_revision=str(payload.get("source_revision", "unknown")),
            environment=str(payload.get("environment", "")),
            samples=MappingProxyType(samples),
            schema_version=int(payload.get("schema_version", 1)),
        )


@dataclass(frozen=True)
class CollectorOutcome:
    collector: str
    category: str
    status: str
    samples: tuple[MetricSample, ...] = ()
    error: str | None = None
    duration_ms: int = 0

    def to_json(self) -> dict[str, Any]:
        return {
            "collector": self.collector,
            "category": self.category,
            "status": self.status,
            "sample_count": len(self.samples),
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


@dataclass(frozen=True)
class GateReport:
    run_id: str
    timestamp: str
    environment: str
    source_revision: str
    samples: tuple[MetricSample, ...]
    violations: tuple[Violation, ...]
    regressions: tuple[RegressionDelta, ...]
    collectors: tuple[CollectorOutcome, ...]
    baseline_created: bool
    incomplete: bool
    overall_pass: bool
    schema_version: int = 1

    @property
    def critical_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.CRITICAL)

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.WARNING)

    @property
    def violation_count(self) -> int:
        return len(self.violations)

    def to_json(self) -> dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "tool": "perfgate",
            "run_id": self.run_id,
            "timestamp": self.timestamp,
            "environment": self.environment,
            "source_revision": self.source_revision,
            "status": "pass" if self.overall_pass else "fail",
            "overall_pass": self.overall_pass,
            "incomplete": self.incomplete,
            "baseline_created": self.baseline_created,
            "violation_count": self.violation_count,
            "critical_count": self.critical_count,
            "warning_count": self.warning_count,
            "regression_count": len(self.regressions),
            "samples": [s.to_json() for s in self.samples],
            "violations": [v.to_json() for v in self.violations],
            "regressions": [r.to_json() for r in self.regressions],
            "collectors": [c.to_json() for c in self.collectors],
        }
