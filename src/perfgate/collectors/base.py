from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..core.clock import utc_now_iso
from ..core.rounding import round_value
from ..models import MetricSample


class CollectorSlot:
    """Result slice owned by exactly one collector.

    Samples appended before an abort or timeout survive, so the orchestrator can
    still report partial results.
    """

    def __init__(self, collector: str) -> None:
        self.collector = collector
        self._samples: list[MetricSample] = []
        self._lock = threading.Lock()

    def emit(
        self,
        metric: str,
        value: float,
        unit: str,
        target: str,
        metadata: dict[str, Any] | None = None,
    ) -> MetricSample:
        sample = MetricSample(
            metric=metric,
            value=round_value(value, unit),
            unit=unit,
            collector=self.collector,
            timestamp=utc_now_iso(),
            target=target,
            metadata=metadata or {},
        )
        with self._lock:
            self._samples.append(sample)
        return sample

    def snapshot(self) -> tuple[MetricSample, ...]:
        with self._lock:
            return tuple(self._samples)


class Collector(Protocol):
    name: str
    timeout_seconds: float

    def enabled(self) -> bool: ...

    def collect(self, slot: CollectorSlot, abort: threading.Event) -> None: ...


@dataclass
class StaticCollector:
    """Collector that replays fixed samples; used for dry runs and tests."""

    name: str
    samples: list[tuple[str, float, str, str]] = field(default_factory=list)
    timeout_seconds: float = 30.0
    error: Exception | None = None

    def enabled(self) -> bool:
        return True

    def collect(self, slot: CollectorSlot, abort: threading.Event) -> None:
        if self.error is not None:
            raise self.error
        for metric, value, unit, target in self.samples:
            if abort.is_set():
                return
            slot.emit(metric, value, unit, target)
