from __future__ import annotations

import threading
from dataclasses import dataclass, field
from statistics import fmean

from ..core import network
from .base import CollectorSlot

NAME = "endpoint-latency"


def probe_metadata(probes: list[network.HttpProbe]) -> dict[str, object]:
    return {
        "samples": len(probes),
        "aggregation": "mean",
        "status_codes": [p.status for p in probes],
        "status_ok": all(p.ok for p in probes),
        "errors": sorted({p.error for p in probes if p.error}),
    }


@dataclass
class EndpointLatencyCollector:
    endpoints: list[str] = field(default_factory=list)
    health_path: str = "health"
    probe_samples: int = 1
    request_timeout: float = 10.0
    timeout_seconds: float = 30.0
    name: str = NAME

    def enabled(self) -> bool:
        return bool(self.endpoints)

    def collect(self, slot: CollectorSlot, abort: threading.Event) -> None:
        for endpoint in self.endpoints:
            url = network.join_url(endpoint, self.health_path)
            probes: list[network.HttpProbe] = []
            for _ in range(max(1, self.probe_samples)):
                if abort.is_set():
                    return
                probes.append(network.timed_get(url, timeout_seconds=self.request_timeout))
            meta = probe_metadata(probes)
            failed = sum(1 for p in probes if not p.ok)
            slot.emit("endpoint-response-time", fmean(p.elapsed_ms for p in probes), "ms", endpoint, meta)
            slot.emit("endpoint-error-rate", failed / len(probes) * 100, "%", endpoint, meta)
