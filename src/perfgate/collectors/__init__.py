from __future__ import annotations

from .artifact_size import ArtifactSizeCollector
from .base import Collector, CollectorSlot, StaticCollector
from .cold_start import ColdStartCollector
from .endpoint_latency import EndpointLatencyCollector
from .web_vitals import WebVitalsCollector

__all__ = [
    "ArtifactSizeCollector",
    "ColdStartCollector",
    "Collector",
    "CollectorSlot",
    "EndpointLatencyCollector",
    "StaticCollector",
    "WebVitalsCollector",
]
