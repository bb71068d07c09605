"""First-invocation latency of function endpoints after an idle gap.

The idle gap only raises the odds of hitting a cold instance; whether the
platform actually recycled the runtime is not observable from here, so the
result is noisy by nature. The gap is configurable per run.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from ..core import network
from ..errors import CollectorUnavailable
from .base import CollectorSlot
from .endpoint_latency import probe_metadata

NAME = "cold-start"


def function_url(function: str, functions_url: str | None, ping_path: str) -> str:
    if function.startswith(("http://", "https://")):
        base = function
    elif functions_url:
        base = network.join_url(functions_url, function)
    else:
        raise CollectorUnavailable(f"function `{function}` is not a URL and no functions base URL is configured")
    return network.join_url(base, ping_path)


@dataclass
class ColdStartCollector:
    functions: list[str] = field(default_factory=list)
    functions_url: str | None = None
    ping_path: str = "ping"
    idle_seconds: float = 2.0
    request_timeout: float = 30.0
    measure_warm: bool = True
    timeout_seconds: float = 30.0
    name: str = NAME

    def enabled(self) -> bool:
        return bool(self.functions)

    def collect(self, slot: CollectorSlot, abort: threading.Event) -> None:
        for function in self.functions:
            url = function_url(function, self.functions_url, self.ping_path)
            if abort.wait(self.idle_seconds):
                return
            cold = network.timed_get(url, timeout_seconds=self.request_timeout)
            meta = {**probe_metadata([cold]), "idle_seconds": self.idle_seconds}
            slot.emit("function-cold-start", cold.elapsed_ms, "ms", function, meta)
            if not self.measure_warm or abort.is_set():
                continue
            warm = network.timed_get(url, timeout_seconds=self.request_timeout)
            slot.emit("function-execution-time", warm.elapsed_ms, "ms", function, probe_metadata([warm]))
