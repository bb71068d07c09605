"""Centralized network boundary helpers."""

from __future__ import annotations

import socket
import time
import urllib.error
import urllib.request
from dataclasses import dataclass

from .. import __version__


@dataclass(frozen=True)
class HttpProbe:
    status: int
    elapsed_ms: float
    error: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def http_get(url: str, timeout_seconds: float = 5) -> tuple[int, str]:
    req = urllib.request.Request(url, method="GET", headers={"User-Agent": f"perfgate/{__version__}"})
    with urllib.request.urlopen(req, timeout=timeout_seconds) as resp:  # nosec - caller controls endpoint
        return int(resp.status), resp.read().decode("utf-8", errors="replace")


def timed_get(url: str, timeout_seconds: float = 5) -> HttpProbe:
    """Issue one GET and return its status and wall-clock latency.

    HTTP error statuses are a result, not an exception. Transport failures
    (refused connection, DNS, timeout) are reported as status 0.
    """
    started = time.perf_counter()
    try:
        status, _ = http_get(url, timeout_seconds=timeout_seconds)
        error = None
    except urllib.error.HTTPError as exc:
        status, error = int(exc.code), f"http {exc.code}"
    except (urllib.error.URLError, socket.timeout, ConnectionError, TimeoutError) as exc:
        status, error = 0, str(getattr(exc, "reason", exc))
    elapsed_ms = (time.perf_counter() - started) * 1000
    return HttpProbe(status=status, elapsed_ms=elapsed_ms, error=error)


def join_url(base: str, path: str) -> str:
    if not path:
        return base
    return f"{base.rstrip('/')}/{path.lstrip('/')}"
