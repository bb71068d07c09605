from __future__ import annotations

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Sequence

from ..collectors.base import Collector, CollectorSlot
from ..core.context import RunContext
from ..core.logging import log_event
from ..errors import CollectorTimeout, PerfGateError
from ..models import CollectorOutcome

MAX_WORKERS = 4


@dataclass(frozen=True)
class CollectionResult:
    outcomes: tuple[CollectorOutcome, ...]
    incomplete: bool


def _run_one(ctx: RunContext, collector: Collector, slot: CollectorSlot, abort: threading.Event) -> None:
    log_event(ctx, "info", "collector", "start", collector=collector.name)
    collector.collect(slot, abort)


def _outcome(
    collector: Collector,
    slot: CollectorSlot,
    status: str,
    started: float,
    error: str | None = None,
) -> CollectorOutcome:
    return CollectorOutcome(
        collector=collector.name,
        category=collector.name,
        status=status,
        samples=slot.snapshot(),
        error=error,
        duration_ms=int((time.monotonic() - started) * 1000),
    )


def _error_text(exc: BaseException) -> str:
    if isinstance(exc, PerfGateError):
        return exc.message
    return f"{type(exc).__name__}: {exc}"


def run_collectors(
    ctx: RunContext,
    collectors: Sequence[Collector],
    run_timeout: float | None = None,
) -> CollectionResult:
    """Run enabled collectors in parallel, one worker each, and gather their outcomes.

    Every collector has its own deadline measured from the start of collection.
    A collector past its deadline has its abort event set and is reported as
    timed out with whatever samples it already emitted. When `run_timeout`
    expires first, every collector still in flight is cut the same way and the
    result is flagged incomplete.
    """
    started = time.monotonic()
    outcomes: dict[str, CollectorOutcome] = {}
    slots: dict[str, CollectorSlot] = {}
    aborts: dict[str, threading.Event] = {}
    active: list[Collector] = []
    for collector in collectors:
        if not collector.enabled():
            outcomes[collector.name] = CollectorOutcome(collector.name, collector.name, "skipped")
            log_event(ctx, "info", "collector", "skipped", collector=collector.name)
            continue
        slots[collector.name] = CollectorSlot(collector.name)
        aborts[collector.name] = threading.Event()
        active.append(collector)

    incomplete = False
    pool = ThreadPoolExecutor(max_workers=max(1, min(MAX_WORKERS, len(active))), thread_name_prefix="perfgate")
    try:
        pending: dict[Future[None], Collector] = {
            pool.submit(_run_one, ctx, c, slots[c.name], aborts[c.name]): c for c in active
        }
        deadlines = {c.name: started + c.timeout_seconds for c in active}
        run_deadline = started + run_timeout if run_timeout else None
        while pending:
            now = time.monotonic()
            horizon = min(deadlines[c.name] for c in pending.values())
            if run_deadline is not None:
                horizon = min(horizon, run_deadline)
            done, _ = wait(list(pending), timeout=max(0.0, horizon - now), return_when=FIRST_COMPLETED)
            for fut in done:
                collector = pending.pop(fut)
                exc = fut.exception()
                if exc is None:
                    outcomes[collector.name] = _outcome(collector, slots[collector.name], "ok", started)
                    log_event(ctx, "info", "collector", "done", collector=collector.name)
                else:
                    message = _error_text(exc)
                    outcomes[collector.name] = _outcome(collector, slots[collector.name], "failed", started, message)
                    log_event(ctx, "error", "collector", "unavailable", collector=collector.name, error=message)
            now = time.monotonic()
            run_expired = run_deadline is not None and now >= run_deadline
            if run_expired and pending:
                incomplete = True
                log_event(ctx, "warning", "gate", "run-timeout", limit_s=run_timeout)
            for fut, collector in list(pending.items()):
                if not run_expired and now < deadlines[collector.name]:
                    continue
                pending.pop(fut)
                fut.cancel()
                aborts[collector.name].set()
                limit = run_timeout if run_expired else collector.timeout_seconds
                err = CollectorTimeout(f"{collector.name} did not finish within {limit:g}s")
                outcomes[collector.name] = _outcome(collector, slots[collector.name], "timeout", started, err.message)
                log_event(ctx, "error", "collector", "timeout", collector=collector.name, limit_s=limit)
            if run_expired:
                break
    finally:
        for event in aborts.values():
            event.set()
        pool.shutdown(wait=False, cancel_futures=True)
    ordered = tuple(outcomes[c.name] for c in collectors if c.name in outcomes)
    return CollectionResult(outcomes=ordered, incomplete=incomplete)
