from __future__ import annotations

from .evaluate import collector_violations, evaluate, status_violations
from .orchestrator import GateOutcome, GatePhase, run_gate

__all__ = ["GateOutcome", "GatePhase", "collector_violations", "evaluate", "run_gate", "status_violations"]
