from __future__ import annotations

from .defaults import DEFAULT_ARTIFACT_GROUPS, DEFAULT_BUDGETS, DEFAULT_REGRESSION_TOLERANCE_PCT
from .store import BudgetConfig, load_budgets, write_budgets

__all__ = [
    "BudgetConfig",
    "DEFAULT_ARTIFACT_GROUPS",
    "DEFAULT_BUDGETS",
    "DEFAULT_REGRESSION_TOLERANCE_PCT",
    "load_budgets",
    "write_budgets",
]
