from __future__ import annotations

from .manager import (
    BaselineComparison,
    compare,
    find_regressions,
    load_existing,
    read_baseline,
    update_baseline,
    write_baseline,
)

__all__ = [
    "BaselineComparison",
    "compare",
    "find_regressions",
    "load_existing",
    "read_baseline",
    "update_baseline",
    "write_baseline",
]
