from __future__ import annotations

import fnmatch
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from ..core.rounding import bytes_to_kb
from ..errors import CollectorUnavailable
from .base import CollectorSlot

NAME = "artifact-size"
SKIP_DIRS = frozenset({"node_modules", ".git"})


def group_sizes(build_dir: Path, groups: Mapping[str, tuple[str, ...]]) -> dict[str, tuple[int, int]]:
    """Sum byte sizes per group as `{group: (bytes, file_count)}`.

    A file counts towards every group whose patterns match its name.
    """
    totals = {name: [0, 0] for name in groups}
    for dirpath, dirnames, filenames in os.walk(build_dir):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            if not path.is_file():
                continue
            size = path.stat().st_size
            for name, patterns in groups.items():
                if any(fnmatch.fnmatch(filename, pattern) for pattern in patterns):
                    totals[name][0] += size
                    totals[name][1] += 1
    return {name: (row[0], row[1]) for name, row in totals.items()}


@dataclass
class ArtifactSizeCollector:
    build_dir: Path | None
    groups: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    timeout_seconds: float = 30.0
    name: str = NAME

    def enabled(self) -> bool:
        return self.build_dir is not None

    def collect(self, slot: CollectorSlot, abort: threading.Event) -> None:
        if self.build_dir is None or not self.build_dir.is_dir():
            raise CollectorUnavailable(f"build output directory not found: {self.build_dir}")
        if not self.groups:
            raise CollectorUnavailable("no artifact groups configured")
        sizes = group_sizes(self.build_dir, self.groups)
        if abort.is_set():
            return
        for group in sorted(sizes):
            size_bytes, count = sizes[group]
            slot.emit(
                f"artifact-size-{group}",
                bytes_to_kb(size_bytes),
                "KB",
                group,
                {"bytes": size_bytes, "files": count, "patterns": list(self.groups[group])},
            )
