"""Post-run checks of the engine's cumulative I/O counters."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from sltest.engines.base import SqlEngine


@dataclass(frozen=True)
class ResourceThresholds:
    """Optional bounds; ``None`` means the bound is not checked."""

    min_disk_write: Optional[int] = None
    max_disk_write: Optional[int] = None
    min_disk_delete: Optional[int] = None

    def is_empty(self) -> bool:
        return self.min_disk_write is None and self.max_disk_write is None and self.min_disk_delete is None


def check_thresholds(engine: SqlEngine, thresholds: ResourceThresholds) -> List[str]:
    """Return one message per violated bound."""

    violations: List[str] = []
    if thresholds.min_disk_write is not None:
        writes = engine.write_count()
        if writes < thresholds.min_disk_write:
            violations.append(f"test incurred {writes} times of disk write, which is too low")
    if thresholds.max_disk_write is not None:
        writes = engine.write_count()
        if writes > thresholds.max_disk_write:
            violations.append(f"test incurred {writes} times of disk write, which is too high")
    if thresholds.min_disk_delete is not None:
        deletes = engine.delete_count()
        if deletes < thresholds.min_disk_delete:
            violations.append(f"test incurred {deletes} times of disk deletion, which is too low")
    return violations
