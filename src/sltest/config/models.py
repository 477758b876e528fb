"""Run configuration models."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from sltest.core.thresholds import ResourceThresholds


@dataclass(frozen=True)
class EngineConfig:
    name: str = "sqlite"
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RunConfig:
    engine: EngineConfig = field(default_factory=EngineConfig)
    thresholds: ResourceThresholds = field(default_factory=ResourceThresholds)
    diff: bool = False
    diff_dir: Path = Path(".")
    verbose: bool = False
    keep_going: bool = False

    def merged(self, **overrides: Any) -> "RunConfig":
        """Return a copy with every non-None override applied."""

        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)


@dataclass(frozen=True)
class RunOptions:
    """Flags given on the command line; ``None`` means "not given"."""

    engine: Optional[str] = None
    engine_options: Mapping[str, Any] = field(default_factory=dict)
    min_disk_write: Optional[int] = None
    max_disk_write: Optional[int] = None
    min_disk_delete: Optional[int] = None
    diff: Optional[bool] = None
    diff_dir: Optional[Path] = None
    verbose: Optional[bool] = None
    keep_going: Optional[bool] = None
