"""Utilities for comparing engine output with expected query results."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence, Tuple

from .errors import DiagnosticIOError
from .models import SortMode

RESULT_LOG = "result.log"
EXPECTED_LOG = "expected.log"


@dataclass
class ComparisonResult:
    """Normalized lines on both sides plus the verdict."""

    passed: bool
    produced: List[str] = field(default_factory=list)
    expected: List[str] = field(default_factory=list)


def split_lines(text: str) -> List[str]:
    """Split on newlines, right-trim each line and drop the empty ones."""

    lines = []
    for line in text.split("\n"):
        line = line.rstrip()
        if line:
            lines.append(line)
    return lines


def compare_results(produced: str, expected: str, sort_mode: SortMode) -> ComparisonResult:
    produced_lines = split_lines(produced)
    expected_lines = split_lines(expected)
    if sort_mode == SortMode.ROWSORT:
        # Sorted sequences, not sets: duplicate rows must match in count.
        produced_lines.sort()
        expected_lines.sort()
    return ComparisonResult(
        passed=produced_lines == expected_lines,
        produced=produced_lines,
        expected=expected_lines,
    )


def dump_diff(comparison: ComparisonResult, directory: Path) -> Tuple[Path, Path]:
    """Write both normalized sides to ``result.log`` / ``expected.log``."""

    result_path = directory / RESULT_LOG
    expected_path = directory / EXPECTED_LOG
    _write_lines(result_path, comparison.produced)
    _write_lines(expected_path, comparison.expected)
    return result_path, expected_path


def _write_lines(path: Path, lines: Sequence[str]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
    except OSError as exc:
        raise DiagnosticIOError(f"cannot open file {path}: {exc}") from exc
