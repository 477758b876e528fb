"""Result data structures produced by the script runner."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from .models import SourceLocation


class FailureKind(str, Enum):
    UNSUPPORTED_OPTION = "unsupported-option"
    ASSERTION_FAILURE = "assertion-failure"
    UNEXPECTED_ERROR = "unexpected-error"
    MISSING_ERROR = "missing-error"
    RESULT_MISMATCH = "result-mismatch"


@dataclass(frozen=True)
class AssertionResult:
    ok: bool
    details: str = ""
    metrics: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DirectiveResult:
    """Outcome of executing a single directive."""

    loc: SourceLocation
    kind: str
    status: str
    failure: Optional[FailureKind] = None
    details: str = ""
    output: Optional[str] = None
    expected: Optional[str] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.status in {"passed", "halted"}


@dataclass
class RunResult:
    """Outcome of a whole script run."""

    results: List[DirectiveResult] = field(default_factory=list)
    halted: bool = False
    violations: Sequence[str] = field(default_factory=tuple)
    write_count: Optional[int] = None
    delete_count: Optional[int] = None

    @property
    def failures(self) -> List[DirectiveResult]:
        return [result for result in self.results if not result.passed]

    @property
    def passed(self) -> bool:
        return not self.failures and not self.violations

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1
