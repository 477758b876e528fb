"""Reporter interface definitions."""
from __future__ import annotations

from typing import List, Sequence

from sltest.core.models import Directive
from sltest.core.results import DirectiveResult, RunResult


class Reporter:
    """Interface for output renderers."""

    def on_start(self, script: str, directives: Sequence[Directive]) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def on_directive_start(self, directive: Directive, index: int, total: int) -> None:  # pragma: no cover
        raise NotImplementedError

    def on_directive_result(self, result: DirectiveResult, index: int, total: int) -> None:  # pragma: no cover
        raise NotImplementedError

    def on_complete(self, run: RunResult) -> None:  # pragma: no cover
        raise NotImplementedError


class ReportManager:
    """Dispatches lifecycle callbacks to multiple reporters."""

    def __init__(self, reporters: Sequence[Reporter]) -> None:
        self._reporters = list(reporters)

    def start(self, script: str, directives: Sequence[Directive]) -> None:
        for reporter in self._reporters:
            reporter.on_start(script, directives)

    def directive_start(self, directive: Directive, index: int, total: int) -> None:
        for reporter in self._reporters:
            reporter.on_directive_start(directive, index, total)

    def directive_result(self, result: DirectiveResult, index: int, total: int) -> None:
        for reporter in self._reporters:
            reporter.on_directive_result(result, index, total)

    def complete(self, run: RunResult) -> None:
        for reporter in self._reporters:
            reporter.on_complete(run)

    def reporters(self) -> List[Reporter]:
        return list(self._reporters)
