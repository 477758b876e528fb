"""Terminal reporter rendering progress and summaries."""
from __future__ import annotations

import time
from typing import Sequence

import click
from colorama import Fore, Style, init as colorama_init

from sltest.core.models import Directive, Query, Statement
from sltest.core.results import DirectiveResult, RunResult

from .base import Reporter

STATUS_COLORS = {
    "passed": Fore.GREEN,
    "halted": Fore.CYAN,
    "failed": Fore.RED,
}

STATUS_LABELS = {
    "passed": "PASS",
    "halted": "HALT",
    "failed": "FAIL",
}


class TerminalReporter(Reporter):
    """Human-readable reporter that streams to stdout."""

    def __init__(self, *, verbose: bool = False, use_color: bool = True) -> None:
        self._verbose = verbose
        self._use_color = use_color
        self._start_time = 0.0
        self._script = ""
        if use_color:
            colorama_init()

    def on_start(self, script: str, directives: Sequence[Directive]) -> None:
        self._script = script
        self._start_time = time.perf_counter()

    def on_directive_start(self, directive: Directive, index: int, total: int) -> None:
        click.echo(str(directive.loc))
        if not self._verbose:
            return
        if isinstance(directive, (Statement, Query)):
            click.echo(directive.sql)
            if directive.extra_options:
                click.echo(f"Extra checks: {list(directive.extra_options)}")
        else:
            click.echo(directive.describe())

    def on_directive_result(self, result: DirectiveResult, index: int, total: int) -> None:
        if self._verbose:
            self._print_output(result)
        if result.passed:
            return
        reason = result.failure.value if result.failure else result.status
        click.echo(f"{self._label(result.status)} [{index}/{total}] {result.loc} ({reason})")
        click.echo(f"    {result.details}")

    def on_complete(self, run: RunResult) -> None:
        duration = time.perf_counter() - self._start_time
        for violation in run.violations:
            click.echo(f"{self._label('failed')} {violation}")
        status = "passed" if run.passed else "failed"
        passed = sum(1 for result in run.results if result.passed)
        summary = (
            f"Summary: {self._script} executed={len(run.results)} passed={passed} "
            f"failed={len(run.failures)} halted={run.halted} duration={duration:.2f}s"
        )
        click.echo(self._styled(summary, status))

    def _print_output(self, result: DirectiveResult) -> None:
        if result.kind == "statement":
            if result.output is not None:
                click.echo(f"----\n{result.output}")
            elif result.details and result.passed:
                click.echo(result.details)
        elif result.kind == "query" and result.output is not None:
            click.echo(f"--- YOUR RESULT ---\n{result.output}")
            click.echo(f"--- EXPECTED RESULT ---\n{result.expected or ''}")

    def _label(self, status: str) -> str:
        return self._styled(STATUS_LABELS.get(status, status.upper()), status)

    def _styled(self, text: str, status: str) -> str:
        color = STATUS_COLORS.get(status)
        if not self._use_color or not color:
            return text
        return f"{color}{text}{Style.RESET_ALL}"
