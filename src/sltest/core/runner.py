"""Script runner dispatching directives to the engine and scoring them."""
from __future__ import annotations

import io
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

import click

from sltest.engines.base import SqlEngine, TextWriter

from .comparator import compare_results, dump_diff
from .errors import EngineError, UnsupportedOptionError
from .models import CheckOptions, Directive, Halt, Query, Sleep, Statement, directive_kind
from .plan_checks import PlanAssertionEngine
from .results import DirectiveResult, FailureKind, RunResult
from .thresholds import ResourceThresholds, check_thresholds

QUERY_SEPARATOR = " "


class ScriptRunner:
    """Executes directives sequentially, stopping at the first failure.

    With ``keep_going`` every directive runs and all failures are collected;
    an unsupported extra option still aborts the run.
    """

    def __init__(
        self,
        engine: SqlEngine,
        *,
        verbose: bool = False,
        dump_diff: bool = False,
        diff_dir: Optional[Path] = None,
        thresholds: Optional[ResourceThresholds] = None,
        keep_going: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        echo: Callable[[str], Any] = click.echo,
    ) -> None:
        self._engine = engine
        self._dump_diff = dump_diff
        self._diff_dir = diff_dir or Path(".")
        self._thresholds = thresholds or ResourceThresholds()
        self._keep_going = keep_going
        self._sleep = sleep
        self._plan_checks = PlanAssertionEngine(engine, verbose=verbose, echo=echo)

    def run(
        self,
        directives: Sequence[Directive],
        *,
        on_start: Optional[Callable[[Directive, int, int], None]] = None,
        on_result: Optional[Callable[[DirectiveResult, int, int], None]] = None,
    ) -> RunResult:
        run = RunResult()
        total = len(directives)
        for index, directive in enumerate(directives, start=1):
            if on_start:
                on_start(directive, index, total)
            result = self._execute(directive)
            run.results.append(result)
            if on_result:
                on_result(result, index, total)
            if result.status == "halted":
                run.halted = True
                return run
            if not result.passed and (not self._keep_going or result.failure == FailureKind.UNSUPPORTED_OPTION):
                return run
        if run.failures or self._thresholds.is_empty():
            return run
        run.write_count = self._engine.write_count()
        run.delete_count = self._engine.delete_count()
        run.violations = tuple(check_thresholds(self._engine, self._thresholds))
        return run

    def _execute(self, directive: Directive) -> DirectiveResult:
        if isinstance(directive, Halt):
            return DirectiveResult(loc=directive.loc, kind="halt", status="halted")
        if isinstance(directive, Sleep):
            self._sleep(directive.seconds)
            return DirectiveResult(loc=directive.loc, kind="sleep", status="passed")
        if isinstance(directive, Statement):
            return self._run_statement(directive)
        if isinstance(directive, Query):
            return self._run_query(directive)
        raise TypeError(f"unsupported directive: {directive!r}")

    def _run_statement(self, statement: Statement) -> DirectiveResult:
        check_options = CheckOptions()
        buffer = io.StringIO()
        metrics: Dict[str, Any] = {}
        try:
            extra = self._plan_checks.apply(statement.sql, statement.extra_options, check_options)
            metrics = extra.metrics
            if not extra.ok:
                return _failed(statement, FailureKind.ASSERTION_FAILURE, _extra_failure(extra.details), metrics)
            self._engine.execute(statement.sql, TextWriter(buffer), check_options)
        except UnsupportedOptionError as exc:
            return _failed(statement, FailureKind.UNSUPPORTED_OPTION, str(exc), metrics)
        except EngineError as exc:
            if not statement.expect_error:
                return _failed(statement, FailureKind.UNEXPECTED_ERROR, f"unexpected error: {exc}", metrics)
            return _passed(statement, details=f"statement errored with {exc}", metrics=metrics)
        if statement.expect_error:
            return _failed(statement, FailureKind.MISSING_ERROR, "statement should error", metrics, buffer.getvalue())
        return _passed(statement, output=buffer.getvalue(), metrics=metrics)

    def _run_query(self, query: Query) -> DirectiveResult:
        check_options = CheckOptions()
        buffer = io.StringIO()
        metrics: Dict[str, Any] = {}
        try:
            extra = self._plan_checks.apply(query.sql, query.extra_options, check_options)
            metrics = extra.metrics
            if not extra.ok:
                return _failed(query, FailureKind.ASSERTION_FAILURE, _extra_failure(extra.details), metrics)
            self._engine.execute(query.sql, TextWriter(buffer, separator=QUERY_SEPARATOR), check_options)
        except UnsupportedOptionError as exc:
            return _failed(query, FailureKind.UNSUPPORTED_OPTION, str(exc), metrics)
        except EngineError as exc:
            return _failed(query, FailureKind.UNEXPECTED_ERROR, f"unexpected error: {exc}", metrics)
        produced = buffer.getvalue()
        comparison = compare_results(produced, query.expected_result, query.sort_mode)
        if comparison.passed:
            return _passed(query, output=produced, expected=query.expected_result, metrics=metrics)
        if self._dump_diff:
            result_path, expected_path = dump_diff(comparison, self._diff_dir)
            details = (
                f"wrong result (with sort_mode={query.sort_mode}) dumped to "
                f"{result_path.name} and {expected_path.name}"
            )
        else:
            details = (
                f"wrong result (with sort_mode={query.sort_mode}), use `-d` to store your result "
                "and expected result in a file"
            )
        result = _failed(query, FailureKind.RESULT_MISMATCH, details, metrics, produced)
        result.expected = query.expected_result
        return result


def _extra_failure(details: str) -> str:
    return f"{details}; failed to process extra options"


def _passed(
    directive: Directive,
    *,
    details: str = "",
    output: Optional[str] = None,
    expected: Optional[str] = None,
    metrics: Optional[Dict[str, Any]] = None,
) -> DirectiveResult:
    return DirectiveResult(
        loc=directive.loc,
        kind=directive_kind(directive),
        status="passed",
        details=details,
        output=output,
        expected=expected,
        metrics=dict(metrics or {}),
    )


def _failed(
    directive: Directive,
    failure: FailureKind,
    details: str,
    metrics: Optional[Dict[str, Any]] = None,
    output: Optional[str] = None,
) -> DirectiveResult:
    return DirectiveResult(
        loc=directive.loc,
        kind=directive_kind(directive),
        status="failed",
        failure=failure,
        details=details,
        output=output,
        metrics=dict(metrics or {}),
    )
