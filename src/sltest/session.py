"""Runs one script end to end: parse, open the engine, execute, report."""
from __future__ import annotations

import functools
from typing import Any, Callable, List, Optional

import click

from sltest.config import RunConfig
from sltest.core.runner import ScriptRunner
from sltest.engines import engine_manager
from sltest.reporting import JsonReporter, ReportManager, Reporter, TerminalReporter
from sltest.script import iter_descriptions, load_script

NOTHING_TO_TEST = "This is not tested this semester"


def run_script(
    script_path: str,
    config: RunConfig,
    *,
    report_format: str = "terminal",
    report_path: Optional[str] = None,
    use_color: bool = True,
    list_only: bool = False,
) -> int:
    """Execute the script; returns process exit code (0 success, 1 failure)."""

    directives = load_script(script_path)
    if list_only:
        for description in iter_descriptions(directives):
            click.echo(description + "\n")
        return 0
    echo = _console(report_format, report_path)
    if not directives:
        echo(NOTHING_TO_TEST)
        return 0
    reports = ReportManager(_build_reporters(config, report_format, report_path, use_color))
    engine = engine_manager.create(config.engine.name, **dict(config.engine.options))
    try:
        runner = ScriptRunner(
            engine,
            verbose=config.verbose,
            dump_diff=config.diff,
            diff_dir=config.diff_dir,
            thresholds=config.thresholds,
            keep_going=config.keep_going,
            echo=echo,
        )
        reports.start(script_path, directives)
        run = runner.run(
            directives,
            on_start=reports.directive_start,
            on_result=reports.directive_result,
        )
        reports.complete(run)
    finally:
        engine.close()
    return run.exit_code


def _build_reporters(
    config: RunConfig,
    report_format: str,
    report_path: Optional[str],
    use_color: bool,
) -> List[Reporter]:
    if report_format == "json":
        reporters: List[Reporter] = [JsonReporter(report_path)]
        if report_path:
            reporters.insert(0, TerminalReporter(verbose=config.verbose, use_color=use_color))
        return reporters
    return [TerminalReporter(verbose=config.verbose, use_color=use_color)]


def _console(report_format: str, report_path: Optional[str]) -> Callable[[str], Any]:
    # stdout carries only the JSON payload when no report path is given.
    if report_format == "json" and not report_path:
        return functools.partial(click.echo, err=True)
    return click.echo
