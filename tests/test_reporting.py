from __future__ import annotations

import json
from pathlib import Path

import pytest
from jsonschema import validate

from sltest.core.models import Query, SourceLocation, Statement
from sltest.core.results import DirectiveResult, FailureKind, RunResult
from sltest.reporting import JsonReporter, ReportManager, TerminalReporter
from sltest.reporting.schema import JSON_SCHEMA_V1

LOC = SourceLocation("case.slt", 4)


def _failed_run() -> RunResult:
    result = DirectiveResult(
        loc=LOC,
        kind="query",
        status="failed",
        failure=FailureKind.RESULT_MISMATCH,
        details="wrong result (with sort_mode=rowsort)",
        output="1\n",
        expected="2",
        metrics={"timing": {"q1": {"runs_ms": [1, 2], "mean_ms": 1.5, "median_ms": 1.5}}},
    )
    return RunResult(results=[result])


def test_json_reporter_writes_valid_payload(tmp_path: Path) -> None:
    path = tmp_path / "out" / "report.json"
    reporter = JsonReporter(str(path))
    run = _failed_run()
    manager = ReportManager([reporter])
    manager.start("case.slt", [Query(LOC, "SELECT 1", expected_result="2")])
    manager.directive_result(run.results[0], 1, 1)
    manager.complete(run)
    payload = json.loads(path.read_text(encoding="utf-8"))
    validate(instance=payload, schema=JSON_SCHEMA_V1)
    assert payload["summary"]["status"] == "failed"
    assert payload["summary"]["failed"] == 1
    assert payload["directives"][0]["failure"] == "result-mismatch"
    assert payload["directives"][0]["metrics"]["timing"]["q1"]["runs_ms"] == [1, 2]


def test_json_reporter_prints_without_path(capsys: pytest.CaptureFixture[str]) -> None:
    reporter = JsonReporter()
    run = RunResult(violations=("test incurred 0 times of disk write, which is too low",))
    reporter.on_start("case.slt", [])
    reporter.on_complete(run)
    payload = json.loads(capsys.readouterr().out)
    assert payload["violations"] == list(run.violations)
    assert payload["summary"]["status"] == "failed"


def test_terminal_reporter_prints_location_and_failure(capsys: pytest.CaptureFixture[str]) -> None:
    reporter = TerminalReporter(use_color=False)
    run = _failed_run()
    reporter.on_start("case.slt", [])
    reporter.on_directive_start(Query(LOC, "SELECT 1", expected_result="2"), 1, 1)
    reporter.on_directive_result(run.results[0], 1, 1)
    reporter.on_complete(run)
    out = capsys.readouterr().out
    assert out.startswith("case.slt:4\n")
    assert "SELECT 1" not in out
    assert "FAIL [1/1] case.slt:4 (result-mismatch)" in out
    assert "wrong result (with sort_mode=rowsort)" in out
    assert "Summary: case.slt executed=1 passed=0 failed=1" in out


def test_terminal_reporter_verbose_output(capsys: pytest.CaptureFixture[str]) -> None:
    reporter = TerminalReporter(verbose=True, use_color=False)
    statement = Statement(LOC, "INSERT INTO t1 VALUES (1)", extra_options=("ensure:seq_scan",))
    reporter.on_start("case.slt", [statement])
    reporter.on_directive_start(statement, 1, 1)
    reporter.on_directive_result(
        DirectiveResult(loc=LOC, kind="statement", status="passed", output="1\n"), 1, 1
    )
    reporter.on_directive_result(_failed_run().results[0], 1, 1)
    out = capsys.readouterr().out
    assert "INSERT INTO t1 VALUES (1)" in out
    assert "Extra checks: ['ensure:seq_scan']" in out
    assert "----\n1\n" in out
    assert "--- YOUR RESULT ---\n1\n" in out
    assert "--- EXPECTED RESULT ---\n2" in out
