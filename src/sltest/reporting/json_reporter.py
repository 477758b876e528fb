"""JSON reporter emitting structured run results."""
from __future__ import annotations

import datetime as dt
import json
import pathlib
import time
from typing import Any, Dict, Optional, Sequence

import click
from jsonschema import validate

from sltest.core.models import Directive
from sltest.core.results import DirectiveResult, RunResult

from .base import Reporter
from .schema import JSON_SCHEMA_V1, SCHEMA_VERSION


class JsonReporter(Reporter):
    """Writes results to a JSON file (or stdout) validated against the schema."""

    def __init__(self, path: Optional[str] = None) -> None:
        self._path = pathlib.Path(path) if path else None
        self._records: list[Dict[str, Any]] = []
        self._script = ""
        self._total = 0
        self._start_time = 0.0

    def on_start(self, script: str, directives: Sequence[Directive]) -> None:
        self._script = script
        self._total = len(directives)
        self._records.clear()
        self._start_time = time.perf_counter()

    def on_directive_start(self, directive: Directive, index: int, total: int) -> None:
        pass

    def on_directive_result(self, result: DirectiveResult, index: int, total: int) -> None:
        self._records.append(_result_to_dict(result))

    def on_complete(self, run: RunResult) -> None:
        payload = {
            "schema_version": SCHEMA_VERSION,
            "generated_at": dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds"),
            "script": self._script,
            "summary": _build_summary(run, self._total, time.perf_counter() - self._start_time),
            "directives": self._records,
            "violations": list(run.violations),
        }
        validate(instance=payload, schema=JSON_SCHEMA_V1)
        text = json.dumps(payload, indent=2)
        if self._path is None:
            click.echo(text)
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(text, encoding="utf-8")
        except OSError as exc:  # pragma: no cover - filesystem protection
            raise RuntimeError(f"Failed to write JSON report to {self._path}: {exc}") from exc
        click.echo(f"JSON report written to {self._path}")


def _build_summary(run: RunResult, total: int, duration: float) -> Dict[str, Any]:
    return {
        "total": total,
        "executed": len(run.results),
        "passed": sum(1 for result in run.results if result.passed),
        "failed": len(run.failures),
        "halted": run.halted,
        "status": "passed" if run.passed else "failed",
        "duration_s": duration,
        "write_count": run.write_count,
        "delete_count": run.delete_count,
    }


def _result_to_dict(result: DirectiveResult) -> Dict[str, Any]:
    return {
        "location": str(result.loc),
        "kind": result.kind,
        "status": result.status,
        "failure": result.failure.value if result.failure else None,
        "details": result.details,
        "metrics": result.metrics,
    }
