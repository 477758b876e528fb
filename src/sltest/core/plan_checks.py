"""Plan-shape assertions, timing runs and EXPLAIN dumps driven by extra options.

Assertions match markers in the engine's explain text. A marker that happens
to appear inside a literal in the plan (a string constant, a column alias)
is counted like any other occurrence.
"""
from __future__ import annotations

import io
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

import click
import numpy as np

from sltest.engines.base import CallbackWriter, NoopWriter, SqlEngine, TextWriter

from .errors import UnsupportedOptionError
from .models import CheckOption, CheckOptions
from .options import EnsureOption, ExplainOption, TimingOption, parse_extra_option
from .results import AssertionResult

OPTIMIZER_MARKER = "OPTIMIZER"
EXPLAIN_OPERATORS = "explain (o) "

TIMING_BEGIN = "<<<BEGIN"
TIMING_END = ">>>END"


def contains_after(marker: str, text: str, needle: str) -> bool:
    """True when ``needle`` occurs somewhere after the first ``marker``."""

    index = text.find(marker)
    if index < 0:
        return False
    return needle in text[index + len(marker) :]


def _exactly(marker: str, times: int) -> Callable[[str], bool]:
    return lambda plan: plan.count(marker) == times


def _hash_joins(times: int) -> Callable[[str], bool]:
    # A remaining Filter means the join may legitimately be planned differently.
    return lambda plan: plan.count("HashJoin") == times or "Filter" in plan


@dataclass(frozen=True)
class PlanCheck:
    name: str
    accepts: Callable[[str], bool]
    message: str
    flag: Optional[CheckOption] = None


PLAN_CHECKS: Dict[str, PlanCheck] = {
    check.name: check
    for check in (
        PlanCheck("index_scan", lambda plan: "IndexScan" in plan, "IndexScan not found"),
        PlanCheck(
            "seq_scan",
            lambda plan: "IndexScan" not in plan and not contains_after(OPTIMIZER_MARKER, plan, "Filter"),
            "SeqScan on not indexed columns",
        ),
        PlanCheck("hash_join", _hash_joins(1), "HashJoin not found"),
        PlanCheck(
            "hash_join_no_filter",
            lambda plan: plan.count("HashJoin") == 1 and not contains_after(OPTIMIZER_MARKER, plan, "Filter"),
            "Push all filters into HashJoin",
        ),
        PlanCheck("hash_join*2", _hash_joins(2), "HashJoin should appear exactly twice"),
        PlanCheck("hash_join*3", _hash_joins(3), "HashJoin should appear exactly thrice"),
        PlanCheck("topn", lambda plan: "TopN" in plan, "TopN not found", CheckOption.ENABLE_TOPN_CHECK),
        PlanCheck("topn*2", _exactly("TopN", 2), "TopN should appear exactly twice", CheckOption.ENABLE_TOPN_CHECK),
        PlanCheck("index_join", lambda plan: "NestedIndexJoin" in plan, "NestedIndexJoin not found"),
        PlanCheck(
            "nlj_init_check",
            lambda plan: "NestedLoopJoin" in plan,
            "NestedLoopJoin not found",
            CheckOption.ENABLE_NLJ_CHECK,
        ),
    )
}


def check_column_pruning(plan: str, max_projection: int, max_aggregation: int) -> Optional[str]:
    """Return a failure message, or None when column counts are within bounds.

    Columns are counted from the ``","`` separators in each plan line; only the
    first aggregation line is inspected.
    """

    for line in plan.split("\n"):
        line = line.lstrip()
        if line.startswith("Agg"):
            fragments = line.split("],")
            if len(fragments) != 3:
                return "Agg plan wrong formatting!"
            for fragment in fragments[:2]:
                if fragment.count('",') + 1 > max_aggregation:
                    return "Agg wrong column pruning count!"
            break
        if line.startswith("Projection"):
            if line.count('",') + 1 > max_projection:
                return "Projection wrong column pruning count!"
    return None


class PlanAssertionEngine:
    """Evaluates a directive's extra options against the engine, in order."""

    def __init__(
        self,
        engine: SqlEngine,
        *,
        verbose: bool = False,
        echo: Callable[[str], Any] = click.echo,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._engine = engine
        self._verbose = verbose
        self._echo = echo
        self._clock = clock

    def apply(self, sql: str, options: Sequence[str], check_options: CheckOptions) -> AssertionResult:
        metrics: Dict[str, Any] = {}
        for text in options:
            option = parse_extra_option(text)
            if isinstance(option, EnsureOption):
                failure = self._ensure(sql, option, check_options)
                if failure:
                    return AssertionResult(ok=False, details=failure, metrics=metrics)
            elif isinstance(option, TimingOption):
                metrics.setdefault("timing", {})[option.label] = self._timing(sql, option)
            elif isinstance(option, ExplainOption):
                self._explain(sql, option)
            if self._verbose:
                self._echo(f"[PASS] extra check: {text}")
        return AssertionResult(ok=True, metrics=metrics)

    def explain_operators(self, sql: str) -> str:
        buffer = io.StringIO()
        self._engine.execute(EXPLAIN_OPERATORS + sql, TextWriter(buffer))
        return buffer.getvalue()

    def _ensure(self, sql: str, option: EnsureOption, check_options: CheckOptions) -> Optional[str]:
        if option.check == "column-pruned":
            max_projection, max_aggregation = (int(arg) for arg in option.args)
            return check_column_pruning(self.explain_operators(sql), max_projection, max_aggregation)
        check = PLAN_CHECKS.get(option.check)
        if check is None:
            raise UnsupportedOptionError(option.raw)
        if not check.accepts(self.explain_operators(sql)):
            return check.message
        if check.flag is not None:
            check_options.enable(check.flag)
        return None

    def _timing(self, sql: str, option: TimingOption) -> Dict[str, Any]:
        durations: List[int] = []
        for attempt in range(1, option.repeat + 1):
            start = self._clock()
            self._engine.execute(sql, NoopWriter())
            durations.append(int((self._clock() - start) * 1000))
            self._echo(f"timing pass {attempt} complete")
        self._echo(TIMING_BEGIN)
        self._echo("." + option.label + "".join(f" {ms}" for ms in durations))
        self._echo(TIMING_END)
        if not durations:
            return {"runs_ms": [], "mean_ms": None, "median_ms": None}
        runs = np.asarray(durations, dtype=np.float64)
        return {
            "runs_ms": durations,
            "mean_ms": float(np.mean(runs)),
            "median_ms": float(np.median(runs)),
        }

    def _explain(self, sql: str, option: ExplainOption) -> None:
        statement = f"explain ({option.mode}) {sql}" if option.mode else f"explain {sql}"
        self._engine.execute(statement, CallbackWriter(self._echo))
