from __future__ import annotations

from typing import List

import pytest

from conftest import FakeEngine
from sltest.core.errors import EngineError, UnsupportedOptionError
from sltest.core.models import CheckOption, CheckOptions
from sltest.core.plan_checks import (
    EXPLAIN_OPERATORS,
    PlanAssertionEngine,
    check_column_pruning,
    contains_after,
)

SQL = "SELECT * FROM t1"


def _checker(plan: str, *, verbose: bool = False) -> tuple[PlanAssertionEngine, FakeEngine, List[str]]:
    engine = FakeEngine(plans={SQL: plan})
    lines: List[str] = []
    return PlanAssertionEngine(engine, verbose=verbose, echo=lines.append), engine, lines


def _ensure(plan: str, option: str) -> bool:
    checker, _, _ = _checker(plan)
    return checker.apply(SQL, [option], CheckOptions()).ok


def _joins(count: int) -> str:
    return "\n".join(["Projection"] + ["  HashJoin { type=Inner }"] * count + ["    SeqScan { table=t1 }"])


def test_contains_after_requires_marker() -> None:
    assert contains_after("OPTIMIZER", "=== OPTIMIZER ===\nFilter", "Filter")
    assert not contains_after("OPTIMIZER", "Filter\n=== OPTIMIZER ===\nSeqScan", "Filter")
    assert not contains_after("OPTIMIZER", "Filter", "Filter")


@pytest.mark.parametrize("times", [1, 2, 3])
def test_hash_join_counts_are_exact(times: int) -> None:
    option = "ensure:hash_join" if times == 1 else f"ensure:hash_join*{times}"
    assert _ensure(_joins(times), option)
    assert not _ensure(_joins(times + 1), option)
    if times > 1:
        assert not _ensure(_joins(times - 1), option)


def test_hash_join_relaxed_by_filter() -> None:
    plan = _joins(0) + "\n  Filter { predicate=true }"
    assert _ensure(plan, "ensure:hash_join")
    assert _ensure(plan, "ensure:hash_join*3")


def test_hash_join_no_filter_rejects_filter_after_optimizer() -> None:
    clean = "=== PLANNER ===\nFilter\n=== OPTIMIZER ===\nHashJoin"
    assert _ensure(clean, "ensure:hash_join_no_filter")
    dirty = "=== OPTIMIZER ===\nFilter\n  HashJoin"
    assert not _ensure(dirty, "ensure:hash_join_no_filter")
    assert not _ensure("=== OPTIMIZER ===\nHashJoin\nHashJoin", "ensure:hash_join_no_filter")


def test_scan_checks() -> None:
    assert _ensure("IndexScan { index=t1v1 }", "ensure:index_scan")
    assert not _ensure("SeqScan { table=t1 }", "ensure:index_scan")
    assert _ensure("Filter\n=== OPTIMIZER ===\nSeqScan { table=t1 }", "ensure:seq_scan")
    assert not _ensure("=== OPTIMIZER ===\nIndexScan", "ensure:seq_scan")
    assert not _ensure("=== OPTIMIZER ===\nFilter\n  SeqScan", "ensure:seq_scan")


def test_topn_enables_runtime_check() -> None:
    checker, _, _ = _checker("TopN { n=3 }\n  SeqScan")
    check_options = CheckOptions()
    assert checker.apply(SQL, ["ensure:topn"], check_options).ok
    assert CheckOption.ENABLE_TOPN_CHECK in check_options


def test_topn_twice_is_exact() -> None:
    assert _ensure("TopN\n TopN", "ensure:topn*2")
    assert not _ensure("TopN", "ensure:topn*2")
    assert not _ensure("TopN\nTopN\nTopN", "ensure:topn*2")


def test_failed_check_leaves_flags_unset() -> None:
    checker, _, _ = _checker("SeqScan")
    check_options = CheckOptions()
    result = checker.apply(SQL, ["ensure:topn"], check_options)
    assert not result.ok
    assert result.details == "TopN not found"
    assert len(check_options) == 0


def test_join_operator_checks() -> None:
    assert _ensure("NestedIndexJoin", "ensure:index_join")
    assert not _ensure("NestedLoopJoin", "ensure:index_join")
    checker, _, _ = _checker("NestedLoopJoin { type=Left }")
    check_options = CheckOptions()
    assert checker.apply(SQL, ["ensure:nlj_init_check"], check_options).ok
    assert CheckOption.ENABLE_NLJ_CHECK in check_options


def test_column_pruning_counts() -> None:
    plan = "\n".join(
        [
            'Projection { exprs=["#0.0", "#0.1"] }',
            '  Agg { types=["count_star", "min"], aggregates=["#0.1", "#0.2"], group_by=["#0.0"] }',
        ]
    )
    assert check_column_pruning(plan, 2, 2) is None
    assert check_column_pruning(plan, 1, 2) == "Projection wrong column pruning count!"
    assert check_column_pruning(plan, 2, 1) == "Agg wrong column pruning count!"


def test_column_pruning_rejects_malformed_agg() -> None:
    assert check_column_pruning("Agg { broken }", 5, 5) == "Agg plan wrong formatting!"


def test_column_pruning_stops_at_first_agg() -> None:
    plan = "\n".join(
        [
            'Agg { types=["min"], aggregates=["#0.1"], group_by=[] }',
            'Projection { exprs=["#0.0", "#0.1", "#0.2"] }',
        ]
    )
    assert check_column_pruning(plan, 1, 1) is None


def test_column_pruning_option_uses_explain() -> None:
    checker, engine, _ = _checker('Projection { exprs=["#0.0", "#0.1", "#0.2"] }')
    result = checker.apply(SQL, ["ensure:column-pruned:2:2"], CheckOptions())
    assert not result.ok
    assert engine.calls[0][0] == EXPLAIN_OPERATORS + SQL


def test_timing_runs_repeatedly_and_prints_block() -> None:
    checker, engine, lines = _checker("")
    result = checker.apply(SQL, ["timing:x3:.mylabel"], CheckOptions())
    assert result.ok
    assert engine.executed(SQL) == 3
    begin = lines.index("<<<BEGIN")
    assert lines[begin + 2] == ">>>END"
    label, *durations = lines[begin + 1].split()
    assert label == ".mylabel"
    assert len(durations) == 3
    assert all(token.isdigit() for token in durations)
    assert [line for line in lines if line.startswith("timing pass")] == [
        "timing pass 1 complete",
        "timing pass 2 complete",
        "timing pass 3 complete",
    ]
    assert len(result.metrics["timing"]["mylabel"]["runs_ms"]) == 3


def test_timing_uses_clock() -> None:
    engine = FakeEngine()
    ticks = iter([0.0, 0.25, 1.0, 1.5])
    lines: List[str] = []
    checker = PlanAssertionEngine(engine, echo=lines.append, clock=lambda: next(ticks))
    result = checker.apply(SQL, ["timing:x2"], CheckOptions())
    assert ". 250 500" in lines
    assert result.metrics["timing"][""]["median_ms"] == pytest.approx(375.0)


def test_timing_zero_passes_prints_empty_block() -> None:
    checker, engine, lines = _checker("")
    result = checker.apply(SQL, ["timing:x0:.idle"], CheckOptions())
    assert result.ok
    assert engine.executed(SQL) == 0
    assert lines == ["<<<BEGIN", ".idle", ">>>END"]
    assert result.metrics["timing"]["idle"] == {"runs_ms": [], "mean_ms": None, "median_ms": None}


def test_explain_streams_plan() -> None:
    checker, engine, lines = _checker("SeqScan { table=t1 }")
    assert checker.apply(SQL, ["explain:o"], CheckOptions()).ok
    assert engine.calls[0][0] == f"explain (o) {SQL}"
    assert lines == ["SeqScan { table=t1 }"]
    checker.apply(SQL, ["explain"], CheckOptions())
    assert engine.calls[1][0] == f"explain {SQL}"


def test_options_evaluated_in_order() -> None:
    checker, engine, _ = _checker("SeqScan")
    result = checker.apply(SQL, ["ensure:index_scan", "timing:x2"], CheckOptions())
    assert not result.ok
    assert engine.executed(SQL) == 0


def test_verbose_prints_pass_markers() -> None:
    checker, _, lines = _checker("IndexScan", verbose=True)
    checker.apply(SQL, ["ensure:index_scan"], CheckOptions())
    assert lines == ["[PASS] extra check: ensure:index_scan"]


def test_unknown_ensure_raises() -> None:
    checker, _, _ = _checker("SeqScan")
    with pytest.raises(UnsupportedOptionError):
        checker.apply(SQL, ["ensure:merge_join"], CheckOptions())


def test_engine_errors_propagate() -> None:
    engine = FakeEngine(errors=[SQL])
    checker = PlanAssertionEngine(engine, echo=lambda _: None)
    with pytest.raises(EngineError):
        checker.apply(SQL, ["ensure:index_scan"], CheckOptions())
