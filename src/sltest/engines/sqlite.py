"""SQLite engine adapter backed by the standard library driver."""
from __future__ import annotations

import re
import sqlite3
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sltest.core.errors import EngineError
from sltest.core.models import CheckOptions

from .base import ResultWriter, SqlEngine, engine_manager

_EXPLAIN_RE = re.compile(r"^\s*explain\b\s*(?:\((?P<mode>[^)]*)\))?\s*(?P<sql>.*)$", re.IGNORECASE | re.DOTALL)
_FIRST_WORD_RE = re.compile(r"^\s*(\w+)")
_LIMIT_RE = re.compile(r"\blimit\b", re.IGNORECASE)

MEMORY_DATABASE = ":memory:"
NULL_TEXT = "NULL"

EXPLAIN_STAGES = {"b": "BINDER", "p": "PLANNER", "o": "OPTIMIZER"}

# (id, parent, detail) from EXPLAIN QUERY PLAN.
PlanRow = Tuple[int, int, str]


class SqliteEngine(SqlEngine):
    """Runs statements on a SQLite database.

    Without ``database`` every session starts from an empty in-memory catalog;
    an explicit database file is opened as is and keeps its tables between runs.
    Write and delete counts are derived from ``total_changes``: rows removed
    by ``DELETE`` count as deletes, every other change counts as a write.
    Check-option flags are accepted but SQLite has nothing to verify them with.
    """

    name = "sqlite"

    def __init__(self, database: Optional[str] = None, *, in_memory: bool = False, **_: Any) -> None:
        self._database = MEMORY_DATABASE if in_memory or not database else str(database)
        self._conn = sqlite3.connect(self._database, isolation_level=None)
        self._writes = 0
        self._deletes = 0

    @property
    def database(self) -> str:
        return self._database

    def execute(self, sql: str, writer: ResultWriter, check_options: Optional[CheckOptions] = None) -> None:
        match = _EXPLAIN_RE.match(sql)
        if match:
            self._explain(match.group("sql"), match.group("mode"), writer)
            return
        before = self._conn.total_changes
        try:
            cursor = self._conn.execute(sql)
            rows = cursor.fetchall() if cursor.description else []
        except (sqlite3.Error, sqlite3.Warning) as exc:
            raise EngineError(str(exc)) from exc
        self._account(sql, self._conn.total_changes - before)
        if cursor.description:
            writer.write_header([column[0] for column in cursor.description])
        for row in rows:
            writer.write_row([_render_cell(value) for value in row])

    def _explain(self, sql: str, mode: Optional[str], writer: ResultWriter) -> None:
        try:
            rows = self._conn.execute(f"EXPLAIN QUERY PLAN {sql}").fetchall()
        except (sqlite3.Error, sqlite3.Warning) as exc:
            raise EngineError(str(exc)) from exc
        plan = render_plan([(node_id, parent, str(detail)) for node_id, parent, _, detail in rows], sql)
        stages = [stage.strip() for stage in mode.split(",") if stage.strip()] if mode else []
        if not stages:
            for line in plan:
                writer.write_line(line)
            return
        for stage in stages:
            writer.write_line(f"=== {EXPLAIN_STAGES.get(stage.lower(), f'PLAN ({stage})')} ===")
            for line in plan:
                writer.write_line(line)

    def _account(self, sql: str, changed: int) -> None:
        if changed <= 0:
            return
        match = _FIRST_WORD_RE.match(sql)
        if match and match.group(1).lower() == "delete":
            self._deletes += changed
        else:
            self._writes += changed

    def write_count(self) -> int:
        return self._writes

    def delete_count(self) -> int:
        return self._deletes

    def close(self) -> None:
        self._conn.close()


def render_plan(rows: Sequence[PlanRow], sql: str = "") -> List[str]:
    """Render ``EXPLAIN QUERY PLAN`` rows as an operator tree.

    Table accesses become ``SeqScan``/``IndexScan``; sibling accesses are
    folded into a left-deep join whose operator follows the inner table:
    an automatic index means ``HashJoin``, an index lookup ``NestedIndexJoin``
    and anything else ``NestedLoopJoin``. A temp b-tree for ORDER BY is a
    ``TopN`` when the statement has a LIMIT.
    """

    children: Dict[int, List[PlanRow]] = {}
    for row in rows:
        children.setdefault(row[1], []).append(row)
    limited = bool(_LIMIT_RE.search(sql))
    lines: List[str] = []

    def emit(nodes: List[PlanRow], level: int) -> None:
        accesses = [node for node in nodes if _is_access(node[2])]
        for node in nodes:
            if not _is_access(node[2]):
                node_line(node, level)
        if accesses:
            join(accesses, level)

    def join(accesses: List[PlanRow], level: int) -> None:
        if len(accesses) == 1:
            node_line(accesses[0], level)
            return
        inner = accesses[-1]
        lines.append("  " * level + _join_operator(inner[2]))
        join(accesses[:-1], level + 1)
        node_line(inner, level + 1)

    def node_line(node: PlanRow, level: int) -> None:
        lines.append("  " * level + f"{_operator(node[2], limited)} {{ {node[2]} }}")
        emit(children.get(node[0], []), level + 1)

    emit(children.get(0, []), 0)
    return lines


def _is_access(detail: str) -> bool:
    return detail.startswith(("SCAN ", "SEARCH "))


def _uses_index(detail: str) -> bool:
    return "USING AUTOMATIC" not in detail and ("INDEX" in detail or "PRIMARY KEY" in detail)


def _operator(detail: str, limited: bool) -> str:
    if _is_access(detail):
        return "IndexScan" if _uses_index(detail) else "SeqScan"
    if detail.startswith("USE TEMP B-TREE FOR ORDER BY"):
        return "TopN" if limited else "Sort"
    if detail.startswith("USE TEMP B-TREE FOR"):
        return "GroupBy"
    return "Operator"


def _join_operator(detail: str) -> str:
    if "USING AUTOMATIC" in detail:
        return "HashJoin"
    if detail.startswith("SEARCH ") and _uses_index(detail):
        return "NestedIndexJoin"
    return "NestedLoopJoin"


def _render_cell(value: Any) -> str:
    if value is None:
        return NULL_TEXT
    if isinstance(value, bytes):
        return value.hex()
    return str(value)


def register_sqlite_engine() -> None:
    if SqliteEngine.name not in engine_manager:
        engine_manager.register(SqliteEngine.name, SqliteEngine)
