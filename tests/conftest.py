from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

import pytest

from sltest import bootstrap
from sltest.core.errors import EngineError
from sltest.core.models import CheckOptions
from sltest.engines.base import ResultWriter, SqlEngine


class FakeEngine(SqlEngine):
    """Scripted engine: canned rows per SQL, canned plan text per explained SQL."""

    name = "fake"

    def __init__(
        self,
        rows: Optional[Mapping[str, Sequence[Sequence[str]]]] = None,
        plans: Optional[Mapping[str, str]] = None,
        errors: Iterable[str] = (),
        writes: int = 0,
        deletes: int = 0,
    ) -> None:
        self.rows: Dict[str, Sequence[Sequence[str]]] = dict(rows or {})
        self.plans: Dict[str, str] = dict(plans or {})
        self.errors = set(errors)
        self.writes = writes
        self.deletes = deletes
        self.calls: List[Tuple[str, Optional[FrozenSet]]] = []
        self.closed = False

    def execute(self, sql: str, writer: ResultWriter, check_options: Optional[CheckOptions] = None) -> None:
        self.calls.append((sql, check_options.frozen() if check_options is not None else None))
        if sql.startswith("explain"):
            target = sql.split(") ", 1)[1] if sql.startswith("explain (") else sql[len("explain ") :]
            if target in self.errors:
                raise EngineError(f"cannot plan {target}")
            for line in self.plans.get(target, "").split("\n"):
                writer.write_line(line)
            return
        if sql in self.errors:
            raise EngineError(f"cannot execute {sql}")
        for row in self.rows.get(sql, ()):
            writer.write_row(list(row))

    def executed(self, sql: str) -> int:
        return sum(1 for call, _ in self.calls if call == sql)

    def write_count(self) -> int:
        return self.writes

    def delete_count(self) -> int:
        return self.deletes

    def close(self) -> None:
        self.closed = True


@pytest.fixture(scope="session", autouse=True)
def setup_sltest_engines() -> None:
    """Register built-in engines once for the entire test session."""

    bootstrap()


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()
