"""Core dataclasses shared across sltest subsystems."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterator, Set, Tuple, Union


class SortMode(str, Enum):
    """How query output is ordered before comparison."""

    NONE = "nosort"
    ROWSORT = "rowsort"

    def __str__(self) -> str:
        return self.value


class CheckOption(str, Enum):
    """Runtime verification flags an engine honours for a single execution."""

    ENABLE_TOPN_CHECK = "topn_check"
    ENABLE_NLJ_CHECK = "nlj_check"


@dataclass
class CheckOptions:
    """Verification flags scoped to one directive.

    A fresh instance is built for every directive so flags enabled by one
    assertion never reach an unrelated statement.
    """

    flags: Set[CheckOption] = field(default_factory=set)

    def enable(self, flag: CheckOption) -> None:
        self.flags.add(flag)

    def frozen(self) -> FrozenSet[CheckOption]:
        return frozenset(self.flags)

    def __contains__(self, flag: object) -> bool:
        return flag in self.flags

    def __iter__(self) -> Iterator[CheckOption]:
        return iter(sorted(self.flags, key=lambda item: item.value))

    def __len__(self) -> int:
        return len(self.flags)


@dataclass(frozen=True)
class SourceLocation:
    path: str
    line: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"


@dataclass(frozen=True)
class Halt:
    """Stops the run successfully."""

    loc: SourceLocation

    def describe(self) -> str:
        return "halt"


@dataclass(frozen=True)
class Sleep:
    loc: SourceLocation
    seconds: int

    def describe(self) -> str:
        return f"sleep {self.seconds}"


@dataclass(frozen=True)
class Statement:
    """SQL expected to succeed, or to fail when ``expect_error`` is set."""

    loc: SourceLocation
    sql: str
    expect_error: bool = False
    extra_options: Tuple[str, ...] = tuple()

    def describe(self) -> str:
        header = "statement error" if self.expect_error else "statement ok"
        return _with_options(header, self.extra_options) + "\n" + self.sql


@dataclass(frozen=True)
class Query:
    """SQL whose textual output must match ``expected_result``."""

    loc: SourceLocation
    sql: str
    expected_result: str
    sort_mode: SortMode = SortMode.NONE
    extra_options: Tuple[str, ...] = tuple()

    def describe(self) -> str:
        header = _with_options(f"query {self.sort_mode}", self.extra_options)
        return f"{header}\n{self.sql}\n----\n{self.expected_result}"


Directive = Union[Halt, Sleep, Statement, Query]


def directive_kind(directive: Directive) -> str:
    return type(directive).__name__.lower()


def _with_options(header: str, options: Tuple[str, ...]) -> str:
    if not options:
        return header
    return header + " " + " ".join(f"+{opt}" for opt in options)
