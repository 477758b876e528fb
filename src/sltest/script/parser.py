"""Parser for sqllogictest scripts.

Records are separated by blank lines::

    statement ok
    CREATE TABLE t1 (v1 INT, v2 INT)

    query rowsort +ensure:hash_join
    SELECT * FROM t1 INNER JOIN t2 ON t1.v1 = t2.v1
    ----
    1 2

Lines starting with ``#`` between records are comments.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Tuple

from sltest.core.errors import ScriptParseError
from sltest.core.models import Directive, Halt, Query, Sleep, SortMode, SourceLocation, Statement

RESULT_SEPARATOR = "----"
_COLUMN_TYPES_RE = re.compile(r"^[A-Z]+$")


def load_script(path: str) -> List[Directive]:
    """Read and parse a script file."""

    script_path = Path(path).expanduser()
    return parse_script(script_path.read_text(encoding="utf-8"), str(path))


def parse_script(text: str, path: str = "<script>") -> List[Directive]:
    lines = text.splitlines()
    directives: List[Directive] = []
    index = 0
    while index < len(lines):
        line = lines[index].strip()
        if not line or line.startswith("#"):
            index += 1
            continue
        loc = SourceLocation(path, index + 1)
        body, index = _read_block(lines, index + 1)
        directives.append(_parse_record(line, body, loc))
    return directives


def _read_block(lines: Sequence[str], start: int) -> Tuple[List[str], int]:
    """Collect lines up to the next blank line; returns (lines, next index)."""

    block: List[str] = []
    index = start
    while index < len(lines) and lines[index].strip():
        block.append(lines[index].rstrip())
        index += 1
    return block, index


def _parse_record(header: str, body: List[str], loc: SourceLocation) -> Directive:
    tokens = header.split()
    keyword = tokens[0]
    if keyword == "halt":
        _expect_no_body(body, loc, keyword)
        return Halt(loc=loc)
    if keyword == "sleep":
        _expect_no_body(body, loc, keyword)
        if len(tokens) != 2 or not tokens[1].isdigit():
            raise ScriptParseError(str(loc), "expected 'sleep <seconds>'")
        return Sleep(loc=loc, seconds=int(tokens[1]))
    if keyword == "statement":
        return _parse_statement(tokens[1:], body, loc)
    if keyword == "query":
        return _parse_query(tokens[1:], body, loc)
    raise ScriptParseError(str(loc), f"unknown record type {keyword!r}")


def _parse_statement(args: List[str], body: List[str], loc: SourceLocation) -> Statement:
    options, args = _split_options(args)
    if len(args) != 1 or args[0] not in {"ok", "error"}:
        raise ScriptParseError(str(loc), "expected 'statement ok' or 'statement error'")
    sql = _join_sql(body, loc)
    return Statement(loc=loc, sql=sql, expect_error=args[0] == "error", extra_options=options)


def _parse_query(args: List[str], body: List[str], loc: SourceLocation) -> Query:
    options, args = _split_options(args)
    sort_mode = SortMode.NONE
    for position, arg in enumerate(args):
        if arg in {mode.value for mode in SortMode}:
            sort_mode = SortMode(arg)
        elif position == 0 and _COLUMN_TYPES_RE.match(arg):
            continue
        else:
            raise ScriptParseError(str(loc), f"unknown query argument {arg!r}")
    sql_lines, expected_lines = _split_result(body)
    sql = _join_sql(sql_lines, loc)
    return Query(
        loc=loc,
        sql=sql,
        expected_result="\n".join(expected_lines or ()),
        sort_mode=sort_mode,
        extra_options=options,
    )


def _split_options(args: List[str]) -> Tuple[Tuple[str, ...], List[str]]:
    options = tuple(arg[1:] for arg in args if arg.startswith("+"))
    rest = [arg for arg in args if not arg.startswith("+")]
    return options, rest


def _split_result(body: List[str]) -> Tuple[List[str], Optional[List[str]]]:
    for position, line in enumerate(body):
        if line.strip() == RESULT_SEPARATOR:
            return body[:position], body[position + 1 :]
    return body, None


def _join_sql(lines: List[str], loc: SourceLocation) -> str:
    sql = "\n".join(lines).strip()
    if not sql:
        raise ScriptParseError(str(loc), "missing SQL text")
    return sql


def _expect_no_body(body: List[str], loc: SourceLocation, keyword: str) -> None:
    if body:
        raise ScriptParseError(str(loc), f"'{keyword}' takes no body")


def iter_descriptions(directives: Sequence[Directive]) -> Iterator[str]:
    for directive in directives:
        yield f"{directive.loc}\n{directive.describe()}"
