"""Parsing of per-directive extra option tags (``+ensure:...`` and friends)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .errors import UnsupportedOptionError

ENSURE_PREFIX = "ensure:"
TIMING = "timing"
EXPLAIN = "explain"


@dataclass(frozen=True)
class EnsureOption:
    """Plan-shape assertion, e.g. ``ensure:hash_join*2``."""

    raw: str
    check: str
    args: Tuple[str, ...] = tuple()


@dataclass(frozen=True)
class TimingOption:
    raw: str
    repeat: int = 1
    label: str = ""


@dataclass(frozen=True)
class ExplainOption:
    raw: str
    mode: Optional[str] = None


ExtraOption = Union[EnsureOption, TimingOption, ExplainOption]


def parse_extra_option(text: str) -> ExtraOption:
    """Parse one option tag; raises :class:`UnsupportedOptionError` when malformed."""

    if text.startswith(ENSURE_PREFIX):
        return _parse_ensure(text)
    if text == TIMING or text.startswith(TIMING + ":"):
        return _parse_timing(text)
    if text == EXPLAIN or text.startswith(EXPLAIN + ":"):
        mode = text[len(EXPLAIN) + 1 :].strip()
        return ExplainOption(raw=text, mode=mode or None)
    raise UnsupportedOptionError(text)


def _parse_ensure(text: str) -> EnsureOption:
    body = text[len(ENSURE_PREFIX) :]
    if body.startswith("column-pruned"):
        parts = body.split(":")
        if len(parts) != 3:
            raise UnsupportedOptionError(text, "expected ensure:column-pruned:<proj>:<agg>")
        for part in parts[1:]:
            if not _is_int(part):
                raise UnsupportedOptionError(text, f"non-integer column count {part!r}")
        return EnsureOption(raw=text, check=parts[0], args=tuple(parts[1:]))
    if not body:
        raise UnsupportedOptionError(text)
    return EnsureOption(raw=text, check=body)


def _parse_timing(text: str) -> TimingOption:
    repeat = 1
    label = ""
    for arg in text.split(":")[1:]:
        if arg.startswith("x") and _is_int(arg[1:]):
            repeat = int(arg[1:])
        elif arg.startswith("."):
            label = arg[1:]
        else:
            raise UnsupportedOptionError(text, f"unsupported arg: {arg}")
    if repeat < 0:
        raise UnsupportedOptionError(text, "repeat count must not be negative")
    return TimingOption(raw=text, repeat=repeat, label=label)


def _is_int(value: str) -> bool:
    try:
        int(value)
        return True
    except ValueError:
        return False
