from __future__ import annotations

import pytest

from sltest.core.errors import UnsupportedOptionError
from sltest.core.options import EnsureOption, ExplainOption, TimingOption, parse_extra_option


def test_parse_ensure_options() -> None:
    assert parse_extra_option("ensure:hash_join*2") == EnsureOption(raw="ensure:hash_join*2", check="hash_join*2")
    pruned = parse_extra_option("ensure:column-pruned:3:2")
    assert isinstance(pruned, EnsureOption)
    assert pruned.check == "column-pruned"
    assert pruned.args == ("3", "2")


def test_parse_timing_defaults_and_arguments() -> None:
    assert parse_extra_option("timing") == TimingOption(raw="timing", repeat=1, label="")
    option = parse_extra_option("timing:x3:.mylabel")
    assert option == TimingOption(raw="timing:x3:.mylabel", repeat=3, label="mylabel")
    assert parse_extra_option("timing:x0").repeat == 0
    assert parse_extra_option("timing:.q1").label == "q1"


def test_parse_explain_mode() -> None:
    assert parse_extra_option("explain") == ExplainOption(raw="explain", mode=None)
    assert parse_extra_option("explain:o,s") == ExplainOption(raw="explain:o,s", mode="o,s")


@pytest.mark.parametrize(
    "text",
    [
        "verify",
        "ensure:",
        "ensure:column-pruned:3",
        "ensure:column-pruned:a:b",
        "timing:3",
        "timing:xfast",
        "timing:x-1",
        "timingx",
        "explained",
    ],
)
def test_malformed_options_are_unsupported(text: str) -> None:
    with pytest.raises(UnsupportedOptionError) as exc:
        parse_extra_option(text)
    assert text in str(exc.value)
