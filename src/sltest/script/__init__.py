"""Script loading."""

from .parser import iter_descriptions, load_script, parse_script

__all__ = [
    "iter_descriptions",
    "load_script",
    "parse_script",
]
