"""Core models and helpers exposed at the package level."""
from .errors import (
    ConfigError,
    DiagnosticIOError,
    EngineError,
    ScriptParseError,
    SltError,
    UnsupportedOptionError,
)
from .models import (
    CheckOption,
    CheckOptions,
    Directive,
    Halt,
    Query,
    Sleep,
    SortMode,
    SourceLocation,
    Statement,
)
from .results import DirectiveResult, FailureKind, RunResult

__all__ = [
    "CheckOption",
    "CheckOptions",
    "ConfigError",
    "DiagnosticIOError",
    "Directive",
    "DirectiveResult",
    "EngineError",
    "FailureKind",
    "Halt",
    "Query",
    "RunResult",
    "ScriptParseError",
    "Sleep",
    "SltError",
    "SortMode",
    "SourceLocation",
    "Statement",
    "UnsupportedOptionError",
]
