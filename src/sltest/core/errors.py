"""Exception types raised across sltest."""
from __future__ import annotations


class SltError(RuntimeError):
    """Base class for harness errors."""


class UnsupportedOptionError(SltError):
    """An extra option tag is unknown or malformed."""

    def __init__(self, option: str, reason: str | None = None) -> None:
        message = f"unsupported extra option: {option}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.option = option


class EngineError(SltError):
    """The SQL engine rejected or failed to execute a statement."""


class DiagnosticIOError(SltError):
    """Diff artifacts could not be written."""


class ScriptParseError(SltError):
    """The test script is malformed."""

    def __init__(self, location: str, message: str) -> None:
        super().__init__(f"{location}: {message}")
        self.location = location


class ConfigError(ValueError):
    """The run configuration is invalid."""
