"""Engine adapter abstractions."""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Optional, Sequence, TextIO

from sltest.core.errors import ConfigError
from sltest.core.models import CheckOptions


class ResultWriter:
    """Sink for rows and free-form text produced by an engine."""

    def write_header(self, columns: Sequence[str]) -> None:
        pass

    def write_row(self, cells: Sequence[str]) -> None:
        pass

    def write_line(self, text: str) -> None:
        pass


class NoopWriter(ResultWriter):
    """Discards everything."""


class TextWriter(ResultWriter):
    """Renders rows as ``separator``-joined lines on a text stream."""

    def __init__(self, stream: TextIO, *, separator: str = "\t", with_header: bool = False) -> None:
        self._stream = stream
        self._separator = separator
        self._with_header = with_header

    def write_header(self, columns: Sequence[str]) -> None:
        if self._with_header:
            self.write_line(self._separator.join(columns))

    def write_row(self, cells: Sequence[str]) -> None:
        self.write_line(self._separator.join(cells))

    def write_line(self, text: str) -> None:
        self._stream.write(text)
        self._stream.write("\n")


class CallbackWriter(ResultWriter):
    """Hands each rendered line to ``callback`` (``click.echo`` for console output)."""

    def __init__(self, callback: Callable[[str], Any], *, separator: str = "\t") -> None:
        self._callback = callback
        self._separator = separator

    def write_row(self, cells: Sequence[str]) -> None:
        self._callback(self._separator.join(cells))

    def write_line(self, text: str) -> None:
        self._callback(text)


class SqlEngine:
    """Base interface for engine adapters.

    ``execute`` raises :class:`sltest.core.errors.EngineError` on failure.
    The counters are cumulative since the session started.
    """

    name: str = ""

    def execute(self, sql: str, writer: ResultWriter, check_options: Optional[CheckOptions] = None) -> None:
        raise NotImplementedError

    def write_count(self) -> int:
        raise NotImplementedError

    def delete_count(self) -> int:
        raise NotImplementedError

    def close(self) -> None:
        pass


EngineFactory = Callable[..., SqlEngine]


class EngineManager:
    """Registry for engine factories keyed by name."""

    def __init__(self) -> None:
        self._factories: Dict[str, EngineFactory] = {}

    def register(self, name: str, factory: EngineFactory) -> None:
        if name in self._factories:
            raise ValueError(f"Engine '{name}' already registered")
        self._factories[name] = factory

    def create(self, name: str, **options: Any) -> SqlEngine:
        factory = self._factories.get(name)
        if factory is None:
            available = ", ".join(sorted(self._factories)) or "none"
            raise ConfigError(f"no engine registered as {name!r} (available: {available})")
        return factory(**options)

    def names(self) -> Iterable[str]:
        return tuple(sorted(self._factories))

    def __contains__(self, name: object) -> bool:
        return name in self._factories


engine_manager = EngineManager()
