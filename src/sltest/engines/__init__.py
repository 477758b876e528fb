"""Engine interface exports."""
from .base import CallbackWriter, EngineManager, NoopWriter, ResultWriter, SqlEngine, TextWriter, engine_manager
from .sqlite import SqliteEngine, register_sqlite_engine

__all__ = [
    "CallbackWriter",
    "EngineManager",
    "NoopWriter",
    "ResultWriter",
    "SqlEngine",
    "SqliteEngine",
    "TextWriter",
    "engine_manager",
    "register_builtin_engines",
]


def register_builtin_engines() -> None:
    register_sqlite_engine()
