"""Run configuration loading and CLI overlay."""

from .loader import CONFIG_SCHEMA, apply_options, load_config
from .models import EngineConfig, RunConfig, RunOptions

__all__ = [
    "CONFIG_SCHEMA",
    "EngineConfig",
    "RunConfig",
    "RunOptions",
    "apply_options",
    "load_config",
]
