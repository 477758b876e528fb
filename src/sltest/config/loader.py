"""YAML loader and validation for run configuration files."""
from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from jsonschema import Draft7Validator

from sltest.core.errors import ConfigError
from sltest.core.thresholds import ResourceThresholds

from .models import EngineConfig, RunConfig, RunOptions

_COUNT = {"type": "integer", "minimum": 0}

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "engine": {
            "type": "object",
            "additionalProperties": False,
            "required": ["name"],
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "options": {"type": "object"},
            },
        },
        "thresholds": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "min_disk_write": _COUNT,
                "max_disk_write": _COUNT,
                "min_disk_delete": _COUNT,
            },
        },
        "diff": {"type": "boolean"},
        "diff_dir": {"type": "string"},
        "verbose": {"type": "boolean"},
        "keep_going": {"type": "boolean"},
    },
}

_validator = Draft7Validator(CONFIG_SCHEMA)


def load_config(path: Optional[str]) -> RunConfig:
    """Load and validate a config file; ``None`` yields the defaults."""

    if path is None:
        return RunConfig()
    config_path = Path(path).expanduser().resolve()
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {config_path} is not valid YAML: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ConfigError("Config file must contain a mapping at the top level")
    errors = sorted(_validator.iter_errors(raw), key=lambda e: list(e.path))
    if errors:
        messages = "; ".join(f"{'/'.join(map(str, err.path)) or 'root'}: {err.message}" for err in errors)
        raise ConfigError(f"Config schema validation failed: {messages}")
    return _build_config(raw, config_path.parent)


def _build_config(raw: Mapping[str, Any], base: Path) -> RunConfig:
    engine_raw = raw.get("engine") or {}
    engine = EngineConfig(
        name=str(engine_raw.get("name", EngineConfig.name)),
        options=dict(engine_raw.get("options") or {}),
    )
    thresholds_raw = raw.get("thresholds") or {}
    thresholds = ResourceThresholds(
        min_disk_write=thresholds_raw.get("min_disk_write"),
        max_disk_write=thresholds_raw.get("max_disk_write"),
        min_disk_delete=thresholds_raw.get("min_disk_delete"),
    )
    diff_dir = Path(".")
    if "diff_dir" in raw:
        diff_dir = Path(raw["diff_dir"])
        if not diff_dir.is_absolute():
            diff_dir = base / diff_dir
    return RunConfig(
        engine=engine,
        thresholds=thresholds,
        diff=bool(raw.get("diff", False)),
        diff_dir=diff_dir,
        verbose=bool(raw.get("verbose", False)),
        keep_going=bool(raw.get("keep_going", False)),
    )


def apply_options(config: RunConfig, options: RunOptions) -> RunConfig:
    """Overlay command-line flags on a loaded config."""

    for name in ("min_disk_write", "max_disk_write", "min_disk_delete"):
        value = getattr(options, name)
        if value is not None and value < 0:
            raise ConfigError(f"{name.replace('_', '-')} must not be negative")
    engine = config.engine
    if options.engine is not None:
        engine = EngineConfig(name=options.engine, options=engine.options)
    if options.engine_options:
        engine = EngineConfig(name=engine.name, options={**engine.options, **options.engine_options})
    thresholds = replace(
        config.thresholds,
        **{
            name: getattr(options, name)
            for name in ("min_disk_write", "max_disk_write", "min_disk_delete")
            if getattr(options, name) is not None
        },
    )
    return config.merged(
        engine=engine,
        thresholds=thresholds,
        diff=options.diff,
        diff_dir=options.diff_dir,
        verbose=options.verbose,
        keep_going=options.keep_going,
    )
