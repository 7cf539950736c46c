from __future__ import annotations

import json
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import ProcessingConfig

"""Config loader / saver.

Responsibilities:
- Load a YAML config file (e.g. config/cgrain.yml)
- Validate it against the bundled JSON schema (config_schema.json)
- Apply defaults for every key that is absent
- Write a ProcessingConfig back to YAML in the same shape
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "load_config",
    "save_config",
    "config_from_dict",
    "config_to_dict",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or if the
            data fails validation (wrong types, unknown keys, ...).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def config_from_dict(data: dict[str, Any]) -> ProcessingConfig:
    """Validate a plain mapping and build a ProcessingConfig (defaults applied)."""
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    _validate_config_schema(data)
    known = {f.name for f in fields(ProcessingConfig)}
    return ProcessingConfig(**{k: v for k, v in data.items() if k in known})


def config_to_dict(config: ProcessingConfig) -> dict[str, Any]:
    """Plain mapping for YAML output (tuples become lists)."""
    out: dict[str, Any] = {}
    for key, value in asdict(config).items():
        out[key] = list(value) if isinstance(value, tuple) else value
    return out


def load_config(path: Path) -> ProcessingConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    return config_from_dict(data)


def save_config(config: ProcessingConfig, path: Path) -> Path:
    """Write ``config`` as YAML, creating parent directories as needed."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        text = yaml.safe_dump(config_to_dict(config), sort_keys=False, allow_unicode=True)
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"failed to write config {path}: {e}") from e
    return path
