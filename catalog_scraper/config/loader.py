"""Configuration and input loading helpers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .models import ScraperConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")


class ConfigError(RuntimeError):
    """Fatal problem detected before any key is scheduled."""


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file must contain a mapping: {path}")
    return data


def load_config_file(path: Path) -> dict[str, Any]:
    if path.suffix not in CONFIG_EXTENSIONS:
        raise ConfigError(f"Unsupported configuration format: {path.suffix or path.name}")
    try:
        return _read_file(path)
    except FileNotFoundError as exc:
        raise ConfigError(f"Configuration file not found: {path}") from exc
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Failed to read configuration file {path}: {exc}") from exc


def build_config(
    config_file: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ScraperConfig:
    """Merge defaults, an optional config file and explicit overrides.

    ``None`` values in ``overrides`` are ignored so unset CLI options fall
    back to the file or the model defaults.
    """

    payload: dict[str, Any] = {}
    if config_file is not None:
        payload.update(load_config_file(config_file))
    if overrides:
        payload.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return ScraperConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def read_key_list(path: Path) -> list[str]:
    """Return the keys listed in ``path``, one per line.

    Lines are trimmed; blank lines and ``#`` comments are dropped and the
    original order is preserved.
    """

    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigError(f"Key list file not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read key list {path}: {exc}") from exc
    keys: list[str] = []
    for line in content.splitlines():
        text = line.strip()
        if not text or text.startswith("#"):
            continue
        keys.append(text)
    return keys


__all__ = ["CONFIG_EXTENSIONS", "ConfigError", "build_config", "load_config_file", "read_key_list"]
