"""YAML configuration for the ``plan`` command line."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import typer
import yaml

DEFAULT_CONFIG_NAME = "plan.yaml"

DEFAULT_CONFIG_TEMPLATE: Dict[str, Any] = {
    "paths": {
        "data": "data",
    },
    "logging": {
        "level": "WARNING",
        "format": "%(levelname)s %(name)s: %(message)s",
    },
}


def _copy_config_template() -> Dict[str, Any]:
    """Return a deep copy of the default configuration template."""
    return copy.deepcopy(DEFAULT_CONFIG_TEMPLATE)


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(config_path: Path, *, required: bool = False) -> Dict[str, Any]:
    """Load YAML configuration layered over the defaults.

    A missing file yields the defaults unless ``required`` is set.
    """
    config = _copy_config_template()
    if not config_path.exists():
        if required:
            raise typer.BadParameter(f"Config file not found: {config_path}")
        return config

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        typer.echo(f"Failed to parse config: {error}", err=True)
        raise typer.Exit(code=1) from error

    if not isinstance(data, dict):
        typer.echo("Configuration must be a mapping at the top level.", err=True)
        raise typer.Exit(code=1)

    return _merge(config, data)


def apply_store_override(config: Dict[str, Any], store: Optional[str]) -> Dict[str, Any]:
    """Point ``paths.data`` at ``store`` when one was given on the command line."""
    if store and store.strip():
        config.setdefault("paths", {})["data"] = store.strip()
    return config
