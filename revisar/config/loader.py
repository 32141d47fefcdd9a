# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader: reads YAML from disk and produces a validated, frozen RevisarConfig.

The loading pipeline is linear:
  1. Read raw text from the file
  2. Parse as YAML into a plain dict
  3. Hand the dict to pydantic for schema validation
  4. Return the frozen config object

Any failure stops the command before it touches a repository.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from revisar.config.exceptions import ConfigLoadError, ConfigValidationError
from revisar.config.schema import (
    ApplyConfig,
    ClusteringConfig,
    GeneralizeConfig,
    RevisarConfig,
)


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed dict.

    Existence is checked up front because yaml.safe_load gives cryptic
    errors on missing files.

    Raises:
        ConfigLoadError: If the file doesn't exist, isn't readable, or isn't valid YAML.
    """
    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {config_path}")

    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )

    return parsed


def load_config(config_path: Path) -> RevisarConfig:
    """
    Load, validate, and freeze a config file into a RevisarConfig.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations (missing fields, wrong types, unknown keys).
    """
    raw_data = _read_yaml_file(config_path)

    try:
        config = RevisarConfig.model_validate(raw_data)
    except ValidationError as err:
        raise ConfigValidationError(
            f"Config validation failed for {config_path}:\n{err}"
        ) from err

    return config


def clustering_or_default(config: RevisarConfig | None) -> ClusteringConfig:
    """The clustering section, or a default one when the file doesn't have it."""
    if config is not None and config.clustering is not None:
        return config.clustering
    return ClusteringConfig(config_version="1.0.0")


def generalize_or_default(config: RevisarConfig | None) -> GeneralizeConfig:
    """The generalize section, or a default one when the file doesn't have it."""
    if config is not None and config.generalize is not None:
        return config.generalize
    return GeneralizeConfig(config_version="1.0.0")


def apply_or_default(config: RevisarConfig | None) -> ApplyConfig:
    """The apply section, or a default one when the file doesn't have it."""
    if config is not None and config.apply is not None:
        return config.apply
    return ApplyConfig(config_version="1.0.0")
