"""
Configuration models and loaders for tfchain.

Bridges YAML parameter files and the Pydantic models below.

Usage:
    from tfchain.config import load_params

    set_params, output_params = load_params("/path/to/tfchain.yaml")
    tset = TransformSet(params=set_params)
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field

from tfchain import constants
from tfchain.common.rotation import RotationFormat
from tfchain.common.units import AngleFormat


class KeepTranslation(str, Enum):
    """auto keeps what the input had; always fills zeros; discard drops it."""
    AUTO = "auto"
    ALWAYS = "always"
    DISCARD = "discard"


class TransformSetParams(BaseModel):
    """Parameters of the transform index."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    epsilon: float = Field(default=constants.TRANSFORM_EPSILON, gt=0.0)
    check_invariants: bool = False


class OutputParams(BaseModel):
    """How transforms are written back out."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    rotation_format: RotationFormat = RotationFormat.QUAT
    angle_format: AngleFormat = AngleFormat.DEG
    keep_translation: KeepTranslation = KeepTranslation.AUTO
    pretty: bool = True


def load_yaml_config(config_path: str | Path) -> Dict[str, Any]:
    """
    Read a parameter file into a nested dict of sections.

    An empty file reads as no sections at all.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist
        ValueError: If the top level of the file is not a mapping
        yaml.YAMLError: If the file does not parse
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"parameter file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"parameter file {config_path} must hold a mapping of sections")
    return data


def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
    """
    Layer parameter dicts into a fresh one; a key set in a later layer wins.

    Sections present in several layers are combined key by key, so an
    override can change ``output.pretty`` without restating the rest of
    ``output``. The inputs are not modified.
    """
    result: Dict[str, Any] = {}
    for config in configs:
        if config:
            _deep_merge(result, config)
    return result


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Write ``override`` into ``base`` in place, descending into shared sections."""
    for key, value in override.items():
        if isinstance(value, dict):
            section = base.get(key)
            if not isinstance(section, dict):
                section = base[key] = {}
            _deep_merge(section, value)
        else:
            base[key] = value


def load_params(
    base_path: Optional[str | Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Tuple[TransformSetParams, OutputParams]:
    """
    Load and validate parameters from a YAML file.

    The file holds two optional sections, ``transform_set`` and ``output``.

    Args:
        base_path: Path to the YAML parameter file (defaults only if None)
        overrides: Optional nested dictionary applied on top of the file

    Raises:
        ValidationError: If a section holds unknown keys or invalid values
    """
    file_config: Dict[str, Any] = {}
    if base_path:
        file_config = load_yaml_config(base_path)

    merged = merge_configs(file_config, overrides or {})

    set_params = TransformSetParams(**(merged.get(constants.TRANSFORM_SET_SECTION) or {}))
    output_params = OutputParams(**(merged.get(constants.OUTPUT_SECTION) or {}))
    return set_params, output_params


def get_default_config_path() -> Path:
    """Path to the parameter file shipped with the package."""
    return Path(__file__).parent / "data" / "tfchain.yaml"
