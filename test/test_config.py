"""
Tests for parameter models and YAML loading.
"""

import pytest
import yaml
from pydantic import ValidationError

from tfchain import constants
from tfchain.common.rotation import RotationFormat
from tfchain.common.units import AngleFormat
from tfchain.config import (
    KeepTranslation,
    OutputParams,
    TransformSetParams,
    get_default_config_path,
    load_params,
    load_yaml_config,
    merge_configs,
)


def test_defaults():
    set_params, output = load_params()
    assert set_params.epsilon == constants.TRANSFORM_EPSILON
    assert set_params.check_invariants is False
    assert output.rotation_format is RotationFormat.QUAT
    assert output.angle_format is AngleFormat.DEG
    assert output.keep_translation is KeepTranslation.AUTO
    assert output.pretty is True


def test_shipped_config_matches_defaults():
    path = get_default_config_path()
    assert path.exists()
    assert load_params(path) == (TransformSetParams(), OutputParams())


def test_load_file_and_overrides(tmp_path):
    path = tmp_path / "params.yaml"
    path.write_text(yaml.safe_dump({
        "transform_set": {"epsilon": 1e-3},
        "output": {"rotation_format": "euler", "angle_format": "rad"},
    }))
    set_params, output = load_params(path, overrides={"output": {"angle_format": "deg", "pretty": False}})
    assert set_params.epsilon == 1e-3
    assert output.rotation_format is RotationFormat.EULER
    assert output.angle_format is AngleFormat.DEG
    assert output.pretty is False


def test_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_yaml_config(path) == {}
    assert load_params(path) == (TransformSetParams(), OutputParams())


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_yaml_config(tmp_path / "nope.yaml")


@pytest.mark.parametrize(
    "config",
    [
        {"transform_set": {"epsilon": 0.0}},
        {"transform_set": {"epsilon": -1.0}},
        {"transform_set": {"tolerance": 1e-3}},
        {"output": {"rotation_format": "gibbs"}},
        {"output": {"keep_translation": "sometimes"}},
    ],
)
def test_invalid_values(config):
    with pytest.raises(ValidationError):
        load_params(overrides=config)


def test_params_are_frozen():
    params = TransformSetParams()
    with pytest.raises(ValidationError):
        params.epsilon = 1.0


def test_merge_configs_deep():
    merged = merge_configs(
        {"output": {"pretty": True, "angle_format": "deg"}, "transform_set": {"epsilon": 1e-6}},
        {"output": {"pretty": False}},
        {},
    )
    assert merged == {
        "output": {"pretty": False, "angle_format": "deg"},
        "transform_set": {"epsilon": 1e-6},
    }


def test_top_level_must_be_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- transform_set\n- output\n")
    with pytest.raises(ValueError):
        load_yaml_config(path)


def test_merge_configs_leaves_inputs_untouched():
    base = {"output": {"pretty": True}}
    override = {"output": {"pretty": False}, "transform_set": {"epsilon": 1e-3}}
    merged = merge_configs(base, override)
    merged["transform_set"]["epsilon"] = 1.0
    assert base == {"output": {"pretty": True}}
    assert override == {"output": {"pretty": False}, "transform_set": {"epsilon": 1e-3}}
