"""Test suite for ConfigManager and PipelineSettings."""

import json
import pytest

import yaml
import toml

from denudmap.core.config import (
    ConfigManager,
    ConfigValidationError,
    PipelineSettings,
)


def test_defaults_match_workflow():
    """Defaults reproduce the literals of the denudation workflow."""
    settings = PipelineSettings.from_config(ConfigManager())

    assert settings.observations_asset.endswith("/denudation_all_features")
    assert settings.target == "log_denud"
    assert len(settings.predictors) == 14
    assert settings.predictors[0] == "Elevation"
    assert settings.predictors[-1] == "Lithology"
    assert settings.reference_band == "Elevation"
    assert settings.split_fraction == 0.8
    assert settings.rf == {
        "number_of_trees": 500,
        "min_leaf_population": 1,
        "bag_fraction": 0.9,
        "seed": 0,
    }
    assert settings.scale == 1000
    assert settings.resample_method == "bilinear"
    assert settings.export.description == "Global_Denudation_Rate_1km"
    assert settings.export.file_format == "GeoTIFF"
    assert settings.export.max_pixels == 1e13
    assert settings.vis.min == 0
    assert settings.vis.max == 500
    assert settings.vis.palette == ("purple", "blue", "cyan", "green", "yellow", "red")


def test_load_json(tmp_path):
    """Ensure JSON files load correctly and default values are returned for missing keys."""
    cfg_file = tmp_path / "cfg.json"
    cfg_file.write_text(json.dumps({"split_fraction": 0.7, "b": "two"}), encoding="utf-8")

    cfg = ConfigManager(str(cfg_file))

    assert cfg.get("split_fraction") == 0.7
    assert cfg.get("b") == "two"
    assert cfg.get("missing", "def") == "def"


def test_load_yaml_merges_nested_sections(tmp_path):
    """Nested rf/export sections are updated key by key."""
    cfg_file = tmp_path / "cfg.yaml"
    data = {"rf": {"number_of_trees": 50}, "export": {"folder": "denudation"}}
    cfg_file.write_text(yaml.safe_dump(data), encoding="utf-8")

    cfg = ConfigManager()
    cfg.load(str(cfg_file))

    assert cfg.get("rf")["number_of_trees"] == 50
    assert cfg.get("rf")["bag_fraction"] == 0.9
    settings = PipelineSettings.from_config(cfg)
    assert settings.export.folder == "denudation"
    assert settings.export.description == "Global_Denudation_Rate_1km"


def test_load_toml(tmp_path):
    """Check TOML file loading and value retrieval functionality."""
    cfg_file = tmp_path / "cfg.toml"
    cfg_file.write_text(toml.dumps({"scale": 5000, "asset_root": "users/me"}), encoding="utf-8")

    cfg = ConfigManager()
    cfg.load(str(cfg_file))

    assert cfg.get("scale") == 5000
    assert cfg.get("asset_root") == "users/me"


def test_load_unsupported_extension(tmp_path):
    """Confirm that loading unsupported file extensions raises ConfigValidationError."""
    cfg_file = tmp_path / "cfg.txt"
    cfg_file.write_text("whatever", encoding="utf-8")

    with pytest.raises(ConfigValidationError):
        ConfigManager().load(str(cfg_file))


def test_load_invalid_content(tmp_path):
    """Ensure invalid JSON content triggers a ConfigValidationError."""
    cfg_file = tmp_path / "bad.json"
    cfg_file.write_text("not a json!", encoding="utf-8")

    with pytest.raises(ConfigValidationError):
        ConfigManager().load(str(cfg_file))


def test_load_non_mapping(tmp_path):
    cfg_file = tmp_path / "list.yaml"
    cfg_file.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigValidationError):
        ConfigManager().load(str(cfg_file))


def test_palette_from_comma_string():
    cfg = ConfigManager()
    cfg.update({"vis": {"palette": "black, white"}})

    settings = PipelineSettings.from_config(cfg)

    assert settings.vis.palette == ("black", "white")
    assert settings.vis.to_ee()["palette"] == ["black", "white"]


@pytest.mark.parametrize(
    "override",
    [
        {"split_fraction": 1.2},
        {"reference_band": "Nope"},
        {"predictors": ["Elevation", "log_denud"]},
        {"scale": 0},
        {"scale": "wide"},
    ],
)
def test_invalid_settings(override):
    cfg = ConfigManager()
    cfg.update(override)

    with pytest.raises(ConfigValidationError):
        PipelineSettings.from_config(cfg)
