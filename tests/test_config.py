"""
Tests for feature-flag settings in petscore/config.py
"""

import json

from petscore.config import (
    DEFAULT_FEATURE_FLAGS,
    INGREDIENT_MAX,
    NUTRITION_MAX,
    VALUE_MAX,
    FeatureFlags,
    get_settings_path,
    load_feature_flags,
    save_feature_flags,
)


def test_subscore_maxima_sum_to_100():
    assert INGREDIENT_MAX + NUTRITION_MAX + VALUE_MAX == 100.0


def test_default_flags():
    flags = FeatureFlags()
    assert flags == DEFAULT_FEATURE_FLAGS
    assert not flags.dry_matter_normalization
    assert not flags.energy_based_pricing
    assert flags.position_weighting
    assert flags.split_ingredient_penalty


def test_with_overrides_ignores_none():
    flags = FeatureFlags().with_overrides(dry_matter_normalization=True, position_weighting=None)
    assert flags.dry_matter_normalization
    assert flags.position_weighting


def test_to_dict():
    assert FeatureFlags().to_dict() == {
        "dry_matter_normalization": False,
        "energy_based_pricing": False,
        "position_weighting": True,
        "split_ingredient_penalty": True,
    }


def test_missing_settings_file_gives_defaults(tmp_path):
    assert load_feature_flags(tmp_path / "settings.json") == DEFAULT_FEATURE_FLAGS


def test_nested_value_layout(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "scoring": {
            "dry_matter_normalization": {"value": True},
            "split_ingredient_penalty": {"value": False},
            "unknown_flag": {"value": True},
        },
        "ui": {"theme": {"value": "dark"}},
    }), encoding="utf-8")
    flags = load_feature_flags(path)
    assert flags.dry_matter_normalization
    assert not flags.split_ingredient_penalty
    assert flags.position_weighting


def test_non_boolean_values_ignored(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"scoring": {"energy_based_pricing": {"value": "yes"}}}), encoding="utf-8")
    assert not load_feature_flags(path).energy_based_pricing


def test_invalid_json_gives_defaults(tmp_path, caplog):
    path = tmp_path / "settings.json"
    path.write_text("{oops", encoding="utf-8")
    assert load_feature_flags(path) == DEFAULT_FEATURE_FLAGS
    assert "Ignoring unreadable settings file" in caplog.text


def test_env_var_selects_file(tmp_path, monkeypatch):
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"scoring": {"energy_based_pricing": {"value": True}}}), encoding="utf-8")
    monkeypatch.setenv("PETSCORE_SETTINGS", str(path))
    assert get_settings_path() == path
    assert load_feature_flags().energy_based_pricing


def test_save_preserves_other_sections(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"ui": {"theme": {"value": "dark"}}}), encoding="utf-8")
    flags = FeatureFlags(energy_based_pricing=True)
    assert save_feature_flags(flags, path)
    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["ui"] == {"theme": {"value": "dark"}}
    assert saved["scoring"]["energy_based_pricing"] == {"value": True}
    assert load_feature_flags(path) == flags
