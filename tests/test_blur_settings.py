import pytest

from blur_settings import DEFAULT_SETTINGS, load_settings, merge_settings, parse_radius, parse_sigma


def test_load_settings(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("gaussian:\n  sigma: 2.5\n  radius: 4\n", encoding="utf-8")
    assert load_settings(str(path)) == {"gaussian": {"sigma": 2.5, "radius": 4}}


def test_load_settings_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_settings(str(tmp_path / "missing.yaml"))


def test_load_settings_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_settings(str(path)) == {}


def test_load_settings_rejects_non_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(str(path))


def test_merge_keeps_defaults():
    merged = merge_settings(DEFAULT_SETTINGS, {"gaussian": {"sigma": 3.0}})
    assert merged["gaussian"] == {"sigma": 3.0, "radius": None, "method": "direct"}
    assert merged["output"] == DEFAULT_SETTINGS["output"]
    assert DEFAULT_SETTINGS["gaussian"]["sigma"] == 1.0


def test_merge_replaces_non_dict_values():
    assert merge_settings({"a": {"b": 1}}, {"a": 5}) == {"a": 5}


def test_parse_helpers():
    assert parse_sigma(" 1.5\n") == 1.5
    assert parse_radius("3") == 3
    with pytest.raises(ValueError):
        parse_sigma("wide")
    with pytest.raises(ValueError):
        parse_radius("2.5")
