import json
import sys

import pytest

from dc6harvester.core.config import Config, DEFAULT_CONFIG, parse_color
from dc6harvester.core.paths import Paths


def test_defaults_when_file_missing(tmp_path):
    config = Config(str(tmp_path / "config.json"))

    assert config.load() is False
    assert config.output_format == "png"
    assert config.image_quality == -1
    assert config.transparent_rgba == (0, 0, 0, 0)
    assert config.decode_threads == 1


def test_save_and_load_round_trip(tmp_path):
    path = tmp_path / "nested" / "config.json"
    config = Config(str(path))
    config.palette_path = "units_pal.dat"
    config.output_format = ".JPG"
    config.image_quality = 85
    config.separate_dir = True

    assert config.save()
    loaded = Config(str(path))
    assert loaded.load()

    assert loaded.palette_path == "units_pal.dat"
    assert loaded.output_format == "jpg"
    assert loaded.image_quality == 85
    assert loaded.separate_dir is True


def test_unknown_keys_are_ignored(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"output_format": "bmp", "bogus": 1}), encoding="utf-8")

    config = Config(str(path))
    config.load()

    assert config.output_format == "bmp"
    assert "bogus" not in config.data


def test_invalid_json_keeps_defaults(tmp_path, capsys):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    config = Config(str(path))

    assert config.load() is False
    assert config.data == DEFAULT_CONFIG
    assert "[ERROR]" in capsys.readouterr().out


@pytest.mark.parametrize("value", [-2, 101])
def test_quality_range(tmp_path, value):
    config = Config(str(tmp_path / "c.json"))
    with pytest.raises(ValueError):
        config.image_quality = value


def test_decode_threads_clamped(tmp_path):
    config = Config(str(tmp_path / "c.json"))
    config.decode_threads = 100
    assert config.decode_threads == 16
    config.decode_threads = 0
    assert config.decode_threads == 1


def test_transparent_color(tmp_path):
    config = Config(str(tmp_path / "c.json"))
    config.transparent_color = "magenta"
    assert config.transparent_rgba == (255, 0, 255, 255)

    with pytest.raises(ValueError):
        config.transparent_color = "not-a-color"


def test_parse_color():
    assert parse_color("#11223344") == (0x11, 0x22, 0x33, 0x44)
    assert parse_color("#000") == (0, 0, 0, 255)
    assert parse_color("nope") is None


@pytest.mark.parametrize("value", [500, -5, "high", 50.5, True])
def test_invalid_quality_in_file_falls_back_to_default(tmp_path, capsys, value):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"image_quality": value, "output_format": "bmp"}))
    config = Config(str(path))

    assert config.load()
    assert config.image_quality == -1
    assert config.output_format == "bmp"
    assert "[WARN]" in capsys.readouterr().out


def test_valid_quality_in_file_is_kept(tmp_path, capsys):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"image_quality": 0}))
    config = Config(str(path))

    assert config.load()
    assert config.image_quality == 0
    assert "[WARN]" not in capsys.readouterr().out


@pytest.mark.parametrize("value, expected", [(64, 16), (0, 1), ("many", 1)])
def test_decode_threads_in_file_are_clamped(tmp_path, value, expected):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"decode_threads": value}))
    config = Config(str(path))

    assert config.load()
    assert config.decode_threads == expected


def test_user_data_dir_is_created_only_on_save(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    monkeypatch.setattr(Paths, "_user_data_dir", None)

    data_dir = tmp_path / Paths.APP_NAME
    assert Paths.get_user_data_dir() == str(data_dir)
    assert Paths.get_config_path() == str(data_dir / "config.json")
    assert not data_dir.exists()

    config = Config()
    assert config.config_path == str(data_dir / "config.json")
    assert config.save()
    assert (data_dir / "config.json").is_file()
