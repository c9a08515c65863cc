# test_config.py
from __future__ import annotations

import json
from pathlib import Path

import pytest

from config import LoaderConfig, load_config

_ENV_NAMES = (
    "FRETCHART_CONFIG_PATH",
    "FRETCHART_DEFAULT_RESOLUTION",
    "FRETCHART_LEGACY_HOPO_TRUNCATION",
    "FRETCHART_SONG_INI_NAME",
)


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for env_name in _ENV_NAMES:
        monkeypatch.delenv(env_name, raising=False)


def _write_config(directory: Path, payload: dict) -> Path:
    config_path = directory / "fretchart_config.json"
    config_path.write_text(json.dumps(payload), encoding="utf-8")
    return config_path


def test_defaults() -> None:
    config = LoaderConfig()
    assert config.chart.default_resolution == 192
    assert config.hopo.legacy_truncation is False
    assert config.files.song_ini_name == "song.ini"
    assert config.files.music_extension == ".ogg"
    assert config.files.lyrics_extension == ".lrc"


def test_load_config_from_file(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        {"chart": {"default_resolution": 480}, "hopo": {"legacy_truncation": True}, "files": {"music_extension": "OPUS"}},
    )
    config, resolved_path = load_config(config_path)
    assert resolved_path == config_path
    assert config.chart.default_resolution == 480
    assert config.hopo.legacy_truncation is True
    assert config.files.music_extension == ".opus"


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = _write_config(tmp_path, {"chart": {"default_resolution": 480}})
    monkeypatch.setenv("FRETCHART_DEFAULT_RESOLUTION", "96")
    monkeypatch.setenv("FRETCHART_LEGACY_HOPO_TRUNCATION", "yes")
    monkeypatch.setenv("FRETCHART_SONG_INI_NAME", "Song.INI")
    config, _resolved_path = load_config(config_path)
    assert config.chart.default_resolution == 96
    assert config.hopo.legacy_truncation is True
    assert config.files.song_ini_name == "Song.INI"


def test_malformed_environment_values_are_ignored(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = _write_config(
        tmp_path,
        {"chart": {"default_resolution": 480}, "hopo": {"legacy_truncation": True}, "files": {"music_extension": "mp3"}},
    )
    monkeypatch.setenv("FRETCHART_DEFAULT_RESOLUTION", "--5")
    monkeypatch.setenv("FRETCHART_LEGACY_HOPO_TRUNCATION", "maybe")
    monkeypatch.setenv("FRETCHART_SONG_INI_NAME", "chart.ini")
    config, _resolved_path = load_config(config_path)
    assert config.chart.default_resolution == 480
    assert config.hopo.legacy_truncation is True
    assert config.files.song_ini_name == "chart.ini"
    assert config.files.music_extension == ".mp3"


def test_config_path_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = _write_config(tmp_path, {"chart": {"default_resolution": 240}})
    monkeypatch.setenv("FRETCHART_CONFIG_PATH", str(config_path))
    config, resolved_path = load_config()
    assert resolved_path == config_path
    assert config.chart.default_resolution == 240


def test_invalid_values_are_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        load_config(_write_config(tmp_path, {"chart": {"default_resolution": 0}}))
    with pytest.raises(ValueError):
        load_config(_write_config(tmp_path, {"files": {"song_ini_name": "  "}}))


def test_invalid_json_is_rejected(tmp_path: Path) -> None:
    config_path = tmp_path / "fretchart_config.json"
    config_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(config_path)

    config_path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(config_path)


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__]))
