# test_song_ini.py
from __future__ import annotations

from pathlib import Path

import pytest

from song_ini import SongIni, chart_hopo_threshold, midi_hopo_threshold, parse_song_ini, read_song_ini


def test_parse_song_ini() -> None:
    ini = parse_song_ini(
        "[Song]\nname = Through the Fire\nartist = Band\nfrets = Charter\nhopofreq = 3\neighthnote_hopo = True\n"
    )
    assert ini == SongIni(hopo_frequency=3, eighth_note_hopo=True, name="Through the Fire", artist="Band", charter="Charter")


def test_parse_song_ini_ignores_bad_values() -> None:
    ini = parse_song_ini("[song]\nhopofreq = lots\neighthnote_hopo = maybe\n")
    assert ini is not None
    assert ini.hopo_frequency is None
    assert ini.eighth_note_hopo is None


def test_parse_song_ini_without_song_section() -> None:
    assert parse_song_ini("[other]\nname = x\n") is None
    assert parse_song_ini("no section header here") is None


def test_read_song_ini(tmp_path: Path) -> None:
    assert read_song_ini(tmp_path) is None
    (tmp_path / "song.ini").write_bytes("[song]\nname = Caf\xe9\n".encode("latin-1"))
    ini = read_song_ini(tmp_path)
    assert ini is not None
    assert ini.name == "Caf\xe9"


@pytest.mark.parametrize(
    "frequency, expected",
    [(None, 120), (0, 240), (1, 180), (2, 120), (3, 90), (4, 60), (9, 120)],
)
def test_chart_hopo_threshold(frequency, expected) -> None:
    assert chart_hopo_threshold(480, SongIni(hopo_frequency=frequency)) == expected


def test_chart_hopo_threshold_defaults_and_halving() -> None:
    assert chart_hopo_threshold(192, None) == 48
    assert chart_hopo_threshold(192, SongIni(hopo_frequency=0, eighth_note_hopo=True)) == 48


def test_chart_hopo_threshold_legacy_truncation() -> None:
    assert chart_hopo_threshold(480, SongIni(hopo_frequency=1), legacy_truncation=True) == 0
    assert chart_hopo_threshold(480, SongIni(hopo_frequency=3), legacy_truncation=True) == 0
    assert chart_hopo_threshold(480, SongIni(hopo_frequency=0), legacy_truncation=True) == 240


@pytest.mark.parametrize(
    "frequency, expected",
    [(None, 170), (0, 90), (1, 130), (2, 170), (3, 250), (4, 330), (5, 490)],
)
def test_midi_hopo_threshold(frequency, expected) -> None:
    assert midi_hopo_threshold(480, SongIni(hopo_frequency=frequency)) == expected


def test_midi_hopo_threshold_defaults_and_legacy() -> None:
    assert midi_hopo_threshold(480, None) == 170
    assert midi_hopo_threshold(480, SongIni(eighth_note_hopo=True)) == 85
    assert midi_hopo_threshold(100, SongIni(hopo_frequency=4)) == 77
    assert midi_hopo_threshold(100, SongIni(hopo_frequency=4), legacy_truncation=True) == 76


def test_thresholds_reject_bad_resolution() -> None:
    with pytest.raises(ValueError):
        chart_hopo_threshold(0, None)
    with pytest.raises(ValueError):
        midi_hopo_threshold(-1, None)


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__]))
