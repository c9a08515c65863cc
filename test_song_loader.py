# test_song_loader.py
from __future__ import annotations

import json
from pathlib import Path

import mido
import pytest

from config import LoaderConfig
from song_loader import (
    SourceFormat,
    UnsupportedFormatError,
    is_supported,
    load_note_data,
    load_song,
    main,
    source_format_for,
)
from song_models import Difficulty, Steps, StepsType

CHART_TEXT = """\
[Song]
{
  Name = "Loader Song"
  Resolution = 192
}
[ExpertSingle]
{
  0 = N 0 0
  48 = N 1 0
}
"""


def _write_chart(directory: Path) -> Path:
    chart_path = directory / "notes.chart"
    chart_path.write_text(CHART_TEXT, encoding="utf-8")
    return chart_path


def _write_midi(directory: Path) -> Path:
    midi_file = mido.MidiFile(ticks_per_beat=480)
    track = mido.MidiTrack()
    track.append(mido.MetaMessage("set_tempo", tempo=500000, time=0))
    track.append(mido.Message("note_on", note=96, velocity=100, time=0))
    track.append(mido.Message("note_off", note=96, velocity=0, time=60))
    midi_file.tracks.append(track)
    midi_path = directory / "notes.MID"
    midi_file.save(str(midi_path))
    return midi_path


def test_source_format_for() -> None:
    assert source_format_for(Path("a/notes.chart")) is SourceFormat.CHART
    assert source_format_for(Path("notes.mid")) is SourceFormat.MIDI
    assert source_format_for(Path("notes.MIDI")) is SourceFormat.MIDI
    assert is_supported(Path("notes.Chart"))
    assert not is_supported(Path("notes.sm"))
    with pytest.raises(UnsupportedFormatError):
        source_format_for(Path("notes.sm"))


def test_load_song_dispatches_to_chart(tmp_path: Path) -> None:
    song = load_song(_write_chart(tmp_path), LoaderConfig())
    assert song is not None
    assert song.main_title == "Loader Song"
    assert len(song.steps) == 1


def test_load_song_dispatches_to_midi(tmp_path: Path) -> None:
    # A single-track file is guitar and tempo map at once.
    song = load_song(_write_midi(tmp_path), LoaderConfig())
    assert song is not None
    assert len(song.steps) == 4
    expert = song.find_steps(StepsType.GUITAR_SOLO, Difficulty.CHALLENGE)
    assert expert.note_data.note_count() == 1
    assert song.timing.bpm_segments() == [(0.0, 120.0)]


def test_load_note_data(tmp_path: Path) -> None:
    steps = Steps(StepsType.GUITAR_SOLO, Difficulty.CHALLENGE)
    assert load_note_data(_write_chart(tmp_path), steps, LoaderConfig()) is True
    assert steps.note_data.note_count() == 2

    steps = Steps(StepsType.GUITAR_SOLO, Difficulty.CHALLENGE)
    assert load_note_data(_write_midi(tmp_path), steps, LoaderConfig()) is True
    assert steps.note_data.note_count() == 1


def test_main_prints_summary(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    exit_code = main([str(_write_chart(tmp_path))])
    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is True
    assert payload["song"]["title"] == "Loader Song"
    assert payload["song"]["steps"] == [
        {"steps_type": "guitar-solo", "difficulty": "Expert", "notes": 2, "last_row": 12},
    ]


def test_main_reports_failures(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    assert main([str(tmp_path / "notes.sm")]) == 2
    assert json.loads(capsys.readouterr().out)["ok"] is False

    assert main([str(tmp_path / "missing.chart")]) == 1
    assert json.loads(capsys.readouterr().out)["ok"] is False


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__]))
