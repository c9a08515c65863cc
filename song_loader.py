# -*- coding: utf-8 -*-
########################
# song_loader.py
########################
# Purpose:
# - Single entry point for guitar chart loading: picks the .chart or .mid loader by extension.
# - Small CLI that loads a file and prints a JSON summary of what was found.
#
########################
# Key Logic:
# - Extension match is case-insensitive: .chart -> chart_store, .mid / .midi -> midi_store.
# - Strict contract:
#   - Unknown extensions raise UnsupportedFormatError (a ValueError). That is a caller bug.
#   - Unreadable files are a first class outcome: None / False, logged by the loader.
#
########################
# Interfaces:
# Public exceptions:
# - class UnsupportedFormatError(ValueError)
#
# Public enums:
# - class SourceFormat(enum.Enum): CHART | MIDI
#
# Public functions:
# - source_format_for(path: pathlib.Path) -> SourceFormat
# - is_supported(path: pathlib.Path) -> bool
# - load_song(path: pathlib.Path, config: Optional[LoaderConfig] = None) -> Optional[Song]
# - load_note_data(path: pathlib.Path, steps: Steps, config: Optional[LoaderConfig] = None) -> bool
# - summarize_song(song: Song) -> dict
# - main(argv: Optional[list[str]] = None) -> int
#
# Inputs:
# - Path to a .chart, .mid or .midi file.
#
# Outputs:
# - Song / Steps from the matching loader.
#
########################
# Smoke Tests:
#   - python song_loader.py path/to/notes.chart
########################

from __future__ import annotations

import argparse
import enum
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger

from chart_store import load_note_data_from_chart, load_song_from_chart
from config import LoaderConfig, load_config
from midi_store import load_note_data_from_midi, load_song_from_midi
from song_models import Song, Steps, difficulty_label


class UnsupportedFormatError(ValueError):
    """Raised for a path whose extension no loader handles."""


class SourceFormat(enum.Enum):
    CHART = "chart"
    MIDI = "midi"


_EXTENSIONS = {
    ".chart": SourceFormat.CHART,
    ".mid": SourceFormat.MIDI,
    ".midi": SourceFormat.MIDI,
}


def source_format_for(path: Path) -> SourceFormat:
    suffix = Path(path).suffix.lower()
    source_format = _EXTENSIONS.get(suffix)
    if source_format is None:
        raise UnsupportedFormatError(f"Unsupported chart file extension {suffix!r}: {path}")
    return source_format


def is_supported(path: Path) -> bool:
    return Path(path).suffix.lower() in _EXTENSIONS


def load_song(path: Path, config: Optional[LoaderConfig] = None) -> Optional[Song]:
    if source_format_for(path) is SourceFormat.CHART:
        return load_song_from_chart(Path(path), config)
    return load_song_from_midi(Path(path), config)


def load_note_data(path: Path, steps: Steps, config: Optional[LoaderConfig] = None) -> bool:
    if source_format_for(path) is SourceFormat.CHART:
        return load_note_data_from_chart(Path(path), steps, config)
    return load_note_data_from_midi(Path(path), steps, config)


def summarize_song(song: Song) -> Dict[str, Any]:
    steps_summary: List[Dict[str, Any]] = []
    for steps in song.steps:
        note_data = steps.note_data
        steps_summary.append(
            {
                "steps_type": steps.steps_type.value,
                "difficulty": difficulty_label(steps.difficulty),
                "notes": note_data.note_count() if note_data is not None else 0,
                "last_row": note_data.last_row() if note_data is not None else -1,
            }
        )

    return {
        "title": song.main_title,
        "artist": song.artist,
        "credit": song.credit,
        "music_file": song.music_file,
        "instrument_track_files": dict(song.instrument_track_files),
        "lyrics_file": song.lyrics_file,
        "sample_start_seconds": song.sample_start_seconds,
        "sample_length_seconds": song.sample_length_seconds,
        "bpm_segments": [[beat, bpm] for beat, bpm in song.timing.bpm_segments()],
        "labels": [label.text for label in song.timing.labels()],
        "steps": steps_summary,
    }


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Load a .chart or .mid guitar chart and print a JSON summary.")
    parser.add_argument("path", type=Path, help="Path to a .chart, .mid or .midi file")
    parser.add_argument("--config", type=Path, default=None, help="Path to a fretchart_config.json")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)

    try:
        config, _config_path = load_config(args.config)
        song = load_song(args.path, config)
    except (OSError, ValueError) as exception:
        print(json.dumps({"ok": False, "error": str(exception)}, ensure_ascii=False, indent=2))
        return 2

    if song is None:
        print(json.dumps({"ok": False, "error": f"Could not load {args.path}"}, ensure_ascii=False, indent=2))
        return 1

    logger.debug("Summarizing {}", args.path)
    print(json.dumps({"ok": True, "song": summarize_song(song)}, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
