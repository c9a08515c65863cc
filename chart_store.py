# -*- coding: utf-8 -*-
########################
# chart_store.py
########################
# Purpose:
# - Read .chart files (the text chart format of FoF-style editors) into Song and Steps.
# - Parse [Song], [SyncTrack], [Events] and the <Difficulty>Single note sections.
#
# Design notes:
# - Parsing is best effort: malformed lines are skipped, bad numbers default, unknown tags are ignored.
# - Only an unreadable file is a failure. Public loaders report it as None / False and log it.
# - Sections are read in file order. [Song] must precede the note sections for its Resolution to apply.
# - Note classification lives in chart_notes.py.
#
########################
# Interfaces:
# Public exceptions:
# - class ChartReadError(song_models.LoaderError)
#
# Public dataclasses:
# - ChartHeader(title: str, artist: str, charter: str, offset_seconds: float, resolution: int,
#               hopo_threshold: int, preview_start_seconds: Optional[float],
#               preview_end_seconds: Optional[float], music_file: str)
#
# Public functions:
# - parse_difficulty(section: str) -> Optional[Difficulty]
# - section_label(text: str) -> str
# - read_chart_text(text: str, *, base_dir: pathlib.Path, source_path: str = "", config: LoaderConfig) -> Song
# - read_chart_note_data(text: str, *, difficulty: Difficulty, base_dir: pathlib.Path, config: LoaderConfig)
#     -> Optional[NoteTimeline]
# - load_song_from_chart(chart_path: pathlib.Path, config: Optional[LoaderConfig] = None) -> Optional[Song]
# - load_note_data_from_chart(chart_path: pathlib.Path, steps: Steps, config: Optional[LoaderConfig] = None) -> bool
#
# Inputs:
# - .chart text, the chart directory (for song.ini and MusicStream), LoaderConfig.
#
# Outputs:
# - Song with one GUITAR_SOLO Steps per note section, TimingData with tempo, signatures and labels.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from loguru import logger

from chart_notes import CHART_TRACKS, read_note_section
from chart_tokens import (
    iter_section,
    join_value,
    line_words,
    parse_chart_line,
    parse_float,
    parse_int,
    section_name,
    unquote,
)
from config import LoaderConfig, get_config
from note_timeline import NoteTimeline
from song_ini import chart_hopo_threshold, read_song_ini
from song_models import Difficulty, LoaderError, Song, Steps, StepsType
from timing_data import TimingData, beat_to_note_row


class ChartReadError(LoaderError):
    """Raised when a .chart file cannot be opened or decoded."""


@dataclass(frozen=True)
class ChartHeader:
    title: str
    artist: str
    charter: str
    offset_seconds: float
    resolution: int
    hopo_threshold: int
    preview_start_seconds: Optional[float]
    preview_end_seconds: Optional[float]
    music_file: str


# Checked in this order: "ExpertSingle" must not match "Hard" etc. by accident.
_DIFFICULTY_MARKERS: List[Tuple[str, Difficulty]] = [
    ("Expert", Difficulty.CHALLENGE),
    ("Hard", Difficulty.HARD),
    ("Medium", Difficulty.MEDIUM),
    ("Easy", Difficulty.EASY),
]

_NOTE_SECTION_SUFFIX = "Single"
_DEFAULT_SAMPLE_LENGTH_SECONDS = 12.0
_MIN_LABEL_LENGTH = 3


def parse_difficulty(section: str) -> Optional[Difficulty]:
    for marker, difficulty in _DIFFICULTY_MARKERS:
        if marker in section:
            return difficulty
    return None


def _read_text(chart_path: Path) -> str:
    try:
        raw_bytes = Path(chart_path).read_bytes()
    except OSError as exc:
        raise ChartReadError(f"Failed to read chart: {chart_path}") from exc
    try:
        return raw_bytes.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Older editors wrote the platform code page.
        return raw_bytes.decode("latin-1")


def _iter_sections(text: str) -> Iterator[Tuple[str, Iterator[List[str]]]]:
    lines = iter(text.splitlines())
    for line in lines:
        name = section_name(line_words(line))
        if name is None:
            continue
        body = iter_section(lines)
        yield name, body
        # Drain whatever the consumer left so the next header is found.
        for _ in body:
            pass


def _parse_song_section(section_words: Iterator[List[str]], *, base_dir: Path, config: LoaderConfig) -> ChartHeader:
    title = ""
    artist = ""
    charter = ""
    offset_seconds = 0.0
    resolution = int(config.chart.default_resolution)
    preview_start: Optional[float] = None
    preview_end: Optional[float] = None
    music_file = ""

    for words in section_words:
        if len(words) < 3:
            continue
        key = words[0]
        value = unquote(join_value(words))
        if key == "Name":
            title = value
        elif key == "Artist":
            artist = value
        elif key == "Charter":
            charter = value
        elif key == "Offset":
            offset_seconds = -parse_float(words[2], 0.0)
        elif key == "Resolution":
            parsed_resolution = parse_int(words[2], 0)
            if parsed_resolution > 0:
                resolution = parsed_resolution
        elif key == "PreviewStart":
            preview_start = parse_float(words[2], 0.0)
        elif key == "PreviewEnd":
            preview_end = parse_float(words[2], 0.0)
        elif key == "MusicStream" and value:
            music_file = str(Path(base_dir) / value)

    song_ini = read_song_ini(base_dir, config.files.song_ini_name)
    hopo_threshold = chart_hopo_threshold(
        resolution, song_ini, legacy_truncation=config.hopo.legacy_truncation
    )

    return ChartHeader(
        title=title,
        artist=artist,
        charter=charter,
        offset_seconds=offset_seconds,
        resolution=resolution,
        hopo_threshold=hopo_threshold,
        preview_start_seconds=preview_start,
        preview_end_seconds=preview_end,
        music_file=music_file,
    )


def _default_header(*, base_dir: Path, config: LoaderConfig) -> ChartHeader:
    return _parse_song_section(iter(()), base_dir=base_dir, config=config)


def _parse_sync_track(section_words: Iterator[List[str]], timing: TimingData, resolution: int) -> None:
    for words in section_words:
        chart_line = parse_chart_line(words)
        if chart_line is None or chart_line.tick < 0 or not chart_line.args:
            continue
        beat = float(chart_line.tick) / float(resolution)
        if chart_line.kind == "B":
            timing.add_tempo_change(beat, parse_float(chart_line.args[0], 0.0) / 1000.0)
        elif chart_line.kind == "TS":
            numerator = parse_int(chart_line.args[0], 4) or 4
            denominator = 4
            if len(chart_line.args) > 1:
                exponent = parse_int(chart_line.args[1], 2)
                if 0 <= exponent <= 6:
                    denominator = 2 ** exponent
            timing.add_time_signature(beat_to_note_row(beat), numerator, denominator)


def section_label(text: str) -> str:
    label = unquote(text).strip().strip("[]").strip()
    if label.lower().startswith("section "):
        label = label[len("section "):].strip()
    return label


def _parse_events(section_words: Iterator[List[str]], timing: TimingData, resolution: int) -> None:
    for words in section_words:
        chart_line = parse_chart_line(words)
        if chart_line is None or chart_line.tick < 0 or chart_line.kind != "E" or not chart_line.args:
            continue
        label = section_label(" ".join(chart_line.args))
        if len(label) < _MIN_LABEL_LENGTH:
            continue
        timing.add_label(beat_to_note_row(float(chart_line.tick) / float(resolution)), label)


def _apply_header(song: Song, header: ChartHeader) -> None:
    song.main_title = header.title
    song.artist = header.artist
    song.credit = header.charter
    song.music_file = header.music_file
    song.timing.offset_seconds = header.offset_seconds
    if header.preview_start_seconds is not None:
        song.sample_start_seconds = header.preview_start_seconds
    if header.preview_end_seconds is not None:
        sample_length = header.preview_end_seconds - song.sample_start_seconds
        song.sample_length_seconds = (
            sample_length if sample_length > _DEFAULT_SAMPLE_LENGTH_SECONDS else _DEFAULT_SAMPLE_LENGTH_SECONDS
        )


def _build_steps(header: ChartHeader, difficulty: Difficulty, note_data: NoteTimeline, source_path: str) -> Steps:
    return Steps(
        steps_type=StepsType.GUITAR_SOLO,
        difficulty=difficulty,
        note_data=note_data,
        credit=header.charter,
        description=header.charter,
        music_file=header.music_file,
        filename=source_path,
    )


def read_chart_text(text: str, *, base_dir: Path, source_path: str = "", config: LoaderConfig) -> Song:
    song = Song(song_file_name=str(source_path))
    header: Optional[ChartHeader] = None

    for name, body in _iter_sections(text):
        if name == "Song":
            header = _parse_song_section(body, base_dir=base_dir, config=config)
            _apply_header(song, header)
            logger.debug("Chart header: resolution={} hopo_threshold={}", header.resolution, header.hopo_threshold)
            continue

        if header is None:
            header = _default_header(base_dir=base_dir, config=config)

        if name == "SyncTrack":
            _parse_sync_track(body, song.timing, header.resolution)
        elif name == "Events":
            _parse_events(body, song.timing, header.resolution)
        elif name.endswith(_NOTE_SECTION_SUFFIX):
            difficulty = parse_difficulty(name)
            if difficulty is None:
                logger.debug("Skipping chart section with unknown difficulty: [{}]", name)
                continue
            note_data = read_note_section(body, resolution=header.resolution, hopo_threshold=header.hopo_threshold)
            song.add_steps(_build_steps(header, difficulty, note_data, str(source_path)))
        else:
            logger.debug("Skipping chart section [{}]", name)

    return song


def read_chart_note_data(
    text: str,
    *,
    difficulty: Difficulty,
    base_dir: Path,
    config: LoaderConfig,
) -> Optional[NoteTimeline]:
    header: Optional[ChartHeader] = None
    for name, body in _iter_sections(text):
        if name == "Song":
            header = _parse_song_section(body, base_dir=base_dir, config=config)
            continue
        if not name.endswith(_NOTE_SECTION_SUFFIX) or parse_difficulty(name) is not difficulty:
            continue
        if header is None:
            header = _default_header(base_dir=base_dir, config=config)
        return read_note_section(body, resolution=header.resolution, hopo_threshold=header.hopo_threshold)
    return None


def _resolve_config(config: Optional[LoaderConfig]) -> LoaderConfig:
    if config is not None:
        return config
    resolved, _path = get_config()
    return resolved


def load_song_from_chart(chart_path: Path, config: Optional[LoaderConfig] = None) -> Optional[Song]:
    chart_path = Path(chart_path)
    try:
        text = _read_text(chart_path)
    except ChartReadError as exc:
        logger.warning("{}", exc)
        return None

    song = read_chart_text(
        text,
        base_dir=chart_path.parent,
        source_path=str(chart_path),
        config=_resolve_config(config),
    )
    logger.info("Loaded {} with {} steps", chart_path.name, len(song.steps))
    return song


def load_note_data_from_chart(chart_path: Path, steps: Steps, config: Optional[LoaderConfig] = None) -> bool:
    # .chart files only carry five-fret lead guitar.
    if steps.steps_type is not StepsType.GUITAR_SOLO:
        return False

    chart_path = Path(chart_path)
    try:
        text = _read_text(chart_path)
    except ChartReadError as exc:
        logger.warning("{}", exc)
        return False

    note_data = read_chart_note_data(
        text,
        difficulty=steps.difficulty,
        base_dir=chart_path.parent,
        config=_resolve_config(config),
    )
    if note_data is None:
        logger.debug("No {} section in {}", steps.difficulty.value, chart_path.name)
        note_data = NoteTimeline(CHART_TRACKS)
    steps.note_data = note_data
    return True
