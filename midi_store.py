# -*- coding: utf-8 -*-
########################
# midi_store.py
########################
# Purpose:
# - Read rhythm-game .mid files (plus song.ini and audio next to them) into Song and Steps.
# - Reload the note data of one Steps on demand.
#
# Design notes:
# - Resolution is the file's ticks per beat. The HOPO window comes from song.ini (midi table).
# - Tempo map from the beat track, labels from the EVENTS track, metadata from song.ini only.
# - Guitar easy..expert always, bass easy..expert only when a bass track exists.
# - An unreadable or malformed .mid is a failure. Public loaders report it as None / False and log it.
#
########################
# Interfaces:
# Public exceptions:
# - class MidiReadError(song_models.LoaderError)
#
# Public functions:
# - open_midi(midi_path: pathlib.Path) -> mido.MidiFile
# - steps_type_for(fret_type: FretType, *, bass: bool) -> StepsType
# - read_midi_song(midi_file: mido.MidiFile, *, base_dir: pathlib.Path, source_path: str = "",
#                  config: LoaderConfig) -> Song
# - load_song_from_midi(midi_path: pathlib.Path, config: Optional[LoaderConfig] = None) -> Optional[Song]
# - load_note_data_from_midi(midi_path: pathlib.Path, steps: Steps, config: Optional[LoaderConfig] = None) -> bool
#
# Inputs:
# - .mid file, the song directory (song.ini, *.ogg, *.lrc), LoaderConfig.
#
# Outputs:
# - Song with TimingData, audio file paths, lyrics file and up to eight Steps.
#
########################

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

import mido
from loguru import logger

from chart_models import FretType
from chart_store import section_label
from config import LoaderConfig, get_config
from midi_notes import columns_for, notes_from_track
from midi_tracks import MidiOrganizer, TrackRole, iter_timed_messages, organize_midi
from note_timeline import NoteTimeline
from song_ini import SongIni, midi_hopo_threshold, read_song_ini
from song_models import Difficulty, LoaderError, Song, Steps, StepsType
from timing_data import TimingData, beat_to_note_row


class MidiReadError(LoaderError):
    """Raised when a .mid file cannot be opened or parsed."""


_DIFFICULTY_ORDER = (Difficulty.EASY, Difficulty.MEDIUM, Difficulty.HARD, Difficulty.CHALLENGE)

_BACKUP_STEPS_TYPES = (StepsType.GUITAR_BACKUP, StepsType.GUITAR_BACKUP6)

_LABEL_META_TYPES = ("text", "marker")

_MUSIC_STEM = "song"
_GUITAR_STEM = "guitar"
_BASS_STEMS = ("rhythm", "bass")


def open_midi(midi_path: Path) -> mido.MidiFile:
    try:
        # clip: sysex tap markers carry 0xFF data bytes.
        return mido.MidiFile(str(midi_path), clip=True)
    except (OSError, EOFError, ValueError, KeyError, IndexError) as exc:
        raise MidiReadError(f"Failed to read MIDI file: {midi_path} ({exc})") from exc


def steps_type_for(fret_type: FretType, *, bass: bool) -> StepsType:
    if fret_type is FretType.SIX_FRETS:
        return StepsType.GUITAR_BACKUP6 if bass else StepsType.GUITAR_SOLO6
    return StepsType.GUITAR_BACKUP if bass else StepsType.GUITAR_SOLO


def _resolution(midi_file: mido.MidiFile) -> int:
    resolution = int(midi_file.ticks_per_beat)
    if resolution <= 0:
        raise MidiReadError(f"MIDI file has no usable ticks per beat: {resolution}")
    return resolution


def _parse_beat_track(timing: TimingData, track: Iterable[mido.Message], resolution: int) -> None:
    timing.offset_seconds = 0.0
    for tick, message in iter_timed_messages(track):
        if not message.is_meta:
            continue
        beat = float(tick) / float(resolution)
        if message.type == "set_tempo":
            timing.add_tempo_change(beat, mido.tempo2bpm(message.tempo))
        elif message.type == "time_signature":
            numerator = int(message.numerator) or 4
            denominator = int(message.denominator) or 4
            timing.add_time_signature(beat_to_note_row(beat), numerator, denominator)


def _parse_event_track(timing: TimingData, track: Iterable[mido.Message], resolution: int) -> None:
    for tick, message in iter_timed_messages(track):
        if not message.is_meta or message.type not in _LABEL_META_TYPES:
            continue
        label = section_label(str(message.text))
        if not label:
            continue
        timing.add_label(beat_to_note_row(float(tick) / float(resolution)), label)


def _find_music_files(song: Song, base_dir: Path, extension: str) -> None:
    audio_files = sorted(
        path for path in Path(base_dir).glob("*") if path.is_file() and path.suffix.lower() == extension
    )
    if len(audio_files) == 1:
        song.music_file = str(audio_files[0])
        return

    for audio_path in audio_files:
        stem = audio_path.stem.lower()
        if stem == _MUSIC_STEM:
            song.music_file = str(audio_path)
        elif stem == _GUITAR_STEM:
            song.instrument_track_files["guitar"] = str(audio_path)
        elif stem in _BASS_STEMS:
            song.instrument_track_files.setdefault("bass", str(audio_path))


def _find_lyrics_file(base_dir: Path, extension: str) -> str:
    lyrics_files = sorted(
        path for path in Path(base_dir).glob("*") if path.is_file() and path.suffix.lower() == extension
    )
    if not lyrics_files:
        return ""
    return str(lyrics_files[0])


def _note_data_for(
    organizer: MidiOrganizer,
    role: TrackRole,
    difficulty: Difficulty,
    *,
    resolution: int,
    hopo_threshold: int,
) -> NoteTimeline:
    track = organizer.track(role)
    if track is None:
        return NoteTimeline(columns_for(organizer.fret_type))
    return notes_from_track(
        track,
        difficulty,
        rules=organizer.hopo_rules,
        fret_type=organizer.fret_type,
        resolution=resolution,
        hopo_threshold=hopo_threshold,
    )


def read_midi_song(
    midi_file: mido.MidiFile,
    *,
    base_dir: Path,
    source_path: str = "",
    config: LoaderConfig,
) -> Song:
    organizer = organize_midi(midi_file)
    resolution = _resolution(midi_file)
    song_ini: Optional[SongIni] = read_song_ini(base_dir, config.files.song_ini_name)
    hopo_threshold = midi_hopo_threshold(resolution, song_ini, legacy_truncation=config.hopo.legacy_truncation)
    logger.debug(
        "MIDI layout: resolution={} hopo_threshold={} rules={} frets={}",
        resolution,
        hopo_threshold,
        organizer.hopo_rules.value,
        organizer.fret_type.value,
    )

    song = Song(song_file_name=str(source_path))
    if song_ini is not None:
        song.main_title = song_ini.name
        song.artist = song_ini.artist
        song.credit = song_ini.charter
    _find_music_files(song, base_dir, config.files.music_extension)
    song.lyrics_file = _find_lyrics_file(base_dir, config.files.lyrics_extension)

    beat_track = organizer.track(TrackRole.BEAT)
    if beat_track is not None:
        _parse_beat_track(song.timing, beat_track, resolution)
    event_track = organizer.track(TrackRole.EVENTS)
    if event_track is not None:
        _parse_event_track(song.timing, event_track, resolution)

    if organizer.track(TrackRole.GUITAR) is None:
        logger.warning("No guitar track in {}", source_path or "MIDI file")

    parts: List[TrackRole] = [TrackRole.GUITAR]
    if organizer.track(TrackRole.BASS) is not None:
        parts.append(TrackRole.BASS)

    for role in parts:
        steps_type = steps_type_for(organizer.fret_type, bass=role is TrackRole.BASS)
        for difficulty in _DIFFICULTY_ORDER:
            note_data = _note_data_for(
                organizer, role, difficulty, resolution=resolution, hopo_threshold=hopo_threshold
            )
            song.add_steps(
                Steps(
                    steps_type=steps_type,
                    difficulty=difficulty,
                    note_data=note_data,
                    credit=song.credit,
                    description=song.credit,
                    filename=str(source_path),
                )
            )

    return song


def _resolve_config(config: Optional[LoaderConfig]) -> LoaderConfig:
    if config is not None:
        return config
    resolved, _path = get_config()
    return resolved


def load_song_from_midi(midi_path: Path, config: Optional[LoaderConfig] = None) -> Optional[Song]:
    midi_path = Path(midi_path)
    try:
        midi_file = open_midi(midi_path)
        song = read_midi_song(
            midi_file,
            base_dir=midi_path.parent,
            source_path=str(midi_path),
            config=_resolve_config(config),
        )
    except MidiReadError as exc:
        logger.warning("{}", exc)
        return None

    logger.info("Loaded {} with {} steps", midi_path.name, len(song.steps))
    return song


def load_note_data_from_midi(midi_path: Path, steps: Steps, config: Optional[LoaderConfig] = None) -> bool:
    midi_path = Path(midi_path)
    config = _resolve_config(config)
    try:
        midi_file = open_midi(midi_path)
        resolution = _resolution(midi_file)
    except MidiReadError as exc:
        logger.warning("{}", exc)
        return False

    organizer = organize_midi(midi_file)
    song_ini = read_song_ini(midi_path.parent, config.files.song_ini_name)
    hopo_threshold = midi_hopo_threshold(resolution, song_ini, legacy_truncation=config.hopo.legacy_truncation)

    role = TrackRole.BASS if steps.steps_type in _BACKUP_STEPS_TYPES else TrackRole.GUITAR
    if organizer.track(role) is None:
        logger.warning("No {} track in {}", role.value, midi_path.name)

    steps.note_data = _note_data_for(
        organizer, role, steps.difficulty, resolution=resolution, hopo_threshold=hopo_threshold
    )
    return True
