# -*- coding: utf-8 -*-
########################
# midi_tracks.py
########################
# Purpose:
# - Identify the logical role of each track of a rhythm-game .mid file (guitar, bass, tempo map, ...).
# - Decide the HOPO rule variant and fret count the note tracks are read with.
#
# Design notes:
# - One forward pass over the tracks. First match wins per role, later duplicates are ignored.
# - A track's role comes from its first track_name / set_tempo / time_signature meta message.
# - Drums or vocals mean a second-game chart (no HOPO out of a chord the note was part of).
# - A "GHL" guitar or bass track switches the whole file to six-fret reading.
# - Single-track files are guitar and tempo map in one, read with first-game rules.
#
########################
# Interfaces:
# Public enums:
# - class TrackRole(enum.Enum): GUITAR | BASS | DRUMS | VOCALS | EVENTS | VENUE | BEAT
#
# Public dataclasses:
# - MidiOrganizer(tracks: dict[TrackRole, mido.MidiTrack], other_tracks: list[mido.MidiTrack],
#                 hopo_rules: HopoRules, fret_type: FretType)
#   - track(role: TrackRole) -> Optional[mido.MidiTrack]
#
# Public functions:
# - organize_midi(midi_file: mido.MidiFile) -> MidiOrganizer
# - track_role_for_name(name: str) -> Optional[tuple[TrackRole, bool]]
# - iter_timed_messages(track: Iterable[mido.Message]) -> Iterator[tuple[int, mido.Message]]
#
# Inputs:
# - A parsed mido.MidiFile.
#
# Outputs:
# - Track handles for midi_store.py and midi_notes.py.
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import mido
from loguru import logger

from chart_models import FretType, HopoRules


class TrackRole(enum.Enum):
    GUITAR = "guitar"
    BASS = "bass"
    DRUMS = "drums"
    VOCALS = "vocals"
    EVENTS = "events"
    VENUE = "venue"
    BEAT = "beat"


# name -> (role, six frets)
_TRACK_NAMES: Dict[str, Tuple[TrackRole, bool]] = {
    "PART GUITAR": (TrackRole.GUITAR, False),
    "PART_GUITAR": (TrackRole.GUITAR, False),
    "T1 GEMS": (TrackRole.GUITAR, False),
    "PART GUITAR GHL": (TrackRole.GUITAR, True),
    "PART BASS": (TrackRole.BASS, False),
    "PART_BASS": (TrackRole.BASS, False),
    "PART RHYTHM": (TrackRole.BASS, False),
    "PART_RHYTHM": (TrackRole.BASS, False),
    "PART BASS GHL": (TrackRole.BASS, True),
    "PART DRUMS": (TrackRole.DRUMS, False),
    "PART_DRUMS": (TrackRole.DRUMS, False),
    "BAND DRUMS": (TrackRole.DRUMS, False),
    "BAND_DRUMS": (TrackRole.DRUMS, False),
    "PART VOCALS": (TrackRole.VOCALS, False),
    "PART_VOCALS": (TrackRole.VOCALS, False),
    "BAND SINGER": (TrackRole.VOCALS, False),
    "BAND_SINGER": (TrackRole.VOCALS, False),
    "EVENTS": (TrackRole.EVENTS, False),
    "VENUE": (TrackRole.VENUE, False),
    "BEAT": (TrackRole.BEAT, False),
}

_SECOND_GAME_ROLES = (TrackRole.DRUMS, TrackRole.VOCALS)
_TEMPO_META_TYPES = ("set_tempo", "time_signature")


@dataclass
class MidiOrganizer:
    tracks: Dict[TrackRole, mido.MidiTrack] = field(default_factory=dict)
    other_tracks: List[mido.MidiTrack] = field(default_factory=list)
    hopo_rules: HopoRules = HopoRules.FIRST_GAME
    fret_type: FretType = FretType.FIVE_FRETS

    def track(self, role: TrackRole) -> Optional[mido.MidiTrack]:
        return self.tracks.get(role)


def track_role_for_name(name: str) -> Optional[Tuple[TrackRole, bool]]:
    return _TRACK_NAMES.get(str(name or "").strip())


def _first_identifying_message(track: Iterable[mido.Message]) -> Optional[mido.Message]:
    for message in track:
        if not message.is_meta:
            continue
        if message.type == "track_name" or message.type in _TEMPO_META_TYPES:
            return message
    return None


def _has_tempo_meta(track: Iterable[mido.Message]) -> bool:
    return any(message.is_meta and message.type in _TEMPO_META_TYPES for message in track)


def organize_midi(midi_file: mido.MidiFile) -> MidiOrganizer:
    organizer = MidiOrganizer()
    tracks = list(midi_file.tracks)

    if len(tracks) == 1:
        organizer.tracks[TrackRole.GUITAR] = tracks[0]
        organizer.tracks[TrackRole.BEAT] = tracks[0]
        return organizer

    for track_index, track in enumerate(tracks):
        first_message = _first_identifying_message(track)
        if first_message is None:
            organizer.other_tracks.append(track)
            continue

        if first_message.type in _TEMPO_META_TYPES:
            organizer.tracks.setdefault(TrackRole.BEAT, track)
            continue

        name = str(first_message.name)
        match = track_role_for_name(name)
        if match is None:
            # Tempo maps often carry the song title as their name.
            if _has_tempo_meta(track):
                organizer.tracks.setdefault(TrackRole.BEAT, track)
            else:
                organizer.other_tracks.append(track)
            logger.debug("MIDI track {} ({!r}) not recognized", track_index, name)
            continue

        role, six_frets = match
        if role in organizer.tracks:
            logger.debug("Ignoring duplicate {} track {} ({!r})", role.value, track_index, name)
            continue
        organizer.tracks[role] = track
        if six_frets:
            organizer.fret_type = FretType.SIX_FRETS
        if role in _SECOND_GAME_ROLES:
            organizer.hopo_rules = HopoRules.SECOND_GAME

    return organizer


def iter_timed_messages(track: Iterable[mido.Message]) -> Iterator[Tuple[int, mido.Message]]:
    """Yield (absolute tick, message) for a track stored with delta times."""
    tick = 0
    for message in track:
        tick += int(message.time)
        yield tick, message
