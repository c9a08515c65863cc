# -*- coding: utf-8 -*-
########################
# midi_notes.py
########################
# Purpose:
# - Read one difficulty of a guitar or bass .mid track into a NoteTimeline.
# - Classify every note as tap, strum or HOPO following first-game / second-game chart rules.
#
########################
# Key Logic:
# - Each difficulty owns a fixed pitch band. Inside it, lanes are frets, then a forced-HOPO
#   marker lane and a forced-strum marker lane. Six-fret bands start with an open lane.
# - A note-on (velocity > 0) opens a lane, first one wins. A note-off or a zero-velocity
#   note-on closes it. Notes are classified when they close, with their start tick.
# - Held only when longer than resolution // 2; held ends are pulled in by resolution // 8.
# - System-Exclusive "PS" events switch tap sections and open-note sections on and off.
# - Forced-HOPO marker on a chord keeps only the highest lane, as a HOPO.
# - Forced-strum marker on a chord turns every note of the row into a strum.
# - A chord demotes a HOPO already on its row. On a forced-HOPO row a lower chord note is dropped.
# - Isolated notes go through should_be_hopo().
#
########################
# Interfaces:
# Public enums:
# - class SysexAction(enum.Enum): NONE | TAP_START | TAP_STOP | OPEN_START | OPEN_STOP
#
# Public constants:
# - SYSEX_HEADER = (0x50, 0x53, 0x00, 0x00)
# - PITCH_BANDS: dict[(Difficulty, FretType), (low, high)]
#
# Public dataclasses:
# - GuitarNoteState(resolution, hopo_threshold, rules, fret_type, prev_tick, prev_track,
#                   last_forced_hopo, last_forced_strum, last_chord_tick, in_tap_section, in_open_section)
#
# Public functions:
# - columns_for(fret_type: FretType) -> int
# - marker_lanes(fret_type: FretType) -> tuple[int, int]
# - translate_sysex(data: Sequence[int], difficulty: Difficulty) -> SysexAction
# - should_be_hopo(lane: int, tick: int, state: GuitarNoteState) -> bool
# - add_guitar_note(timeline: NoteTimeline, lane: int, start: int, end: int, state: GuitarNoteState) -> None
# - notes_from_track(track, difficulty, *, rules, fret_type, resolution, hopo_threshold) -> NoteTimeline
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
import enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import mido

from chart_models import FretType, HopoRules, NoteCategory
from midi_tracks import iter_timed_messages
from note_timeline import NoteTimeline
from song_models import Difficulty
from timing_data import beat_to_note_row


class SysexAction(enum.Enum):
    NONE = "none"
    TAP_START = "tap_start"
    TAP_STOP = "tap_stop"
    OPEN_START = "open_start"
    OPEN_STOP = "open_stop"


SYSEX_HEADER: Tuple[int, ...] = (0x50, 0x53, 0x00, 0x00)

# 0x7F is what 0xFF becomes when the MIDI reader clips data bytes.
_TAP_INDICATORS = {(0xFF, 0x04), (0x7F, 0x04)}
_OPEN_INDICATOR = 0x01
_SWITCH_ON = 0x01
_SWITCH_OFF = 0x00
_SYSEX_END = 0xF7
_SYSEX_START = 0xF0

_SYSEX_DIFFICULTY_CODES: Dict[Difficulty, int] = {
    Difficulty.EASY: 0x00,
    Difficulty.MEDIUM: 0x01,
    Difficulty.HARD: 0x02,
    Difficulty.CHALLENGE: 0x03,
}

PITCH_BANDS: Dict[Tuple[Difficulty, FretType], Tuple[int, int]] = {
    (Difficulty.EASY, FretType.FIVE_FRETS): (60, 66),
    (Difficulty.MEDIUM, FretType.FIVE_FRETS): (72, 78),
    (Difficulty.HARD, FretType.FIVE_FRETS): (84, 90),
    (Difficulty.CHALLENGE, FretType.FIVE_FRETS): (96, 102),
    (Difficulty.EASY, FretType.SIX_FRETS): (58, 66),
    (Difficulty.MEDIUM, FretType.SIX_FRETS): (70, 78),
    (Difficulty.HARD, FretType.SIX_FRETS): (82, 90),
    (Difficulty.CHALLENGE, FretType.SIX_FRETS): (94, 102),
}


def columns_for(fret_type: FretType) -> int:
    # Fret lanes plus one open column.
    return 7 if fret_type is FretType.SIX_FRETS else 6


def marker_lanes(fret_type: FretType) -> Tuple[int, int]:
    """(forced HOPO lane, forced strum lane). Marker lanes sit above the fret lanes and are never shifted."""
    if fret_type is FretType.SIX_FRETS:
        return 7, 8
    return 5, 6


def translate_sysex(data: Sequence[int], difficulty: Difficulty) -> SysexAction:
    payload = [int(byte) for byte in data]
    if payload and payload[0] == _SYSEX_START:
        payload = payload[1:]
    if len(payload) < 6 or tuple(payload[:4]) != SYSEX_HEADER:
        return SysexAction.NONE

    if (payload[4], payload[5]) in _TAP_INDICATORS:
        start_action, stop_action = SysexAction.TAP_START, SysexAction.TAP_STOP
    elif payload[5] == _OPEN_INDICATOR and payload[4] == _SYSEX_DIFFICULTY_CODES.get(difficulty):
        start_action, stop_action = SysexAction.OPEN_START, SysexAction.OPEN_STOP
    else:
        return SysexAction.NONE

    # mido strips the trailing F7.
    if len(payload) == 7:
        payload.append(_SYSEX_END)
    if len(payload) >= 8 and payload[7] == _SYSEX_END:
        if payload[6] == _SWITCH_OFF:
            return stop_action
        if payload[6] != _SWITCH_ON:
            return SysexAction.NONE
    return start_action


@dataclass
class GuitarNoteState:
    resolution: int
    hopo_threshold: int
    rules: HopoRules = HopoRules.FIRST_GAME
    fret_type: FretType = FretType.FIVE_FRETS
    prev_tick: List[int] = field(default_factory=list)
    prev_track: int = -1
    last_forced_hopo: int = -1
    last_forced_strum: int = -1
    last_chord_tick: int = -1
    in_tap_section: bool = False
    in_open_section: bool = False

    def __post_init__(self) -> None:
        if int(self.resolution) <= 0:
            raise ValueError(f"resolution must be positive, got {self.resolution!r}")
        if not self.prev_tick:
            self.prev_tick = [-1] * columns_for(self.fret_type)

    @property
    def cols(self) -> int:
        return columns_for(self.fret_type)

    def row(self, tick: int) -> int:
        return beat_to_note_row(float(tick) / float(self.resolution))


def should_be_hopo(lane: int, tick: int, state: GuitarNoteState) -> bool:
    if state.last_forced_strum != -1 and state.last_forced_strum == tick:
        return False
    if state.last_forced_hopo != -1 and state.last_forced_hopo == tick:
        return True
    if state.last_chord_tick != -1 and state.last_chord_tick == tick:
        return False

    is_hopo = False
    latest_tick = -1
    latest_track = -1
    for other in range(state.cols):
        other_tick = state.prev_tick[other]
        if other_tick != -1 and other != lane and tick - other_tick <= state.hopo_threshold:
            is_hopo = True
        if other_tick > latest_tick:
            latest_tick = other_tick
            latest_track = other

    # Second-game rule: no HOPO straight out of a chord this lane was part of.
    if (
        state.rules is HopoRules.SECOND_GAME
        and latest_track != -1
        and state.prev_tick[lane] != -1
        and state.prev_tick[lane] == latest_tick
    ):
        is_hopo = False

    return is_hopo


def add_guitar_note(timeline: NoteTimeline, lane: int, start: int, end: int, state: GuitarNoteState) -> None:
    cols = state.cols
    resolution = state.resolution

    if end - start > resolution // 2:
        real_end = end - resolution // 8
    else:
        real_end = start

    col = int(lane)
    # Six-fret bands put the open lane first.
    if state.fret_type is FretType.SIX_FRETS and col < 7:
        col -= 1

    start_row = state.row(start)
    end_row = state.row(real_end)

    taps = [timeline.get_tap_note(track, start_row) for track in range(cols)]
    occupied = [track for track, tap_note in enumerate(taps) if not tap_note.is_empty]
    highest = max(occupied) if occupied else -1

    forced_hopo_lane, forced_strum_lane = marker_lanes(state.fret_type)

    if col == forced_hopo_lane:
        found_highest = False
        for track in reversed(occupied):
            if found_highest:
                timeline.clear_tap_note(track, start_row)
            else:
                found_highest = True
                timeline.place_note(track, start_row, start_row + taps[track].duration, NoteCategory.HOPO)
        state.last_forced_hopo = start
        return

    if col == forced_strum_lane:
        for track in occupied:
            timeline.place_note(track, start_row, start_row + taps[track].duration, NoteCategory.STRUM)
        state.last_forced_strum = start
        return

    if state.in_open_section or (col == -1 and state.fret_type is FretType.SIX_FRETS):
        col = cols - 1

    if state.in_tap_section:
        timeline.place_note(col, start_row, end_row, NoteCategory.TAP)
    elif occupied:
        was_hopo = taps[highest].is_hopo
        if start == state.last_forced_hopo:
            if col < highest:
                # Only the highest note of a forced-HOPO chord exists.
                return
            timeline.clear_tap_note(highest, start_row)
            timeline.place_note(col, start_row, end_row, NoteCategory.HOPO if was_hopo else NoteCategory.STRUM)
        else:
            if was_hopo:
                timeline.place_note(
                    highest, start_row, start_row + taps[highest].duration, NoteCategory.STRUM
                )
            timeline.place_note(col, start_row, end_row, NoteCategory.STRUM)
        state.last_chord_tick = start
    else:
        is_hopo = should_be_hopo(col, start, state)
        timeline.place_note(col, start_row, end_row, NoteCategory.HOPO if is_hopo else NoteCategory.STRUM)

    state.prev_tick[col] = start
    state.prev_track = col


def notes_from_track(
    track: Iterable[mido.Message],
    difficulty: Difficulty,
    *,
    rules: HopoRules,
    fret_type: FretType,
    resolution: int,
    hopo_threshold: int,
) -> NoteTimeline:
    low, high = PITCH_BANDS[(difficulty, fret_type)]
    state = GuitarNoteState(
        resolution=int(resolution),
        hopo_threshold=int(hopo_threshold),
        rules=rules,
        fret_type=fret_type,
    )
    timeline = NoteTimeline(state.cols)
    notes_in_progress: List[Optional[int]] = [None] * (high - low + 1)

    for tick, message in iter_timed_messages(track):
        if message.type == "sysex":
            action = translate_sysex(message.data, difficulty)
            if action in (SysexAction.TAP_START, SysexAction.TAP_STOP):
                state.in_tap_section = action is SysexAction.TAP_START
            elif action in (SysexAction.OPEN_START, SysexAction.OPEN_STOP):
                state.in_open_section = action is SysexAction.OPEN_START
            continue

        if message.type not in ("note_on", "note_off"):
            continue
        if message.note < low or message.note > high:
            continue

        lane = message.note - low
        if message.type == "note_on" and message.velocity > 0:
            if notes_in_progress[lane] is None:
                notes_in_progress[lane] = tick
            continue

        start = notes_in_progress[lane]
        if start is None:
            continue
        notes_in_progress[lane] = None
        if tick > start:
            add_guitar_note(timeline, lane, start, tick, state)

    return timeline
