# -*- coding: utf-8 -*-
########################
# chart_notes.py
########################
# Purpose:
# - Classify the notes of one .chart difficulty section as tap, strum or HOPO (held or not).
# - Write them into a NoteTimeline, reclassifying earlier notes when later records demand it.
#
########################
# Key Logic:
# - Records arrive in non-decreasing tick order and are consumed once. Nothing is re-sorted.
# - Ticks within 1 of each other are coincident (upstream tools round inconsistently).
# - Per incoming note (tick, track, length):
#   1) sustain correction: a previous hold on the same track reaching this tick is cut to end
#      resolution // 8 ticks before it, keeping its tap/HOPO/strum category
#   2) chord breaks HOPO: a coincident HOPO on another track is demoted to strum
#   3) tap override: a coincident tap marker makes this note a tap, skipping 4
#   4) HOPO decision: another track's last note within the HOPO window, on a different track than
#      the previous note, and no chord, no prior chord, no chord this track took part in;
#      a coincident forced marker inverts the result unless the note is part of a chord
#   5) emit; 6) remember tick, track and length
# - Forced marker ("E *" or lane 5) toggles HOPO <-> strum of a single non-tap note already at
#   that row. Chord rows are left as strum.
# - Tap marker ("E T" or lane 6) turns notes already at that row into taps.
#
########################
# Interfaces:
# Public constants:
# - CHART_TRACKS = 6 (five frets plus open)
#
# Public dataclasses:
# - ChartNoteState(prev_tick, prev_length, prev_hopo, prev_tap, prev_track,
#                  last_forced_tick, last_tap_tick, last_chord_tick)
#
# Public classes:
# - class ChartNoteReader
#   - __init__(*, resolution: int, hopo_threshold: int)
#   - timeline -> NoteTimeline
#   - state -> ChartNoteState
#   - feed(line: ChartLine) -> None
#   - add_note(tick: int, track: int, length: int) -> None
#   - apply_forced_marker(tick: int) -> None
#   - apply_tap_marker(tick: int) -> None
#   - should_be_hopo(tick: int, track: int) -> bool
#
# Public functions:
# - read_note_section(section_words: Iterable[Sequence[str]], *, resolution: int, hopo_threshold: int) -> NoteTimeline
#
########################

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from chart_models import NoteCategory
from chart_tokens import ChartLine, parse_chart_line, parse_int
from note_timeline import NoteTimeline
from timing_data import beat_to_note_row


CHART_TRACKS = 6

FORCED_LANE = 5
TAP_LANE = 6
OPEN_LANE = 7
OPEN_TRACK = 5

# Ticks apart that still count as the same moment.
COINCIDENT_TICKS = 1


def _new_ticks() -> List[int]:
    return [-1] * CHART_TRACKS


def _new_flags() -> List[bool]:
    return [False] * CHART_TRACKS


@dataclass
class ChartNoteState:
    prev_tick: List[int] = field(default_factory=_new_ticks)
    prev_length: List[int] = field(default_factory=_new_ticks)
    prev_hopo: List[bool] = field(default_factory=_new_flags)
    prev_tap: List[bool] = field(default_factory=_new_flags)
    prev_track: int = -1
    last_forced_tick: int = -1
    last_tap_tick: int = -1
    last_chord_tick: int = -1


def _coincident(tick: int, marker_tick: int) -> bool:
    return marker_tick != -1 and abs(int(tick) - int(marker_tick)) <= COINCIDENT_TICKS


class ChartNoteReader:
    def __init__(self, *, resolution: int, hopo_threshold: int) -> None:
        if int(resolution) <= 0:
            raise ValueError(f"resolution must be positive, got {resolution!r}")
        self._resolution = int(resolution)
        self._hopo_threshold = int(hopo_threshold)
        self._timeline = NoteTimeline(CHART_TRACKS)
        self._state = ChartNoteState()

    @property
    def timeline(self) -> NoteTimeline:
        return self._timeline

    @property
    def state(self) -> ChartNoteState:
        return self._state

    def _row(self, tick: int) -> int:
        return beat_to_note_row(float(tick) / float(self._resolution))

    def feed(self, line: ChartLine) -> None:
        if line.tick < 0:
            return

        if line.kind == "E":
            marker = line.args[0] if line.args else ""
            if marker == "*":
                self.apply_forced_marker(line.tick)
            elif marker == "T":
                self.apply_tap_marker(line.tick)
            return

        if line.kind != "N" or not line.args:
            return

        lane = parse_int(line.args[0], -1)
        length = max(0, parse_int(line.args[1], 0)) if len(line.args) > 1 else 0

        if lane == FORCED_LANE:
            self.apply_forced_marker(line.tick)
        elif lane == TAP_LANE:
            self.apply_tap_marker(line.tick)
        elif lane == OPEN_LANE:
            self.add_note(line.tick, OPEN_TRACK, length)
        elif 0 <= lane < FORCED_LANE:
            self.add_note(line.tick, lane, length)

    def _remember_category(self, track: int, row: int, category: NoteCategory) -> None:
        prev_tick = self._state.prev_tick[track]
        if prev_tick != -1 and self._row(prev_tick) == row:
            self._state.prev_hopo[track] = category is NoteCategory.HOPO
            self._state.prev_tap[track] = category is NoteCategory.TAP

    def _prev_category(self, track: int) -> NoteCategory:
        if self._state.prev_tap[track]:
            return NoteCategory.TAP
        return NoteCategory.HOPO if self._state.prev_hopo[track] else NoteCategory.STRUM

    def apply_forced_marker(self, tick: int) -> None:
        self._state.last_forced_tick = int(tick)
        row = self._row(tick)
        occupied = [track for track in range(CHART_TRACKS) if not self._timeline.get_tap_note(track, row).is_empty]
        # Chords stay strummed.
        if len(occupied) > 1:
            return
        for track in occupied:
            tap_note = self._timeline.get_tap_note(track, row)
            if tap_note.category is NoteCategory.TAP:
                continue
            category = NoteCategory.STRUM if tap_note.is_hopo else NoteCategory.HOPO
            self._timeline.place_note(track, row, row + tap_note.duration, category)
            self._remember_category(track, row, category)

    def apply_tap_marker(self, tick: int) -> None:
        self._state.last_tap_tick = int(tick)
        row = self._row(tick)
        for track in range(CHART_TRACKS):
            tap_note = self._timeline.get_tap_note(track, row)
            if tap_note.is_empty:
                continue
            self._timeline.place_note(track, row, row + tap_note.duration, NoteCategory.TAP)
            self._remember_category(track, row, NoteCategory.TAP)

    def add_note(self, tick: int, track: int, length: int) -> None:
        state = self._state
        tick = int(tick)
        track = int(track)
        length = int(length)

        prev_tick = state.prev_tick[track]
        if prev_tick != -1 and state.prev_length[track] + prev_tick + 1 >= tick:
            self._timeline.clear_tap_note(track, self._row(prev_tick))
            state.prev_length[track] = tick - prev_tick - self._resolution // 8
            self._timeline.place_note(
                track,
                self._row(prev_tick),
                self._row(prev_tick + state.prev_length[track]),
                self._prev_category(track),
            )

        for other in range(CHART_TRACKS):
            if other == track or not state.prev_hopo[other]:
                continue
            if abs(tick - state.prev_tick[other]) <= COINCIDENT_TICKS:
                state.last_chord_tick = tick
                self._timeline.place_note(
                    other,
                    self._row(state.prev_tick[other]),
                    self._row(state.prev_tick[other] + state.prev_length[other]),
                    NoteCategory.STRUM,
                )
                state.prev_hopo[other] = False

        start_row = self._row(tick)
        end_row = self._row(tick + length)
        if _coincident(tick, state.last_tap_tick):
            self._timeline.place_note(track, start_row, end_row, NoteCategory.TAP)
            state.prev_hopo[track] = False
            state.prev_tap[track] = True
        else:
            is_hopo = self.should_be_hopo(tick, track)
            self._timeline.place_note(track, start_row, end_row, NoteCategory.HOPO if is_hopo else NoteCategory.STRUM)
            state.prev_hopo[track] = is_hopo
            state.prev_tap[track] = False

        state.prev_tick[track] = tick
        state.prev_track = track
        state.prev_length[track] = length

    def should_be_hopo(self, tick: int, track: int) -> bool:
        state = self._state
        prev_track = state.prev_track
        is_hopo = False
        in_chord = False

        for other in range(CHART_TRACKS):
            other_tick = state.prev_tick[other]
            if (
                other_tick != -1
                and abs(tick - other_tick) - 1 <= self._hopo_threshold
                and track != prev_track
            ):
                is_hopo = True

            # Part of a chord, or right on the last chord.
            if _coincident(tick, other_tick) or _coincident(tick, state.last_chord_tick):
                is_hopo = False
                in_chord = True
                break

            # This track was part of the chord the previous note belonged to.
            if (
                prev_track != -1
                and prev_track != track
                and state.prev_tick[track] != -1
                and state.prev_tick[prev_track] != -1
                and abs(state.prev_tick[track] - state.prev_tick[prev_track]) <= COINCIDENT_TICKS
            ):
                is_hopo = False
                break

        if not in_chord and _coincident(tick, state.last_forced_tick):
            is_hopo = not is_hopo
        return is_hopo


def read_note_section(
    section_words: Iterable[Sequence[str]],
    *,
    resolution: int,
    hopo_threshold: int,
) -> NoteTimeline:
    reader = ChartNoteReader(resolution=resolution, hopo_threshold=hopo_threshold)
    for words in section_words:
        chart_line = parse_chart_line(words)
        if chart_line is None:
            continue
        reader.feed(chart_line)
    return reader.timeline
