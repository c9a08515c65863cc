# test_midi_notes.py
from __future__ import annotations

from typing import List, Tuple

import mido
import pytest

from chart_models import FretType, HopoRules, TapNoteType
from midi_notes import (
    GuitarNoteState,
    SysexAction,
    add_guitar_note,
    notes_from_track,
    should_be_hopo,
    translate_sysex,
)
from note_timeline import NoteTimeline
from song_models import Difficulty

RESOLUTION = 480
THRESHOLD = RESOLUTION // 3 + 10

TAP_ON = [0x50, 0x53, 0x00, 0x00, 0x7F, 0x04, 0x01]
TAP_OFF = [0x50, 0x53, 0x00, 0x00, 0x7F, 0x04, 0x00]
EXPERT_OPEN_ON = [0x50, 0x53, 0x00, 0x00, 0x03, 0x01, 0x01]
EXPERT_OPEN_OFF = [0x50, 0x53, 0x00, 0x00, 0x03, 0x01, 0x00]


def _state(**overrides) -> GuitarNoteState:
    values = dict(resolution=RESOLUTION, hopo_threshold=THRESHOLD)
    values.update(overrides)
    return GuitarNoteState(**values)


def _track(notes: List[Tuple[int, int, int]], sysex: List[Tuple[int, List[int]]] = ()) -> mido.MidiTrack:
    """Build a delta-time track from (note, start, end) and (tick, sysex data) records."""
    events = []
    for tick, data in sysex:
        events.append((tick, 0, mido.Message("sysex", data=data)))
    for note, start, end in notes:
        events.append((start, 2, mido.Message("note_on", note=note, velocity=100)))
        events.append((end, 1, mido.Message("note_off", note=note, velocity=0)))
    events.sort(key=lambda event: (event[0], event[1]))

    track = mido.MidiTrack()
    last_tick = 0
    for tick, _order, message in events:
        track.append(message.copy(time=tick - last_tick))
        last_tick = tick
    return track


def _expert(track: mido.MidiTrack, **overrides) -> NoteTimeline:
    values = dict(
        rules=HopoRules.FIRST_GAME,
        fret_type=FretType.FIVE_FRETS,
        resolution=RESOLUTION,
        hopo_threshold=THRESHOLD,
    )
    values.update(overrides)
    return notes_from_track(track, Difficulty.CHALLENGE, **values)


def test_translate_sysex_tap() -> None:
    assert translate_sysex(TAP_ON, Difficulty.EASY) is SysexAction.TAP_START
    assert translate_sysex(TAP_OFF, Difficulty.CHALLENGE) is SysexAction.TAP_STOP
    raw_tap = [0xF0, 0x50, 0x53, 0x00, 0x00, 0xFF, 0x04, 0x01, 0xF7]
    assert translate_sysex(raw_tap, Difficulty.HARD) is SysexAction.TAP_START


def test_translate_sysex_open() -> None:
    assert translate_sysex(EXPERT_OPEN_ON, Difficulty.CHALLENGE) is SysexAction.OPEN_START
    assert translate_sysex(EXPERT_OPEN_OFF, Difficulty.CHALLENGE) is SysexAction.OPEN_STOP
    # Open markers only apply to their own difficulty.
    assert translate_sysex(EXPERT_OPEN_ON, Difficulty.EASY) is SysexAction.NONE


def test_translate_sysex_rejects_other_payloads() -> None:
    assert translate_sysex([0x43, 0x10, 0x4C, 0x00, 0x00, 0x7E, 0x00], Difficulty.EASY) is SysexAction.NONE
    assert translate_sysex([0x50, 0x53, 0x00], Difficulty.EASY) is SysexAction.NONE
    assert translate_sysex([0x50, 0x53, 0x00, 0x00, 0x7F, 0x04, 0x05], Difficulty.EASY) is SysexAction.NONE


def test_isolated_notes() -> None:
    timeline = NoteTimeline(6)
    state = _state()
    add_guitar_note(timeline, 0, 0, 100, state)
    add_guitar_note(timeline, 1, 120, 200, state)
    add_guitar_note(timeline, 2, 960, 1000, state)
    assert timeline.get_tap_note(0, 0).type is TapNoteType.GEM
    assert timeline.get_tap_note(1, 12).type is TapNoteType.HOPO
    assert timeline.get_tap_note(2, 96).type is TapNoteType.GEM
    assert state.prev_track == 2
    assert state.prev_tick[:3] == [0, 120, 960]


def test_held_threshold_and_end_correction() -> None:
    timeline = NoteTimeline(6)
    state = _state()
    # Exactly half a beat: not held.
    add_guitar_note(timeline, 0, 0, 240, state)
    assert timeline.get_tap_note(0, 0).type is TapNoteType.GEM
    # One beat: held, end pulled in by 480 // 8 ticks.
    add_guitar_note(timeline, 1, 960, 1440, state)
    held = timeline.get_tap_note(1, 96)
    assert held.type is TapNoteType.GEM_HOLD
    assert held.duration == 42


def test_chord_demotes_hopo_to_strum() -> None:
    timeline = NoteTimeline(6)
    state = _state()
    add_guitar_note(timeline, 0, 0, 100, state)
    add_guitar_note(timeline, 1, 120, 200, state)
    add_guitar_note(timeline, 2, 120, 200, state)
    assert timeline.get_tap_note(1, 12).type is TapNoteType.GEM
    assert timeline.get_tap_note(2, 12).type is TapNoteType.GEM
    assert state.last_chord_tick == 120


def test_forced_hopo_chord_keeps_highest_lane() -> None:
    timeline = NoteTimeline(6)
    state = _state()
    add_guitar_note(timeline, 0, 0, 60, state)
    add_guitar_note(timeline, 1, 0, 60, state)
    add_guitar_note(timeline, 5, 0, 60, state)
    assert timeline.get_tap_note(0, 0).is_empty
    assert timeline.get_tap_note(1, 0).type is TapNoteType.HOPO
    assert state.last_forced_hopo == 0

    # A lower chord note arriving later on the same row is dropped.
    add_guitar_note(timeline, 0, 0, 60, state)
    assert timeline.get_tap_note(0, 0).is_empty
    assert timeline.get_tap_note(1, 0).type is TapNoteType.HOPO


def test_forced_hopo_before_higher_chord_note() -> None:
    timeline = NoteTimeline(6)
    state = _state()
    add_guitar_note(timeline, 0, 0, 60, state)
    add_guitar_note(timeline, 5, 0, 60, state)
    add_guitar_note(timeline, 2, 0, 60, state)
    # The HOPO moves up to the new highest lane.
    assert timeline.get_tap_note(0, 0).is_empty
    assert timeline.get_tap_note(2, 0).type is TapNoteType.HOPO


def test_forced_strum_marker() -> None:
    timeline = NoteTimeline(6)
    state = _state()
    add_guitar_note(timeline, 0, 0, 60, state)
    add_guitar_note(timeline, 1, 120, 180, state)
    assert timeline.get_tap_note(1, 12).type is TapNoteType.HOPO
    add_guitar_note(timeline, 6, 120, 180, state)
    assert timeline.get_tap_note(1, 12).type is TapNoteType.GEM
    assert state.last_forced_strum == 120


def test_should_be_hopo_markers() -> None:
    state = _state()
    state.prev_tick[0] = 0
    assert should_be_hopo(1, 100, state) is True
    state.last_chord_tick = 100
    assert should_be_hopo(1, 100, state) is False
    state.last_forced_hopo = 100
    assert should_be_hopo(1, 100, state) is True
    state.last_forced_strum = 100
    assert should_be_hopo(1, 100, state) is False


def test_second_game_rules_block_hopo_out_of_chord() -> None:
    first_game = _state(rules=HopoRules.FIRST_GAME)
    second_game = _state(rules=HopoRules.SECOND_GAME)
    for state in (first_game, second_game):
        state.prev_tick[0] = 0
        state.prev_tick[1] = 0
    assert should_be_hopo(1, 100, first_game) is True
    assert should_be_hopo(1, 100, second_game) is False


def test_notes_from_track() -> None:
    timeline = _expert(_track([(96, 0, 60), (97, 120, 180), (99, 1920, 1980)]))
    assert timeline.num_tracks == 6
    assert timeline.get_tap_note(0, 0).type is TapNoteType.GEM
    assert timeline.get_tap_note(1, 12).type is TapNoteType.HOPO
    assert timeline.get_tap_note(3, 192).type is TapNoteType.GEM


def test_chord_from_track_is_strum() -> None:
    timeline = _expert(_track([(96, 0, 60), (97, 0, 60)]))
    assert timeline.get_tap_note(0, 0).type is TapNoteType.GEM
    assert timeline.get_tap_note(1, 0).type is TapNoteType.GEM


def test_notes_outside_band_are_ignored() -> None:
    timeline = _expert(_track([(60, 0, 60), (84, 0, 60), (103, 0, 60)]))
    assert timeline.is_empty()


def test_zero_length_note_is_dropped() -> None:
    track = mido.MidiTrack(
        [
            mido.Message("note_on", note=96, velocity=100, time=0),
            mido.Message("note_on", note=96, velocity=0, time=0),
        ]
    )
    timeline = _expert(track)
    assert timeline.is_empty()


def test_first_note_on_wins() -> None:
    track = mido.MidiTrack(
        [
            mido.Message("note_on", note=96, velocity=100, time=0),
            mido.Message("note_on", note=96, velocity=100, time=60),
            mido.Message("note_off", note=96, velocity=0, time=60),
        ]
    )
    timeline = _expert(track)
    assert timeline.rows(0) == [0]


def test_tap_section() -> None:
    track = _track([(96, 0, 60), (97, 120, 180), (98, 480, 540)], sysex=[(120, TAP_ON), (300, TAP_OFF)])
    timeline = _expert(track)
    assert timeline.get_tap_note(1, 12).type is TapNoteType.TAP
    assert timeline.get_tap_note(2, 48).type is TapNoteType.GEM


def test_open_section_moves_notes_to_open_column() -> None:
    track = _track([(96, 0, 60), (97, 960, 1020)], sysex=[(0, EXPERT_OPEN_ON), (480, EXPERT_OPEN_OFF)])
    timeline = _expert(track)
    assert timeline.get_tap_note(0, 0).is_empty
    assert timeline.get_tap_note(5, 0).type is TapNoteType.GEM
    assert timeline.get_tap_note(1, 96).type is TapNoteType.GEM


def test_six_fret_open_lane() -> None:
    timeline = _expert(_track([(94, 0, 60), (95, 960, 1020)]), fret_type=FretType.SIX_FRETS)
    assert timeline.num_tracks == 7
    assert timeline.get_tap_note(6, 0).type is TapNoteType.GEM
    assert timeline.get_tap_note(0, 96).type is TapNoteType.GEM


def test_six_fret_forced_markers() -> None:
    # Lanes 101 and 102 are the forced HOPO / strum markers of the six-fret expert band.
    timeline = _expert(_track([(95, 0, 60), (96, 960, 1020), (101, 960, 1020)]), fret_type=FretType.SIX_FRETS)
    assert timeline.get_tap_note(1, 96).type is TapNoteType.HOPO


def test_state_rejects_bad_resolution() -> None:
    with pytest.raises(ValueError):
        GuitarNoteState(resolution=0, hopo_threshold=10)


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__]))
