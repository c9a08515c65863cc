# -*- coding: utf-8 -*-
########################
# note_timeline.py
########################
# Purpose:
# - Sparse per-track storage of classified notes, keyed by row.
# - The write target of both classification engines and the read side of retroactive reclassification.
#
# Design notes:
# - Rows are TimingData rows (48 per beat). One TapNote per (track, row).
# - Single writer: an engine owns its timeline for the whole pass.
# - Reclassification is read-modify-write: get_tap_note() then place_note() or set_tap_note().
# - A hold absorbs other notes on its track that start strictly inside it.
#
########################
# Interfaces:
# Public classes:
# - class NoteTimeline
#   - __init__(num_tracks: int)
#   - num_tracks -> int
#   - set_tap_note(track: int, row: int, tap_note: TapNote) -> None
#   - add_hold_note(track: int, start_row: int, end_row: int, tap_note: TapNote) -> None
#   - get_tap_note(track: int, row: int) -> TapNote
#   - clear_tap_note(track: int, row: int) -> None
#   - place_note(track: int, start_row: int, end_row: int, category: NoteCategory) -> TapNote
#   - rows(track: int) -> list[int]
#   - notes(track: int) -> list[tuple[int, TapNote]]
#   - note_count() -> int
#   - last_row() -> int
#   - is_empty() -> bool
#
# Inputs:
# - Rows and TapNote values from chart_notes.py and midi_notes.py.
#
# Outputs:
# - Steps.note_data for song_models.py.
#
########################

from __future__ import annotations

from typing import Dict, List, Tuple

from chart_models import TAP_EMPTY, NoteCategory, TapNote, categorize


class NoteTimeline:
    def __init__(self, num_tracks: int) -> None:
        if int(num_tracks) <= 0:
            raise ValueError(f"num_tracks must be positive, got {num_tracks!r}")
        self._tracks: List[Dict[int, TapNote]] = [{} for _ in range(int(num_tracks))]

    @property
    def num_tracks(self) -> int:
        return len(self._tracks)

    def _track(self, track: int) -> Dict[int, TapNote]:
        track_index = int(track)
        if track_index < 0 or track_index >= len(self._tracks):
            raise IndexError(f"Track {track_index} out of range for {len(self._tracks)} tracks")
        return self._tracks[track_index]

    def set_tap_note(self, track: int, row: int, tap_note: TapNote) -> None:
        notes = self._track(track)
        if tap_note.is_empty:
            notes.pop(int(row), None)
            return
        notes[int(row)] = tap_note

    def add_hold_note(self, track: int, start_row: int, end_row: int, tap_note: TapNote) -> None:
        notes = self._track(track)
        start = int(start_row)
        end = int(end_row)
        if end <= start:
            raise ValueError(f"Hold must end after it starts: {start}..{end}")
        for row in [row for row in notes if start < row <= end]:
            del notes[row]
        notes[start] = TapNote(tap_note.type, end - start)

    def get_tap_note(self, track: int, row: int) -> TapNote:
        return self._track(track).get(int(row), TAP_EMPTY)

    def clear_tap_note(self, track: int, row: int) -> None:
        self._track(track).pop(int(row), None)

    def place_note(self, track: int, start_row: int, end_row: int, category: NoteCategory) -> TapNote:
        tap_note = categorize(category, start_row, end_row)
        if tap_note.is_held:
            self.add_hold_note(track, start_row, end_row, tap_note)
        else:
            self.set_tap_note(track, start_row, tap_note)
        return tap_note

    def rows(self, track: int) -> List[int]:
        return sorted(self._track(track).keys())

    def notes(self, track: int) -> List[Tuple[int, TapNote]]:
        notes = self._track(track)
        return [(row, notes[row]) for row in sorted(notes.keys())]

    def note_count(self) -> int:
        return sum(len(notes) for notes in self._tracks)

    def last_row(self) -> int:
        last = -1
        for notes in self._tracks:
            for row, tap_note in notes.items():
                last = max(last, row + tap_note.duration)
        return last

    def is_empty(self) -> bool:
        return self.note_count() == 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NoteTimeline):
            return NotImplemented
        return self._tracks == other._tracks

    def __repr__(self) -> str:
        return f"NoteTimeline(num_tracks={self.num_tracks}, notes={self.note_count()})"


def _run_unit_tests() -> None:
    timeline = NoteTimeline(6)
    placed = timeline.place_note(0, 0, 48, NoteCategory.STRUM)
    assert placed.is_held and placed.duration == 48
    assert timeline.get_tap_note(0, 0) == placed

    timeline.place_note(1, 24, 24, NoteCategory.HOPO)
    assert timeline.get_tap_note(1, 24).is_hopo
    assert timeline.get_tap_note(2, 24).is_empty

    # A later hold on track 1 swallows the HOPO at row 24.
    timeline.place_note(1, 12, 60, NoteCategory.TAP)
    assert timeline.get_tap_note(1, 24).is_empty
    assert timeline.rows(1) == [12]

    timeline.clear_tap_note(0, 0)
    assert timeline.note_count() == 1
    assert timeline.last_row() == 60

    try:
        timeline.get_tap_note(6, 0)
    except IndexError:
        pass
    else:
        raise AssertionError("Expected IndexError for track 6")


if __name__ == "__main__":
    _run_unit_tests()
    print("note_timeline.py: ok")
