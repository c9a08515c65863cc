# -*- coding: utf-8 -*-
########################
# timing_data.py
########################
# Purpose:
# - Song timing for loaded charts: tempo changes, time signatures, section labels, offset.
# - Converts beats and rows to elapsed seconds.
#
# Design notes:
# - No I/O. Deterministic and order independent: segments are kept sorted.
# - Rows are 1/48 of a beat. beat_to_note_row rounds half to even.
# - Tempo before the first change is the first change's tempo (120 BPM when there is none).
# - elapsed seconds = seconds since beat 0 minus offset_seconds.
#
########################
# Interfaces:
# Public constants:
# - ROWS_PER_BEAT = 48
#
# Public functions:
# - beat_to_note_row(beat: float) -> int
# - note_row_to_beat(row: int) -> float
#
# Public dataclasses:
# - TimeSignature(row: int, numerator: int, denominator: int)
# - Label(row: int, text: str)
#
# Public classes:
# - class TimingData
#   - offset_seconds: float
#   - add_tempo_change(beat: float, bpm: float) -> None
#   - add_time_signature(row: int, numerator: int, denominator: int) -> None
#   - add_label(row: int, text: str) -> None
#   - bpm_segments() -> list[tuple[float, float]]
#   - time_signatures() -> list[TimeSignature]
#   - labels() -> list[Label]
#   - beat_to_elapsed_seconds(beat: float) -> float
#   - row_to_elapsed_seconds(row: int) -> float
#
# Inputs:
# - Tempo, signature and label events from chart_store.py and midi_store.py.
#
# Outputs:
# - Song.timing.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple


ROWS_PER_BEAT = 48

_DEFAULT_BPM = 120.0


def beat_to_note_row(beat: float) -> int:
    return int(round(float(beat) * ROWS_PER_BEAT))


def note_row_to_beat(row: int) -> float:
    return float(row) / float(ROWS_PER_BEAT)


@dataclass(frozen=True)
class TimeSignature:
    row: int
    numerator: int
    denominator: int


@dataclass(frozen=True)
class Label:
    row: int
    text: str


class TimingData:
    def __init__(self, offset_seconds: float = 0.0) -> None:
        self.offset_seconds = float(offset_seconds)
        self._bpm_segments: List[Tuple[float, float]] = []
        self._time_signatures: List[TimeSignature] = []
        self._labels: List[Label] = []

    def add_tempo_change(self, beat: float, bpm: float) -> None:
        beat_value = float(beat)
        bpm_value = float(bpm)
        if bpm_value <= 0.0:
            return
        segments = [segment for segment in self._bpm_segments if segment[0] != beat_value]
        segments.append((beat_value, bpm_value))
        segments.sort(key=lambda segment: segment[0])
        self._bpm_segments = segments

    def add_time_signature(self, row: int, numerator: int, denominator: int) -> None:
        signature = TimeSignature(row=int(row), numerator=int(numerator), denominator=int(denominator))
        signatures = [item for item in self._time_signatures if item.row != signature.row]
        signatures.append(signature)
        signatures.sort(key=lambda item: item.row)
        self._time_signatures = signatures

    def add_label(self, row: int, text: str) -> None:
        label = Label(row=int(row), text=str(text))
        labels = [item for item in self._labels if item.row != label.row]
        labels.append(label)
        labels.sort(key=lambda item: item.row)
        self._labels = labels

    def bpm_segments(self) -> List[Tuple[float, float]]:
        return list(self._bpm_segments)

    def time_signatures(self) -> List[TimeSignature]:
        return list(self._time_signatures)

    def labels(self) -> List[Label]:
        return list(self._labels)

    def _seconds_since_beat_zero(self, beat_value: float) -> float:
        segments = list(self._bpm_segments) if self._bpm_segments else [(0.0, _DEFAULT_BPM)]
        if segments[0][0] > 0.0:
            segments.insert(0, (0.0, segments[0][1]))

        seconds = 0.0
        for index, (start_beat, bpm) in enumerate(segments):
            seconds_per_beat = 60.0 / float(bpm)
            next_start = segments[index + 1][0] if index + 1 < len(segments) else None
            if beat_value < start_beat and index == 0:
                # Before beat 0: extrapolate with the first tempo.
                return (beat_value - start_beat) * seconds_per_beat
            if next_start is None or beat_value < next_start:
                return seconds + (beat_value - start_beat) * seconds_per_beat
            seconds += (next_start - start_beat) * seconds_per_beat
        return seconds

    def beat_to_elapsed_seconds(self, beat: float) -> float:
        return self._seconds_since_beat_zero(float(beat)) - self.offset_seconds

    def row_to_elapsed_seconds(self, row: int) -> float:
        return self.beat_to_elapsed_seconds(note_row_to_beat(row))


def _run_unit_tests() -> None:
    assert beat_to_note_row(0.5) == 24
    assert beat_to_note_row(96 / 192) == 24
    assert beat_to_note_row(1.0 / 96.0) == 0

    timing = TimingData()
    assert abs(timing.beat_to_elapsed_seconds(2.0) - 1.0) < 1e-9

    timing.add_tempo_change(0.0, 60.0)
    timing.add_tempo_change(4.0, 120.0)
    assert abs(timing.beat_to_elapsed_seconds(4.0) - 4.0) < 1e-9
    assert abs(timing.beat_to_elapsed_seconds(6.0) - 5.0) < 1e-9
    assert abs(timing.row_to_elapsed_seconds(48) - 1.0) < 1e-9

    timing.offset_seconds = 0.5
    assert abs(timing.beat_to_elapsed_seconds(1.0) - 0.5) < 1e-9

    timing.add_label(96, "Intro")
    timing.add_label(96, "Verse")
    assert [label.text for label in timing.labels()] == ["Verse"]


if __name__ == "__main__":
    _run_unit_tests()
    print("timing_data.py: ok")
